"""Scoring of a finished attempt.

Scoring is a pure function of the randomized question set and the final
selection mapping: each question awards its points when the selection equals
the per-attempt correct index, and every question adds its points to the
maximum score regardless of the answer.
"""

from __future__ import annotations

from datetime import datetime
import math
from typing import Mapping, Sequence

from exam_app.constants.exam_constants import UNANSWERED_SELECTION
from exam_app.core.models import AttemptResult, QuestionOutcome, RandomizedQuestion


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def percentage_of(score: int, max_score: int) -> int:
    if max_score <= 0:
        return 0
    return round_half_up(100 * score / max_score)


def elapsed_minutes(started_at: datetime, submitted_at: datetime) -> int:
    return max(0, round_half_up((submitted_at - started_at).total_seconds() / 60))


def score_question(question: RandomizedQuestion, selection: int | None) -> QuestionOutcome:
    selected = UNANSWERED_SELECTION if selection is None else selection
    is_correct = selected != UNANSWERED_SELECTION and selected == question.correct_option_index
    canonical = (
        question.canonical_option_index(selected)
        if 0 <= selected < len(question.option_order)
        else UNANSWERED_SELECTION
    )
    return QuestionOutcome(
        question_id=question.question_id,
        selected_option_index=selected,
        is_correct=is_correct,
        points=question.points if is_correct else 0,
        max_points=question.points,
        selected_canonical_index=canonical,
    )


def score_attempt(
    questions: Sequence[RandomizedQuestion],
    selections: Mapping[str, int],
    *,
    test_id: str,
    student_id: str,
    group_id: str,
    started_at: datetime,
    submitted_at: datetime,
) -> AttemptResult:
    """Compute the result record for an attempt; one outcome per question, in presentation order."""
    outcomes = [score_question(question, selections.get(question.question_id)) for question in questions]
    score = sum(outcome.points for outcome in outcomes)
    max_score = sum(outcome.max_points for outcome in outcomes)

    return AttemptResult(
        test_id=test_id,
        student_id=student_id,
        group_id=group_id,
        score=score,
        max_score=max_score,
        percentage=percentage_of(score, max_score),
        answers=outcomes,
        time_spent_minutes=elapsed_minutes(started_at, submitted_at),
        submitted_at=submitted_at,
    )
