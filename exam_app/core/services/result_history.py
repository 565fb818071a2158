"""Service for student result history, statistics and teacher review."""

from __future__ import annotations

from enum import Enum

from exam_app.constants.exam_constants import (
    GRADE_EXCELLENT_PERCENTAGE,
    GRADE_GOOD_PERCENTAGE,
    GRADE_SATISFACTORY_PERCENTAGE,
    UNANSWERED_SELECTION,
)
from exam_app.core.models import (
    AttemptResult,
    DetailedResult,
    ExamQuestion,
    ExamTest,
    ReviewedQuestion,
)
from exam_app.core.services.scorer import round_half_up


class GradeBand(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    SATISFACTORY = "satisfactory"
    NEEDS_WORK = "needs_work"


def grade_band(percentage: int) -> GradeBand:
    if percentage >= GRADE_EXCELLENT_PERCENTAGE:
        return GradeBand.EXCELLENT
    if percentage >= GRADE_GOOD_PERCENTAGE:
        return GradeBand.GOOD
    if percentage >= GRADE_SATISFACTORY_PERCENTAGE:
        return GradeBand.SATISFACTORY
    return GradeBand.NEEDS_WORK


def sort_newest_first(results: list[AttemptResult]) -> list[AttemptResult]:
    return sorted(results, key=lambda r: r.submitted_at, reverse=True)


def rank_by_score(results: list[AttemptResult]) -> list[AttemptResult]:
    """Teacher review order: highest score first, faster finishers break ties."""
    return sorted(results, key=lambda r: (-r.score, r.time_spent_minutes, r.submitted_at))


def average_percentage(results: list[AttemptResult]) -> int:
    if not results:
        return 0
    return round_half_up(sum(r.percentage for r in results) / len(results))


def build_detailed_result(
    result: AttemptResult,
    test: ExamTest | None,
    questions: list[ExamQuestion],
) -> DetailedResult:
    """Pair each canonical question (canonical order) with the student's outcome."""
    outcomes = {outcome.question_id: outcome for outcome in result.answers}
    reviewed: list[ReviewedQuestion] = []
    for question in sorted(questions, key=lambda q: q.order):
        outcome = outcomes.get(question.id)
        selected = None
        if outcome is not None and outcome.selected_canonical_index != UNANSWERED_SELECTION:
            selected = outcome.selected_canonical_index
        reviewed.append(
            ReviewedQuestion(
                question_id=question.id,
                question_text=question.question_text,
                options=list(question.options),
                correct_option_index=question.correct_option_index,
                selected_option_index=selected,
                is_correct=outcome.is_correct if outcome is not None else False,
            )
        )
    return DetailedResult(
        result=result,
        test_title=test.title if test is not None else "Unknown test",
        questions=reviewed,
    )
