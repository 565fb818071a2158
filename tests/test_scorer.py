"""Tests for scoring a finished attempt."""

from datetime import datetime, timedelta, timezone
import random

import pytest

from exam_app.constants.exam_constants import UNANSWERED_SELECTION
from exam_app.core.models import ExamQuestion
from exam_app.core.services.question_randomizer import QuestionRandomizer
from exam_app.core.services.scorer import (
    elapsed_minutes,
    percentage_of,
    round_half_up,
    score_attempt,
)

STARTED = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _randomize(points: list[int], seed: int = 11):
    questions = [
        ExamQuestion(id=f"q{i}", question_text=f"Q{i}", options=["a", "b", "c", "d"], correct_option_index=i % 4, points=p)
        for i, p in enumerate(points)
    ]
    return QuestionRandomizer(random.Random(seed)).randomize(questions)


def _score(questions, selections, minutes: float = 3):
    return score_attempt(
        questions,
        selections,
        test_id="t",
        student_id="s",
        group_id="g",
        started_at=STARTED,
        submitted_at=STARTED + timedelta(minutes=minutes),
    )


def _correct(questions, *question_ids):
    return {q.question_id: q.correct_option_index for q in questions if q.question_id in question_ids}


def test_all_correct_scores_full_marks():
    questions = _randomize([10, 20])

    result = _score(questions, _correct(questions, "q0", "q1"))

    assert (result.score, result.max_score, result.percentage) == (30, 30, 100)


def test_unanswered_question_counts_towards_max_score():
    questions = _randomize([10, 20])

    result = _score(questions, _correct(questions, "q0"))

    assert (result.score, result.max_score, result.percentage) == (10, 30, 33)
    unanswered = next(o for o in result.answers if o.question_id == "q1")
    assert unanswered.selected_option_index == UNANSWERED_SELECTION
    assert unanswered.selected_canonical_index == UNANSWERED_SELECTION
    assert not unanswered.is_correct
    assert unanswered.points == 0
    assert unanswered.max_points == 20


def test_wrong_answer_awards_no_points():
    questions = _randomize([5])
    wrong = (questions[0].correct_option_index + 1) % 4

    result = _score(questions, {"q0": wrong})

    assert result.score == 0
    assert result.answers[0].selected_option_index == wrong
    assert result.answers[0].selected_canonical_index == questions[0].option_order[wrong]


def test_selected_canonical_index_points_at_chosen_option():
    questions = _randomize([1])
    result = _score(questions, _correct(questions, "q0"))

    assert result.answers[0].selected_canonical_index == 0


def test_scoring_is_deterministic():
    questions = _randomize([1, 2, 3, 4])
    selections = {"q0": 0, "q2": 3, "q3": 1}

    assert _score(questions, selections) == _score(questions, selections)


@pytest.mark.parametrize("seed", range(10))
def test_outcomes_cover_every_question_and_sum_to_max_score(seed):
    rng = random.Random(seed)
    points = [rng.randint(1, 10) for _ in range(rng.randint(1, 8))]
    questions = _randomize(points, seed=seed)
    selections = {q.question_id: rng.randrange(4) for q in questions if rng.random() < 0.7}

    result = _score(questions, selections)

    assert len(result.answers) == len(points)
    assert sorted(o.question_id for o in result.answers) == sorted(q.question_id for q in questions)
    assert sum(o.max_points for o in result.answers) == result.max_score == sum(points)
    assert sum(o.points for o in result.answers) == result.score
    assert 0 <= result.percentage <= 100


def test_percentage_of_zero_max_score_is_zero():
    assert percentage_of(0, 0) == 0


@pytest.mark.parametrize(
    "score,max_score,expected",
    [(0, 7, 0), (7, 7, 100), (1, 3, 33), (2, 3, 67), (1, 8, 13), (1, 200, 1)],
)
def test_percentage_rounds_half_up(score, max_score, expected):
    assert percentage_of(score, max_score) == expected


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.49) == 0


def test_elapsed_minutes_rounds_to_nearest_minute():
    assert elapsed_minutes(STARTED, STARTED + timedelta(seconds=29)) == 0
    assert elapsed_minutes(STARTED, STARTED + timedelta(seconds=90)) == 2
    assert elapsed_minutes(STARTED, STARTED + timedelta(minutes=12, seconds=10)) == 12


def test_result_carries_identity_and_timing():
    questions = _randomize([1])

    result = _score(questions, {}, minutes=4)

    assert (result.test_id, result.student_id, result.group_id) == ("t", "s", "g")
    assert result.time_spent_minutes == 4
    assert result.submitted_at == STARTED + timedelta(minutes=4)
    assert result.id is None
