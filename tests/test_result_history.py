"""Tests for result history ordering and grade bands."""

from datetime import datetime, timedelta, timezone

import pytest

from exam_app.core.models import AttemptResult
from exam_app.core.services.result_history import (
    GradeBand,
    average_percentage,
    grade_band,
    rank_by_score,
    sort_newest_first,
)

BASE = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _result(result_id: str, score: int, minutes: int, hours_later: int = 0) -> AttemptResult:
    return AttemptResult(
        test_id="alg",
        student_id=result_id,
        group_id="group-a",
        score=score,
        max_score=30,
        percentage=round(100 * score / 30),
        answers=[],
        time_spent_minutes=minutes,
        submitted_at=BASE + timedelta(hours=hours_later),
        id=result_id,
    )


@pytest.mark.parametrize(
    "percentage,band",
    [
        (100, GradeBand.EXCELLENT),
        (90, GradeBand.EXCELLENT),
        (89, GradeBand.GOOD),
        (70, GradeBand.GOOD),
        (69, GradeBand.SATISFACTORY),
        (50, GradeBand.SATISFACTORY),
        (49, GradeBand.NEEDS_WORK),
        (0, GradeBand.NEEDS_WORK),
    ],
)
def test_grade_band_thresholds(percentage, band):
    assert grade_band(percentage) is band


def test_newest_first():
    results = [_result("a", 10, 5, 0), _result("b", 10, 5, 2), _result("c", 10, 5, 1)]

    assert [r.id for r in sort_newest_first(results)] == ["b", "c", "a"]


def test_rank_by_score_breaks_ties_by_time_spent():
    results = [_result("slow", 20, 9), _result("top", 30, 12), _result("quick", 20, 4)]

    assert [r.id for r in rank_by_score(results)] == ["top", "quick", "slow"]


def test_average_percentage():
    assert average_percentage([]) == 0
    assert average_percentage([_result("a", 30, 1), _result("b", 0, 1), _result("c", 15, 1)]) == 50
