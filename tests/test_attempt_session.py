"""Tests for the in-progress attempt state."""

from datetime import timedelta

import pytest

from exam_app.core.errors import NoQuestionsError
from exam_app.core.models import AttemptState, RandomizedQuestion
from exam_app.core.services.attempt_session import AttemptSession


def _randomized(question_id: str, option_count: int = 3) -> RandomizedQuestion:
    return RandomizedQuestion(
        question_id=question_id,
        question_text=f"Text {question_id}",
        options=[f"{question_id}-{i}" for i in range(option_count)],
        correct_option_index=0,
        points=1,
        option_order=list(range(option_count)),
    )


@pytest.fixture
def session(algebra_test, student, clock):
    return AttemptSession.start(algebra_test, student, [_randomized("a"), _randomized("b")], clock())


def test_start_records_start_time_and_deadline(session, clock):
    assert session.started_at == clock()
    assert session.deadline == clock() + timedelta(minutes=10)
    assert session.state is AttemptState.IN_PROGRESS


def test_start_without_questions_fails(algebra_test, student, clock):
    with pytest.raises(NoQuestionsError):
        AttemptSession.start(algebra_test, student, [], clock())


def test_last_selection_wins(session):
    session.select_answer("a", 1)
    session.select_answer("a", 2)

    assert session.get_selection("a") == 2
    assert session.get_selections() == {"a": 2}


def test_is_complete_requires_every_question(session):
    assert not session.is_complete()
    session.select_answer("a", 0)
    assert not session.is_complete()
    assert session.answered_count() == 1
    session.select_answer("b", 0)
    assert session.is_complete()


@pytest.mark.parametrize("option_index", [-1, 3, 10])
def test_out_of_range_option_is_rejected(session, option_index):
    with pytest.raises(ValueError):
        session.select_answer("a", option_index)
    assert session.get_selection("a") is None


def test_unknown_question_is_rejected(session):
    with pytest.raises(ValueError):
        session.select_answer("missing", 0)


def test_selection_is_ignored_once_submission_began(session):
    session.select_answer("a", 1)
    session.begin_submission(result=None)

    assert session.select_answer("a", 2) is False
    assert session.get_selection("a") == 1


def test_abandon_is_terminal_and_ignores_later_calls(session):
    assert session.abandon() is True
    assert session.state is AttemptState.ABANDONED
    assert session.abandon() is False
    assert session.select_answer("a", 0) is False
    assert session.get_selections() == {}
