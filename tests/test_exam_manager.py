"""Tests for the exam facade shared by the UI and the API."""

import pytest

from exam_app.core.errors import (
    ConfirmationRequiredError,
    FetchFailure,
    NoQuestionsError,
    StaleSessionError,
    TestNotFoundError,
    TestUnavailableError,
)
from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import AttemptState, Student, TimerState
from exam_app.core.services.document_store import InMemoryDocumentStore, StoreError


class BrokenStore(InMemoryDocumentStore):
    def get_test(self, test_id):
        raise StoreError("connection reset")


def _answer_all(manager, attempt_id, *, correct=True, only=None):
    attempt = manager.get_attempt(attempt_id)
    for question in attempt.session.questions:
        if only is not None and question.question_id not in only:
            continue
        index = question.correct_option_index
        if not correct:
            index = (index + 1) % len(question.options)
        manager.record_selection(attempt_id, question.question_id, index)


def test_full_marks_for_all_correct_answers(manager):
    attempt = manager.start_attempt("alg", "student-1")
    _answer_all(manager, attempt.attempt_id)

    result = manager.submit(attempt.attempt_id)

    assert (result.score, result.max_score, result.percentage) == (30, 30, 100)


def test_partial_submission_after_confirmation(manager):
    attempt = manager.start_attempt("alg", "student-1")
    _answer_all(manager, attempt.attempt_id, only={"alg-q1"})

    with pytest.raises(ConfirmationRequiredError) as excinfo:
        manager.submit_confirmed(attempt.attempt_id, confirmed=False)
    assert (excinfo.value.answered, excinfo.value.total) == (1, 2)

    result = manager.submit_confirmed(attempt.attempt_id, confirmed=True)

    assert (result.score, result.max_score, result.percentage) == (10, 30, 33)


def test_timer_expiry_forces_submission(manager, store, clock):
    attempt = manager.start_attempt("tri", "student-1")
    _answer_all(manager, attempt.attempt_id, only={"tri-q2"})
    clock.advance(minutes=5)

    tick = manager.tick(attempt.attempt_id)

    assert tick.state is TimerState.EXPIRED
    [result] = store.list_results_for_student("student-1")
    assert result.score == 1
    assert result.max_score == 3
    unanswered = [o for o in result.answers if o.selected_option_index == -1]
    assert sorted(o.question_id for o in unanswered) == ["tri-q1", "tri-q3"]
    assert not any(o.is_correct for o in unanswered)
    assert attempt.renderable_view().result == result
    with pytest.raises(StaleSessionError):
        manager.tick(attempt.attempt_id)


def test_empty_test_cannot_be_started(manager, store):
    with pytest.raises(NoQuestionsError):
        manager.start_attempt("empty", "student-1")

    assert manager.active_attempt_count() == 0
    assert store.list_results_for_student("student-1") == []


@pytest.mark.parametrize(
    "test_id,student_id",
    [("draft", "student-1"), ("alg", "student-2")],
)
def test_inactive_or_unassigned_test_is_rejected(manager, test_id, student_id):
    with pytest.raises(TestUnavailableError):
        manager.start_attempt(test_id, student_id)


def test_unknown_test_or_student(manager):
    with pytest.raises(TestNotFoundError):
        manager.start_attempt("missing", "student-1")
    with pytest.raises(TestNotFoundError):
        manager.start_attempt("alg", "nobody")


def test_taken_test_cannot_be_started_again(manager):
    attempt = manager.start_attempt("alg", "student-1")
    manager.submit(attempt.attempt_id, forced=True)

    with pytest.raises(TestUnavailableError):
        manager.start_attempt("alg", "student-1")


def test_second_concurrent_attempt_is_rejected(manager):
    manager.start_attempt("alg", "student-1")

    with pytest.raises(TestUnavailableError):
        manager.start_attempt("alg", "student-1")


def test_cancelled_attempt_can_be_restarted(manager):
    first = manager.start_attempt("alg", "student-1")
    assert manager.cancel_attempt(first.attempt_id) is True

    second = manager.start_attempt("alg", "student-1")

    assert second.attempt_id != first.attempt_id
    assert first.session.state is AttemptState.ABANDONED


def test_cancelled_attempt_is_stale(manager):
    attempt = manager.start_attempt("alg", "student-1")
    manager.cancel_attempt(attempt.attempt_id)

    with pytest.raises(StaleSessionError):
        manager.submit(attempt.attempt_id, forced=True)
    with pytest.raises(StaleSessionError):
        manager.record_selection(attempt.attempt_id, "alg-q1", 0)
    assert manager.cancel_attempt(attempt.attempt_id) is False


def test_submitted_attempt_leaves_the_registry(manager, store):
    attempt = manager.start_attempt("alg", "student-1")
    _answer_all(manager, attempt.attempt_id)
    assert manager.active_attempt_count() == 1

    result = manager.submit(attempt.attempt_id)

    assert manager.active_attempt_count() == 0
    with pytest.raises(StaleSessionError):
        manager.submit(attempt.attempt_id)
    assert attempt.submit() == result
    assert len(store.list_results_for_student("student-1")) == 1


def test_expired_attempt_leaves_the_registry(manager, clock):
    attempt = manager.start_attempt("alg", "student-1")
    clock.advance(minutes=10)

    manager.tick(attempt.attempt_id)

    assert manager.active_attempt_count() == 0


def test_selection_after_deadline_forces_submission_first(manager, store, clock):
    attempt = manager.start_attempt("alg", "student-1")
    _answer_all(manager, attempt.attempt_id, only={"alg-q1"})
    clock.advance(hours=3)
    question = next(q for q in attempt.session.questions if q.question_id == "alg-q2")

    accepted = manager.record_selection(attempt.attempt_id, "alg-q2", question.correct_option_index)

    assert accepted is False
    [result] = store.list_results_for_student("student-1")
    assert (result.score, result.max_score) == (10, 30)
    assert result.time_spent_minutes == 10
    assert result.submitted_at == attempt.session.deadline
    assert manager.active_attempt_count() == 0


def test_submit_after_deadline_is_forced(manager, store, clock):
    attempt = manager.start_attempt("alg", "student-1")
    _answer_all(manager, attempt.attempt_id, only={"alg-q2"})
    clock.advance(minutes=45)

    result = manager.submit_confirmed(attempt.attempt_id, confirmed=False)

    assert (result.score, result.time_spent_minutes) == (20, 10)
    assert len(store.list_results_for_student("student-1")) == 1


def test_view_after_deadline_reports_the_forced_result(manager, clock):
    attempt = manager.start_attempt("alg", "student-1")
    clock.advance(minutes=11)

    view = manager.renderable_view(attempt.attempt_id)

    assert view.state is AttemptState.SUBMITTED
    assert view.remaining_seconds == 0
    assert view.result is not None and view.result.score == 0


def test_abandoned_overdue_attempt_counts_as_taken(manager, store, clock):
    abandoned = manager.start_attempt("alg", "student-1")
    clock.advance(hours=3)

    with pytest.raises(TestUnavailableError, match="already been taken"):
        manager.start_attempt("alg", "student-1")

    [result] = store.list_results_for_student("student-1")
    assert result.time_spent_minutes == 10
    assert abandoned.session.state is AttemptState.SUBMITTED
    assert manager.active_attempt_count() == 0


def test_overdue_attempts_are_submitted_when_listing_tests(manager, store, clock):
    manager.start_attempt("tri", "student-1")
    clock.advance(minutes=6)

    available = {t.test_id for t in manager.list_available_tests("student-1")}

    assert available == {"alg", "empty"}
    assert store.has_result("tri", "student-1")


def test_renderable_view_reflects_selections(manager, clock):
    attempt = manager.start_attempt("alg", "student-1")
    question = attempt.session.questions[0]
    manager.record_selection(attempt.attempt_id, question.question_id, 1)
    clock.advance(minutes=6)

    view = manager.renderable_view(attempt.attempt_id)

    assert view.title == "Algebra"
    assert view.question_count == 2
    assert view.answered_count == 1
    assert view.questions[0].selected_option_index == 1
    assert view.questions[0].options == question.options
    assert view.remaining_seconds == 240
    assert view.low_time_warning
    assert view.state is AttemptState.IN_PROGRESS


def test_store_read_failure_becomes_fetch_failure(student):
    store = BrokenStore()
    store.add_student(student)
    manager = ExamManager(store)

    with pytest.raises(FetchFailure):
        manager.start_attempt("alg", "student-1")


def test_available_tests_exclude_taken_and_inactive(manager):
    available = {t.test_id for t in manager.list_available_tests("student-1")}
    assert available == {"alg", "tri", "empty"}

    attempt = manager.start_attempt("alg", "student-1")
    manager.submit(attempt.attempt_id, forced=True)

    remaining = manager.list_available_tests("student-1")
    assert {t.test_id for t in remaining} == {"tri", "empty"}
    tri = next(t for t in remaining if t.test_id == "tri")
    assert (tri.question_count, tri.duration_minutes) == (3, 5)


def test_history_statistics_and_review(manager, clock):
    first = manager.start_attempt("alg", "student-1")
    _answer_all(manager, first.attempt_id)
    alg_result = manager.submit(first.attempt_id)

    clock.advance(hours=1)
    second = manager.start_attempt("tri", "student-1")
    _answer_all(manager, second.attempt_id, correct=False)
    tri_result = manager.submit(second.attempt_id)

    history = manager.list_student_results("student-1")
    assert [r.id for r in history] == [tri_result.id, alg_result.id]

    stats = manager.student_statistics("student-1")
    assert (stats.available_tests, stats.completed_tests, stats.average_percentage) == (3, 2, 50)

    detailed = manager.detailed_result(alg_result.id)
    assert detailed.test_title == "Algebra"
    assert [q.question_id for q in detailed.questions] == ["alg-q1", "alg-q2"]
    assert [q.selected_option_index for q in detailed.questions] == [1, 0]
    assert all(q.is_correct for q in detailed.questions)


def test_unknown_result_is_not_found(manager):
    with pytest.raises(TestNotFoundError):
        manager.detailed_result("missing")


def test_test_results_ranked_by_score(store, randomizer, clock):
    store.add_student(Student(id="student-3", full_name="Grace Hopper", group_id="group-a"))
    manager = ExamManager(store, randomizer=randomizer, clock=clock)

    full = manager.start_attempt("alg", "student-1")
    _answer_all(manager, full.attempt_id)
    partial = manager.start_attempt("alg", "student-3")
    clock.advance(minutes=4)
    manager.submit(full.attempt_id)
    _answer_all(manager, partial.attempt_id, only={"alg-q1"})
    manager.submit(partial.attempt_id, forced=True)

    ranked = manager.list_test_results("alg")

    assert [(r.student_id, r.score) for r in ranked] == [("student-1", 30), ("student-3", 10)]
    assert ranked[0].time_spent_minutes == 4
