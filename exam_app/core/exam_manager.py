"""Business logic shared between the Qt UI and the API."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable

from exam_app.core.errors import (
    ConfirmationRequiredError,
    FetchFailure,
    PersistFailure,
    StaleSessionError,
    TestNotFoundError,
    TestUnavailableError,
)
from exam_app.core.models import (
    AttemptResult,
    AttemptState,
    AttemptView,
    AvailableTest,
    DetailedResult,
    ExamQuestion,
    ExamTest,
    Student,
    StudentStatistics,
    TimerTick,
)
from exam_app.core.services.document_store import ExamDocumentStore, StoreError
from exam_app.core.services.exam_attempt import ExamAttempt
from exam_app.core.services.question_randomizer import QuestionRandomizer
from exam_app.core.services import result_history
from exam_app.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class ExamManager:
    """Facade over the document store and the attempts started through it.

    Only live attempts are registered: an attempt leaves the registry once its
    result is stored or it is cancelled, and later calls with its id raise
    :class:`StaleSessionError`.
    """

    def __init__(
        self,
        store: ExamDocumentStore,
        randomizer: QuestionRandomizer | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._lock = Lock()
        self._store = store
        self._randomizer = randomizer or QuestionRandomizer()
        self._clock = clock
        self._attempts: dict[str, ExamAttempt] = {}

    # --- Attempt lifecycle ---

    def start_attempt(self, test_id: str, student_id: str) -> ExamAttempt:
        student = self._require_student(student_id)
        test, questions = self._fetch_test(test_id)
        if not test.is_active:
            raise TestUnavailableError(f"Test '{test.title}' is not active.")
        if student.group_id not in test.group_ids:
            raise TestUnavailableError(f"Test '{test.title}' is not assigned to your group.")
        # An abandoned attempt past its deadline is submitted here and counts as taken
        self.expire_overdue_attempts()
        if self._read(self._store.has_result, test_id, student_id):
            raise TestUnavailableError(f"Test '{test.title}' has already been taken.")

        with self._lock:
            if any(
                existing.session.test.id == test_id
                and existing.session.student.id == student_id
                and not existing.session.state.is_terminal
                for existing in self._attempts.values()
            ):
                raise TestUnavailableError(f"Test '{test.title}' is already in progress.")
            attempt = ExamAttempt.start(
                test,
                questions,
                student,
                self._store,
                randomizer=self._randomizer,
                clock=self._clock,
                on_submitted=self._forget,
            )
            self._attempts[attempt.attempt_id] = attempt
        return attempt

    def get_attempt(self, attempt_id: str) -> ExamAttempt:
        with self._lock:
            attempt = self._attempts.get(attempt_id)
        if attempt is None:
            raise StaleSessionError(f"Attempt '{attempt_id}' is not active.")
        return attempt

    def record_selection(self, attempt_id: str, question_id: str, option_index: int) -> bool:
        return self.get_attempt(attempt_id).record_selection(question_id, option_index)

    def tick(self, attempt_id: str) -> TimerTick:
        return self.get_attempt(attempt_id).tick()

    def submit(
        self,
        attempt_id: str,
        *,
        forced: bool = False,
        confirm: Callable[[], bool] | None = None,
    ) -> AttemptResult | None:
        return self.get_attempt(attempt_id).submit(forced=forced, confirm=confirm)

    def submit_confirmed(self, attempt_id: str, confirmed: bool) -> AttemptResult:
        """Submit for callers that cannot prompt; raises when confirmation is still needed."""
        attempt = self.get_attempt(attempt_id)
        session = attempt.session
        result = attempt.submit(confirm=lambda: confirmed)
        if result is None:
            raise ConfirmationRequiredError(session.answered_count(), len(session.questions))
        return result

    def renderable_view(self, attempt_id: str) -> AttemptView:
        return self.get_attempt(attempt_id).renderable_view()

    def cancel_attempt(self, attempt_id: str) -> bool:
        with self._lock:
            attempt = self._attempts.pop(attempt_id, None)
        if attempt is None:
            return False
        return attempt.cancel()

    def active_attempt_count(self) -> int:
        with self._lock:
            return len(self._attempts)

    def expire_overdue_attempts(self) -> None:
        """Force-submit attempts whose deadline passed while nobody polled them."""
        with self._lock:
            attempts = list(self._attempts.values())
        for attempt in attempts:
            try:
                attempt.tick()
                if attempt.session.state is AttemptState.SUBMITTING:
                    attempt.submit(forced=True)
            except PersistFailure as exc:
                logger.warning("Result of overdue attempt %s is still pending: %s", attempt.attempt_id, exc)

    def _forget(self, attempt: ExamAttempt) -> None:
        with self._lock:
            self._attempts.pop(attempt.attempt_id, None)

    # --- History & statistics ---

    def list_available_tests(self, student_id: str) -> list[AvailableTest]:
        student = self._require_student(student_id)
        self.expire_overdue_attempts()
        available: list[AvailableTest] = []
        for test in self._read(self._store.list_tests_for_group, student.group_id):
            if not test.is_active:
                continue
            if self._read(self._store.has_result, test.id, student.id):
                continue
            questions = self._read(self._store.get_questions, test.id)
            available.append(
                AvailableTest(
                    test_id=test.id,
                    title=test.title,
                    description=test.description,
                    question_count=len(questions),
                    duration_minutes=test.duration_minutes,
                )
            )
        return available

    def list_student_results(self, student_id: str) -> list[AttemptResult]:
        results = self._read(self._store.list_results_for_student, student_id)
        return result_history.sort_newest_first(results)

    def student_statistics(self, student_id: str) -> StudentStatistics:
        student = self._require_student(student_id)
        active_tests = [
            test
            for test in self._read(self._store.list_tests_for_group, student.group_id)
            if test.is_active
        ]
        results = self._read(self._store.list_results_for_student, student_id)
        return StudentStatistics(
            available_tests=len(active_tests),
            completed_tests=len(results),
            average_percentage=result_history.average_percentage(results),
        )

    def detailed_result(self, result_id: str) -> DetailedResult:
        result = self._read(self._store.get_result, result_id)
        if result is None:
            raise TestNotFoundError(f"Result '{result_id}' not found.")
        test = self._read(self._store.get_test, result.test_id)
        questions = self._read(self._store.get_questions, result.test_id)
        return result_history.build_detailed_result(result, test, questions)

    def list_test_results(self, test_id: str) -> list[AttemptResult]:
        results = self._read(self._store.list_results_for_test, test_id)
        return result_history.rank_by_score(results)

    # --- Helpers ---

    def _fetch_test(self, test_id: str) -> tuple[ExamTest, list[ExamQuestion]]:
        test = self._read(self._store.get_test, test_id)
        if test is None:
            raise TestNotFoundError(f"Test '{test_id}' not found.")
        questions = self._read(self._store.get_questions, test_id)
        return test, questions

    def _require_student(self, student_id: str) -> Student:
        student = self._read(self._store.get_student, student_id)
        if student is None:
            raise TestNotFoundError(f"Student '{student_id}' not found.")
        return student

    @staticmethod
    def _read(operation, *args):
        try:
            return operation(*args)
        except (StoreError, OSError) as exc:
            logger.warning("Store read %s failed: %s", getattr(operation, "__name__", operation), exc)
            raise FetchFailure("Could not load data. Please try again.") from exc
