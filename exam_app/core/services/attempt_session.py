"""In-progress state of one student's test attempt."""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
from uuid import uuid4

from exam_app.core.errors import NoQuestionsError
from exam_app.core.models import (
    AttemptResult,
    AttemptState,
    ExamTest,
    RandomizedQuestion,
    Student,
)

logger = logging.getLogger(__name__)


class AttemptSession:
    """Single source of truth for the selections made during an attempt."""

    def __init__(
        self,
        test: ExamTest,
        student: Student,
        questions: list[RandomizedQuestion],
        started_at: datetime,
    ) -> None:
        if not questions:
            raise NoQuestionsError(f"Test '{test.id}' has no questions.")
        self.attempt_id: str = uuid4().hex
        self.test = test
        self.student = student
        self.started_at = started_at
        self.deadline: datetime = started_at + timedelta(minutes=test.duration_minutes)
        self._questions: list[RandomizedQuestion] = list(questions)
        self._questions_by_id = {question.question_id: question for question in self._questions}
        self._selections: dict[str, int] = {}
        self._state = AttemptState.IN_PROGRESS
        self._pending_result: AttemptResult | None = None
        self._result: AttemptResult | None = None

    @classmethod
    def start(
        cls,
        test: ExamTest,
        student: Student,
        questions: list[RandomizedQuestion],
        now: datetime,
    ) -> AttemptSession:
        return cls(test, student, questions, started_at=now)

    @property
    def state(self) -> AttemptState:
        return self._state

    @property
    def questions(self) -> list[RandomizedQuestion]:
        return list(self._questions)

    @property
    def result(self) -> AttemptResult | None:
        return self._result

    @property
    def pending_result(self) -> AttemptResult | None:
        return self._pending_result

    def get_selections(self) -> dict[str, int]:
        return dict(self._selections)

    def get_selection(self, question_id: str) -> int | None:
        return self._selections.get(question_id)

    def select_answer(self, question_id: str, option_index: int) -> bool:
        """Record a selection. Returns False when the attempt no longer accepts answers."""
        if self._state is not AttemptState.IN_PROGRESS:
            logger.debug("Ignoring selection for attempt %s in state %s", self.attempt_id, self._state.value)
            return False

        question = self._questions_by_id.get(question_id)
        if question is None:
            raise ValueError(f"Question '{question_id}' is not part of this attempt.")
        if isinstance(option_index, bool) or not isinstance(option_index, int):
            raise ValueError("Option index must be an integer.")
        if not 0 <= option_index < len(question.options):
            raise ValueError(f"Option index {option_index} out of range for question '{question_id}'.")

        self._selections[question_id] = option_index
        return True

    def answered_count(self) -> int:
        return sum(1 for question in self._questions if question.question_id in self._selections)

    def is_complete(self) -> bool:
        return all(question.question_id in self._selections for question in self._questions)

    def begin_submission(self, result: AttemptResult) -> None:
        """Freeze selections and hold the scored result until it is persisted."""
        self._pending_result = result
        self._state = AttemptState.SUBMITTING

    def finalize(self, result: AttemptResult) -> None:
        self._result = result
        self._pending_result = None
        self._state = AttemptState.SUBMITTED

    def abandon(self) -> bool:
        if self._state.is_terminal:
            return False
        self._pending_result = None
        self._state = AttemptState.ABANDONED
        return True
