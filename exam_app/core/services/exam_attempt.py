"""One running attempt: session, countdown and submission guard wired together."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from exam_app.core.markdown_math_renderer import renderer
from exam_app.core.models import (
    AttemptResult,
    AttemptView,
    ExamQuestion,
    ExamTest,
    QuestionView,
    Student,
    TimerTick,
)
from exam_app.core.services.attempt_session import AttemptSession
from exam_app.core.services.attempt_timer import AttemptTimer
from exam_app.core.services.document_store import ExamDocumentStore
from exam_app.core.services.question_randomizer import QuestionRandomizer
from exam_app.core.services.submission_guard import SubmissionGuard
from exam_app.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class ExamAttempt:
    """Owned by the view that started it; discarded once submitted or abandoned."""

    def __init__(
        self,
        session: AttemptSession,
        timer: AttemptTimer,
        guard: SubmissionGuard,
        on_submitted: Callable[[ExamAttempt], object] | None = None,
    ) -> None:
        self.session = session
        self.timer = timer
        self.guard = guard
        self.expired_result: AttemptResult | None = None
        self.on_submitted = on_submitted

    @classmethod
    def start(
        cls,
        test: ExamTest,
        canonical_questions: Sequence[ExamQuestion],
        student: Student,
        store: ExamDocumentStore,
        *,
        randomizer: QuestionRandomizer | None = None,
        clock: Clock = utc_now,
        on_submitted: Callable[[ExamAttempt], object] | None = None,
    ) -> ExamAttempt:
        """Randomize the questions and start the clock. Raises NoQuestionsError for an empty test.

        ``on_submitted`` is called with the attempt once its result is stored,
        whether the student submitted or the deadline passed.
        """
        randomizer = randomizer or QuestionRandomizer()
        questions = randomizer.randomize(canonical_questions)
        now = clock()
        session = AttemptSession.start(test, student, questions, now)
        timer = AttemptTimer(test.duration_minutes, clock=clock)
        guard = SubmissionGuard(session, timer, store, clock=clock)
        attempt = cls(session, timer, guard, on_submitted=on_submitted)
        timer.set_on_expire(attempt._submit_on_expiry)
        timer.start(now)
        logger.info(
            "Attempt %s started: test=%s student=%s questions=%d",
            session.attempt_id,
            test.id,
            student.id,
            len(questions),
        )
        return attempt

    @property
    def attempt_id(self) -> str:
        return self.session.attempt_id

    def record_selection(self, question_id: str, option_index: int) -> bool:
        """Returns False once the attempt stopped accepting answers, including after the deadline."""
        self.timer.tick()
        return self.session.select_answer(question_id, option_index)

    def tick(self) -> TimerTick:
        return self.timer.tick()

    def submit(
        self,
        *,
        forced: bool = False,
        confirm: Callable[[], bool] | None = None,
    ) -> AttemptResult | None:
        # A submit arriving after the deadline becomes the forced one
        self.timer.tick()
        result = self.guard.submit(forced=forced, confirm=confirm)
        self._notify_submitted(result)
        return result

    def cancel(self) -> bool:
        """Student navigated away: stop the clock and discard the attempt."""
        self.timer.cancel()
        abandoned = self.session.abandon()
        if abandoned:
            logger.info("Attempt %s cancelled before submission", self.attempt_id)
        return abandoned

    def renderable_view(self) -> AttemptView:
        session = self.session
        tick = self.timer.tick()
        question_views = [
            QuestionView(
                number=number,
                question_id=question.question_id,
                question_html=renderer.render_fragment(question.question_text),
                question_text=question.question_text,
                options=list(question.options),
                selected_option_index=session.get_selection(question.question_id),
            )
            for number, question in enumerate(session.questions, start=1)
        ]
        return AttemptView(
            attempt_id=session.attempt_id,
            test_id=session.test.id,
            title=session.test.title,
            state=session.state,
            questions=question_views,
            answered_count=session.answered_count(),
            remaining_seconds=tick.remaining_seconds,
            low_time_warning=tick.low_time_warning,
            result=session.result,
        )

    def _submit_on_expiry(self) -> None:
        logger.info("Time expired for attempt %s; submitting", self.attempt_id)
        self.expired_result = self.guard.submit(forced=True)
        self._notify_submitted(self.expired_result)

    def _notify_submitted(self, result: AttemptResult | None) -> None:
        if result is not None and self.on_submitted is not None:
            self.on_submitted(self)
