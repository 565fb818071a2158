"""At-most-once submission of an attempt."""

from __future__ import annotations

from dataclasses import replace
import logging
from threading import Lock
from typing import Callable

from exam_app.core.errors import PersistFailure
from exam_app.core.models import AttemptResult, AttemptState
from exam_app.core.services.attempt_session import AttemptSession
from exam_app.core.services.attempt_timer import AttemptTimer
from exam_app.core.services.document_store import ExamDocumentStore, StoreError
from exam_app.core.services.scorer import score_attempt
from exam_app.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class SubmissionGuard:
    """Serializes manual and timer-triggered submissions so one result is written.

    The ``submitted`` check and the whole submission run under one lock. The
    session only reaches ``SUBMITTED`` after the store accepted the result, so a
    failed write leaves the scored result pending and a later call retries the
    same write.
    """

    def __init__(
        self,
        session: AttemptSession,
        timer: AttemptTimer,
        store: ExamDocumentStore,
        clock: Clock = utc_now,
    ) -> None:
        self._session = session
        self._timer = timer
        self._store = store
        self._clock = clock
        self._lock = Lock()

    @property
    def submitted(self) -> bool:
        return self._session.state is AttemptState.SUBMITTED

    def submit(
        self,
        *,
        forced: bool = False,
        confirm: Callable[[], bool] | None = None,
    ) -> AttemptResult | None:
        """Score and persist the attempt.

        Returns the stored result (the same one on every later call), or None
        when the attempt was abandoned or the caller declined to submit an
        incomplete attempt.
        """
        session = self._session
        with self._lock:
            if session.state is AttemptState.SUBMITTED:
                logger.debug("Attempt %s already submitted; ignoring", session.attempt_id)
                return session.result
            if session.state is AttemptState.ABANDONED:
                logger.debug("Attempt %s was abandoned; ignoring submit", session.attempt_id)
                return None

            pending = session.pending_result
            if pending is None:
                if not forced and not session.is_complete():
                    if confirm is None or not confirm():
                        return None
                self._timer.cancel()
                pending = score_attempt(
                    session.questions,
                    session.get_selections(),
                    test_id=session.test.id,
                    student_id=session.student.id,
                    group_id=session.student.group_id,
                    started_at=session.started_at,
                    submitted_at=min(self._clock(), session.deadline),
                )
                session.begin_submission(pending)

            try:
                result_id = self._store.create_result(pending)
            except (StoreError, OSError) as exc:
                logger.error("Failed to persist result for attempt %s: %s", session.attempt_id, exc)
                raise PersistFailure("The result could not be saved. Please try again.") from exc

            result = replace(pending, id=result_id)
            session.finalize(result)
            logger.info(
                "Attempt %s submitted%s: %s/%s (%s%%)",
                session.attempt_id,
                " (time expired)" if forced else "",
                result.score,
                result.max_score,
                result.percentage,
            )
            return result
