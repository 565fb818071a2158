"""Countdown clock for a single attempt.

The timer does not own a thread. Whoever displays it (the Qt dialog through a
``QTimer``, a browser polling the API) calls :meth:`AttemptTimer.tick` every
``TIMER_POLL_INTERVAL_MS``; the first tick at or past the deadline moves the
timer to ``EXPIRED`` and fires ``on_expire`` exactly once.
"""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
import math
from threading import Lock
from typing import Callable

from exam_app.constants.exam_constants import LOW_TIME_THRESHOLD_SECONDS
from exam_app.core.models import TimerState, TimerTick
from exam_app.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class AttemptTimer:
    """State machine: IDLE -> RUNNING -> (EXPIRED | CANCELLED)."""

    def __init__(
        self,
        duration_minutes: int,
        on_expire: Callable[[], object] | None = None,
        clock: Clock = utc_now,
        low_time_threshold_seconds: int = LOW_TIME_THRESHOLD_SECONDS,
    ) -> None:
        if duration_minutes <= 0:
            raise ValueError("Duration must be a positive number of minutes.")
        self._duration = timedelta(minutes=duration_minutes)
        self._on_expire = on_expire
        self._clock = clock
        self._low_time_threshold_seconds = low_time_threshold_seconds
        self._lock = Lock()
        self._state = TimerState.IDLE
        self._deadline: datetime | None = None
        self._remaining_at_stop: int = 0

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def deadline(self) -> datetime | None:
        return self._deadline

    def set_on_expire(self, callback: Callable[[], object]) -> None:
        self._on_expire = callback

    def start(self, started_at: datetime | None = None) -> None:
        with self._lock:
            if self._state is not TimerState.IDLE:
                raise RuntimeError(f"Timer cannot start from state {self._state.value}.")
            self._deadline = (started_at or self._clock()) + self._duration
            self._state = TimerState.RUNNING

    def tick(self) -> TimerTick:
        """Recompute remaining time; fires the expiry callback on the first expired tick."""
        fire_expiry = False
        with self._lock:
            if self._state is TimerState.IDLE:
                return TimerTick(
                    state=self._state,
                    remaining_seconds=int(self._duration.total_seconds()),
                    low_time_warning=False,
                )
            if self._state is not TimerState.RUNNING:
                return TimerTick(
                    state=self._state,
                    remaining_seconds=self._remaining_at_stop,
                    low_time_warning=False,
                )

            remaining = self._remaining_seconds_exact()
            if remaining <= 0:
                self._state = TimerState.EXPIRED
                self._remaining_at_stop = 0
                fire_expiry = True
                tick = TimerTick(state=TimerState.EXPIRED, remaining_seconds=0, low_time_warning=False)
            else:
                tick = TimerTick(
                    state=TimerState.RUNNING,
                    remaining_seconds=math.floor(remaining),
                    low_time_warning=remaining < self._low_time_threshold_seconds,
                )

        if fire_expiry:
            logger.info("Attempt timer expired at %s", self._deadline)
            if self._on_expire is not None:
                self._on_expire()
        return tick

    def cancel(self) -> bool:
        """Stop the clock. Cancelling an expired or cancelled timer is a no-op."""
        with self._lock:
            if self._state in (TimerState.EXPIRED, TimerState.CANCELLED):
                return False
            if self._state is TimerState.RUNNING:
                self._remaining_at_stop = max(0, math.floor(self._remaining_seconds_exact()))
            self._state = TimerState.CANCELLED
            return True

    def _remaining_seconds_exact(self) -> float:
        assert self._deadline is not None
        return (self._deadline - self._clock()).total_seconds()
