"""
Simulated question fetch.

Stands in for a network fetch: progress climbs linearly from 0 to 1 over a
fixed duration, then the run completes and reports back. The user can
interrupt at any time by leaving the fetch screen.

Usage:
    simulator = FetchSimulator(scheduler, on_completed=handle_completed)
    simulator.start()
    ...
    simulator.cancel()  # returns True if a run was interrupted

Thread Safety:
    Not thread-safe. All calls and timer callbacks run on one event loop.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .models import FetchState
from .scheduler import GenerationCounter, Scheduler, TimerHandle


__all__ = [
    "FETCH_DURATION_SECONDS",
    "FetchSimulator",
    "PROGRESS_TICK_SECONDS",
]


logger = logging.getLogger(__name__)


FETCH_DURATION_SECONDS = 1.0
PROGRESS_TICK_SECONDS = 0.05


class FetchSimulator:
    """
    Idle/Fetching state machine with a cancellable progress timer.

    States:
        Idle -> Fetching(progress)  on start()
        Fetching -> Idle            on cancel() or when the duration elapses

    At most one tick chain and one completion callback are outstanding at a
    time; both carry the run's generation token.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        duration: float = FETCH_DURATION_SECONDS,
        tick_interval: float = PROGRESS_TICK_SECONDS,
        on_completed: Optional[Callable[[], None]] = None,
        on_progress: Optional[Callable[[float], None]] = None,
    ) -> None:
        if duration <= 0:
            raise ValueError("Fetch duration must be positive")
        if tick_interval <= 0:
            raise ValueError("Progress tick interval must be positive")

        self._scheduler = scheduler
        self.duration = duration
        self.tick_interval = tick_interval
        self._on_completed = on_completed
        self._on_progress = on_progress

        self._state = FetchState()
        self._generations = GenerationCounter()
        self._tick_handle: Optional[TimerHandle] = None
        self._completion_handle: Optional[TimerHandle] = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> FetchState:
        """Snapshot of the current fetch state."""
        return self._state.model_copy()

    @property
    def is_active(self) -> bool:
        return self._state.active

    @property
    def progress(self) -> float:
        return self._state.progress

    @property
    def is_ticking(self) -> bool:
        return self._tick_handle is not None and self._tick_handle.pending

    @property
    def completion_pending(self) -> bool:
        return self._completion_handle is not None and self._completion_handle.pending

    # -------------------------------------------------------------------------
    # Control Methods
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Begin a run. An in-flight run is cancelled first."""
        if self._state.active:
            logger.info("Restarting fetch: cancelling the previous run")
        self._stop_timers()

        token = self._generations.advance()
        started_at = self._scheduler.now()
        self._state = FetchState(active=True, progress=0.0, started_at=started_at)

        self._tick_handle = self._scheduler.call_later(
            self.tick_interval, lambda: self._tick(token)
        )
        self._completion_handle = self._scheduler.call_later(
            self.duration, lambda: self._complete(token)
        )
        logger.info("Fetch started (duration=%.2fs)", self.duration)

    def cancel(self) -> bool:
        """
        Interrupt the run without signalling completion.

        Returns:
            True if a run was active, False if this was a no-op.
        """
        was_active = self._state.active
        self._stop_timers()
        self._generations.advance()
        self._state = FetchState()
        if was_active:
            logger.info("Fetch cancelled")
        return was_active

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    def _stop_timers(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        if self._completion_handle is not None:
            self._completion_handle.cancel()
            self._completion_handle = None

    def _compute_progress(self) -> float:
        started_at = self._state.started_at
        if started_at is None:
            return 0.0
        elapsed = self._scheduler.now() - started_at
        return min(max(elapsed / self.duration, 0.0), 1.0)

    def _set_progress(self, value: float) -> None:
        value = max(self._state.progress, value)
        if value == self._state.progress:
            return
        self._state.progress = value
        if self._on_progress is not None:
            self._on_progress(value)

    def _tick(self, token: int) -> None:
        if not self._generations.is_current(token) or not self._state.active:
            logger.debug("Dropping stale fetch tick")
            return

        self._set_progress(self._compute_progress())
        if self._state.progress >= 1.0:
            self._tick_handle = None
            return
        self._tick_handle = self._scheduler.call_later(
            self.tick_interval, lambda: self._tick(token)
        )

    def _complete(self, token: int) -> None:
        if not self._generations.is_current(token) or not self._state.active:
            logger.debug("Dropping stale fetch completion")
            return

        self._completion_handle = None
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

        self._set_progress(1.0)
        self._generations.advance()
        self._state = FetchState()
        logger.info("Fetch completed")

        if self._on_completed is not None:
            self._on_completed()
