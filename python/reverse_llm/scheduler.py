"""
Timer scheduling for the single-threaded interaction core.

Every delayed action in the app (scripted replies, fetch ticks, fetch
completion, notification dismissal) goes through a Scheduler. Two
implementations are provided:

    - AsyncioScheduler: wraps loop.call_later/loop.time on a running loop.
    - ManualScheduler: virtual clock advanced explicitly. Used by tests and
      by the Streamlit view, which advances it to wall-clock time on rerun.

Callbacks never run concurrently. For equal deadlines, the callback that was
scheduled first fires first.

Thread Safety:
    Not thread-safe. All calls must happen on the owning event loop.

Last Grunted: 10/12/2026
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Optional, Protocol


__all__ = [
    "AsyncioScheduler",
    "GenerationCounter",
    "ManualScheduler",
    "Scheduler",
    "TimerHandle",
]


logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable reference to one scheduled callback."""

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self._callback: Optional[Callable[[], None]] = callback
        self._cancelled = False
        self._fired = False
        self._loop_handle: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> bool:
        """Whether the callback can still fire."""
        return not self._cancelled and not self._fired

    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once or after firing."""
        if self._cancelled:
            return
        self._cancelled = True
        self._callback = None
        if self._loop_handle is not None:
            self._loop_handle.cancel()
            self._loop_handle = None

    def _run(self) -> None:
        if not self.pending or self._callback is None:
            return
        self._fired = True
        callback, self._callback = self._callback, None
        callback()


class Scheduler(Protocol):
    """Interface every component schedules its timers through."""

    def now(self) -> float:
        """Current time in seconds on this scheduler's clock."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""


class GenerationCounter:
    """
    Monotonic token source used to detect stale callbacks.

    A callback captures the current token when it is scheduled; at fire time
    it compares against the counter and drops itself if the owner has moved
    on (opened a new conversation, restarted a fetch, re-announced).

    Example:
        >>> generations = GenerationCounter()
        >>> token = generations.advance()
        >>> generations.is_current(token)
        True
        >>> generations.advance()
        2
        >>> generations.is_current(token)
        False
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        self._value += 1
        return self._value

    def is_current(self, token: int) -> bool:
        return token == self._value


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        delay = max(0.0, delay)
        handle = TimerHandle(self.loop.time() + delay, callback)
        handle._loop_handle = self.loop.call_later(delay, handle._run)
        return handle


class ManualScheduler:
    """
    Virtual-clock scheduler.

    Time only moves when advance() or advance_to() is called; due callbacks
    then run in deadline order (ties broken by scheduling order). Callbacks
    scheduled while advancing fire in the same advance if they fall due
    before the target time.

    Example:
        >>> scheduler = ManualScheduler()
        >>> fired = []
        >>> _ = scheduler.call_later(0.5, lambda: fired.append(scheduler.now()))
        >>> scheduler.advance(1.0)
        1
        >>> fired
        [0.5]
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (handle.when, next(self._sequence), handle))
        return handle

    @property
    def pending_count(self) -> int:
        """Number of callbacks that can still fire."""
        return sum(1 for _, _, handle in self._queue if handle.pending)

    def next_deadline(self) -> Optional[float]:
        """Deadline of the earliest pending callback, if any."""
        self._discard_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0]

    def advance(self, seconds: float) -> int:
        """Move the clock forward by seconds. Returns callbacks fired."""
        if seconds < 0:
            raise ValueError("Cannot move a scheduler clock backwards")
        return self.advance_to(self._now + seconds)

    def advance_to(self, target: float) -> int:
        """Move the clock to target, firing everything due on the way."""
        fired = 0
        while True:
            self._discard_cancelled()
            if not self._queue or self._queue[0][0] > target:
                break
            when, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, when)
            handle._run()
            fired += 1
        self._now = max(self._now, target)
        return fired

    def run_until_idle(self, limit: int = 10_000) -> int:
        """Fire callbacks until none remain. Guards against endless re-scheduling."""
        fired = 0
        while fired < limit:
            deadline = self.next_deadline()
            if deadline is None:
                return fired
            fired += self.advance_to(deadline)
        raise RuntimeError(f"Scheduler still busy after {limit} callbacks")

    def _discard_cancelled(self) -> None:
        while self._queue and not self._queue[0][2].pending:
            heapq.heappop(self._queue)
