"""Transient "N questions added" acknowledgment with a restartable dismiss timer."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .models import NotificationState
from .scheduler import GenerationCounter, Scheduler, TimerHandle


__all__ = ["NOTIFICATION_VISIBLE_SECONDS", "NotificationTransient"]


logger = logging.getLogger(__name__)


NOTIFICATION_VISIBLE_SECONDS = 1.0


class NotificationTransient:
    """
    Shows a count for a fixed window, then hides itself.

    Announcing again while visible replaces the count and restarts the
    window; the superseded dismiss timer is cancelled and its generation
    token no longer matches, so it can never hide the newer notification.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        visible_seconds: float = NOTIFICATION_VISIBLE_SECONDS,
        on_change: Optional[Callable[[NotificationState], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self.visible_seconds = visible_seconds
        self._on_change = on_change
        self._state = NotificationState()
        self._generations = GenerationCounter()
        self._dismiss_handle: Optional[TimerHandle] = None

    @property
    def state(self) -> NotificationState:
        return self._state.model_copy()

    @property
    def visible(self) -> bool:
        return self._state.visible

    @property
    def count(self) -> int:
        return self._state.count

    def announce(self, count: int) -> None:
        """Show count and (re)start the visibility window."""
        if count < 0:
            raise ValueError(f"Notification count must be >= 0, got {count}")

        self._cancel_dismiss()
        token = self._generations.advance()
        self._state = NotificationState(visible=True, count=count)
        self._dismiss_handle = self._scheduler.call_later(
            self.visible_seconds, lambda: self._dismiss(token)
        )
        logger.info("Showing notification: %d questions added", count)
        self._notify()

    def dismiss(self) -> None:
        """Hide immediately. No-op when already hidden."""
        self._cancel_dismiss()
        self._generations.advance()
        if self._state.visible:
            self._hide()

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None

    def _dismiss(self, token: int) -> None:
        if not self._generations.is_current(token):
            logger.debug("Dropping superseded notification dismissal")
            return
        self._dismiss_handle = None
        self._hide()

    def _hide(self) -> None:
        self._state = NotificationState(visible=False, count=self._state.count)
        logger.debug("Notification dismissed")
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)
