"""
In-memory pub/sub for UI state changes.

The interaction core runs on timer callbacks, so publishing is synchronous:
every event is pushed onto each subscriber queue with put_nowait. Views
(the CLI simulator, the Streamlit screen) drain their queue or read the
bounded history.

Example usage:
    publisher = UiEventPublisher()
    queue = publisher.subscribe()
    publisher.publish_event(UiEventType.FETCH_STARTED, "Getting questions")
    event = queue.get_nowait()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class UiEventType(str, Enum):
    """
    Types of events published to views.

    Attributes:
        MESSAGE_APPENDED: A chat message joined the open transcript.
        CONVERSATION_ANSWERED: The open conversation reached its terminal state.
        FETCH_STARTED: The simulated fetch began.
        FETCH_COMPLETED: The simulated fetch ran to completion.
        FETCH_RETURNED_EARLY: The user left the fetch screen before completion.
        NOTIFICATION_SHOWN: The "questions added" notification became visible.
        NOTIFICATION_DISMISSED: The notification was hidden.
        LOAD_FAILED: The sample thread resource could not be loaded.
    """

    MESSAGE_APPENDED = "message_appended"
    CONVERSATION_ANSWERED = "conversation_answered"
    FETCH_STARTED = "fetch_started"
    FETCH_COMPLETED = "fetch_completed"
    FETCH_RETURNED_EARLY = "fetch_returned_early"
    NOTIFICATION_SHOWN = "notification_shown"
    NOTIFICATION_DISMISSED = "notification_dismissed"
    LOAD_FAILED = "load_failed"


def _get_utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class UiEvent:
    """
    A single published state change.

    Attributes:
        event_type: Category of the event.
        content: Human-readable summary.
        timestamp: UTC timestamp when the event was created.
        thread_id: Thread the event concerns, if any.
        data: Event-specific payload (message role/text, counts, errors).
    """

    event_type: UiEventType
    content: str
    timestamp: str = field(default_factory=_get_utc_timestamp)
    thread_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "event_type": self.event_type.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "thread_id": self.thread_id,
            "data": self.data,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class UiEventPublisher:
    """
    Publisher for UI events.

    Manages subscriber queues and broadcasts events to all of them. New
    subscribers first receive the retained history.

    Attributes:
        max_history: Maximum number of events to retain in history.
    """

    def __init__(self, max_history: int = 200) -> None:
        self._subscribers: list[asyncio.Queue[UiEvent]] = []
        self._history: list[UiEvent] = []
        self._max_history = max_history
        logger.debug("UiEventPublisher initialized with max_history=%d", max_history)

    def subscribe(self) -> asyncio.Queue[UiEvent]:
        """
        Subscribe to UI events.

        Returns:
            Queue that receives the retained history followed by every
            event published from now on.
        """
        queue: asyncio.Queue[UiEvent] = asyncio.Queue()
        for event in self._history:
            queue.put_nowait(event)
        self._subscribers.append(queue)
        logger.debug("New subscriber added. Total: %d", len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[UiEvent]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)
        logger.debug("Subscriber removed. Total: %d", len(self._subscribers))

    def publish(self, event: UiEvent) -> None:
        """Store event in history and broadcast it to all subscribers."""
        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history :]

        for queue in self._subscribers:
            queue.put_nowait(event)

        logger.debug("Published event: %s", event.event_type.value)

    def publish_event(
        self,
        event_type: UiEventType,
        content: str,
        *,
        thread_id: str | None = None,
        **data: Any,
    ) -> UiEvent:
        """Build and publish an event. Returns the published event."""
        event = UiEvent(
            event_type=event_type,
            content=content,
            thread_id=thread_id,
            data=data,
        )
        self.publish(event)
        return event

    def get_history(self) -> list[UiEvent]:
        """Return a copy of the retained history."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
