"""
Reverse LLM App Controller.

Owns the screen-level state of the prototype (selected tab, persona pill,
"show answered" toggle, inbox, open conversation) and translates navigation
events into effects on the conversation engine, the fetch simulator and
the notification.

Tab changes are planned by the pure function plan_tab_change(), which
returns the ordered effects to apply. The controller only executes them.

Thread Safety:
    This class is NOT thread-safe. Use it from a single event loop.

Last Grunted: 10/12/2026
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .config import AppConfig
from .conversation import ThreadScriptEngine
from .events import UiEventPublisher, UiEventType
from .fetch import FetchSimulator
from .models import ChatMessage, ConversationState, NotificationState, QuestionThread
from .notification import NotificationTransient
from .personas import WILDCARD_PERSONA, resolve_pill
from .repository import LoadError, ThreadRepository, filter_by_persona
from .scheduler import Scheduler


__all__ = [
    "BottomTab",
    "ReverseLLMApp",
    "TabEffect",
    "plan_tab_change",
]


logger = logging.getLogger(__name__)


class BottomTab(str, Enum):
    """Bottom navigation tabs."""

    GIVE_ANSWERS = "give_answers"
    GET_QUESTIONS = "get_questions"


class TabEffect(str, Enum):
    """Side effects a tab change can require, in application order."""

    CANCEL_FETCH = "cancel_fetch"
    START_FETCH = "start_fetch"
    RETURNED_EARLY = "returned_early"
    ANNOUNCE_ADDED = "announce_added"


def plan_tab_change(
    old: BottomTab,
    new: BottomTab,
    fetch_active: bool,
) -> list[TabEffect]:
    """
    Effects for a user-initiated tab change.

    Natural fetch completion does not come through here; it returns to
    GIVE_ANSWERS on its own path so the notification is announced once.
    """
    if old == new:
        return []
    if new == BottomTab.GET_QUESTIONS:
        return [TabEffect.CANCEL_FETCH, TabEffect.START_FETCH]
    if old == BottomTab.GET_QUESTIONS and fetch_active:
        return [TabEffect.CANCEL_FETCH, TabEffect.RETURNED_EARLY, TabEffect.ANNOUNCE_ADDED]
    return [TabEffect.CANCEL_FETCH]


class ReverseLLMApp:
    """
    Screen-level controller for the prototype.

    Example:
        >>> app = ReverseLLMApp(ManualScheduler())
        >>> app.appear()
        >>> thread = app.visible_threads()[0]
        >>> app.open_thread(thread.id)
        >>> app.submit_answer("Fourteen")
        True
        >>> app.select_tab(BottomTab.GET_QUESTIONS)
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[AppConfig] = None,
        repository: Optional[ThreadRepository] = None,
        publisher: Optional[UiEventPublisher] = None,
    ) -> None:
        self.config = config or AppConfig()
        self.scheduler = scheduler
        self.repository = repository or ThreadRepository(self.config.questions_path)
        self.publisher = publisher or UiEventPublisher()

        timing = self.config.timing
        self.engine = ThreadScriptEngine(
            scheduler,
            reply_delay=timing.reply_delay_seconds,
            answered_delay=timing.answered_delay_seconds,
            on_message=self._on_message,
            on_answered=self._on_answered,
        )
        self.fetch = FetchSimulator(
            scheduler,
            duration=timing.fetch_duration_seconds,
            tick_interval=timing.progress_tick_seconds,
            on_completed=self._on_fetch_completed,
        )
        self.notification = NotificationTransient(
            scheduler,
            visible_seconds=timing.notification_visible_seconds,
            on_change=self._on_notification_change,
        )

        self.selected_tab = BottomTab.GIVE_ANSWERS
        self.selected_pill = WILDCARD_PERSONA
        self.show_answered = False
        self.inbox: list[QuestionThread] = []
        self.answered_ids: list[str] = []
        self.load_error: Optional[str] = None

    # -------------------------------------------------------------------------
    # Inbox
    # -------------------------------------------------------------------------

    def appear(self) -> None:
        """Populate the inbox on first display. Later calls keep it as is."""
        if self.inbox:
            return
        self.load_error = None
        self.inbox = self.repository.load_random_threads(
            self.config.inbox_size,
            on_error=self._on_load_failed,
        )

    def select_pill(self, name: str) -> str:
        self.selected_pill = resolve_pill(name)
        return self.selected_pill

    def set_show_answered(self, show: bool) -> None:
        self.show_answered = show

    def answered_threads(self) -> list[QuestionThread]:
        by_id = {thread.id: thread for thread in self.inbox}
        return [by_id[thread_id] for thread_id in self.answered_ids if thread_id in by_id]

    def unanswered_threads(self) -> list[QuestionThread]:
        answered = set(self.answered_ids)
        return [thread for thread in self.inbox if thread.id not in answered]

    def visible_threads(self) -> list[QuestionThread]:
        """Threads the list should show for the current toggle and pill."""
        threads = self.answered_threads() if self.show_answered else self.unanswered_threads()
        return filter_by_persona(threads, self.selected_pill)

    # -------------------------------------------------------------------------
    # Conversation
    # -------------------------------------------------------------------------

    @property
    def conversation(self) -> Optional[ConversationState]:
        """Snapshot of the open conversation."""
        return self.engine.state

    def open_thread(self, thread_id: str) -> ConversationState:
        thread = next((t for t in self.inbox if t.id == thread_id), None)
        if thread is None:
            raise KeyError(f"Thread '{thread_id}' is not in the inbox")
        return self.engine.open(thread)

    def close_thread(self) -> None:
        self.engine.close()

    def submit_answer(self, text: str) -> bool:
        return self.engine.submit_answer(text)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def select_tab(self, tab: BottomTab) -> list[TabEffect]:
        """Switch tabs and apply the planned effects. Returns the effects."""
        old = self.selected_tab
        effects = plan_tab_change(old, tab, self.fetch.is_active)
        self.selected_tab = tab
        if effects:
            logger.info("Tab %s -> %s: %s", old.value, tab.value, [e.value for e in effects])
        for effect in effects:
            self._apply(effect)
        return effects

    def _apply(self, effect: TabEffect) -> None:
        if effect == TabEffect.CANCEL_FETCH:
            self.fetch.cancel()
        elif effect == TabEffect.START_FETCH:
            self.fetch.start()
            self.publisher.publish_event(UiEventType.FETCH_STARTED, "Getting questions")
        elif effect == TabEffect.RETURNED_EARLY:
            self.publisher.publish_event(
                UiEventType.FETCH_RETURNED_EARLY, "Returned before the fetch finished"
            )
        elif effect == TabEffect.ANNOUNCE_ADDED:
            self.notification.announce(self.config.added_questions_count)

    # -------------------------------------------------------------------------
    # Callbacks
    # -------------------------------------------------------------------------

    def _on_load_failed(self, exc: LoadError) -> None:
        self.load_error = str(exc)
        self.publisher.publish_event(UiEventType.LOAD_FAILED, str(exc))

    def _on_fetch_completed(self) -> None:
        self.selected_tab = BottomTab.GIVE_ANSWERS
        self.publisher.publish_event(UiEventType.FETCH_COMPLETED, "Fetch completed")
        self.notification.announce(self.config.added_questions_count)

    def _on_message(self, state: ConversationState, message: ChatMessage) -> None:
        self.publisher.publish_event(
            UiEventType.MESSAGE_APPENDED,
            message.text,
            thread_id=state.thread.id,
            role=message.role.value,
            seq=message.seq,
        )

    def _on_answered(self, state: ConversationState) -> None:
        if state.thread.id not in self.answered_ids:
            self.answered_ids.append(state.thread.id)
        self.publisher.publish_event(
            UiEventType.CONVERSATION_ANSWERED,
            "Question answered",
            thread_id=state.thread.id,
        )

    def _on_notification_change(self, state: NotificationState) -> None:
        if state.visible:
            self.publisher.publish_event(
                UiEventType.NOTIFICATION_SHOWN,
                f"{state.count} questions added",
                count=state.count,
            )
        else:
            self.publisher.publish_event(UiEventType.NOTIFICATION_DISMISSED, "Notification hidden")
