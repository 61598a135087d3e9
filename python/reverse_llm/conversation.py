"""
Scripted Conversation Engine.

Plays back a thread's pre-authored follow-ups one per user answer,
independent of what the user actually types. When the script is exhausted
the next answer closes the conversation as answered.

Usage:
    engine = ThreadScriptEngine(scheduler)
    engine.open(thread)
    engine.submit_answer("Probably 14")   # user line now, scripted reply later
    ...
    engine.close()                        # pending replies are dropped

Thread Safety:
    Not thread-safe. All calls and timer callbacks run on one event loop.

Last Grunted: 10/12/2026
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .models import ChatMessage, ConversationState, MessageRole, QuestionThread
from .scheduler import GenerationCounter, Scheduler, TimerHandle


__all__ = [
    "ANSWERED_DELAY_SECONDS",
    "REPLY_DELAY_SECONDS",
    "ThreadScriptEngine",
]


logger = logging.getLogger(__name__)


# Scripted pacing (seconds)
REPLY_DELAY_SECONDS = 0.35
ANSWERED_DELAY_SECONDS = 0.15


MessageListener = Callable[[ConversationState, ChatMessage], None]
AnsweredListener = Callable[[ConversationState], None]


class ThreadScriptEngine:
    """
    Owns one open conversation and its scripted playback.

    Every open() starts a fresh ConversationState under a new generation
    token. Pending replies capture that token and are dropped if the
    conversation was closed or replaced before they fire.

    States:
        Active(next_script_index) -> Active    on answer while script remains
        Active(next_script_index) -> Answered  on answer once script is exhausted
        Answered is terminal.

    Example:
        >>> engine = ThreadScriptEngine(ManualScheduler())
        >>> state = engine.open(thread)
        >>> engine.submit_answer("a")
        True
    """

    def __init__(
        self,
        scheduler: Scheduler,
        reply_delay: float = REPLY_DELAY_SECONDS,
        answered_delay: float = ANSWERED_DELAY_SECONDS,
        on_message: Optional[MessageListener] = None,
        on_answered: Optional[AnsweredListener] = None,
    ) -> None:
        self._scheduler = scheduler
        self.reply_delay = reply_delay
        self.answered_delay = answered_delay
        self._on_message = on_message
        self._on_answered = on_answered

        self._generations = GenerationCounter()
        self._state: Optional[ConversationState] = None
        self._pending: list[TimerHandle] = []
        self._closing = False

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> Optional[ConversationState]:
        """Snapshot of the open conversation, or None when nothing is open."""
        if self._state is None:
            return None
        return self._state.model_copy()

    @property
    def is_open(self) -> bool:
        return self._state is not None

    @property
    def is_answered(self) -> bool:
        return self._state is not None and self._state.answered

    @property
    def transcript(self) -> list[ChatMessage]:
        """Copy of the open transcript."""
        if self._state is None:
            return []
        return list(self._state.transcript)

    @property
    def can_submit(self) -> bool:
        """Whether an answer would currently be accepted (given non-empty text)."""
        return (
            self._state is not None
            and not self._state.answered
            and not self._closing
        )

    @property
    def has_pending_reply(self) -> bool:
        return any(handle.pending for handle in self._pending)

    # -------------------------------------------------------------------------
    # Control Methods
    # -------------------------------------------------------------------------

    def open(self, thread: QuestionThread) -> ConversationState:
        """
        Open a conversation on thread, discarding any previous one.

        The transcript is seeded with the opening question.
        """
        self._invalidate()
        conversation_id = self._generations.advance()
        state = ConversationState(conversation_id=conversation_id, thread=thread)
        self._state = state
        self._append(state, MessageRole.ASSISTANT, thread.messages[0])
        logger.info(
            "Opened conversation %d on thread %s (%s, %d scripted lines)",
            conversation_id,
            thread.id,
            thread.persona,
            len(thread.messages),
        )
        return state.model_copy()

    def close(self) -> None:
        """Close the open conversation. Pending replies never apply."""
        if self._state is None:
            return
        logger.info("Closed conversation %d", self._state.conversation_id)
        self._invalidate()
        self._generations.advance()
        self._state = None

    def submit_answer(self, text: str) -> bool:
        """
        Submit the user's answer.

        Returns False, without touching state, for blank text, when no
        conversation is open, when it is already answered, or while the
        answered transition is pending.
        """
        trimmed = (text or "").strip()
        state = self._state
        if not trimmed:
            logger.debug("Declined blank answer")
            return False
        if state is None:
            logger.debug("Declined answer: no open conversation")
            return False
        if state.answered or self._closing:
            logger.debug("Declined answer: conversation %d is answered", state.conversation_id)
            return False

        self._append(state, MessageRole.USER, trimmed)
        token = state.conversation_id

        if state.script_remaining:
            # Reserve the line now so back-to-back answers keep script order.
            index = state.next_script_index
            state.next_script_index += 1
            self._schedule(
                self.reply_delay,
                lambda: self._deliver_reply(token, index),
            )
        else:
            self._closing = True
            # Never overtake a scripted reply that is still on its way.
            delay = max(self.answered_delay, self._latest_pending_deadline() - self._scheduler.now())
            self._schedule(
                delay,
                lambda: self._mark_answered(token),
            )
        return True

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self._pending = [handle for handle in self._pending if handle.pending]
        self._pending.append(self._scheduler.call_later(delay, callback))

    def _latest_pending_deadline(self) -> float:
        deadlines = [handle.when for handle in self._pending if handle.pending]
        return max(deadlines, default=self._scheduler.now())

    def _invalidate(self) -> None:
        for handle in self._pending:
            handle.cancel()
        self._pending = []
        self._closing = False

    def _current(self, token: int) -> Optional[ConversationState]:
        state = self._state
        if state is None or state.conversation_id != token or state.answered:
            logger.debug("Dropping stale callback for conversation %d", token)
            return None
        return state

    def _deliver_reply(self, token: int, index: int) -> None:
        state = self._current(token)
        if state is None:
            return
        self._append(state, MessageRole.ASSISTANT, state.thread.messages[index])

    def _mark_answered(self, token: int) -> None:
        state = self._current(token)
        if state is None:
            return
        state.answered = True
        self._closing = False
        logger.info(
            "Conversation %d on thread %s answered after %d messages",
            state.conversation_id,
            state.thread.id,
            len(state.transcript),
        )
        if self._on_answered is not None:
            self._on_answered(state.model_copy())

    def _append(self, state: ConversationState, role: MessageRole, text: str) -> None:
        message = ChatMessage(seq=len(state.transcript), role=role, text=text)
        state.transcript = state.transcript + (message,)
        if self._on_message is not None:
            self._on_message(state.model_copy(), message)
