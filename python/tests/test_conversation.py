"""
Tests for ThreadScriptEngine scripted playback.

All timing runs on a ManualScheduler so pacing delays are deterministic.

Last Grunted: 10/12/2026
"""

from __future__ import annotations

import pytest

from reverse_llm.conversation import (
    ANSWERED_DELAY_SECONDS,
    REPLY_DELAY_SECONDS,
    ThreadScriptEngine,
)
from reverse_llm.models import ChatMessage, ConversationState, MessageRole
from reverse_llm.scheduler import ManualScheduler
from tests.mock_data import make_thread


def pairs(engine: ThreadScriptEngine) -> list[tuple[str, str]]:
    return [(m.role.value, m.text) for m in engine.transcript]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def engine(scheduler: ManualScheduler) -> ThreadScriptEngine:
    return ThreadScriptEngine(scheduler)


# =============================================================================
# Open
# =============================================================================


class TestOpen:
    """Tests for opening a conversation."""

    def test_open_seeds_transcript_with_opening_question(self, engine):
        """Transcript starts with messages[0] from the assistant."""
        engine.open(make_thread())

        assert pairs(engine) == [("assistant", "Q1")]
        assert engine.state.next_script_index == 1
        assert engine.state.answered is False
        assert engine.is_open is True
        assert engine.can_submit is True

    def test_each_open_creates_fresh_state(self, engine):
        """Reopening the same thread starts over."""
        first = engine.open(make_thread())
        engine.submit_answer("a")
        second = engine.open(make_thread())

        assert second is not first
        assert second.conversation_id != first.conversation_id
        assert pairs(engine) == [("assistant", "Q1")]

    def test_transcript_property_returns_copy(self, engine):
        """Modifying the returned list does not touch the transcript."""
        engine.open(make_thread())
        transcript = engine.transcript
        transcript.append(ChatMessage(seq=9, role=MessageRole.USER, text="x"))

        assert len(engine.transcript) == 1

    def test_state_is_a_snapshot(self, engine, scheduler):
        """Callers cannot rewrite the transcript or flags behind the engine."""
        opened = engine.open(make_thread())
        snapshot = engine.state
        snapshot.answered = True
        snapshot.next_script_index = 3
        snapshot.transcript = ()

        assert isinstance(engine.state.transcript, tuple)
        assert engine.state.answered is False
        assert engine.state.next_script_index == 1
        assert pairs(engine) == [("assistant", "Q1")]

        engine.submit_answer("a")
        scheduler.advance(1.0)

        assert len(opened.transcript) == 1
        assert len(engine.state.transcript) == 3
        assert engine.can_submit is True

    def test_no_conversation_before_open(self, engine):
        assert engine.state is None
        assert engine.transcript == []
        assert engine.can_submit is False


# =============================================================================
# Scripted Playback
# =============================================================================


class TestScriptedPlayback:
    """Tests for submit_answer and scripted replies."""

    def test_concrete_three_line_scenario(self, engine, scheduler):
        """Q1/F1/F2 plays back one line per answer then closes as answered."""
        engine.open(make_thread("t1", "Claude", ["Q1", "F1", "F2"]))

        assert engine.submit_answer("a") is True
        scheduler.advance(REPLY_DELAY_SECONDS)
        assert pairs(engine) == [("assistant", "Q1"), ("user", "a"), ("assistant", "F1")]
        assert engine.state.next_script_index == 2
        assert engine.state.answered is False

        assert engine.submit_answer("b") is True
        scheduler.advance(REPLY_DELAY_SECONDS)
        assert pairs(engine)[-2:] == [("user", "b"), ("assistant", "F2")]
        assert engine.state.next_script_index == 3
        assert engine.state.answered is False

        assert engine.submit_answer("c") is True
        scheduler.advance(ANSWERED_DELAY_SECONDS)
        assert pairs(engine)[-1] == ("user", "c")
        assert len(engine.transcript) == 6
        assert engine.state.answered is True

    def test_user_line_appears_immediately_reply_after_delay(self, engine, scheduler):
        """The scripted reply waits for the pacing delay."""
        engine.open(make_thread())
        engine.submit_answer("a")

        assert pairs(engine)[-1] == ("user", "a")
        assert engine.has_pending_reply is True

        scheduler.advance(REPLY_DELAY_SECONDS / 2)
        assert len(engine.transcript) == 2

        scheduler.advance(REPLY_DELAY_SECONDS)
        assert pairs(engine)[-1] == ("assistant", "F1")
        assert engine.has_pending_reply is False

    def test_answer_is_trimmed(self, engine):
        """Surrounding whitespace is dropped from the user's line."""
        engine.open(make_thread())
        engine.submit_answer("  fourteen \n")

        assert engine.transcript[-1].text == "fourteen"

    def test_sequence_numbers_are_monotonic(self, engine, scheduler):
        engine.open(make_thread())
        engine.submit_answer("a")
        scheduler.advance(1.0)
        engine.submit_answer("b")
        scheduler.advance(1.0)

        assert [m.seq for m in engine.transcript] == list(range(5))

    @pytest.mark.parametrize("length", [1, 2, 3, 5])
    def test_answered_after_exactly_k_answers(self, engine, scheduler, length):
        """A k-line script is answered after exactly k answers."""
        thread = make_thread(messages=[f"line {i}" for i in range(length)])
        engine.open(thread)

        for turn in range(length):
            assert engine.state.answered is False
            assert engine.submit_answer(f"answer {turn}") is True
            scheduler.advance(1.0)

        assert engine.state.answered is True
        size = len(engine.transcript)
        assert engine.submit_answer("one more") is False
        scheduler.advance(1.0)
        assert len(engine.transcript) == size

    def test_single_line_thread_answers_on_first_reply(self, engine, scheduler):
        """With no follow-ups the first answer closes the conversation."""
        engine.open(make_thread(messages=["Only question"]))
        engine.submit_answer("a")
        scheduler.advance(ANSWERED_DELAY_SECONDS)

        assert engine.state.answered is True
        assert pairs(engine) == [("assistant", "Only question"), ("user", "a")]

    def test_answer_content_does_not_matter(self, engine, scheduler):
        """Playback is identical whatever the user says."""
        engine.open(make_thread())
        engine.submit_answer("completely unrelated text")
        scheduler.advance(1.0)

        assert pairs(engine)[-1] == ("assistant", "F1")

    def test_back_to_back_answers_keep_script_order(self, engine, scheduler):
        """Answering before a reply lands does not repeat a scripted line."""
        engine.open(make_thread(messages=["Q", "F1", "F2", "F3"]))
        engine.submit_answer("a")
        engine.submit_answer("b")
        scheduler.advance(1.0)

        assistant_lines = [t for r, t in pairs(engine) if r == "assistant"]
        assert assistant_lines == ["Q", "F1", "F2"]
        assert engine.state.next_script_index == 3

    def test_answered_never_overtakes_pending_reply(self, engine, scheduler):
        """The last scripted reply still lands before the answered state."""
        engine.open(make_thread(messages=["Q", "F1"]))
        engine.submit_answer("a")
        engine.submit_answer("b")

        scheduler.advance(ANSWERED_DELAY_SECONDS)
        assert engine.state.answered is False

        scheduler.advance(1.0)
        assert engine.state.answered is True
        assert pairs(engine)[-1] == ("assistant", "F1")

    def test_next_script_index_never_exceeds_script_length(self, engine, scheduler):
        engine.open(make_thread())
        for _ in range(6):
            engine.submit_answer("x")
            scheduler.advance(1.0)

        assert engine.state.next_script_index <= len(engine.state.thread.messages)


# =============================================================================
# Declined Input
# =============================================================================


class TestDeclinedInput:
    """Blank input and submissions after the terminal state are no-ops."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    def test_blank_answer_is_declined(self, engine, scheduler, text):
        engine.open(make_thread())

        assert engine.submit_answer(text) is False
        scheduler.advance(1.0)

        assert len(engine.transcript) == 1
        assert engine.state.next_script_index == 1

    def test_blank_answer_declined_in_answered_state(self, engine, scheduler):
        engine.open(make_thread(messages=["Q"]))
        engine.submit_answer("a")
        scheduler.advance(1.0)

        assert engine.submit_answer("   ") is False
        assert len(engine.transcript) == 2
        assert engine.state.next_script_index == 1

    def test_answer_without_open_conversation_is_declined(self, engine):
        assert engine.submit_answer("hello") is False

    def test_answer_while_closing_is_declined(self, engine, scheduler):
        """Once the script is exhausted, answers stop being accepted."""
        engine.open(make_thread(messages=["Q"]))
        engine.submit_answer("a")

        assert engine.can_submit is False
        assert engine.submit_answer("b") is False

        scheduler.advance(1.0)
        assert engine.state.answered is True
        assert len(engine.transcript) == 2

    def test_answered_state_is_terminal(self, engine, scheduler):
        """Nothing after answered changes the transcript or index."""
        engine.open(make_thread(messages=["Q", "F"]))
        engine.submit_answer("a")
        scheduler.advance(1.0)
        engine.submit_answer("b")
        scheduler.advance(1.0)
        before = engine.transcript

        for text in ("c", "", "   ", "d"):
            assert engine.submit_answer(text) is False
        scheduler.advance(5.0)

        assert engine.transcript == before
        assert engine.state.next_script_index == 2
        assert engine.state.answered is True


# =============================================================================
# Stale Callbacks
# =============================================================================


class TestStaleCallbacks:
    """Pending replies never leak into a closed or replaced conversation."""

    def test_close_drops_pending_reply(self, scheduler):
        texts: list[str] = []
        engine = ThreadScriptEngine(scheduler, on_message=lambda state, m: texts.append(m.text))
        engine.open(make_thread())
        engine.submit_answer("a")
        engine.close()
        scheduler.advance(1.0)

        assert engine.state is None
        assert texts == ["Q1", "a"]

    def test_reopen_drops_previous_pending_reply(self, engine, scheduler):
        """A reply scheduled for the old conversation does not reach the new one."""
        engine.open(make_thread("t1", messages=["Old Q", "Old F"]))
        engine.submit_answer("a")
        engine.open(make_thread("t2", messages=["New Q", "New F"]))
        scheduler.advance(1.0)

        assert pairs(engine) == [("assistant", "New Q")]

    def test_close_drops_pending_answered_transition(self, engine, scheduler):
        answered: list[ConversationState] = []
        engine = ThreadScriptEngine(scheduler, on_answered=answered.append)
        engine.open(make_thread(messages=["Q"]))
        engine.submit_answer("a")
        engine.close()
        scheduler.advance(1.0)

        assert engine.state is None
        assert answered == []

    def test_stale_callback_guarded_even_if_not_cancelled(self, engine, scheduler):
        """The generation check alone rejects an outdated reply."""
        engine.open(make_thread("t1", messages=["Old Q", "Old F"]))
        engine.submit_answer("a")
        token = engine.state.conversation_id
        engine.open(make_thread("t2", messages=["New Q", "New F"]))

        engine._deliver_reply(token, 1)

        assert pairs(engine) == [("assistant", "New Q")]

    def test_close_without_open_is_noop(self, engine):
        engine.close()
        assert engine.state is None


# =============================================================================
# Listeners
# =============================================================================


class TestListeners:
    """Tests for message and answered callbacks."""

    def test_listeners_receive_messages_and_answered(self, scheduler):
        messages: list[tuple[str, str]] = []
        answered: list[str] = []
        engine = ThreadScriptEngine(
            scheduler,
            on_message=lambda state, m: messages.append((m.role.value, m.text)),
            on_answered=lambda state: answered.append(state.thread.id),
        )

        engine.open(make_thread("t9", messages=["Q", "F"]))
        engine.submit_answer("a")
        scheduler.advance(1.0)
        engine.submit_answer("b")
        scheduler.advance(1.0)

        assert messages == [
            ("assistant", "Q"),
            ("user", "a"),
            ("assistant", "F"),
            ("user", "b"),
        ]
        assert answered == ["t9"]

    def test_custom_delays(self, scheduler):
        engine = ThreadScriptEngine(scheduler, reply_delay=2.0, answered_delay=3.0)
        engine.open(make_thread(messages=["Q", "F"]))
        engine.submit_answer("a")

        scheduler.advance(1.5)
        assert len(engine.transcript) == 2
        scheduler.advance(0.5)
        assert len(engine.transcript) == 3

        engine.submit_answer("b")
        scheduler.advance(2.5)
        assert engine.state.answered is False
        scheduler.advance(0.5)
        assert engine.state.answered is True
