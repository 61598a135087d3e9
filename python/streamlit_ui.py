#!/usr/bin/env python3
"""
Streamlit UI for Reverse LLM.

Renders the prototype's two tabs from the interaction core:
- Give answers: persona pills, "show answered" toggle, inbox, scripted chat
- Get questions: simulated fetch progress
- "N questions added" notification after returning from a fetch

Timers run on a ManualScheduler that is advanced to wall-clock time on every
rerun; while any timer is pending the page polls itself.

Usage:
    uv run streamlit run streamlit_ui.py --server.port 8502
    uv run python run_ui.py --port 8502
"""

from __future__ import annotations

import html
import logging
import time
from typing import Final

import streamlit as st

from reverse_llm import (
    BottomTab,
    ManualScheduler,
    MessageRole,
    QuestionThread,
    ReverseLLMApp,
    available_pills,
    badge_color,
    load_config,
)

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger: logging.Logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================

CONFIG = load_config()

# UI refresh while timers are pending
POLL_DELAY_SECONDS: Final[float] = 0.05

TAB_LABELS: Final[dict[BottomTab, str]] = {
    BottomTab.GIVE_ANSWERS: "👋 Give answers",
    BottomTab.GET_QUESTIONS: "✨ Get questions",
}
TABS_BY_LABEL: Final[dict[str, BottomTab]] = {label: tab for tab, label in TAB_LABELS.items()}


# =============================================================================
# Page Configuration
# =============================================================================

st.set_page_config(
    page_title="Reverse LLM",
    page_icon="💬",
    layout="centered",
)

st.markdown("""
<style>
#MainMenu {visibility: hidden;}
footer {visibility: hidden;}
.stDeployButton {display: none;}

.persona-badge {
    display: inline-block;
    padding: 2px 8px;
    border-radius: 16px;
    font-size: 0.75rem;
    color: #F2F2F7;
}

.answered-bar {
    text-align: center;
    padding: 0.6rem 1.5rem;
    border-radius: 40px;
    background: #1C1C1E;
    color: #F2F2F7;
    font-weight: 600;
}
</style>
""", unsafe_allow_html=True)


# =============================================================================
# State
# =============================================================================

def get_app() -> ReverseLLMApp:
    """Return the per-browser-session controller, creating it on first run."""
    if "app" not in st.session_state:
        scheduler = ManualScheduler(start=time.monotonic())
        app = ReverseLLMApp(scheduler, config=CONFIG)
        app.appear()
        st.session_state.app = app
        logger.info("Created app session with %d inbox threads", len(app.inbox))
    return st.session_state.app


def sync_clock(app: ReverseLLMApp) -> None:
    """Fire every timer that fell due since the last rerun."""
    app.scheduler.advance_to(time.monotonic())


# =============================================================================
# Widget Callbacks
# =============================================================================

def on_tab_change() -> None:
    app = get_app()
    sync_clock(app)
    app.select_tab(TABS_BY_LABEL[st.session_state.tab_choice])


def on_pill_change() -> None:
    get_app().select_pill(st.session_state.pill_choice)


def on_toggle_answered() -> None:
    get_app().set_show_answered(st.session_state.show_answered)


def on_open_thread(thread_id: str) -> None:
    get_app().open_thread(thread_id)


def on_close_thread() -> None:
    get_app().close_thread()


# =============================================================================
# Rendering
# =============================================================================

def badge(persona: str) -> str:
    return (
        f'<span class="persona-badge" style="background:{badge_color(persona)}">'
        f"{html.escape(persona)}</span>"
    )


def render_thread_row(thread: QuestionThread, answered: bool) -> None:
    left, right = st.columns([5, 1])
    with left:
        st.markdown(f"**{html.escape(thread.title)}**", unsafe_allow_html=True)
        st.markdown(badge(thread.persona), unsafe_allow_html=True)
    with right:
        if answered:
            st.markdown("✅")
        else:
            st.button(
                "›",
                key=f"open_{thread.id}",
                on_click=on_open_thread,
                args=(thread.id,),
            )


def render_inbox(app: ReverseLLMApp) -> None:
    st.title("Reverse LLM")
    st.toggle("Show answered", key="show_answered", on_change=on_toggle_answered)
    st.radio(
        "Persona",
        list(available_pills()),
        key="pill_choice",
        horizontal=True,
        label_visibility="collapsed",
        on_change=on_pill_change,
    )
    st.divider()

    threads = app.visible_threads()
    if not threads:
        st.caption("no chats")
        return
    for thread in threads:
        render_thread_row(thread, answered=app.show_answered)


def render_chat(app: ReverseLLMApp) -> None:
    state = app.conversation
    if state is None:
        return

    header_left, header_right = st.columns([1, 5])
    with header_left:
        st.button("‹ Back", on_click=on_close_thread)
    with header_right:
        st.markdown(badge(state.thread.persona), unsafe_allow_html=True)

    for message in state.transcript:
        if message.role == MessageRole.ASSISTANT:
            st.markdown(message.text)
        else:
            with st.chat_message("user"):
                st.markdown(message.text)

    if state.answered:
        st.markdown('<div class="answered-bar">✔ Question answered</div>', unsafe_allow_html=True)

    text = st.chat_input("Write an answer…", disabled=not app.engine.can_submit)
    if text:
        sync_clock(app)
        app.submit_answer(text)
        st.rerun()


def render_get_questions(app: ReverseLLMApp) -> None:
    st.write("")
    if app.fetch.is_active:
        st.progress(app.fetch.progress)
    st.subheader("Getting questions…")
    st.caption("Hold tight. We'll be back in a moment.")


def render_notification(app: ReverseLLMApp) -> None:
    if app.notification.visible:
        st.success(f"{app.notification.count} questions added", icon="✅")


# =============================================================================
# Main
# =============================================================================

def main() -> None:
    app = get_app()
    sync_clock(app)

    # Fetch completion moves the app back on its own; keep the widget in step.
    st.session_state.tab_choice = TAB_LABELS[app.selected_tab]
    st.session_state.pill_choice = app.selected_pill
    st.session_state.show_answered = app.show_answered

    st.radio(
        "Tab",
        list(TAB_LABELS.values()),
        key="tab_choice",
        horizontal=True,
        label_visibility="collapsed",
        on_change=on_tab_change,
    )

    if app.selected_tab == BottomTab.GET_QUESTIONS:
        render_get_questions(app)
    elif app.conversation is not None:
        render_chat(app)
    else:
        render_inbox(app)

    render_notification(app)

    if app.scheduler.pending_count:
        time.sleep(POLL_DELAY_SECONDS)
        st.rerun()


main()
