#!/usr/bin/env python3
"""
Reverse LLM Session Simulator.

Drives the interaction core on a real asyncio loop, the same way the app
screens would: opens one inbound question, answers it until the scripted
conversation is marked answered, then makes a round trip to the
"Get questions" tab and waits for the "questions added" notification.

Usage:
    uv run python simulate_session.py

    # Pick a persona and answer with your own lines:
    uv run python simulate_session.py --persona gemini --answer "14" --answer "No" --answer "Yes"

    # Leave the fetch screen early instead of waiting for completion:
    uv run python simulate_session.py --return-early-after 0.4
"""

from __future__ import annotations

import asyncio
import logging
import random
import sys
from pathlib import Path
from typing import Final, Optional, Sequence

from reverse_llm import (
    AsyncioScheduler,
    BottomTab,
    ConfigError,
    ReverseLLMApp,
    ThreadRepository,
    UiEvent,
    UiEventType,
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
# Exit Codes
# =============================================================================

EXIT_SUCCESS: Final[int] = 0
EXIT_CONFIG_ERROR: Final[int] = 1
EXIT_NO_THREADS: Final[int] = 2
EXIT_TIMEOUT: Final[int] = 3
EXIT_INTERRUPTED: Final[int] = 130  # Standard SIGINT exit code


# =============================================================================
# Configuration
# =============================================================================

# Slack added on top of the configured timings before giving up on an event
EVENT_TIMEOUT_MARGIN_SECONDS: Final[float] = 2.0


# =============================================================================
# Event Helpers
# =============================================================================

async def wait_for_event(
    queue: asyncio.Queue[UiEvent],
    wanted: set[UiEventType],
    timeout: float,
) -> UiEvent:
    """
    Consume events until one of the wanted types arrives.

    Raises:
        asyncio.TimeoutError: If nothing wanted arrives within timeout.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        remaining = deadline - loop.time()
        if remaining <= 0:
            raise asyncio.TimeoutError()
        event = await asyncio.wait_for(queue.get(), timeout=remaining)
        if event.event_type in wanted:
            return event


def default_answer(turn: int) -> str:
    return f"Scripted answer #{turn}"


# =============================================================================
# Simulation Runner
# =============================================================================

async def run_session(
    app: ReverseLLMApp,
    persona: str,
    thread_id: Optional[str],
    answers: Sequence[str],
    return_early_after: Optional[float],
) -> int:
    """
    Play one conversation and one fetch round trip.

    Returns:
        Exit code indicating success or failure.
    """
    queue = app.publisher.subscribe()
    try:
        return await _play_session(app, queue, persona, thread_id, answers, return_early_after)
    finally:
        app.publisher.unsubscribe(queue)


async def _play_session(
    app: ReverseLLMApp,
    queue: asyncio.Queue[UiEvent],
    persona: str,
    thread_id: Optional[str],
    answers: Sequence[str],
    return_early_after: Optional[float],
) -> int:
    timing = app.config.timing

    app.appear()
    app.select_pill(persona)
    threads = app.visible_threads()
    if not threads:
        logger.error("No threads to answer for persona %s", app.selected_pill)
        return EXIT_NO_THREADS

    chosen = next((t for t in threads if t.id == thread_id), None) if thread_id else threads[0]
    if chosen is None:
        logger.error("Thread %s is not in the inbox for persona %s", thread_id, app.selected_pill)
        return EXIT_NO_THREADS

    logger.info("=" * 60)
    logger.info("Answering %s (%s)", chosen.id, chosen.persona)
    logger.info("=" * 60)

    app.open_thread(chosen.id)
    while not queue.empty():
        queue.get_nowait()
    reply_timeout = (
        max(timing.reply_delay_seconds, timing.answered_delay_seconds)
        + EVENT_TIMEOUT_MARGIN_SECONDS
    )

    turn = 0
    try:
        while not app.conversation.answered:
            turn += 1
            text = answers[turn - 1] if turn <= len(answers) else default_answer(turn)
            app.submit_answer(text)
            event = await wait_for_event(
                queue,
                {UiEventType.MESSAGE_APPENDED, UiEventType.CONVERSATION_ANSWERED},
                reply_timeout,
            )
            # Skip the echo of our own line
            while (
                event.event_type == UiEventType.MESSAGE_APPENDED
                and event.data.get("role") == "user"
            ):
                event = await wait_for_event(
                    queue,
                    {UiEventType.MESSAGE_APPENDED, UiEventType.CONVERSATION_ANSWERED},
                    reply_timeout,
                )
    except asyncio.TimeoutError:
        logger.error("Timed out waiting for a scripted reply on turn %d", turn)
        return EXIT_TIMEOUT

    for message in app.conversation.transcript:
        role = "Assistant" if message.role.value == "assistant" else "You"
        logger.info("[%d] %s: %s", message.seq, role, message.text)
    logger.info("Question answered after %d answers", turn)
    app.close_thread()

    # Fetch round trip
    app.select_tab(BottomTab.GET_QUESTIONS)
    try:
        if return_early_after is not None:
            await asyncio.sleep(return_early_after)
            logger.info("Returning early at progress %.2f", app.fetch.progress)
            app.select_tab(BottomTab.GIVE_ANSWERS)
        else:
            await wait_for_event(
                queue,
                {UiEventType.FETCH_COMPLETED},
                timing.fetch_duration_seconds + EVENT_TIMEOUT_MARGIN_SECONDS,
            )

        shown = await wait_for_event(
            queue,
            {UiEventType.NOTIFICATION_SHOWN},
            EVENT_TIMEOUT_MARGIN_SECONDS,
        )
        logger.info("Notification: %s", shown.content)
        await wait_for_event(
            queue,
            {UiEventType.NOTIFICATION_DISMISSED},
            timing.notification_visible_seconds + EVENT_TIMEOUT_MARGIN_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error("Timed out waiting for the fetch round trip")
        return EXIT_TIMEOUT

    logger.info("=" * 60)
    logger.info("Session simulation complete (%d events)", len(app.publisher.get_history()))
    logger.info("=" * 60)
    return EXIT_SUCCESS


def main(
    persona: str = "All",
    thread_id: Optional[str] = None,
    answers: Sequence[str] = (),
    return_early_after: Optional[float] = None,
    questions_path: Optional[Path] = None,
    seed: Optional[int] = None,
) -> int:
    """
    Main entry point for the session simulator.

    Returns:
        Exit code indicating success or failure.
    """
    try:
        config = load_config()
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR

    if questions_path is not None:
        config = config.model_copy(update={"questions_path": questions_path})

    async def _run() -> int:
        app = ReverseLLMApp(
            AsyncioScheduler(),
            config=config,
            repository=ThreadRepository(config.questions_path, rng=random.Random(seed)),
        )
        return await run_session(app, persona, thread_id, answers, return_early_after)

    try:
        return asyncio.run(_run())
    except ValueError as exc:
        logger.error("%s", exc)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.info("\nSimulation interrupted")
        return EXIT_INTERRUPTED


def cli() -> None:
    """Command-line interface entry point with argument parsing."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Answer one scripted question and simulate a question fetch.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
    REVERSE_LLM_FETCH_SECONDS          Fetch duration (default: 1.0)
    REVERSE_LLM_NOTIFICATION_SECONDS   Notification visibility (default: 1.0)
    REVERSE_LLM_REPLY_DELAY_SECONDS    Scripted reply pacing (default: 0.35)
    REVERSE_LLM_QUESTIONS_PATH         Sample threads JSON
        """,
    )
    parser.add_argument("--persona", default="All", help="Persona pill to filter by (default: All)")
    parser.add_argument("--thread-id", default=None, help="Answer this thread instead of the first one")
    parser.add_argument(
        "--answer",
        action="append",
        default=[],
        dest="answers",
        help="Answer text for the next turn (repeatable)",
    )
    parser.add_argument(
        "--return-early-after",
        type=float,
        default=None,
        help="Leave the fetch screen after this many seconds",
    )
    parser.add_argument("--questions", type=Path, default=None, help="Sample threads JSON path")
    parser.add_argument("--seed", type=int, default=None, help="Seed for inbox sampling")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    exit_code = main(
        persona=args.persona,
        thread_id=args.thread_id,
        answers=args.answers,
        return_early_after=args.return_early_after,
        questions_path=args.questions,
        seed=args.seed,
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
