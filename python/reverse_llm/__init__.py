"""
Reverse LLM interaction core.

A prototype of a "reverse" Q&A app: AI personas ask the questions and a
human answers them through a scripted chat. A second tab simulates fetching
new questions with a timed, cancellable progress animation.

Components:
    - ThreadScriptEngine: Scripted conversation playback and its answered state
    - FetchSimulator: Timed, cancellable simulated fetch with progress
    - NotificationTransient: Auto-dismissed "questions added" acknowledgment
    - ThreadRepository: Sample thread loading, random sampling, persona filter
    - ReverseLLMApp: Tab/pill/toggle controller wiring the pieces together
    - UiEventPublisher: In-memory pub/sub for views
    - Schedulers: asyncio-backed and virtual-clock timer sources

Example:
    >>> import asyncio
    >>> from reverse_llm import AsyncioScheduler, ReverseLLMApp
    >>>
    >>> async def main():
    ...     app = ReverseLLMApp(AsyncioScheduler())
    ...     app.appear()
    ...     app.open_thread(app.visible_threads()[0].id)
    ...     app.submit_answer("Fourteen, and yes.")
    ...     await asyncio.sleep(0.5)
    ...     print([m.text for m in app.engine.transcript])

Last Grunted: 10/12/2026
"""

from .models import (
    ChatMessage,
    ConversationState,
    FetchState,
    MessageRole,
    NotificationState,
    QuestionThread,
    ThreadCatalog,
)

from .scheduler import (
    AsyncioScheduler,
    GenerationCounter,
    ManualScheduler,
    Scheduler,
    TimerHandle,
)

from .conversation import ThreadScriptEngine

from .fetch import FetchSimulator

from .notification import NotificationTransient

from .repository import (
    LoadError,
    ThreadRepository,
    filter_by_persona,
    sample,
)

from .personas import (
    PERSONA_PILLS,
    WILDCARD_PERSONA,
    available_pills,
    badge_color,
    resolve_pill,
)

from .events import (
    UiEvent,
    UiEventPublisher,
    UiEventType,
)

from .config import (
    AppConfig,
    ConfigError,
    TimingConfig,
    load_config,
)

from .app import (
    BottomTab,
    ReverseLLMApp,
    TabEffect,
    plan_tab_change,
)


__all__ = [
    # Models
    "ChatMessage",
    "ConversationState",
    "FetchState",
    "MessageRole",
    "NotificationState",
    "QuestionThread",
    "ThreadCatalog",
    # Scheduling
    "AsyncioScheduler",
    "GenerationCounter",
    "ManualScheduler",
    "Scheduler",
    "TimerHandle",
    # State machines
    "ThreadScriptEngine",
    "FetchSimulator",
    "NotificationTransient",
    # Repository
    "LoadError",
    "ThreadRepository",
    "filter_by_persona",
    "sample",
    # Personas
    "PERSONA_PILLS",
    "WILDCARD_PERSONA",
    "available_pills",
    "badge_color",
    "resolve_pill",
    # Events
    "UiEvent",
    "UiEventPublisher",
    "UiEventType",
    # Config
    "AppConfig",
    "ConfigError",
    "TimingConfig",
    "load_config",
    # Controller
    "BottomTab",
    "ReverseLLMApp",
    "TabEffect",
    "plan_tab_change",
]

__version__ = "0.1.0"
