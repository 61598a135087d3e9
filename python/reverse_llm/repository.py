"""
Question Thread Repository.

Loads the static sample threads once and serves random subsets of them.
The resource is a JSON list of ``{"id", "llm" | "persona", "messages"}``
records; it is validated strictly and any problem surfaces as LoadError.

Last Grunted: 10/12/2026
"""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from pydantic import ValidationError

from .models import QuestionThread, ThreadCatalog
from .personas import WILDCARD_PERSONA


__all__ = [
    "DEFAULT_QUESTIONS_PATH",
    "LoadError",
    "ThreadRepository",
    "filter_by_persona",
    "sample",
]


logger = logging.getLogger(__name__)


DEFAULT_QUESTIONS_PATH = Path(__file__).parent / "data" / "questions.json"


class LoadError(Exception):
    """Raised when the thread resource is missing, unreadable or invalid."""

    def __init__(self, path: Path, cause: Exception | str) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to load question threads from {path}: {cause}")


def sample(
    pool: Sequence[QuestionThread],
    n: int,
    rng: random.Random,
) -> list[QuestionThread]:
    """Uniform random subset of size min(n, len(pool)), without replacement."""
    if n <= 0 or not pool:
        return []
    return rng.sample(list(pool), min(n, len(pool)))


def filter_by_persona(
    threads: Iterable[QuestionThread],
    name: str,
) -> list[QuestionThread]:
    """
    Keep threads whose persona matches name case-insensitively.

    "All" matches every thread. Order is preserved.
    """
    if name == WILDCARD_PERSONA:
        return list(threads)
    wanted = name.casefold()
    return [thread for thread in threads if thread.persona.casefold() == wanted]


class ThreadRepository:
    """
    Source of QuestionThread records.

    The resource is read on first use and cached; later calls never touch
    the filesystem again.

    Example:
        >>> repository = ThreadRepository(rng=random.Random(7))
        >>> inbox = repository.load_random_threads(20)
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.path = Path(path) if path is not None else DEFAULT_QUESTIONS_PATH
        self._rng = rng or random.Random()
        self._threads: Optional[tuple[QuestionThread, ...]] = None

    @property
    def is_loaded(self) -> bool:
        return self._threads is not None

    def load_all(self) -> list[QuestionThread]:
        """Return every thread. Raises LoadError if the resource is unusable."""
        if self._threads is None:
            catalog = self._read_catalog()
            self._threads = catalog.threads
            logger.info("Loaded %d question threads from %s", len(self._threads), self.path)
        return list(self._threads)

    def sample(self, n: int) -> list[QuestionThread]:
        return sample(self.load_all(), n, self._rng)

    def load_random_threads(
        self,
        count: int,
        on_error: Optional[Callable[[LoadError], None]] = None,
    ) -> list[QuestionThread]:
        """
        Random inbox of count threads; empty when the resource cannot be loaded.

        The LoadError is logged and handed to on_error instead of raised.
        """
        try:
            return self.sample(count)
        except LoadError as exc:
            logger.error("Inbox unavailable, showing no chats: %s", exc)
            if on_error is not None:
                on_error(exc)
            return []

    def _read_catalog(self) -> ThreadCatalog:
        resolved = self.path.expanduser()
        if not resolved.exists():
            raise LoadError(resolved, "file not found")

        try:
            with open(resolved, "r", encoding="utf-8") as questions_file:
                raw = json.load(questions_file)
        except OSError as exc:
            raise LoadError(resolved, exc) from exc
        except json.JSONDecodeError as exc:
            raise LoadError(resolved, f"not valid JSON: {exc}") from exc

        if not isinstance(raw, list):
            raise LoadError(resolved, "expected a JSON list of threads")

        try:
            return ThreadCatalog.model_validate({"threads": raw})
        except ValidationError as exc:
            raise LoadError(resolved, exc) from exc
