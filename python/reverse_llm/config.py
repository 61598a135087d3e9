"""Load and validate Reverse LLM runtime configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .conversation import ANSWERED_DELAY_SECONDS, REPLY_DELAY_SECONDS
from .fetch import FETCH_DURATION_SECONDS, PROGRESS_TICK_SECONDS
from .notification import NOTIFICATION_VISIBLE_SECONDS


ENV_PREFIX = "REVERSE_LLM_"

# Environment variable -> (section, field)
_ENV_FIELDS: dict[str, tuple[str | None, str]] = {
    "FETCH_SECONDS": ("timing", "fetch_duration_seconds"),
    "NOTIFICATION_SECONDS": ("timing", "notification_visible_seconds"),
    "REPLY_DELAY_SECONDS": ("timing", "reply_delay_seconds"),
    "ANSWERED_DELAY_SECONDS": ("timing", "answered_delay_seconds"),
    "TICK_SECONDS": ("timing", "progress_tick_seconds"),
    "INBOX_SIZE": (None, "inbox_size"),
    "ADDED_COUNT": (None, "added_questions_count"),
    "QUESTIONS_PATH": (None, "questions_path"),
}


class ConfigError(RuntimeError):
    """Raised when configuration values are invalid."""


class TimingConfig(BaseModel):
    """Tunable timings (seconds). None of them are protocol-critical."""

    fetch_duration_seconds: float = Field(default=FETCH_DURATION_SECONDS, gt=0)
    notification_visible_seconds: float = Field(default=NOTIFICATION_VISIBLE_SECONDS, gt=0)
    reply_delay_seconds: float = Field(default=REPLY_DELAY_SECONDS, ge=0)
    answered_delay_seconds: float = Field(default=ANSWERED_DELAY_SECONDS, ge=0)
    progress_tick_seconds: float = Field(default=PROGRESS_TICK_SECONDS, gt=0)

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Top-level app configuration."""

    timing: TimingConfig = Field(default_factory=TimingConfig)
    inbox_size: int = Field(default=20, ge=0)
    added_questions_count: int = Field(default=12, ge=0)
    questions_path: Optional[Path] = None

    model_config = {"extra": "forbid"}


def load_config(
    env: Optional[Mapping[str, str]] = None,
    env_file: Optional[Path] = None,
) -> AppConfig:
    """
    Build AppConfig from REVERSE_LLM_* environment variables.

    When env is None the process environment is used, after loading
    env_file (default: .env next to the package) with python-dotenv.
    Unset variables keep their defaults.
    """
    if env is None:
        load_dotenv(env_file or Path(__file__).parent.parent / ".env")
        env = os.environ

    raw: dict[str, object] = {"timing": {}}
    for suffix, (section, field_name) in _ENV_FIELDS.items():
        value = (env.get(ENV_PREFIX + suffix) or "").strip()
        if not value:
            continue
        target = raw["timing"] if section == "timing" else raw
        target[field_name] = value

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {ENV_PREFIX}* configuration: {exc}") from exc
