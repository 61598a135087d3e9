"""
Persona pill vocabulary and badge colors.
"""

from __future__ import annotations


WILDCARD_PERSONA = "All"

PERSONA_PILLS: tuple[str, ...] = (
    WILDCARD_PERSONA,
    "ChatGPT",
    "DeepSeek",
    "Gemini",
    "Claude",
    "Copilot",
    "Grok",
    "Meta AI",
    "Mistral",
)

DEFAULT_BADGE_COLOR = "#8E8E93"

_BADGE_COLORS: dict[str, str] = {
    "chatgpt": "#C7C7CC",
    "deepseek": "#5856D6CC",
    "gemini": "#007AFFCC",
    "claude": "#FF950099",
    "copilot": "#30B0C7CC",
    "grok": "#000000",
    "meta ai": "#AF52DECC",
    "meta": "#AF52DECC",
    "mistral": "#FF3B30CC",
}

_PILLS_BY_KEY = {pill.lower(): pill for pill in PERSONA_PILLS}


def available_pills() -> tuple[str, ...]:
    """Return the selectable pills in display order."""
    return PERSONA_PILLS


def resolve_pill(name: str) -> str:
    """Resolve a pill name case-insensitively to its display spelling."""
    normalized = (name or "").strip().lower()
    if not normalized:
        raise ValueError("Persona pill is empty.")

    pill = _PILLS_BY_KEY.get(normalized)
    if pill is None:
        supported = ", ".join(PERSONA_PILLS)
        raise ValueError(f"Unknown persona pill '{name}'. Supported pills: {supported}.")
    return pill


def badge_color(persona: str) -> str:
    """Badge background color (hex RGBA) for a persona, gray when unknown."""
    return _BADGE_COLORS.get((persona or "").strip().lower(), DEFAULT_BADGE_COLOR)
