"""Shared CSS color constants for web UI persona styling.

Maps persona color keys to Tailwind CSS classes for consistent color
coding across the roster cards and chat bubbles. Mirrors PERSONA_COLORS
from display.py but uses Tailwind class names instead of Rich color names.
"""

from __future__ import annotations

from grandmaster.models import USER_SPEAKER
from grandmaster.personas import get_persona

PERSONA_CSS_COLORS: dict[str, dict[str, str]] = {
    "purple": {
        "border": "border-purple-400",
        "text": "text-purple-400",
        "bg": "bg-purple-500/10",
    },
    "blue": {
        "border": "border-blue-400",
        "text": "text-blue-400",
        "bg": "bg-blue-500/10",
    },
    "orange": {
        "border": "border-orange-400",
        "text": "text-orange-400",
        "bg": "bg-orange-500/10",
    },
    "emerald": {
        "border": "border-emerald-400",
        "text": "text-emerald-400",
        "bg": "bg-emerald-500/10",
    },
    "pink": {
        "border": "border-pink-400",
        "text": "text-pink-400",
        "bg": "bg-pink-500/10",
    },
}

USER_CSS_COLORS: dict[str, str] = {
    "border": "border-indigo-500",
    "text": "text-indigo-300",
    "bg": "bg-indigo-600/20",
}

_DEFAULT_CSS_COLORS: dict[str, str] = {
    "border": "border-gray-500",
    "text": "text-gray-400",
    "bg": "bg-gray-500/10",
}


def get_css_colors(speaker_id: str) -> dict[str, str]:
    """Get Tailwind CSS color classes for a message speaker.

    Args:
        speaker_id: ``"user"`` or a persona id (e.g. "agent-lead").

    Returns:
        Dict with "border", "text", and "bg" Tailwind class strings.
    """
    if speaker_id == USER_SPEAKER:
        return USER_CSS_COLORS
    persona = get_persona(speaker_id)
    if persona is None:
        return _DEFAULT_CSS_COLORS
    return PERSONA_CSS_COLORS.get(persona.color, _DEFAULT_CSS_COLORS)
