"""Roster cards for the sidebar — one per persona, plus Team Mode."""

from __future__ import annotations

from collections.abc import Callable

from grandmaster.personas import Persona
from grandmaster.web.colors import get_css_colors

TEAM_MODE_DESCRIPTION = "All agents collaborate sequentially to solve the problem end-to-end."


def card_classes(*, active: bool, border: str) -> str:
    """Tailwind classes for a roster card.

    Args:
        active: Whether the card is the current selection.
        border: Border class used when active.

    Returns:
        Space-separated class string.
    """
    base = "w-full cursor-pointer p-4 rounded-xl border transition-all"
    if active:
        return f"{base} {border} bg-gray-800"
    return f"{base} border-gray-800 bg-gray-900 hover:border-gray-600"


def render_team_card(*, active: bool, on_click: Callable[[], None]) -> None:
    """Render the Team Mode selector card.

    Args:
        active: Whether Team Mode is selected.
        on_click: Called when the card is clicked.
    """
    from nicegui import ui

    with ui.card().classes(card_classes(active=active, border="border-indigo-500")).on(
        "click", on_click
    ):
        with ui.row().classes("w-full justify-between items-center"):
            ui.label("Team Mode").classes(
                "font-bold " + ("text-indigo-400" if active else "text-gray-400")
            )
            ui.badge("Auto").props("color=indigo").classes("text-[10px] uppercase")
        ui.label(TEAM_MODE_DESCRIPTION).classes("text-xs text-gray-500")


def render_agent_card(persona: Persona, *, active: bool, on_click: Callable[[], None]) -> None:
    """Render one persona card.

    Args:
        persona: Persona to show.
        active: Whether this persona is selected for single-agent chat.
        on_click: Called when the card is clicked.
    """
    from nicegui import ui

    colors = get_css_colors(persona.id)

    with ui.card().classes(card_classes(active=active, border=colors["border"])).on(
        "click", on_click
    ):
        with ui.row().classes("items-center gap-3"):
            ui.label(persona.name[0]).classes(
                "w-10 h-10 rounded-full flex items-center justify-center "
                f"{colors['bg']} {colors['text']} font-bold"
            )
            with ui.column().classes("gap-0"):
                ui.label(persona.name).classes(f"font-bold {colors['text']}")
                ui.label(str(persona.role)).classes("text-xs uppercase text-gray-500")
        ui.label(persona.description).classes("text-xs text-gray-400 mt-2")
