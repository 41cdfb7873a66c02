"""Shared layout components for the Grandmaster web interface.

Provides the navigation shell (header + footer). Dark mode is set
globally via ui.run(dark=True) in app.py; the layout provides a toggle
for runtime switching.
"""

from __future__ import annotations

from nicegui import ui

from grandmaster import __version__


def create_layout() -> None:
    """Create the shared page shell.

    Adds a header with the app title and dark mode toggle, and a footer
    with the version string and a review reminder. Call this at the top
    of every @ui.page function.
    """
    dark = ui.dark_mode()

    with ui.header().classes("items-center justify-between px-4 bg-gray-900"):
        with ui.row().classes("items-center gap-2"):
            ui.icon("auto_awesome").classes("text-purple-400")
            ui.label("Grandmaster.ai").classes("text-lg font-bold tracking-tight")
            ui.label("Autonomous Data Science Team").classes("text-xs text-gray-500")
        ui.switch("Dark mode", value=True).bind_value(dark).classes("text-sm")

    with ui.footer().classes("bg-gray-900 text-gray-500 text-xs py-2 px-4 justify-between"):
        ui.label(
            "AI agents can make mistakes. Review the generated code before running in production."
        )
        ui.label(f"Grandmaster v{__version__}")
