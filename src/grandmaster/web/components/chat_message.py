"""Chat message component — one bubble per transcript message.

Provides pure-Python helpers for bubble styling and timestamps, plus a
NiceGUI rendering function. Pending messages render a spinner; final
messages render their markdown, including fenced code blocks.
"""

from __future__ import annotations

from grandmaster.models import Message
from grandmaster.personas import display_name
from grandmaster.web.colors import get_css_colors


def format_time(message: Message) -> str:
    """Format the message timestamp for display.

    Args:
        message: Transcript message.

    Returns:
        Local time as ``"HH:MM"``.
    """
    return message.timestamp.astimezone().strftime("%H:%M")


def bubble_classes(message: Message) -> str:
    """Tailwind classes for a message bubble.

    User bubbles are right-aligned; agent bubbles are left-aligned and
    bordered in the persona color.

    Args:
        message: Transcript message.

    Returns:
        Space-separated class string.
    """
    colors = get_css_colors(message.speaker_id)
    align = "self-end" if message.is_user else "self-start"
    return f"{align} max-w-[85%] border {colors['border']} {colors['bg']} rounded-xl p-4"


def render_chat_message(message: Message) -> None:
    """Render one message bubble.

    Args:
        message: The message to render.
    """
    from nicegui import ui

    colors = get_css_colors(message.speaker_id)

    with ui.card().classes(bubble_classes(message)):
        with ui.row().classes("w-full justify-between items-center gap-4"):
            ui.label(display_name(message.speaker_id)).classes(f"font-bold {colors['text']}")
            ui.label(format_time(message)).classes("text-xs text-gray-500")

        if message.pending:
            with ui.row().classes("items-center gap-2 mt-2"):
                ui.spinner("dots").classes(colors["text"])
                ui.label("Thinking...").classes("text-gray-400 italic text-sm")
        else:
            ui.markdown(message.content).classes("mt-2 w-full")
