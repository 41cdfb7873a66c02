"""Terminal display — Rich-based formatting for chat sessions.

Renders transcript messages to the terminal as color-coded panels, lists
the agent roster, and shows the effective configuration.

Typical usage::

    from grandmaster.display import render_message

    render_message(message)
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from grandmaster.config import SUPPORTED_PROVIDERS, Config
from grandmaster.models import Message
from grandmaster.personas import AGENTS, display_name, get_persona

console = Console()

# Persona color key → Rich color name.
PERSONA_COLORS: dict[str, str] = {
    "purple": "purple",
    "blue": "blue",
    "orange": "dark_orange",
    "emerald": "green",
    "pink": "hot_pink",
}

USER_COLOR = "bright_white"
DEFAULT_COLOR = "white"


def speaker_color(speaker_id: str) -> str:
    """Get the Rich color for a message speaker.

    Args:
        speaker_id: ``"user"`` or a persona id.

    Returns:
        Rich color string. Unknown speakers get the default color.
    """
    if speaker_id == "user":
        return USER_COLOR
    persona = get_persona(speaker_id)
    if persona is None:
        return DEFAULT_COLOR
    return PERSONA_COLORS.get(persona.color, DEFAULT_COLOR)


def render_message(message: Message) -> None:
    """Render one message as a colored panel.

    Pending messages render as a dim placeholder.

    Args:
        message: The message to display.
    """
    color = speaker_color(message.speaker_id)
    title = f"[{color} bold]{display_name(message.speaker_id)}[/{color} bold]"
    body: Markdown | str
    if message.pending:
        body = "[dim]thinking...[/dim]"
    else:
        body = Markdown(message.content)
    console.print(Panel(body, title=title, border_style=color, padding=(0, 1)))


def render_transcript(messages: Iterable[Message]) -> None:
    """Render every message of a transcript snapshot in order.

    Args:
        messages: Messages in transcript order.
    """
    for message in messages:
        render_message(message)


def format_markdown(messages: Iterable[Message]) -> str:
    """Format a transcript snapshot as a Markdown document.

    Pending messages are skipped.

    Args:
        messages: Messages in transcript order.

    Returns:
        Markdown string with one ``###`` section per message.
    """
    lines: list[str] = ["# Grandmaster Session"]
    for message in messages:
        if message.pending:
            continue
        lines.append("")
        lines.append(f"### {display_name(message.speaker_id)}")
        lines.append("")
        lines.append(message.content.rstrip("\n"))
    return "\n".join(lines) + "\n"


def render_agents() -> None:
    """Render the agent roster as a Rich table."""
    table = Table(show_header=True, padding=(0, 1))
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Role")
    table.add_column("Description", style="dim")

    for persona in AGENTS:
        color = PERSONA_COLORS.get(persona.color, DEFAULT_COLOR)
        table.add_row(
            persona.id,
            f"[{color}]{persona.name}[/{color}]",
            str(persona.role),
            persona.description,
        )

    console.print(table)


def _mask_key(key: str | None) -> str:
    """Mask an API key for display, keeping the last four characters.

    Args:
        key: API key or None.

    Returns:
        Masked key, or ``"not set"``.
    """
    if not key:
        return "[red]not set[/red]"
    if len(key) <= 8:
        return "****"
    return f"****{key[-4:]}"


def render_config_show(config: Config) -> None:
    """Render the effective configuration as a Rich table.

    Args:
        config: Loaded application configuration.
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Provider", config.provider)
    table.add_row("Model", config.resolve_model())
    for name in SUPPORTED_PROVIDERS:
        table.add_row(f"{name} key", _mask_key(config.get_provider_key(name)))
    table.add_row("Temperature", f"{config.temperature}")
    table.add_row("Team step delay", f"{config.step_delay}s")
    table.add_row("Timeout", f"{config.timeout}s")
    table.add_row("Export filename", config.export_filename)

    console.print(table)
