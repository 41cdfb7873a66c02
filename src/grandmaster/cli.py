"""CLI entry point for Grandmaster.

Provides the ``grandmaster`` command with subcommands for consulting the
agent team from the terminal, converting saved sessions to notebooks,
serving the web UI, and managing configuration.

Typical usage::

    grandmaster ask "Titanic Survival Prediction" --notebook titanic.ipynb
    grandmaster ask "Check my CV split" --agent agent-critic
    grandmaster export session.json session.ipynb
    grandmaster serve --port 8080
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console

from grandmaster import __version__
from grandmaster.config import (
    CONFIG_PATH,
    Config,
    env_provider_names,
    load_config,
    write_config,
)
from grandmaster.display import (
    format_markdown,
    render_agents,
    render_config_show,
    render_message,
)
from grandmaster.models import Message
from grandmaster.notebook import NotebookExportError, serialize
from grandmaster.personas import AGENTS, display_name
from grandmaster.providers import create_provider
from grandmaster.team import submit
from grandmaster.transcript import Transcript, TranscriptError

console = Console(stderr=True)


def _fail(message: str) -> NoReturn:
    """Print an error line and exit with status 1."""
    console.print(f"[red bold]Error:[/red bold] {message}")
    sys.exit(1)


def _load_config_or_exit() -> Config:
    try:
        return load_config()
    except (ValueError, OSError) as exc:
        _fail(str(exc))


def _write_notebook(messages: tuple[Message, ...], path: str, *, headings: bool = True) -> None:
    """Serialize a transcript snapshot and write it to ``path``.

    Args:
        messages: Transcript snapshot.
        path: Destination ``.ipynb`` path.
        headings: Prefix each message with a speaker heading cell.
    """
    try:
        text = serialize(messages, headings=headings)
    except NotebookExportError as exc:
        _fail(f"Notebook export failed: {exc}")

    resolved = Path(path).resolve()
    try:
        resolved.write_text(text, encoding="utf-8")
    except OSError as exc:
        _fail(f"Cannot write to {resolved}: {exc}")
    console.print(f"[dim]Notebook written to {resolved}[/dim]")


async def _run_session(
    config: Config,
    problem: str,
    *,
    agent: str | None,
    delay: float,
    live: bool,
) -> Transcript:
    """Open a provider and collect the agent replies for one problem.

    Args:
        config: Application configuration.
        problem: The user's problem statement.
        agent: Persona id to ask directly, or None for Team Mode.
        delay: Seconds between Team Mode steps.
        live: Render messages to the terminal as they finalize.

    Returns:
        The session transcript.
    """
    transcript = Transcript()

    async def on_message(message: Message) -> None:
        if message.pending:
            console.print(f"[dim]{display_name(message.speaker_id)} is thinking...[/dim]")
        elif not message.is_user:
            render_message(message)

    async with create_provider(config) as provider:
        await submit(
            provider,
            transcript,
            problem,
            persona_id=agent,
            step_delay=delay,
            on_message=on_message if live else None,
        )
    return transcript


@click.group()
@click.version_option(version=__version__, prog_name="grandmaster")
def main() -> None:
    """Autonomous data-science team with Jupyter notebook export.

    Poses a data-science problem to a panel of agent personas (Lead
    Strategist, Data Detective, Feature Smith, Model Architect, Code
    Optimizer) and exports the conversation as a notebook.
    """


@main.command()
def agents() -> None:
    """List the agent personas on the team."""
    render_agents()


@main.command()
@click.argument("problem")
@click.option(
    "--agent",
    type=click.Choice([p.id for p in AGENTS]),
    default=None,
    help="Ask a single agent instead of running Team Mode.",
)
@click.option(
    "--delay",
    type=click.FloatRange(min=0.0),
    default=None,
    help="Seconds between Team Mode steps (default: from config, 1.0).",
)
@click.option(
    "--output",
    type=click.Choice(["terminal", "json", "markdown"], case_sensitive=False),
    default="terminal",
    help="Output format (default: terminal).",
)
@click.option(
    "--file",
    "output_file",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write json/markdown output to FILE instead of stdout.",
)
@click.option(
    "--notebook",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Also export the session as a Jupyter notebook to this path.",
)
def ask(
    problem: str,
    agent: str | None,
    delay: float | None,
    output: str,
    output_file: str | None,
    notebook: str | None,
) -> None:
    """Pose PROBLEM to the team (or a single agent).

    Team Mode runs the Lead Strategist, then the Data Detective, then the
    Model Architect, each seeing the replies before it.

    Args:
        problem: The data-science problem statement.
        agent: Persona id for single-agent mode.
        delay: Seconds between Team Mode steps.
        output: Output format choice.
        output_file: Path to write json/markdown output to.
        notebook: Path to write the notebook export to.
    """
    config = _load_config_or_exit()

    if not config.api_key:
        _fail(
            f"No API key found for provider '{config.provider}'.\n"
            "Set GEMINI_API_KEY (or OPENROUTER_API_KEY with provider = \"openrouter\")\n"
            "or configure keys in ~/.grandmaster/config.toml"
        )

    live = output == "terminal"
    step_delay = config.step_delay if delay is None else delay

    try:
        transcript = asyncio.run(
            _run_session(config, problem, agent=agent, delay=step_delay, live=live)
        )
    except Exception as exc:
        _fail(str(exc))

    messages = transcript.snapshot()

    if not live:
        if output == "json":
            content = json.dumps(transcript.to_dict(), indent=2, ensure_ascii=False)
        else:
            content = format_markdown(messages)
        content = content.rstrip("\n") + "\n"
        if output_file is not None:
            resolved = Path(output_file).resolve()
            try:
                resolved.write_text(content, encoding="utf-8")
            except OSError as exc:
                _fail(f"Cannot write to {resolved}: {exc}")
            console.print(f"[dim]Output written to {resolved}[/dim]")
        else:
            click.echo(content, nl=False)

    if notebook is not None:
        _write_notebook(messages, notebook)


@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.argument("destination", type=click.Path(dir_okay=False, writable=True))
@click.option(
    "--no-headings",
    is_flag=True,
    default=False,
    help="Omit the per-message speaker heading cells.",
)
def export(source: str, destination: str, no_headings: bool) -> None:
    """Convert a saved session (from ``ask --output json``) to a notebook.

    Args:
        source: Path to the session JSON file.
        destination: Path of the ``.ipynb`` file to write.
        no_headings: Omit speaker heading cells.
    """
    try:
        data = json.loads(Path(source).read_text(encoding="utf-8"))
        transcript = Transcript.from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError, TranscriptError) as exc:
        _fail(f"Cannot read session from {source}: {exc}")

    _write_notebook(transcript.snapshot(), destination, headings=not no_headings)


@main.command()
@click.option("--port", default=8080, help="Port to bind to.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.option("--no-open", is_flag=True, help="Don't open browser automatically.")
def serve(port: int, host: str, no_open: bool) -> None:
    """Start the web UI server."""
    from grandmaster.web.app import create_app

    create_app(host=host, port=port, show=not no_open)


@main.group()
def config() -> None:
    """Manage configuration."""


@config.command()
def path() -> None:
    """Print the configuration file path."""
    click.echo(CONFIG_PATH)


@config.command("show")
def config_show() -> None:
    """Display effective configuration."""
    render_config_show(_load_config_or_exit())


@config.command("init")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing file.")
def config_init(force: bool) -> None:
    """Write a config file with the current effective settings.

    API keys that come from environment variables are not written.
    """
    if CONFIG_PATH.exists() and not force:
        _fail(f"{CONFIG_PATH} already exists. Use --force to overwrite.")

    cfg = _load_config_or_exit()
    write_config(cfg, CONFIG_PATH, env_providers=env_provider_names())
    console.print(f"[dim]Config written to {CONFIG_PATH}[/dim]")


if __name__ == "__main__":
    main()
