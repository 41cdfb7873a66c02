"""Chat view — agent roster, conversation, and notebook export.

Renders the primary interface: a sidebar with the Team Mode card, the
persona roster and the export button, and a chat column with the message
list and input box. Agent replies render progressively through the team
runner's ``on_message`` callback: a pending bubble appears first and is
replaced when the reply arrives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from nicegui import ui

from grandmaster.config import load_config
from grandmaster.models import Message
from grandmaster.notebook import NotebookExportError
from grandmaster.personas import AGENTS, SAMPLE_PROMPTS, get_persona
from grandmaster.providers import create_provider
from grandmaster.team import submit
from grandmaster.transcript import Transcript
from grandmaster.web.colors import get_css_colors
from grandmaster.web.components.agent_card import render_agent_card, render_team_card
from grandmaster.web.components.chat_message import render_chat_message
from grandmaster.web.components.download import deliver_notebook

logger = logging.getLogger(__name__)

TEAM_CHANNEL_TITLE = "Team Collaboration Channel"


def header_title(active_agent_id: str | None) -> str:
    """Title for the chat header.

    Args:
        active_agent_id: Selected persona id, or None for Team Mode.

    Returns:
        ``"Chatting with {name}"`` or the team channel title.
    """
    if active_agent_id is None:
        return TEAM_CHANNEL_TITLE
    persona = get_persona(active_agent_id)
    return f"Chatting with {persona.name if persona else active_agent_id}"


def input_placeholder(*, processing: bool) -> str:
    """Placeholder text for the message box.

    Args:
        processing: Whether agents are currently answering.

    Returns:
        Placeholder string.
    """
    if processing:
        return "Agents are working..."
    return "Describe your data problem (e.g., 'Predict customer churn using the Telco dataset')..."


def export_enabled(messages: tuple[Message, ...]) -> bool:
    """Whether the export button accepts clicks.

    Only an empty transcript disables export. Pending messages, including
    those of a team run still in flight, are skipped by the exporter.

    Args:
        messages: Transcript snapshot.

    Returns:
        True when there is at least one message.
    """
    return bool(messages)


@dataclass
class _ChatState:
    """Mutable per-page state shared between render and event handlers.

    Attributes:
        transcript: The session transcript, held only in memory.
        active_agent_id: Selected persona id, or None for Team Mode.
        processing: Whether a submission is in flight.
    """

    transcript: Transcript = field(default_factory=Transcript)
    active_agent_id: str | None = None
    processing: bool = False


@dataclass
class _ChatWidgets:
    """Holds references to the elements event handlers update.

    Attributes:
        roster: Sidebar column holding the selectable cards.
        title: Header title label.
        messages: Column holding the message bubbles.
        text_input: Message textarea.
        send_btn: Send button.
        export_btn: Notebook export button.
    """

    roster: Any
    title: Any
    messages: Any
    text_input: Any
    send_btn: Any
    export_btn: Any


async def _scroll_to_bottom() -> None:
    """Scroll the chat column to the newest message."""
    await ui.run_javascript(
        "const el = document.getElementById('chat-messages');"
        "if (el) el.scrollTo({top: el.scrollHeight, behavior: 'smooth'});"
    )


def render() -> None:
    """Render the chat page.

    Left panel: Team Mode card, persona roster, export button.
    Right panel: header, message list (or sample prompts when empty),
    message input.
    """
    config = load_config()
    state = _ChatState()
    widgets: _ChatWidgets

    def select_agent(agent_id: str | None) -> None:
        """Switch between Team Mode and single-agent chat."""
        state.active_agent_id = agent_id
        widgets.title.text = header_title(agent_id)
        _render_roster(widgets.roster, state, select_agent)

    def use_sample(prompt: str) -> None:
        widgets.text_input.value = prompt

    def refresh_messages() -> None:
        """Rebuild the message list from a transcript snapshot."""
        snapshot = state.transcript.snapshot()
        _render_messages(widgets.messages, snapshot, use_sample)
        widgets.export_btn.set_enabled(export_enabled(snapshot))

    async def on_message(message: Message) -> None:
        refresh_messages()
        await _scroll_to_bottom()

    async def on_send() -> None:
        """Submit the input text to the selected agent or the team."""
        text = widgets.text_input.value
        if not text or not text.strip() or state.processing:
            return

        _set_processing(state, widgets, True)
        widgets.text_input.value = ""
        try:
            config_fresh = load_config()
            async with create_provider(config_fresh) as provider:
                await submit(
                    provider,
                    state.transcript,
                    text,
                    persona_id=state.active_agent_id,
                    step_delay=config_fresh.step_delay,
                    on_message=on_message,
                )
        except Exception as exc:
            logger.exception("Workflow error")
            ui.notify(f"Workflow error: {exc}", type="negative")
        finally:
            _set_processing(state, widgets, False)
            refresh_messages()

    def on_export() -> None:
        """Download the transcript as a Jupyter notebook."""
        try:
            name = deliver_notebook(state.transcript.snapshot(), config.export_filename)
        except NotebookExportError as exc:
            logger.exception("Notebook export failed")
            ui.notify(f"Export failed: {exc}", type="negative")
            return
        ui.notify(f"Exported {name}", type="positive")

    async def on_keydown(e: Any) -> None:
        """Send on Enter; Shift+Enter inserts a newline."""
        args = getattr(e, "args", None) or {}
        if not args.get("shiftKey", False):
            await on_send()

    with ui.row().classes("w-full h-full gap-0 no-wrap"):
        with ui.column().classes(
            "w-1/4 min-w-[280px] max-w-[340px] p-4 bg-gray-900 "
            "border-r border-gray-800 gap-4 h-[calc(100vh-120px)]"
        ):
            roster = ui.column().classes("w-full gap-3 flex-1 overflow-y-auto")
            export_btn = ui.button("Export to Jupyter (.ipynb)", icon="download").classes(
                "w-full"
            )
            export_btn.disable()

        with ui.column().classes("flex-1 gap-0 h-[calc(100vh-120px)]"):
            with ui.row().classes(
                "w-full items-center justify-between px-6 py-3 border-b border-gray-800"
            ):
                title = ui.label(header_title(None)).classes("text-sm font-medium text-indigo-400")
                if not config.api_key:
                    with ui.row().classes(
                        "items-center gap-1 text-amber-500 text-xs px-3 py-1 "
                        "rounded-full border border-amber-900"
                    ):
                        ui.icon("warning").classes("text-xs")
                        ui.label("API Key Missing in Environment")

            messages = (
                ui.column()
                .classes("w-full flex-1 p-6 gap-4 overflow-y-auto")
                .props('id="chat-messages"')
            )

            with ui.row().classes("w-full p-4 border-t border-gray-800 items-end no-wrap"):
                text_input = (
                    ui.textarea(placeholder=input_placeholder(processing=False))
                    .classes("flex-1")
                    .props("outlined dark autogrow")
                )
                send_btn = ui.button(icon="send").props("color=primary")

    widgets = _ChatWidgets(
        roster=roster,
        title=title,
        messages=messages,
        text_input=text_input,
        send_btn=send_btn,
        export_btn=export_btn,
    )

    _render_roster(roster, state, select_agent)
    refresh_messages()

    send_btn.on_click(on_send)
    export_btn.on_click(on_export)
    text_input.on("keydown.enter", on_keydown, args=["shiftKey"])


def _set_processing(state: _ChatState, widgets: _ChatWidgets, processing: bool) -> None:
    """Toggle the busy state of the input controls.

    Args:
        state: Page state.
        widgets: Page widgets.
        processing: New busy state.
    """
    state.processing = processing
    widgets.text_input._props["placeholder"] = input_placeholder(processing=processing)
    widgets.text_input.update()
    if processing:
        widgets.text_input.disable()
        widgets.send_btn.disable()
    else:
        widgets.text_input.enable()
        widgets.send_btn.enable()


def _render_roster(container: Any, state: _ChatState, select_agent: Any) -> None:
    """Rebuild the sidebar cards for the current selection.

    Args:
        container: Sidebar column to fill.
        state: Page state.
        select_agent: Callback taking a persona id or None.
    """
    container.clear()
    with container:
        render_team_card(
            active=state.active_agent_id is None,
            on_click=lambda: select_agent(None),
        )
        ui.label("Roster").classes("text-xs font-mono uppercase tracking-widest text-gray-600 mt-4")
        for persona in AGENTS:
            render_agent_card(
                persona,
                active=state.active_agent_id == persona.id,
                on_click=lambda pid=persona.id: select_agent(pid),
            )


def _render_messages(container: Any, messages: tuple[Message, ...], use_sample: Any) -> None:
    """Rebuild the message list, or the empty state when there are none.

    Args:
        container: Message column to fill.
        messages: Transcript snapshot.
        use_sample: Callback that puts a sample prompt into the input.
    """
    container.clear()
    with container:
        if not messages:
            _render_empty_state(use_sample)
            return
        for message in messages:
            render_chat_message(message)


def _render_empty_state(use_sample: Any) -> None:
    """Render the welcome text and sample prompt buttons.

    Args:
        use_sample: Callback that puts a sample prompt into the input.
    """
    lead_colors = get_css_colors(AGENTS[0].id)
    with ui.column().classes("w-full items-center text-center gap-4 mt-16"):
        ui.icon("auto_awesome", size="2rem").classes(lead_colors["text"])
        ui.label("Grandmaster AI Agents").classes("text-2xl font-bold")
        ui.label(
            "Describe your Kaggle competition or Data Science problem. The team will "
            "collaborate to generate a winning solution, which you can export as a "
            "Jupyter Notebook."
        ).classes("max-w-md text-gray-500")
        with ui.grid(columns=2).classes("w-full max-w-2xl gap-3 mt-6"):
            for prompt in SAMPLE_PROMPTS:
                ui.button(prompt, on_click=lambda p=prompt: use_sample(p)).props(
                    "flat no-caps align=left"
                ).classes("text-left text-sm border border-gray-800 text-gray-400 p-4")
