"""Team runner — single-agent replies and the fixed Team Mode sequence.

Team Mode is not a scheduler: it is an ordered tuple of steps run
strictly one after another (Lead → EDA → Model). Each step reads the
transcript history at the moment it starts, so every agent sees the
replies of the agents before it.

Each agent call appends a pending message first, then finalizes it with
the reply text. Provider failures are rendered as a system-error bubble
instead of being raised.

Typical usage::

    import asyncio
    from grandmaster.config import load_config
    from grandmaster.providers import create_provider
    from grandmaster.team import submit
    from grandmaster.transcript import Transcript

    async def main():
        transcript = Transcript()
        async with create_provider(load_config()) as provider:
            await submit(provider, transcript, "Predict Titanic survival")

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from grandmaster.models import USER_SPEAKER, Message
from grandmaster.personas import AgentRole, Persona, get_persona, get_persona_by_role
from grandmaster.providers.base import Provider
from grandmaster.transcript import Transcript

logger = logging.getLogger(__name__)

OnMessage = Callable[[Message], Awaitable[None]] | None

SYSTEM_ERROR_TEMPLATE = (
    "**System Error**: {name} encountered a connection issue. "
    "Please check your API Key or try again."
)
EMPTY_REPLY_TEXT = (
    "I'm deep in thought but couldn't articulate a response. Please check the data feed."
)


@dataclass(frozen=True)
class TeamStep:
    """One step of the Team Mode sequence.

    Attributes:
        role: Role of the persona that answers this step.
        prompt_override: Instruction sent instead of the user's message.
            None means the persona answers the latest user message.
    """

    role: AgentRole
    prompt_override: str | None = None


TEAM_SEQUENCE: tuple[TeamStep, ...] = (
    TeamStep(AgentRole.LEAD),
    TeamStep(
        AgentRole.EDA,
        "Based on the user request and the Lead Strategist's plan, provide the initial "
        "Python code for loading data and EDA.",
    ),
    TeamStep(
        AgentRole.MODEL,
        "Based on the previous analysis, suggest a robust validation strategy and a "
        "baseline model code (e.g. XGBoost or PyTorch).",
    ),
)


async def run_agent(
    provider: Provider,
    transcript: Transcript,
    persona: Persona,
    *,
    prompt_override: str | None = None,
    on_message: OnMessage = None,
) -> Message:
    """Ask one persona for a reply and record it in the transcript.

    Without ``prompt_override`` the persona answers the latest user
    message, which is then sent as the prompt rather than repeated in the
    history.

    Args:
        provider: Open provider.
        transcript: Session transcript; receives a pending message that is
            finalized with the reply.
        persona: Persona to ask.
        prompt_override: Instruction to send instead of the user's message.
        on_message: Optional async callback fired when the pending message
            is appended and again when it is finalized.

    Returns:
        The finalized agent message.

    Raises:
        ValueError: If there is no user message to answer.
    """
    history = transcript.history()
    if prompt_override is None:
        if not history or history[-1]["role"] != USER_SPEAKER:
            raise ValueError("No user message to answer.")
        prompt = history.pop()["content"]
    else:
        prompt = prompt_override

    pending = transcript.append(Message(speaker_id=persona.id, pending=True))
    await _fire_message_hook(on_message, pending)

    try:
        reply = await provider.respond(persona, history, prompt)
    except Exception:
        logger.exception("Provider call failed for %s", persona.id)
        content = SYSTEM_ERROR_TEMPLATE.format(name=persona.name)
    else:
        if reply.error:
            logger.error("%s reply failed: %s", persona.id, reply.error)
            content = SYSTEM_ERROR_TEMPLATE.format(name=persona.name)
        else:
            content = reply.content or EMPTY_REPLY_TEXT

    final = transcript.finalize(pending.id, content)
    await _fire_message_hook(on_message, final)
    return final


async def run_team(
    provider: Provider,
    transcript: Transcript,
    *,
    step_delay: float = 1.0,
    on_message: OnMessage = None,
) -> list[Message]:
    """Run the Team Mode sequence against the latest user message.

    Args:
        provider: Open provider.
        transcript: Session transcript ending with a user message.
        step_delay: Seconds to wait between steps.
        on_message: Optional async callback, see ``run_agent()``.

    Returns:
        Finalized agent messages in step order.
    """
    replies: list[Message] = []
    for index, step in enumerate(TEAM_SEQUENCE):
        if index and step_delay > 0:
            await asyncio.sleep(step_delay)
        persona = get_persona_by_role(step.role)
        logger.info("Team step %d: %s", index + 1, persona.name)
        replies.append(
            await run_agent(
                provider,
                transcript,
                persona,
                prompt_override=step.prompt_override,
                on_message=on_message,
            )
        )
    return replies


async def submit(
    provider: Provider,
    transcript: Transcript,
    text: str,
    *,
    persona_id: str | None = None,
    step_delay: float = 1.0,
    on_message: OnMessage = None,
) -> list[Message]:
    """Append a user message and collect the agent replies.

    Args:
        provider: Open provider.
        transcript: Session transcript.
        text: The user's message.
        persona_id: Persona to ask directly. None runs Team Mode.
        step_delay: Seconds between Team Mode steps.
        on_message: Optional async callback, see ``run_agent()``.

    Returns:
        Finalized agent messages, in order.

    Raises:
        ValueError: If ``text`` is blank or ``persona_id`` is unknown.
    """
    if not text or not text.strip():
        raise ValueError("Message is empty.")

    persona: Persona | None = None
    if persona_id is not None:
        persona = get_persona(persona_id)
        if persona is None:
            raise ValueError(f"Unknown agent '{persona_id}'.")

    user_message = transcript.append(Message(speaker_id=USER_SPEAKER, content=text))
    await _fire_message_hook(on_message, user_message)

    if persona is not None:
        return [await run_agent(provider, transcript, persona, on_message=on_message)]
    return await run_team(provider, transcript, step_delay=step_delay, on_message=on_message)


async def _fire_message_hook(callback: OnMessage, message: Message) -> None:
    """Fire the on_message callback if provided.

    Exceptions in the callback are logged but not propagated, so a
    rendering failure cannot abort the team run.

    Args:
        callback: The async callback, or None.
        message: The appended or finalized message.
    """
    if callback is None:
        return
    try:
        await callback(message)
    except Exception:
        logger.exception("on_message callback failed for message %s", message.id)
