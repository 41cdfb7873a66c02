"""Tests for the team runner.

Covers: single-agent replies, the fixed Team Mode sequence and its
prompt overrides, history growth between steps, pending-then-final
callbacks, error and empty-reply bubbles, step delays, and input
validation.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from grandmaster.models import USER_SPEAKER, AgentReply, Message
from grandmaster.personas import AgentRole, Persona
from grandmaster.team import (
    EMPTY_REPLY_TEXT,
    SYSTEM_ERROR_TEMPLATE,
    TEAM_SEQUENCE,
    run_agent,
    run_team,
    submit,
)
from grandmaster.transcript import Transcript


def _reply(persona: Persona, content: str = "", error: str | None = None) -> AgentReply:
    return AgentReply(persona_id=persona.id, model_id="test-model", content=content, error=error)


def _make_provider(**kwargs: Any) -> MagicMock:
    """Build a provider mock whose respond() echoes the persona name."""
    provider = MagicMock()
    calls: list[tuple[str, list[dict[str, str]], str]] = []

    async def respond(persona: Persona, history: list[dict[str, str]], prompt: str) -> AgentReply:
        calls.append((persona.id, [dict(turn) for turn in history], prompt))
        return _reply(persona, content=f"{persona.name} says hi")

    provider.respond = AsyncMock(side_effect=kwargs.get("side_effect", respond))
    provider.calls = calls
    return provider


# ---------------------------------------------------------------------------
# Sequence definition
# ---------------------------------------------------------------------------


class TestTeamSequence:
    """TEAM_SEQUENCE is Lead, then EDA, then Model."""

    def test_roles_in_order(self) -> None:
        assert [step.role for step in TEAM_SEQUENCE] == [
            AgentRole.LEAD,
            AgentRole.EDA,
            AgentRole.MODEL,
        ]

    def test_only_lead_answers_user_directly(self) -> None:
        assert TEAM_SEQUENCE[0].prompt_override is None
        assert all(step.prompt_override for step in TEAM_SEQUENCE[1:])


# ---------------------------------------------------------------------------
# run_agent
# ---------------------------------------------------------------------------


class TestRunAgent:
    """run_agent() appends a pending message then finalizes it."""

    @pytest.mark.asyncio
    async def test_user_message_sent_as_prompt(self) -> None:
        from grandmaster.personas import get_persona

        persona = get_persona("agent-critic")
        assert persona is not None
        provider = _make_provider()
        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="Review my code")])

        final = await run_agent(provider, transcript, persona)

        persona_id, history, prompt = provider.calls[0]
        assert persona_id == "agent-critic"
        assert history == []
        assert prompt == "Review my code"
        assert final.content == "Optimus says hi"
        assert not final.pending
        assert transcript.snapshot()[-1] == final

    @pytest.mark.asyncio
    async def test_no_user_message_raises(self) -> None:
        from grandmaster.personas import get_persona

        persona = get_persona("agent-lead")
        assert persona is not None
        with pytest.raises(ValueError, match="No user message"):
            await run_agent(_make_provider(), Transcript(), persona)

    @pytest.mark.asyncio
    async def test_prompt_override_keeps_history(self) -> None:
        from grandmaster.personas import get_persona

        persona = get_persona("agent-eda")
        assert persona is not None
        provider = _make_provider()
        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="Churn")])

        await run_agent(provider, transcript, persona, prompt_override="Do EDA.")

        _, history, prompt = provider.calls[0]
        assert history == [{"role": "user", "content": "Churn"}]
        assert prompt == "Do EDA."

    @pytest.mark.asyncio
    async def test_callback_sees_pending_then_final(self) -> None:
        from grandmaster.personas import get_persona

        persona = get_persona("agent-lead")
        assert persona is not None
        seen: list[Message] = []

        async def on_message(message: Message) -> None:
            seen.append(message)

        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])
        await run_agent(_make_provider(), transcript, persona, on_message=on_message)

        assert [m.pending for m in seen] == [True, False]
        assert seen[0].id == seen[1].id
        assert seen[0].content == ""

    @pytest.mark.asyncio
    async def test_reply_error_becomes_system_bubble(self) -> None:
        from grandmaster.personas import get_persona

        persona = get_persona("agent-lead")
        assert persona is not None

        async def failing(p: Persona, history: Any, prompt: str) -> AgentReply:
            return _reply(p, error="HTTP 401: bad key")

        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])
        final = await run_agent(_make_provider(side_effect=failing), transcript, persona)

        assert final.content == SYSTEM_ERROR_TEMPLATE.format(name="Dr. Atlas")
        assert "**System Error**" in final.content

    @pytest.mark.asyncio
    async def test_raised_exception_becomes_system_bubble(self) -> None:
        from grandmaster.personas import get_persona

        persona = get_persona("agent-model")
        assert persona is not None
        provider = _make_provider(side_effect=RuntimeError("boom"))
        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])

        final = await run_agent(provider, transcript, persona)

        assert final.content == SYSTEM_ERROR_TEMPLATE.format(name="Architect")
        assert not transcript.has_pending

    @pytest.mark.asyncio
    async def test_empty_reply_uses_fallback_text(self) -> None:
        from grandmaster.personas import get_persona

        persona = get_persona("agent-feature")
        assert persona is not None

        async def silent(p: Persona, history: Any, prompt: str) -> AgentReply:
            return _reply(p, content="")

        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])
        final = await run_agent(_make_provider(side_effect=silent), transcript, persona)
        assert final.content == EMPTY_REPLY_TEXT

    @pytest.mark.asyncio
    async def test_callback_failure_does_not_abort(self) -> None:
        from grandmaster.personas import get_persona

        persona = get_persona("agent-lead")
        assert persona is not None
        callback = AsyncMock(side_effect=RuntimeError("render failed"))
        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])

        final = await run_agent(_make_provider(), transcript, persona, on_message=callback)

        assert final.content == "Dr. Atlas says hi"
        assert callback.await_count == 2


# ---------------------------------------------------------------------------
# run_team / submit
# ---------------------------------------------------------------------------


class TestRunTeam:
    """run_team() runs the steps strictly in order."""

    @pytest.mark.asyncio
    async def test_order_and_history_growth(self) -> None:
        provider = _make_provider()
        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="Titanic")])

        replies = await run_team(provider, transcript, step_delay=0)

        assert [r.speaker_id for r in replies] == ["agent-lead", "agent-eda", "agent-model"]
        assert [c[0] for c in provider.calls] == ["agent-lead", "agent-eda", "agent-model"]
        # Each step sees every finalized reply before it.
        assert len(provider.calls[0][1]) == 0
        assert len(provider.calls[1][1]) == 2
        assert len(provider.calls[2][1]) == 3
        assert provider.calls[2][1][-1] == {"role": "model", "content": "Sherlock says hi"}
        assert provider.calls[1][2] == TEAM_SEQUENCE[1].prompt_override
        assert len(transcript) == 4

    @pytest.mark.asyncio
    async def test_delay_between_steps(self) -> None:
        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])
        with patch("grandmaster.team.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await run_team(_make_provider(), transcript, step_delay=1.0)
        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.0)

    @pytest.mark.asyncio
    async def test_zero_delay_never_sleeps(self) -> None:
        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])
        with patch("grandmaster.team.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await run_team(_make_provider(), transcript, step_delay=0)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_step_does_not_stop_team(self) -> None:
        async def flaky(p: Persona, history: Any, prompt: str) -> AgentReply:
            if p.id == "agent-eda":
                return _reply(p, error="Request timed out after 120.0s")
            return _reply(p, content="ok")

        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])
        replies = await run_team(_make_provider(side_effect=flaky), transcript, step_delay=0)

        assert [r.content for r in replies] == [
            "ok",
            SYSTEM_ERROR_TEMPLATE.format(name="Sherlock"),
            "ok",
        ]


class TestSubmit:
    """submit() appends the user turn and dispatches."""

    @pytest.mark.asyncio
    async def test_single_agent(self) -> None:
        provider = _make_provider()
        transcript = Transcript()

        replies = await submit(provider, transcript, "Check my CV", persona_id="agent-critic")

        assert len(replies) == 1
        assert [m.speaker_id for m in transcript] == [USER_SPEAKER, "agent-critic"]

    @pytest.mark.asyncio
    async def test_team_mode(self) -> None:
        transcript = Transcript()
        replies = await submit(_make_provider(), transcript, "House prices", step_delay=0)
        assert len(replies) == 3
        assert transcript.snapshot()[0].content == "House prices"

    @pytest.mark.asyncio
    async def test_callback_order(self) -> None:
        seen: list[tuple[str, bool]] = []

        async def on_message(message: Message) -> None:
            seen.append((message.speaker_id, message.pending))

        await submit(
            _make_provider(),
            Transcript(),
            "q",
            persona_id="agent-eda",
            on_message=on_message,
        )
        assert seen == [(USER_SPEAKER, False), ("agent-eda", True), ("agent-eda", False)]

    @pytest.mark.asyncio
    async def test_blank_text_rejected(self) -> None:
        transcript = Transcript()
        with pytest.raises(ValueError, match="empty"):
            await submit(_make_provider(), transcript, "   ")
        assert len(transcript) == 0

    @pytest.mark.asyncio
    async def test_unknown_agent_rejected(self) -> None:
        transcript = Transcript()
        with pytest.raises(ValueError, match="Unknown agent"):
            await submit(_make_provider(), transcript, "q", persona_id="agent-ghost")
        assert len(transcript) == 0
