"""Tests for the in-memory transcript and message models.

Covers: append-only ordering, finalize-once semantics, snapshot
isolation, conversation history mapping, and dict serialization.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from grandmaster.models import USER_SPEAKER, AgentReply, Message
from grandmaster.transcript import Transcript, TranscriptError, conversation_history

# ---------------------------------------------------------------------------
# Message
# ---------------------------------------------------------------------------


class TestMessage:
    """Message value type."""

    def test_defaults(self) -> None:
        msg = Message(speaker_id=USER_SPEAKER, content="hi")
        assert msg.is_user
        assert not msg.pending
        assert len(msg.id) == 32
        assert msg.timestamp.tzinfo is not None

    def test_ids_are_unique(self) -> None:
        assert Message(speaker_id="a").id != Message(speaker_id="a").id

    def test_finalized_keeps_identity(self) -> None:
        pending = Message(speaker_id="agent-lead", pending=True)
        final = pending.finalized("Plan ready.")
        assert final.id == pending.id
        assert final.timestamp == pending.timestamp
        assert final.content == "Plan ready."
        assert not final.pending
        assert pending.pending

    def test_round_trip_dict(self) -> None:
        msg = Message(
            speaker_id="agent-eda",
            content="```python\nx = 1\n```",
            timestamp=datetime(2026, 3, 1, 12, 30, tzinfo=UTC),
        )
        restored = Message.from_dict(msg.to_dict())
        assert restored == msg

    def test_from_dict_minimal(self) -> None:
        msg = Message.from_dict({"speaker_id": "agent-model"})
        assert msg.content == ""
        assert not msg.pending
        assert msg.id

    def test_from_dict_requires_speaker(self) -> None:
        with pytest.raises(KeyError):
            Message.from_dict({"content": "orphan"})


class TestAgentReply:
    """AgentReply serialization."""

    def test_to_dict(self) -> None:
        reply = AgentReply(
            persona_id="agent-lead",
            model_id="gemini-2.5-pro",
            content="ok",
            latency_ms=12,
            token_count=40,
        )
        assert reply.to_dict() == {
            "persona_id": "agent-lead",
            "model_id": "gemini-2.5-pro",
            "content": "ok",
            "latency_ms": 12,
            "token_count": 40,
            "error": None,
        }


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


class TestTranscriptAppend:
    """Transcript.append() keeps insertion order."""

    def test_empty(self) -> None:
        transcript = Transcript()
        assert len(transcript) == 0
        assert not transcript
        assert transcript.snapshot() == ()

    def test_append_in_order(self) -> None:
        transcript = Transcript()
        first = transcript.append(Message(speaker_id=USER_SPEAKER, content="a"))
        second = transcript.append(Message(speaker_id="agent-lead", content="b"))
        assert [m.id for m in transcript] == [first.id, second.id]
        assert len(transcript) == 2
        assert transcript

    def test_duplicate_id_rejected(self) -> None:
        transcript = Transcript()
        msg = transcript.append(Message(speaker_id=USER_SPEAKER, content="a"))
        with pytest.raises(TranscriptError, match="Duplicate"):
            transcript.append(msg)


class TestTranscriptFinalize:
    """Transcript.finalize() replaces a pending message exactly once."""

    def test_finalize_in_place(self) -> None:
        transcript = Transcript()
        transcript.append(Message(speaker_id=USER_SPEAKER, content="q"))
        pending = transcript.append(Message(speaker_id="agent-lead", pending=True))
        transcript.append(Message(speaker_id="agent-eda", pending=True))

        final = transcript.finalize(pending.id, "answer")

        assert transcript.snapshot()[1] == final
        assert final.content == "answer"
        assert len(transcript) == 3

    def test_finalize_twice_rejected(self) -> None:
        transcript = Transcript()
        pending = transcript.append(Message(speaker_id="agent-lead", pending=True))
        transcript.finalize(pending.id, "once")
        with pytest.raises(TranscriptError, match="already finalized"):
            transcript.finalize(pending.id, "twice")

    def test_finalize_unknown_id(self) -> None:
        with pytest.raises(TranscriptError, match="No message"):
            Transcript().finalize("missing", "text")

    def test_has_pending(self) -> None:
        transcript = Transcript()
        pending = transcript.append(Message(speaker_id="agent-lead", pending=True))
        assert transcript.has_pending
        transcript.finalize(pending.id, "done")
        assert not transcript.has_pending


class TestTranscriptSnapshot:
    """snapshot() is isolated from later mutations."""

    def test_snapshot_unaffected_by_append(self) -> None:
        transcript = Transcript()
        transcript.append(Message(speaker_id=USER_SPEAKER, content="a"))
        snap = transcript.snapshot()
        transcript.append(Message(speaker_id="agent-lead", content="b"))
        assert len(snap) == 1

    def test_snapshot_unaffected_by_finalize(self) -> None:
        transcript = Transcript()
        pending = transcript.append(Message(speaker_id="agent-lead", pending=True))
        snap = transcript.snapshot()
        transcript.finalize(pending.id, "done")
        assert snap[0].pending
        assert snap[0].content == ""

    def test_last_user_message(self) -> None:
        transcript = Transcript()
        assert transcript.last_user_message() is None
        transcript.append(Message(speaker_id=USER_SPEAKER, content="first"))
        latest = transcript.append(Message(speaker_id=USER_SPEAKER, content="second"))
        transcript.append(Message(speaker_id="agent-lead", content="reply"))
        assert transcript.last_user_message() == latest


class TestConversationHistory:
    """history() maps messages to user/model turns."""

    def test_roles_and_pending_skipped(self) -> None:
        messages = [
            Message(speaker_id=USER_SPEAKER, content="q"),
            Message(speaker_id="agent-lead", content="plan"),
            Message(speaker_id="agent-eda", pending=True),
        ]
        assert conversation_history(messages) == [
            {"role": "user", "content": "q"},
            {"role": "model", "content": "plan"},
        ]

    def test_transcript_history(self) -> None:
        transcript = Transcript([Message(speaker_id=USER_SPEAKER, content="q")])
        assert transcript.history() == [{"role": "user", "content": "q"}]


class TestTranscriptDict:
    """to_dict()/from_dict() for CLI JSON output."""

    def test_round_trip(self) -> None:
        transcript = Transcript(
            [
                Message(speaker_id=USER_SPEAKER, content="q"),
                Message(speaker_id="agent-lead", content="a"),
            ]
        )
        restored = Transcript.from_dict(transcript.to_dict())
        assert restored.snapshot() == transcript.snapshot()

    def test_from_dict_without_messages(self) -> None:
        assert len(Transcript.from_dict({})) == 0

    def test_duplicate_initial_ids_rejected(self) -> None:
        msg = Message(speaker_id=USER_SPEAKER, content="q")
        with pytest.raises(TranscriptError, match="Duplicate"):
            Transcript([msg, msg])

    def test_from_dict_duplicate_ids_rejected(self) -> None:
        entry = Message(speaker_id=USER_SPEAKER, content="q", id="m1").to_dict()
        with pytest.raises(TranscriptError, match="m1"):
            Transcript.from_dict({"messages": [entry, dict(entry, content="again")]})
