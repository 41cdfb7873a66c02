"""Data models for chat messages and agent replies.

Defines the value types shared by the chat UI, the team runner, and the
notebook exporter. All models are serializable to JSON-compatible dicts.

Typical usage::

    from grandmaster.models import Message

    msg = Message(speaker_id="user", content="Predict churn for a telco.")
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

USER_SPEAKER = "user"


@dataclass(frozen=True)
class Message:
    """One turn in a chat transcript.

    Messages are immutable. A pending message is replaced by its finalized
    copy via ``finalized()`` rather than edited in place, so any snapshot
    of a transcript always sees a message either fully pending or fully
    final.

    Attributes:
        speaker_id: ``"user"`` or an agent persona id (e.g. "agent-lead").
        content: Markdown text. Empty while pending.
        id: Unique identifier (UUID4 hex).
        timestamp: When the message was created (UTC).
        pending: True while the agent response has not arrived yet.
    """

    speaker_id: str
    content: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    pending: bool = False

    @property
    def is_user(self) -> bool:
        """Whether the message was written by the user."""
        return self.speaker_id == USER_SPEAKER

    def finalized(self, content: str) -> Message:
        """Return a final copy of this message carrying ``content``.

        Args:
            content: The response text.

        Returns:
            New Message with the same id and timestamp, not pending.
        """
        return replace(self, content=content, pending=False)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary.

        Returns:
            Dictionary with all fields, datetime as ISO string.
        """
        return {
            "id": self.id,
            "speaker_id": self.speaker_id,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "pending": self.pending,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Deserialize from a JSON-compatible dictionary.

        Args:
            data: Dictionary matching the ``to_dict()`` format. Only
                ``speaker_id`` is required.

        Returns:
            Message instance.
        """
        kwargs: dict[str, Any] = {
            "speaker_id": data["speaker_id"],
            "content": data.get("content", ""),
            "pending": bool(data.get("pending", False)),
        }
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        if data.get("timestamp"):
            kwargs["timestamp"] = datetime.fromisoformat(data["timestamp"])
        return cls(**kwargs)


@dataclass
class AgentReply:
    """Result of one language-model call made on behalf of a persona.

    Attributes:
        persona_id: Persona that was asked (e.g. "agent-eda").
        model_id: Provider-specific model identifier.
        content: Response text. Empty when the call failed.
        latency_ms: Response time in milliseconds.
        token_count: Total tokens used, if reported by the API.
        error: Error message if the call failed, None on success.
    """

    persona_id: str
    model_id: str
    content: str
    latency_ms: int | None = None
    token_count: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary.

        Returns:
            Dictionary with all fields.
        """
        return {
            "persona_id": self.persona_id,
            "model_id": self.model_id,
            "content": self.content,
            "latency_ms": self.latency_ms,
            "token_count": self.token_count,
            "error": self.error,
        }
