"""In-memory chat transcript — the ordered, append-only message log.

The transcript is shared between the chat UI, the team runner, and the
notebook exporter. Every mutation swaps in a new immutable tuple, so
``snapshot()`` is a single reference read: an exporter holding a snapshot
never observes a later append or a message being finalized mid-read.

Transcripts live only for the duration of a session. ``to_dict()`` and
``from_dict()`` exist for the CLI's JSON output and notebook conversion,
not for storage.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from grandmaster.models import USER_SPEAKER, Message


class TranscriptError(Exception):
    """Raised when a transcript operation would break append-only semantics."""


class Transcript:
    """Ordered, append-only sequence of chat messages.

    Insertion order is display order is export order. No operation
    removes or reorders entries.

    Args:
        messages: Optional initial messages, in order.

    Raises:
        TranscriptError: If two initial messages share an id.
    """

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        initial = tuple(messages)
        seen: set[str] = set()
        for message in initial:
            if message.id in seen:
                raise TranscriptError(f"Duplicate message id '{message.id}'.")
            seen.add(message.id)
        self._messages: tuple[Message, ...] = initial

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())

    def __bool__(self) -> bool:
        return bool(self._messages)

    def append(self, message: Message) -> Message:
        """Append a message to the end of the transcript.

        Args:
            message: Message to add.

        Returns:
            The appended message, for chaining.

        Raises:
            TranscriptError: If a message with the same id already exists.
        """
        current = self._messages
        if any(m.id == message.id for m in current):
            raise TranscriptError(f"Duplicate message id '{message.id}'.")
        self._messages = (*current, message)
        return message

    def finalize(self, message_id: str, content: str) -> Message:
        """Set the content of a pending message exactly once.

        The pending entry is replaced in place (same position, same id and
        timestamp) by its finalized copy.

        Args:
            message_id: Id of the pending message.
            content: The arrived response text.

        Returns:
            The finalized message.

        Raises:
            TranscriptError: If no message has this id, or it is already final.
        """
        current = self._messages
        for index, message in enumerate(current):
            if message.id != message_id:
                continue
            if not message.pending:
                raise TranscriptError(f"Message '{message_id}' is already finalized.")
            final = message.finalized(content)
            self._messages = current[:index] + (final,) + current[index + 1 :]
            return final
        raise TranscriptError(f"No message with id '{message_id}'.")

    def snapshot(self) -> tuple[Message, ...]:
        """Return a point-in-time copy of the transcript.

        Returns:
            Immutable tuple of messages in transcript order.
        """
        return self._messages

    @property
    def has_pending(self) -> bool:
        """Whether any message is still waiting for its response."""
        return any(m.pending for m in self._messages)

    def last_user_message(self) -> Message | None:
        """Return the most recent message written by the user, if any."""
        for message in reversed(self._messages):
            if message.is_user:
                return message
        return None

    def history(self) -> list[dict[str, str]]:
        """Build the conversation history passed to language-model calls.

        Pending messages are skipped. User turns map to role ``"user"``;
        every agent turn maps to role ``"model"``.

        Returns:
            List of ``{"role": ..., "content": ...}`` dicts in order.
        """
        return conversation_history(self.snapshot())

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary.

        Returns:
            Dictionary with a ``messages`` list.
        """
        return {"messages": [m.to_dict() for m in self._messages]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transcript:
        """Deserialize from a JSON-compatible dictionary.

        Args:
            data: Dictionary matching the ``to_dict()`` format.

        Returns:
            Transcript instance.
        """
        return cls(Message.from_dict(m) for m in data.get("messages", []))


def conversation_history(messages: Iterable[Message]) -> list[dict[str, str]]:
    """Map finalized messages to provider-neutral chat turns.

    Args:
        messages: Messages in transcript order.

    Returns:
        List of ``{"role": "user"|"model", "content": ...}`` dicts.
    """
    return [
        {"role": "user" if m.speaker_id == USER_SPEAKER else "model", "content": m.content}
        for m in messages
        if not m.pending
    ]
