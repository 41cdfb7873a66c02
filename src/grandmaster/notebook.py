"""Notebook export — convert a chat transcript into a Jupyter notebook.

Walks a transcript snapshot once, splits each finalized message into
typed cells (markdown prose and fenced code), wraps the cells in a fixed
nbformat v4 envelope, and serializes the result with ``nbformat``.

Typical usage::

    from grandmaster.notebook import export, dumps

    document = export(transcript.snapshot())
    text = dumps(document)

Fence scanning is a forward line scan, not a markdown parser. Rules:

- A line whose stripped form starts with three or more backticks (or
  tildes) opens a fence. The first token after the fence run is the
  language tag.
- A line consisting only of three or more of the same fence character
  closes it, whatever the run length. An inner opener carrying a tag is
  treated as code.
- An unterminated fence runs to the end of the message.
- Text between fences becomes a markdown cell unless it is blank.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import nbformat

from grandmaster.models import Message
from grandmaster.personas import display_name

NBFORMAT_MAJOR = 4
NBFORMAT_MINOR = 5
NOTEBOOK_MEDIA_TYPE = "application/x-ipynb+json"

NOTEBOOK_METADATA: dict[str, Any] = {
    "kernelspec": {
        "display_name": "Python 3",
        "language": "python",
        "name": "python3",
    },
    "language_info": {
        "codemirror_mode": {"name": "ipython", "version": 3},
        "file_extension": ".py",
        "mimetype": "text/x-python",
        "name": "python",
        "nbconvert_exporter": "python",
        "pygments_lexer": "ipython3",
        "version": "3.12.0",
    },
}

_FENCE_OPEN = re.compile(r"^(`{3,}|~{3,})\s*(\S*)")
_FENCE_CLOSE = re.compile(r"^(`{3,}|~{3,})$")
_LINE_BREAK = re.compile(r"\r?\n")
_SOURCE_LINE = re.compile(r"[^\n]*\n|[^\n]+")
_CELL_ID_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")
# nbformat caps cell ids at 64 characters; leave room for the index suffix.
_CELL_ID_PREFIX_LEN = 48


class NotebookExportError(Exception):
    """Raised when a document cannot be turned into notebook text."""


class CellKind(StrEnum):
    """Notebook cell types produced by the exporter."""

    MARKDOWN = "markdown"
    CODE = "code"


@dataclass(frozen=True)
class Segment:
    """One run of a message's content, either prose or a fenced block.

    Attributes:
        kind: Markdown prose or code.
        text: Segment text without fence lines; no trailing newline.
        language: Fence language tag for code segments, if any.
    """

    kind: CellKind
    text: str
    language: str | None = None


@dataclass(frozen=True)
class DocumentCell:
    """One unit of the exported notebook.

    Attributes:
        kind: Markdown or code.
        source_lines: Lines of the cell; every line except the last keeps
            its ``\\n`` terminator.
        message_id: Id of the message the cell came from.
        index: Position of the cell among that message's cells.
        language: Fence language tag (informational, code cells only).
    """

    kind: CellKind
    source_lines: tuple[str, ...]
    message_id: str = ""
    index: int = 0
    language: str | None = None

    @property
    def source(self) -> str:
        """Cell source as a single string."""
        return "".join(self.source_lines)

    @property
    def cell_id(self) -> str:
        """Stable nbformat cell id derived from message id and index."""
        prefix = _CELL_ID_UNSAFE.sub("-", self.message_id)[:_CELL_ID_PREFIX_LEN] or "cell"
        return f"{prefix}-{self.index}"


@dataclass(frozen=True)
class Document:
    """The full export artifact: ordered cells plus a metadata envelope.

    Attributes:
        cells: Cells in transcript order.
        metadata: Notebook-level metadata (kernelspec, language_info).
        nbformat: Format major version.
        nbformat_minor: Format minor version.
    """

    cells: tuple[DocumentCell, ...] = ()
    metadata: dict[str, Any] = field(default_factory=lambda: copy.deepcopy(NOTEBOOK_METADATA))
    nbformat: int = NBFORMAT_MAJOR
    nbformat_minor: int = NBFORMAT_MINOR

    @property
    def code_cells(self) -> list[DocumentCell]:
        """Code cells, in order."""
        return [c for c in self.cells if c.kind == CellKind.CODE]

    @property
    def markdown_cells(self) -> list[DocumentCell]:
        """Markdown cells, in order."""
        return [c for c in self.cells if c.kind == CellKind.MARKDOWN]


# ---------------------------------------------------------------------------
# Fence scanning
# ---------------------------------------------------------------------------


def split_message(content: str) -> list[Segment]:
    """Split markdown content into prose and fenced-code segments.

    Args:
        content: Markdown text of one message.

    Returns:
        Segments in content order. Blank prose runs are dropped; code
        segments are kept even when empty.
    """
    segments: list[Segment] = []
    buffer: list[str] = []
    fence_char: str | None = None
    language: str | None = None

    for line in _content_lines(content):
        stripped = line.strip()
        if fence_char is None:
            opener = _FENCE_OPEN.match(stripped)
            if opener:
                _flush_prose(segments, buffer)
                buffer = []
                fence_char = opener.group(1)[0]
                language = opener.group(2) or None
            else:
                buffer.append(line)
            continue

        closer = _FENCE_CLOSE.match(stripped)
        if closer and closer.group(1)[0] == fence_char:
            segments.append(Segment(CellKind.CODE, "\n".join(buffer), language))
            buffer = []
            fence_char = None
            language = None
        else:
            buffer.append(line)

    if fence_char is not None:
        # Unterminated fence: the rest of the message is code.
        segments.append(Segment(CellKind.CODE, "\n".join(buffer), language))
    else:
        _flush_prose(segments, buffer)
    return segments


def _flush_prose(segments: list[Segment], lines: list[str]) -> None:
    """Append a markdown segment for ``lines`` unless they are all blank.

    Leading and trailing blank lines are trimmed; inner ones are kept.

    Args:
        segments: Segment list to extend.
        lines: Prose lines without terminators.
    """
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    if start < end:
        text = "\n".join(lines[start:end])
        segments.append(Segment(CellKind.MARKDOWN, text))


def _content_lines(content: str) -> list[str]:
    """Split message content at ``\\n`` (or ``\\r\\n``) only.

    Other characters ``str.splitlines`` treats as breaks (form feed,
    ``\\x85``, ``\\u2028``) stay inside their line. A single trailing
    newline does not produce an extra empty line.
    """
    lines = _LINE_BREAK.split(content)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _lines(text: str) -> tuple[str, ...]:
    """Split text into notebook source lines, keeping ``\\n`` terminators."""
    return tuple(_SOURCE_LINE.findall(text))


# ---------------------------------------------------------------------------
# Transcript -> Document
# ---------------------------------------------------------------------------


def message_cells(message: Message, *, heading: bool = True) -> list[DocumentCell]:
    """Convert one message into its ordered notebook cells.

    Args:
        message: Transcript message.
        heading: Prefix a ``### {speaker}`` markdown cell.

    Returns:
        Cells for the message. Empty for pending or blank messages.
    """
    if message.pending or not message.content.strip():
        return []

    cells: list[DocumentCell] = []
    if heading:
        cells.append(
            DocumentCell(
                kind=CellKind.MARKDOWN,
                source_lines=_lines(f"### {display_name(message.speaker_id)}"),
                message_id=message.id,
                index=0,
            )
        )
    for segment in split_message(message.content):
        cells.append(
            DocumentCell(
                kind=segment.kind,
                source_lines=_lines(segment.text),
                message_id=message.id,
                index=len(cells),
                language=segment.language,
            )
        )
    return cells


def export(messages: Iterable[Message], *, headings: bool = True) -> Document:
    """Convert a transcript snapshot into a notebook document.

    Args:
        messages: Messages in transcript order. Pass ``Transcript.snapshot()``
            rather than a live transcript.
        headings: Prefix each message's cells with a speaker heading cell.

    Returns:
        New Document with cells in transcript order and the fixed envelope.
    """
    cells: list[DocumentCell] = []
    for message in messages:
        cells.extend(message_cells(message, heading=headings))
    return Document(cells=tuple(cells))


# ---------------------------------------------------------------------------
# Document -> nbformat
# ---------------------------------------------------------------------------


def to_notebook(document: Document) -> nbformat.NotebookNode:
    """Build an nbformat v4 notebook node from a document.

    Code cells are never executed: ``execution_count`` is null and
    ``outputs`` is empty. Per-cell metadata is always empty; the fence
    language tag is not written. Cell ids are unique within the
    notebook: an id already taken (two message ids that sanitize to the
    same prefix) gets a numeric suffix in document order.

    Args:
        document: Exported document.

    Returns:
        Notebook node ready for ``nbformat.writes``.
    """
    nb = nbformat.v4.new_notebook(metadata=copy.deepcopy(document.metadata))
    nb.nbformat = document.nbformat
    nb.nbformat_minor = document.nbformat_minor
    seen: set[str] = set()
    for cell in document.cells:
        cell_id = _unique_id(cell.cell_id, seen)
        if cell.kind == CellKind.CODE:
            node = nbformat.v4.new_code_cell(source=cell.source, id=cell_id)
        else:
            node = nbformat.v4.new_markdown_cell(source=cell.source, id=cell_id)
        nb.cells.append(node)
    return nb


def _unique_id(cell_id: str, seen: set[str]) -> str:
    """Return ``cell_id``, suffixed if needed so it is not in ``seen``, and record it."""
    candidate = cell_id
    suffix = 1
    while candidate in seen:
        candidate = f"{cell_id}-{suffix}"
        suffix += 1
    seen.add(candidate)
    return candidate


def dumps(document: Document) -> str:
    """Serialize a document to notebook JSON text.

    The notebook is validated against the nbformat schema before writing.
    Cell sources are written as line lists.

    Args:
        document: Exported document.

    Returns:
        Notebook JSON as a string.

    Raises:
        NotebookExportError: If the notebook fails schema validation or
            cannot be encoded.
    """
    try:
        nb = to_notebook(document)
        nbformat.validate(nb)
        return nbformat.writes(nb, version=nbformat.NO_CONVERT)
    except nbformat.ValidationError as exc:
        raise NotebookExportError(f"Notebook failed schema validation: {exc.message}") from exc
    except (TypeError, ValueError) as exc:
        raise NotebookExportError(f"Could not encode notebook: {exc}") from exc


def serialize(messages: Iterable[Message], *, headings: bool = True) -> str:
    """Export a transcript snapshot and serialize it in one call.

    Args:
        messages: Messages in transcript order.
        headings: Prefix each message with a speaker heading cell.

    Returns:
        Notebook JSON as a string.

    Raises:
        NotebookExportError: If serialization fails.
    """
    return dumps(export(messages, headings=headings))
