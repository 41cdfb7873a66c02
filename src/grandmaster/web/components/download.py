"""Notebook download — deliver an exported transcript to the browser.

Serializes a transcript snapshot to notebook bytes and hands them to the
browser as a file download. Serialization errors propagate to the
caller, which decides how to tell the user.
"""

from __future__ import annotations

from collections.abc import Iterable

from grandmaster.config import DEFAULT_EXPORT_FILENAME
from grandmaster.models import Message
from grandmaster.notebook import NOTEBOOK_MEDIA_TYPE, serialize


def notebook_filename(name: str | None = None) -> str:
    """Normalize a download filename to carry the ``.ipynb`` suffix.

    Args:
        name: Requested filename. Blank or None uses the default.

    Returns:
        Filename ending in ``.ipynb``.
    """
    cleaned = (name or "").strip() or DEFAULT_EXPORT_FILENAME
    if not cleaned.lower().endswith(".ipynb"):
        cleaned = f"{cleaned}.ipynb"
    return cleaned


def notebook_payload(messages: Iterable[Message]) -> bytes:
    """Serialize a transcript snapshot to UTF-8 notebook bytes.

    Args:
        messages: Transcript snapshot.

    Returns:
        Notebook JSON encoded as UTF-8.

    Raises:
        NotebookExportError: If serialization fails.
    """
    return serialize(messages).encode("utf-8")


def deliver_notebook(messages: Iterable[Message], filename: str | None = None) -> str:
    """Trigger a browser download of the exported notebook.

    Args:
        messages: Transcript snapshot.
        filename: Download filename. Defaults to the configured name.

    Returns:
        The filename offered to the browser.

    Raises:
        NotebookExportError: If serialization fails.
    """
    from nicegui import ui

    name = notebook_filename(filename)
    ui.download.content(notebook_payload(messages), name, media_type=NOTEBOOK_MEDIA_TYPE)
    return name
