"""NiceGUI web application for Grandmaster.

Defines page routing and server configuration. Started via the
``grandmaster serve`` CLI command.
"""

from __future__ import annotations

from nicegui import ui

from grandmaster.web.layout import create_layout
from grandmaster.web.pages import chat


def create_app(*, host: str = "127.0.0.1", port: int = 8080, show: bool = True) -> None:
    """Configure and run the NiceGUI application.

    Registers the chat page, applies the shared layout, and starts the
    NiceGUI server. This function blocks until the server is stopped.
    Each browser tab gets its own in-memory transcript.

    Args:
        host: Bind address. Defaults to localhost.
        port: Port number. Defaults to 8080.
        show: Open browser automatically. Defaults to True.
    """

    @ui.page("/")
    def index() -> None:
        create_layout()
        chat.render()

    ui.run(
        host=host,
        port=port,
        title="Grandmaster.ai",
        dark=True,
        show=show,
        reload=False,
    )
