"""
Monitor TUI using Textual.

Textual owns the terminal: raw mode, alternate screen, key handling and
restoring everything on exit. The app is the StreamPump's terminal surface:
- show_frame(): swap the renderable shown by the frame widget
- poll_quit(): read the flag set by the 'q' binding (never blocks)
- frame_size(): cells available to the frame widget

Performance notes:
- One redraw per processed feed event, nothing on a timer
- The pump runs as a worker on the app's event loop, so feed, pump and UI
  share one thread
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Sequence

from rich.console import RenderableType
from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Static

from ..engine.pump import PumpExit, Renderer, StreamPump
from ..errors import RenderFailure, TerminalIOFailure
from ..types import FeedEvent

logger = logging.getLogger(__name__)


class FrameView(Static):
    """Displays whatever frame the pump last drew."""

    DEFAULT_CSS = """
    FrameView {
        width: 100%;
        height: 100%;
    }
    """

    def __init__(self) -> None:
        super().__init__(Text("Connecting...", style="dim"))


class MonitorApp(App):
    """Single-view monitor application driven by a StreamPump."""

    CSS = """
    Screen {
        background: #0f172a;
    }

    #main-container {
        width: 100%;
        height: 100%;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("q", "request_quit", "Quit"),
    ]

    def __init__(
        self,
        channel: asyncio.Queue[FeedEvent],
        renderer: Renderer,
        transform: Callable[[FeedEvent], Sequence],
        capacity: int = 100,
        poll_interval: float = 0.05,
    ) -> None:
        super().__init__()
        self._quit_key_pressed = False
        self._frame_view: FrameView | None = None
        self.pump = StreamPump(
            channel,
            self,
            renderer,
            transform,
            capacity=capacity,
            poll_interval=poll_interval,
        )

    def compose(self) -> ComposeResult:
        self._frame_view = FrameView()
        yield Container(self._frame_view, id="main-container")
        yield Footer()

    async def on_mount(self) -> None:
        """Start the stream pump."""
        self.run_worker(self._drive_pump(), exclusive=True)

    async def _drive_pump(self) -> None:
        try:
            outcome = await self.pump.run()
        except (RenderFailure, TerminalIOFailure) as exc:
            logger.exception("Monitor aborted")
            self.exit(return_code=1, message=f"Error: {exc}")
            return
        self.exit(outcome)

    def action_request_quit(self) -> None:
        """Quit (bound to 'q' key). Observed by the pump between iterations."""
        self._quit_key_pressed = True

    # -- TerminalSurface ---------------------------------------------------

    def poll_quit(self) -> bool:
        return self._quit_key_pressed

    def frame_size(self) -> tuple[int, int]:
        if self._frame_view is None:
            return 0, 0
        size = self._frame_view.size
        return size.width, size.height

    def show_frame(self, frame: RenderableType) -> None:
        if self._frame_view is None:
            raise TerminalIOFailure("frame widget is not mounted")
        self._frame_view.update(frame)


async def run_monitor(app: MonitorApp) -> tuple[PumpExit | None, int]:
    """Run the TUI until the pump finishes. Returns (outcome, return code)."""
    outcome = await app.run_async()
    return outcome, app.return_code or 0
