"""
Stream pump: the single cooperative loop behind every monitor view.

Each iteration waits for the next feed event with a bounded timeout, turns it
into records, appends them to the history, redraws, and then polls the quit
key without blocking. Render cadence follows data arrival; the timeout only
exists so an idle feed never stalls the quit check.

State machine:
    WaitingForEvent -> Processing -> WaitingForEvent
    WaitingForEvent -> Cancelling -> Terminal   (quit key)
    WaitingForEvent -> Terminal                 (feed closed)
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, Generic, Protocol, Sequence, TypeVar

from rich.console import RenderableType

from ..errors import EmptyBook, MetricsError, RenderFailure, TerminalIOFailure
from ..types import FeedEvent, MetricsRecord, StreamEnded
from .history import HistoryBuffer

logger = logging.getLogger(__name__)

R = TypeVar("R")


class PumpExit(enum.Enum):
    QUIT = "quit"
    STREAM_ENDED = "stream ended"


class TerminalSurface(Protocol):
    """What the pump needs from the terminal: a drawing surface and a quit poll."""

    def poll_quit(self) -> bool:
        """Return True if quit was requested. Must return immediately."""
        ...

    def frame_size(self) -> tuple[int, int]:
        """Drawable (width, height) in cells."""
        ...

    def show_frame(self, frame: RenderableType) -> None:
        ...


class Renderer(Protocol[R]):
    def draw(self, view: Sequence[R], size: tuple[int, int]) -> RenderableType:
        ...


class StreamPump(Generic[R]):
    """
    Drives feed -> transform -> history -> renderer -> terminal.

    The pump is the sole owner of its HistoryBuffer. The renderer only sees a
    tuple view for the duration of one draw call.

    Thread-safety: NOT thread-safe. Run it on the event loop that feeds the channel.
    """

    def __init__(
        self,
        channel: asyncio.Queue[FeedEvent],
        terminal: TerminalSurface,
        renderer: Renderer[R],
        transform: Callable[[FeedEvent], list[R]],
        capacity: int = 100,
        poll_interval: float = 0.05,
    ) -> None:
        self.channel = channel
        self.terminal = terminal
        self.renderer = renderer
        self.transform = transform
        self.poll_interval = poll_interval
        self._history: HistoryBuffer[R] = HistoryBuffer(capacity)

        # Counters for logs
        self.processed = 0
        self.skipped = 0

    @property
    def history(self) -> HistoryBuffer[R]:
        return self._history

    async def run(self) -> PumpExit:
        """
        Run until quit is requested or the feed closes.

        Raises RenderFailure / TerminalIOFailure; metric errors never escape.
        """
        logger.info("Stream pump started (capacity=%d)", self._history.capacity)
        self._redraw()

        while True:
            event = await self._next_event()

            if event is not None:
                if isinstance(event, StreamEnded):
                    if event.error:
                        logger.error("Feed terminated: %s", event.error)
                    else:
                        logger.info("Feed closed")
                    return self._finish(PumpExit.STREAM_ENDED)

                if self.process(event):
                    self._redraw()

            if self._quit_requested():
                return self._finish(PumpExit.QUIT)

    async def _next_event(self) -> FeedEvent | None:
        """Wait for the next event, or None once poll_interval passes idle."""
        try:
            return await asyncio.wait_for(self.channel.get(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            return None

    def process(self, event: FeedEvent) -> bool:
        """
        Transform one event and append its records.

        Returns True if the history changed (and a redraw is due).
        """
        try:
            records = self.transform(event)
        except EmptyBook as exc:
            self.skipped += 1
            logger.debug("Discarded %s: %s", type(exc).__name__, exc)
            return False
        except MetricsError as exc:
            self.skipped += 1
            logger.warning("Discarded %s: %s", type(exc).__name__, exc)
            return False

        for record in records:
            if isinstance(record, MetricsRecord) and record.is_crossed:
                logger.debug("Crossed book: bid=%s ask=%s", record.bid_price, record.ask_price)
            self._history.push(record)

        self.processed += len(records)
        return bool(records)

    def _redraw(self) -> None:
        try:
            size = self.terminal.frame_size()
        except Exception as exc:
            raise TerminalIOFailure(f"cannot read terminal size: {exc}") from exc

        try:
            frame = self.renderer.draw(self._history.snapshot_view(), size)
        except Exception as exc:
            raise RenderFailure(f"{type(self.renderer).__name__} failed: {exc}") from exc

        try:
            self.terminal.show_frame(frame)
        except Exception as exc:
            raise TerminalIOFailure(f"terminal draw failed: {exc}") from exc

    def _quit_requested(self) -> bool:
        try:
            return self.terminal.poll_quit()
        except Exception as exc:
            raise TerminalIOFailure(f"input poll failed: {exc}") from exc

    def _finish(self, outcome: PumpExit) -> PumpExit:
        logger.info(
            "Stream pump stopped: %s (processed=%d, skipped=%d)",
            outcome.value, self.processed, self.skipped,
        )
        return outcome
