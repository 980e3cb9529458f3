"""Tests for the stream pump: ordering, skip-and-continue, cancellation, fatal errors."""

import asyncio

import pytest

from depth_monitor.engine.metrics import BookMetrics
from depth_monitor.engine.pump import PumpExit, StreamPump
from depth_monitor.errors import RenderFailure, TerminalIOFailure
from depth_monitor.types import BookEvent, StreamEnded, UnknownEvent


def run_pump(events, terminal, renderer, capacity=100):
    """Feed `events` through a fresh pump; returns (outcome, pump)."""

    async def runner():
        channel = asyncio.Queue()
        for event in events:
            channel.put_nowait(event)
        pump = StreamPump(
            channel,
            terminal,
            renderer,
            BookMetrics(notionals=(100.0,)),
            capacity=capacity,
            poll_interval=0.01,
        )
        outcome = await asyncio.wait_for(pump.run(), timeout=5)
        return outcome, pump

    return asyncio.run(runner())


class TestStreamPump:
    def test_stream_end_is_normal_termination(self, terminal, renderer, book_event):
        outcome, pump = run_pump([book_event(), StreamEnded()], terminal, renderer)

        assert outcome is PumpExit.STREAM_ENDED
        assert len(pump.history) == 1

    def test_feed_failure_still_ends_stream(self, terminal, renderer):
        outcome, _ = run_pump([StreamEnded("ConnectionError: reset")], terminal, renderer)
        assert outcome is PumpExit.STREAM_ENDED

    def test_initial_frame_is_empty(self, terminal, renderer):
        run_pump([StreamEnded()], terminal, renderer)

        assert renderer.views == [()]
        assert terminal.frames == ["frame 0"]

    def test_bad_snapshots_are_skipped(self, terminal, renderer, book_event, make_snapshot):
        events = [
            book_event(bid="100.00"),
            BookEvent(make_snapshot(bids=[], asks=[("100.10", "1")])),
            BookEvent(make_snapshot(bids=[("oops", "1")], asks=[("100.10", "1")])),
            UnknownEvent("subscriptionResponse"),
            book_event(bid="100.05"),
            StreamEnded(),
        ]
        outcome, pump = run_pump(events, terminal, renderer)

        assert outcome is PumpExit.STREAM_ENDED
        assert [r.bid_price for r in pump.history.snapshot_view()] == [100.00, 100.05]
        assert pump.skipped == 2
        assert pump.processed == 2
        # Initial frame + one per accepted snapshot
        assert len(terminal.frames) == 3

    def test_records_appended_in_arrival_order(self, terminal, renderer, book_event):
        bids = ["99.1", "99.2", "99.3", "99.4", "99.5"]
        events = [book_event(bid=b) for b in bids] + [StreamEnded()]

        _, pump = run_pump(events, terminal, renderer, capacity=3)

        assert [r.bid_price for r in pump.history.snapshot_view()] == [99.3, 99.4, 99.5]
        # Each draw sees the buffer as of the latest processed snapshot
        assert [len(v) for v in renderer.views] == [0, 1, 2, 3, 3, 3]
        assert renderer.views[-1][-1].bid_price == 99.5

    def test_renderer_gets_immutable_views(self, terminal, renderer, book_event):
        run_pump([book_event(), StreamEnded()], terminal, renderer)
        assert all(isinstance(view, tuple) for view in renderer.views)

    def test_quit_while_idle(self, terminal_factory, renderer):
        terminal = terminal_factory()
        terminal.quit_now = True

        outcome, pump = run_pump([], terminal, renderer)

        assert outcome is PumpExit.QUIT
        assert len(pump.history) == 0
        assert terminal.polls == 1

    def test_quit_checked_between_events(self, terminal_factory, renderer, book_event):
        # Quit becomes visible after the first processed snapshot is drawn
        terminal = terminal_factory(quit_after_frames=2)
        events = [book_event(), book_event(), book_event(), StreamEnded()]

        outcome, pump = run_pump(events, terminal, renderer)

        assert outcome is PumpExit.QUIT
        assert len(pump.history) == 1

    def test_render_failure_is_fatal(self, terminal, renderer_factory, book_event):
        with pytest.raises(RenderFailure):
            run_pump([book_event(), StreamEnded()], terminal, renderer_factory(fail=True))

    def test_terminal_failure_is_fatal(self, terminal_factory, renderer, book_event):
        terminal = terminal_factory(fail_on_draw=True)
        with pytest.raises(TerminalIOFailure):
            run_pump([book_event(), StreamEnded()], terminal, renderer)
