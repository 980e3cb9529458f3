"""Shared fixtures for depth monitor tests."""

from __future__ import annotations

import pytest

from depth_monitor.types import BookEvent, BookLevel, BookSnapshot


def _levels(pairs):
    return tuple(BookLevel(str(px), str(sz), 1) for px, sz in pairs)


@pytest.fixture
def make_snapshot():
    """Factory: make_snapshot(bids=[(px, sz)], asks=[(px, sz)])."""

    def factory(bids=(), asks=(), coin="TEST", time_ms=1_700_000_000_000):
        return BookSnapshot(coin=coin, time_ms=time_ms, bids=_levels(bids), asks=_levels(asks))

    return factory


@pytest.fixture
def simple_book(make_snapshot):
    """bids = [(100.00, 5)], asks = [(100.10, 5)]"""
    return make_snapshot(bids=[("100.00", "5")], asks=[("100.10", "5")])


@pytest.fixture
def book_event(make_snapshot):
    """Factory for a BookEvent around a one-level book."""

    def factory(bid="100.00", ask="100.10", size="5"):
        return BookEvent(make_snapshot(bids=[(bid, size)], asks=[(ask, size)]))

    return factory


class FakeTerminal:
    """TerminalSurface double: records frames, quits on demand."""

    def __init__(self, quit_after_frames=None, size=(100, 30), fail_on_draw=False):
        self.frames = []
        self.polls = 0
        self.quit_after_frames = quit_after_frames
        self.quit_now = False
        self.size = size
        self.fail_on_draw = fail_on_draw

    def poll_quit(self):
        self.polls += 1
        if self.quit_now:
            return True
        return self.quit_after_frames is not None and len(self.frames) >= self.quit_after_frames

    def frame_size(self):
        return self.size

    def show_frame(self, frame):
        if self.fail_on_draw:
            raise OSError("terminal gone")
        self.frames.append(frame)


class RecordingRenderer:
    """Renderer double: keeps every view it is handed."""

    def __init__(self, fail=False):
        self.views = []
        self.fail = fail

    def draw(self, view, size):
        if self.fail:
            raise ZeroDivisionError("bad bounds")
        self.views.append(view)
        return f"frame {len(view)}"


@pytest.fixture
def terminal():
    return FakeTerminal()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def terminal_factory():
    return FakeTerminal


@pytest.fixture
def renderer_factory():
    return RecordingRenderer
