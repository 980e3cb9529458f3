"""Exception taxonomy for the depth monitor."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for all depth monitor errors."""


class MetricsError(MonitorError):
    """A single feed event could not be turned into a record. Recoverable."""


class EmptyBook(MetricsError):
    """One or both sides of the book have no levels."""

    def __init__(self, coin: str = "", bid_levels: int = 0, ask_levels: int = 0) -> None:
        super().__init__(f"{coin}: empty book (bids={bid_levels}, asks={ask_levels})")
        self.coin = coin
        self.bid_levels = bid_levels
        self.ask_levels = ask_levels


class MalformedLevel(MetricsError):
    """A price or size field is not a usable number."""

    def __init__(self, px: object, sz: object, reason: str = "not a number") -> None:
        super().__init__(f"malformed level px={px!r} sz={sz!r}: {reason}")
        self.px = px
        self.sz = sz


class MalformedTrade(MetricsError):
    """A trade's price or size field is not a usable number."""


class RenderFailure(MonitorError):
    """Building a frame failed. Fatal."""


class TerminalIOFailure(MonitorError):
    """Writing to or polling the terminal failed. Fatal."""
