"""
Data types for the depth monitor.

Performance notes:
- Using NamedTuple for immutable, memory-efficient structures
- Feed types keep the exchange's textual fields; parsing happens in the engine
- Derived records are self-contained values, safe to retain in history
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import NamedTuple, Union


class Side(enum.Enum):
    """Aggressor direction. BUY consumes asks, SELL consumes bids."""
    BUY = "buy"
    SELL = "sell"


class Liquidity(enum.Enum):
    INSUFFICIENT = "n/a"


# Slippage could not be computed because the notional exceeds visible depth
INSUFFICIENT_LIQUIDITY = Liquidity.INSUFFICIENT


# ---------------------------------------------------------------------------
# Feed types (as delivered by the exchange)
# ---------------------------------------------------------------------------

class BookLevel(NamedTuple):
    """Single level of an L2 book, fields as received."""
    px: str
    sz: str
    n: int = 0  # Number of resting orders


class BookSnapshot(NamedTuple):
    """Full L2 snapshot. Bids descending by price, asks ascending."""
    coin: str
    time_ms: int
    bids: tuple[BookLevel, ...]
    asks: tuple[BookLevel, ...]


class Trade(NamedTuple):
    """Single trade from the trade stream."""
    coin: str
    side: str      # "B" = buy aggressor, "A" = sell aggressor
    px: str
    sz: str
    time_ms: int
    hash: str = ""


# ---------------------------------------------------------------------------
# Feed events: one arm per message kind
# ---------------------------------------------------------------------------

class BookEvent(NamedTuple):
    snapshot: BookSnapshot


class TradesEvent(NamedTuple):
    trades: tuple[Trade, ...]


class UnknownEvent(NamedTuple):
    """Any channel we do not consume (subscription acks, pongs, ...)."""
    channel: str


class StreamEnded(NamedTuple):
    """Feed channel closed. `error` is set when the feed failed."""
    error: str | None = None


FeedEvent = Union[BookEvent, TradesEvent, UnknownEvent, StreamEnded]


# ---------------------------------------------------------------------------
# Derived records (what the history buffer retains)
# ---------------------------------------------------------------------------

class SlippageEstimate(NamedTuple):
    side: Side
    notional: float
    bps: float | Liquidity  # INSUFFICIENT_LIQUIDITY when depth runs out


class MetricsRecord(NamedTuple):
    """
    Liquidity metrics derived from one book snapshot.

    Immutable once created; holds no reference to the snapshot.
    """
    observed_at: datetime
    coin: str
    exchange_time_ms: int
    bid_price: float
    ask_price: float
    mid_price: float
    spread_abs: float
    spread_bps: float
    bid_notional: float            # size*price of bids within +/-2% of mid
    ask_notional: float            # size*price of asks within +/-2% of mid
    slippage: tuple[SlippageEstimate, ...]
    bids: tuple[tuple[float, float], ...]  # Top levels (price, size) for the ladder
    asks: tuple[tuple[float, float], ...]

    @property
    def notional_in_range(self) -> tuple[float, float]:
        return self.bid_notional, self.ask_notional

    @property
    def is_crossed(self) -> bool:
        return self.bid_price >= self.ask_price

    def slippage_bps(self, side: Side, notional: float) -> float | Liquidity:
        """
        Look up the estimate computed for (side, notional).

        Only the configured notional tiers are computed; any other notional
        raises KeyError.
        """
        for estimate in self.slippage:
            if estimate.side is side and estimate.notional == notional:
                return estimate.bps
        raise KeyError(f"no slippage estimate for {side.value} {notional:g}")


class TradeRecord(NamedTuple):
    """Parsed trade, ready for display."""
    observed_at: datetime
    time: datetime
    side: Side
    price: float
    size: float
    notional: float
    is_twap: bool
