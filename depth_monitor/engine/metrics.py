"""
Snapshot metrics: top of book, spread, in-range notional and slippage.

HOT PATH: compute() runs once per L2 snapshot (several per second per coin).

Performance strategy:
1. Parse each side once into a (price, size) list, reuse it for every metric
2. In-range notional is a vectorized mask over a numpy array
3. The slippage walk stays a plain loop; it stops at the first level that fills

All arithmetic is double precision. Nothing is rounded here; rounding is a
display concern (see ui.formatting).
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Iterable, Sequence

import numpy as np

from ..config import DEFAULT_SLIPPAGE_NOTIONALS
from ..errors import EmptyBook, MalformedLevel
from ..types import (
    INSUFFICIENT_LIQUIDITY,
    BookEvent,
    BookLevel,
    BookSnapshot,
    FeedEvent,
    Liquidity,
    MetricsRecord,
    Side,
    SlippageEstimate,
    StreamEnded,
    TradesEvent,
    UnknownEvent,
)

BPS = 10_000.0

# Levels within +/- this fraction of mid count towards in-range notional
IN_RANGE_FRACTION = 0.02

DEFAULT_NOTIONALS = DEFAULT_SLIPPAGE_NOTIONALS

Level = tuple[float, float]


def parse_levels(levels: Iterable[BookLevel]) -> list[Level]:
    """Parse textual levels into (price, size) floats. Raises MalformedLevel."""
    parsed: list[Level] = []
    for level in levels:
        try:
            price = float(level.px)
            size = float(level.sz)
        except (TypeError, ValueError) as exc:
            raise MalformedLevel(level.px, level.sz) from exc

        if not math.isfinite(price) or price <= 0:
            raise MalformedLevel(level.px, level.sz, "price must be positive")
        if not math.isfinite(size) or size < 0:
            raise MalformedLevel(level.px, level.sz, "size must be non-negative")

        parsed.append((price, size))
    return parsed


def notional_in_range(
    levels: Sequence[Level],
    mid_price: float,
    fraction: float = IN_RANGE_FRACTION,
) -> float:
    """Sum of size*price over levels priced within [mid*(1-f), mid*(1+f)], inclusive."""
    if not levels:
        return 0.0

    book = np.asarray(levels, dtype=np.float64)
    prices = book[:, 0]
    sizes = book[:, 1]

    lower = mid_price * (1.0 - fraction)
    upper = mid_price * (1.0 + fraction)
    mask = (prices >= lower) & (prices <= upper)

    return float(np.sum(prices[mask] * sizes[mask]))


def slippage_bps(
    levels: Sequence[Level],
    notional: float,
    mid_price: float,
    reference: str = "avg",
) -> float | Liquidity:
    """
    Estimate the cost of a market order for `notional` against one side.

    Walks `levels` in book order (asks ascending for a buy, bids descending
    for a sell), taking min(size, remaining / price) at each level.

    Args:
        levels: Parsed (price, size) levels of the side being consumed
        notional: Absolute quote amount to fill
        mid_price: Mid from the same snapshot's top of book
        reference: "avg" divides the deviation by the average fill price,
            "mid" divides it by the mid price

    Returns slippage in bps, or INSUFFICIENT_LIQUIDITY if the levels run out
    before the order fills.
    """
    if notional < 0:
        raise ValueError(f"notional must be non-negative, got {notional}")
    if reference not in ("avg", "mid"):
        raise ValueError(f"unknown slippage reference {reference!r}")

    # Nothing to fill
    if notional == 0:
        return 0.0

    remaining = notional
    cost = 0.0
    filled_quantity = 0.0

    for price, size in levels:
        if size * price >= remaining:
            # Last level: take exactly what is left
            filled_quantity += remaining / price
            cost += remaining
            remaining = 0.0
            break

        filled_quantity += size
        cost += size * price
        remaining -= size * price

    if remaining > 0 or filled_quantity == 0:
        return INSUFFICIENT_LIQUIDITY

    if mid_price == 0:
        raise EmptyBook()

    avg_price = cost / filled_quantity
    divisor = avg_price if reference == "avg" else mid_price
    return abs(avg_price - mid_price) / divisor * BPS


def estimate_slippage(
    bids: Sequence[Level],
    asks: Sequence[Level],
    side: Side,
    notional: float,
    mid_price: float,
    reference: str = "avg",
) -> float | Liquidity:
    """Slippage for a market order of `side`: buys walk asks, sells walk bids."""
    levels = asks if side is Side.BUY else bids
    return slippage_bps(levels, notional, mid_price, reference)


def compute(
    snapshot: BookSnapshot,
    notionals: Sequence[float] = DEFAULT_NOTIONALS,
    ladder_depth: int = 5,
    observed_at: datetime | None = None,
) -> MetricsRecord:
    """
    Turn one L2 snapshot into a MetricsRecord.

    Raises:
        EmptyBook: either side has no levels (caller skips the update)
        MalformedLevel: a price/size field failed to parse
    """
    if not snapshot.bids or not snapshot.asks:
        raise EmptyBook(snapshot.coin, len(snapshot.bids), len(snapshot.asks))

    bids = parse_levels(snapshot.bids)
    asks = parse_levels(snapshot.asks)

    bid_price = bids[0][0]
    ask_price = asks[0][0]
    mid_price = (bid_price + ask_price) / 2.0
    if mid_price == 0:
        raise EmptyBook(snapshot.coin, len(bids), len(asks))

    # Crossed books are computed as-is: spread goes negative
    spread_abs = ask_price - bid_price
    spread_bps = spread_abs / mid_price * BPS

    estimates = []
    for side in (Side.BUY, Side.SELL):
        for notional in notionals:
            estimates.append(SlippageEstimate(
                side=side,
                notional=float(notional),
                bps=estimate_slippage(bids, asks, side, notional, mid_price),
            ))

    return MetricsRecord(
        observed_at=observed_at or datetime.now(timezone.utc),
        coin=snapshot.coin,
        exchange_time_ms=snapshot.time_ms,
        bid_price=bid_price,
        ask_price=ask_price,
        mid_price=mid_price,
        spread_abs=spread_abs,
        spread_bps=spread_bps,
        bid_notional=notional_in_range(bids, mid_price),
        ask_notional=notional_in_range(asks, mid_price),
        slippage=tuple(estimates),
        bids=tuple(bids[:ladder_depth]),
        asks=tuple(asks[:ladder_depth]),
    )


class BookMetrics:
    """
    Feed-event transform for the book modes.

    BookEvent -> one MetricsRecord; every other kind -> nothing.
    """

    __slots__ = ('notionals', 'ladder_depth')

    def __init__(
        self,
        notionals: Sequence[float] = DEFAULT_NOTIONALS,
        ladder_depth: int = 5,
    ) -> None:
        self.notionals = tuple(float(n) for n in notionals)
        self.ladder_depth = ladder_depth

    def __call__(self, event: FeedEvent) -> list[MetricsRecord]:
        if isinstance(event, BookEvent):
            return [compute(event.snapshot, self.notionals, self.ladder_depth)]
        elif isinstance(event, (TradesEvent, UnknownEvent, StreamEnded)):
            return []
        raise TypeError(f"unexpected feed event {event!r}")
