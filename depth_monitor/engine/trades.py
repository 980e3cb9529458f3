"""Trade tape: turns trade events into display-ready TradeRecords."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from ..errors import MalformedTrade
from ..types import (
    BookEvent,
    FeedEvent,
    Side,
    StreamEnded,
    Trade,
    TradeRecord,
    TradesEvent,
    UnknownEvent,
)

# TWAP slices are reported with a zeroed transaction hash
TWAP_HASH = "0x" + "0" * 64


def to_record(trade: Trade, observed_at: datetime | None = None) -> TradeRecord:
    """Parse one trade. Raises MalformedTrade on unusable price/size."""
    try:
        price = float(trade.px)
        size = float(trade.sz)
    except (TypeError, ValueError) as exc:
        raise MalformedTrade(f"malformed trade px={trade.px!r} sz={trade.sz!r}") from exc

    if not (math.isfinite(price) and math.isfinite(size)) or price <= 0 or size < 0:
        raise MalformedTrade(f"malformed trade px={trade.px!r} sz={trade.sz!r}")

    return TradeRecord(
        observed_at=observed_at or datetime.now(timezone.utc),
        time=datetime.fromtimestamp(trade.time_ms / 1000, tz=timezone.utc),
        side=Side.BUY if trade.side == "B" else Side.SELL,
        price=price,
        size=size,
        notional=price * size,
        is_twap=trade.hash == TWAP_HASH,
    )


class TradeTape:
    """Feed-event transform for watch-trades: TradesEvent -> one record per trade."""

    def __call__(self, event: FeedEvent) -> list[TradeRecord]:
        if isinstance(event, TradesEvent):
            # Parse the whole batch first so a bad trade drops the batch, not half of it
            return [to_record(trade) for trade in event.trades]
        elif isinstance(event, (BookEvent, UnknownEvent, StreamEnded)):
            return []
        raise TypeError(f"unexpected feed event {event!r}")
