"""
Frame renderers: history view in, Rich renderable out.

Every renderer is a pure function of the tuple view it is handed: bounds and
axis ticks are recomputed per frame and nothing is kept between calls.

- BookTableRenderer: watch-book (summary + price ladder)
- BookChartRenderer: graph-book (summary + bid/ask line chart)
- TradeTapeRenderer: watch-trades (newest-first trade table)
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Sequence

import numpy as np
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..types import MetricsRecord, Side, TradeRecord
from .formatting import (
    ASK_COLOR,
    AXIS_COLOR,
    BID_COLOR,
    HEADER_COLOR,
    PRICE_COLOR,
    TWAP_COLOR,
    format_bps,
    format_clock,
    format_price,
    format_size,
    format_timestamp,
    format_usd,
)

PRICE_TICK_STEP = 0.1
PRICE_TICK_PAD = 0.2
TIME_TICK_SECONDS = 30

DEFAULT_SIZE = (80, 24)
MARKER = "•"


# ---------------------------------------------------------------------------
# Axis helpers
# ---------------------------------------------------------------------------

def price_bounds(view: Sequence[MetricsRecord]) -> tuple[float, float] | None:
    """(min, max) over every retained bid and ask. None for an empty view."""
    if not view:
        return None
    low = min(min(r.bid_price, r.ask_price) for r in view)
    high = max(max(r.bid_price, r.ask_price) for r in view)
    return low, high


def price_ticks(
    min_price: float,
    max_price: float,
    step: float = PRICE_TICK_STEP,
    pad: float = PRICE_TICK_PAD,
) -> list[tuple[float, str]]:
    """Fixed-step ticks spanning [min - pad, max + pad]."""
    lower = min_price - pad
    upper = max_price + pad
    # Tolerance keeps the upper bound when (upper - lower) / step lands a hair under an integer
    count = int(math.floor((upper - lower) / step + 1e-9)) + 1
    decimals = max(0, -int(math.floor(math.log10(step))))

    values = lower + step * np.arange(count)
    return [(float(v), f"{v:.{decimals}f}") for v in values]


def time_ticks(
    start: datetime,
    end: datetime,
    interval: int = TIME_TICK_SECONDS,
) -> list[tuple[float, str]]:
    """Ticks every `interval` seconds over [start, end], labelled MM:SS from start."""
    duration = int((end - start).total_seconds())
    return [
        (float(offset), f"{offset // 60:02d}:{offset % 60:02d}")
        for offset in range(0, max(duration, 0) + 1, interval)
    ]


def _usable_size(size: tuple[int, int]) -> tuple[int, int]:
    width, height = size
    if width <= 0 or height <= 0:
        return DEFAULT_SIZE
    return width, height


# ---------------------------------------------------------------------------
# watch-book
# ---------------------------------------------------------------------------

class BookTableRenderer:
    """Summary lines plus an ask/mid/bid price ladder for the latest snapshot."""

    def __init__(
        self,
        sz_decimals: int = 0,
        levels: int = 5,
        show_extra_data: bool = False,
    ) -> None:
        self.sz_decimals = sz_decimals
        self.levels = levels
        self.show_extra_data = show_extra_data

    def draw(self, view: Sequence[MetricsRecord], size: tuple[int, int]) -> RenderableType:
        if not view:
            return Text("Waiting for data...", style="dim")

        latest = view[-1]
        lines: list[RenderableType] = [Text.assemble(
            format_timestamp(latest.observed_at.astimezone()),
            " Spread: ", (format_price(latest.spread_abs), PRICE_COLOR),
            " px, Spread: ", (format_bps(latest.spread_bps), PRICE_COLOR), " bps",
        )]

        if self.show_extra_data:
            lines.extend(self._extra_lines(view))

        lines.append(Text(""))
        lines.append(self._ladder(latest))
        return Group(*lines)

    def _extra_lines(self, view: Sequence[MetricsRecord]) -> list[Text]:
        latest = view[-1]
        notionals = sorted({e.notional for e in latest.slippage})

        lines = []
        for side, label in ((Side.BUY, "Buy"), (Side.SELL, "Sell")):
            tiers = ", ".join(
                f"{format_usd(n)} {format_bps(latest.slippage_bps(side, n))} bps"
                for n in notionals
            )
            lines.append(Text(f"{label} slippage - {tiers}"))

        bid_notional, ask_notional = latest.notional_in_range
        lines.append(Text.assemble(
            "Liquidity ±2% - bids ", (format_size(bid_notional, self.sz_decimals), BID_COLOR),
            ", asks ", (format_size(ask_notional, self.sz_decimals), ASK_COLOR),
            ", total ", format_size(bid_notional + ask_notional, self.sz_decimals),
        ))

        spreads = np.fromiter((r.spread_bps for r in view), dtype=np.float64, count=len(view))
        lines.append(Text(
            f"Window {len(view)} snapshots - spread bps "
            f"min {format_bps(float(spreads.min()))}, "
            f"mean {format_bps(float(spreads.mean()))}, "
            f"max {format_bps(float(spreads.max()))}",
            style=HEADER_COLOR,
        ))
        return lines

    def _ladder(self, latest: MetricsRecord) -> Table:
        table = Table(
            show_header=False,
            box=None,
            padding=(0, 1),
            collapse_padding=True,
        )
        table.add_column("Bid Size", justify="left", min_width=10, no_wrap=True)
        table.add_column("Price", justify="left", min_width=10, no_wrap=True)
        table.add_column("Ask Size", justify="left", min_width=10, no_wrap=True)

        # Asks on top, best ask nearest the mid
        for price, size in reversed(latest.asks[:self.levels]):
            table.add_row(
                "",
                Text(format_price(price), style=PRICE_COLOR),
                Text(format_size(size, self.sz_decimals), style=ASK_COLOR),
            )

        table.add_row("", Text(format_price(latest.mid_price), style=PRICE_COLOR), "")

        for price, size in latest.bids[:self.levels]:
            table.add_row(
                Text(format_size(size, self.sz_decimals), style=BID_COLOR),
                Text(format_price(price), style=PRICE_COLOR),
                "",
            )

        return table


# ---------------------------------------------------------------------------
# graph-book
# ---------------------------------------------------------------------------

class BookChartRenderer:
    """Top-of-book bid/ask over the retained window, drawn as a character chart."""

    INFO_HEIGHT = 3      # Bordered one-line panel
    CHART_CHROME = 3     # Chart borders + x-axis label row

    def __init__(self, coin: str = "") -> None:
        self.coin = coin

    def draw(self, view: Sequence[MetricsRecord], size: tuple[int, int]) -> RenderableType:
        width, height = _usable_size(size)
        title = f"{self.coin} L2 Book".strip()

        if not view:
            return Group(
                Panel(Text("Waiting for data...", style="dim"), title="Info"),
                Panel(Text(""), title=title, subtitle="Time"),
            )

        info = Panel(self._info_line(view[-1]), title="Info")
        chart = Panel(
            Group(*self._plot(view, width, height)),
            title=title,
            subtitle="Time",
        )
        return Group(info, chart)

    def _info_line(self, latest: MetricsRecord) -> Text:
        return Text.assemble(
            "Bid Price: ", (format_price(latest.bid_price), BID_COLOR),
            " | Ask Price: ", (format_price(latest.ask_price), ASK_COLOR),
            " | Spread: ", (format_price(latest.spread_abs), PRICE_COLOR),
            " (", (format_bps(latest.spread_bps), PRICE_COLOR), " bps)",
            " | Time: ", (format_clock(latest.observed_at.astimezone()), PRICE_COLOR),
        )

    def _plot(self, view: Sequence[MetricsRecord], width: int, height: int) -> list[Text]:
        low, high = price_bounds(view)
        y_ticks = price_ticks(low, high)
        lower = low - PRICE_TICK_PAD
        upper = high + PRICE_TICK_PAD

        first = view[0].observed_at
        total_seconds = (view[-1].observed_at - first).total_seconds()
        x_ticks = time_ticks(first, view[-1].observed_at)

        label_width = max(len(label) for _, label in y_ticks)
        plot_width = max(width - label_width - 6, 10)
        plot_height = max(height - self.INFO_HEIGHT - self.CHART_CHROME, 3)

        # Scale points to cells
        offsets = np.array([(r.observed_at - first).total_seconds() for r in view])
        if total_seconds > 0:
            cols = np.rint(offsets / total_seconds * (plot_width - 1)).astype(int)
        else:
            cols = np.zeros(len(view), dtype=int)

        def to_rows(prices: np.ndarray) -> np.ndarray:
            scaled = (upper - prices) / (upper - lower) * (plot_height - 1)
            return np.clip(np.rint(scaled), 0, plot_height - 1).astype(int)

        bid_rows = to_rows(np.array([r.bid_price for r in view]))
        ask_rows = to_rows(np.array([r.ask_price for r in view]))

        grid: list[list[str | None]] = [[None] * plot_width for _ in range(plot_height)]
        for col, row in zip(cols, bid_rows):
            grid[row][col] = BID_COLOR
        for col, row in zip(cols, ask_rows):
            grid[row][col] = ASK_COLOR

        # Thin y labels so at most one lands per row
        stride = max(1, math.ceil(len(y_ticks) / plot_height))
        row_labels: dict[int, str] = {}
        for value, label in y_ticks[::stride]:
            row = int(to_rows(np.array([value]))[0])
            row_labels.setdefault(row, label)

        lines = []
        for row_index, row in enumerate(grid):
            line = Text(row_labels.get(row_index, "").rjust(label_width) + " │", style=AXIS_COLOR)
            for color in row:
                if color is None:
                    line.append(" ")
                else:
                    line.append(MARKER, style=color)
            lines.append(line)

        lines.append(Text(" " * label_width + " └" + "─" * plot_width, style=AXIS_COLOR))
        lines.append(Text(
            " " * (label_width + 2) + self._x_labels(x_ticks, total_seconds, plot_width),
            style=AXIS_COLOR,
        ))
        return lines

    @staticmethod
    def _x_labels(ticks: list[tuple[float, str]], total_seconds: float, plot_width: int) -> str:
        cells = [" "] * plot_width
        next_free = 0
        for offset, label in ticks:
            col = int(round(offset / total_seconds * (plot_width - 1))) if total_seconds > 0 else 0
            if col < next_free or col + len(label) > plot_width:
                continue
            cells[col:col + len(label)] = label
            next_free = col + len(label) + 1
        return "".join(cells)


# ---------------------------------------------------------------------------
# watch-trades
# ---------------------------------------------------------------------------

class TradeTapeRenderer:
    """Newest-first table of retained trades."""

    def __init__(self, sz_decimals: int = 0) -> None:
        self.sz_decimals = sz_decimals

    def draw(self, view: Sequence[TradeRecord], size: tuple[int, int]) -> RenderableType:
        if not view:
            return Text("Waiting for trades...", style="dim")

        _, height = _usable_size(size)
        rows = max(height - 1, 1)  # Header row

        table = Table(
            show_header=True,
            header_style=HEADER_COLOR,
            box=None,
            padding=(0, 1),
            collapse_padding=True,
        )
        table.add_column("Time", justify="left", min_width=23, no_wrap=True)
        table.add_column("Side", justify="left", min_width=5, no_wrap=True)
        table.add_column("Price", justify="right", min_width=12, no_wrap=True)
        table.add_column("Size", justify="right", min_width=12, no_wrap=True)
        table.add_column("USD", justify="right", min_width=15, no_wrap=True)
        table.add_column("Type", justify="left", min_width=4, no_wrap=True)

        for trade in reversed(view[-rows:]):
            if trade.side is Side.BUY:
                side = Text("Buy", style=BID_COLOR)
            else:
                side = Text("Sell", style=ASK_COLOR)

            table.add_row(
                format_timestamp(trade.time),
                side,
                format_price(trade.price),
                format_size(trade.size, self.sz_decimals),
                f"{trade.notional:.2f}",
                Text("TWAP", style=TWAP_COLOR) if trade.is_twap else "",
            )

        return table
