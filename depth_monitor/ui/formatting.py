"""Display formatting shared by all frames."""

from __future__ import annotations

from datetime import datetime

from ..types import Liquidity

# Color scheme (dark theme)
BID_COLOR = "#22c55e"      # Green
ASK_COLOR = "#ef4444"      # Red
TWAP_COLOR = "#eab308"     # Yellow
PRICE_COLOR = "#f8fafc"
HEADER_COLOR = "#94a3b8"
AXIS_COLOR = "#64748b"


def format_price(value: float) -> str:
    """
    Format a price for display.

    |value| >= 1: up to 5 decimals, trailing zeros (and a bare point) trimmed.
    |value| < 1: fixed 6 decimals.
    """
    if abs(value) >= 1.0:
        text = f"{value:.5f}".rstrip("0")
        return text[:-1] if text.endswith(".") else text
    return f"{value:.6f}"


def format_size(value: float, decimals: int) -> str:
    """Sizes and notionals use the coin's size decimals."""
    return f"{value:.{decimals}f}"


def format_bps(value: float | Liquidity) -> str:
    """Basis points, price-style; the insufficient-liquidity sentinel shows as n/a."""
    if isinstance(value, Liquidity):
        return value.value
    return format_price(value)


def format_usd(value: float) -> str:
    """Compact USD notional: $10k, $1.5M."""
    if value >= 1_000_000:
        return f"${value / 1_000_000:g}M"
    elif value >= 1_000:
        return f"${value / 1_000:g}k"
    return f"${value:g}"


def format_clock(moment: datetime) -> str:
    """HH:MM:SS.mmm"""
    return moment.strftime("%H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


def format_timestamp(moment: datetime) -> str:
    """YYYY-MM-DD HH:MM:SS.mmm"""
    return moment.strftime("%Y-%m-%d ") + format_clock(moment)
