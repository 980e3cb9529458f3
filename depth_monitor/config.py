"""
Runtime configuration.

There is no config file: everything comes from CLI flags and lands in a
frozen MonitorConfig that is handed to the components that need it.
"""

from __future__ import annotations

from dataclasses import dataclass

# Hyperliquid endpoints
MAINNET_API = "https://api.hyperliquid.xyz"
TESTNET_API = "https://api.hyperliquid-testnet.xyz"
MAINNET_WS = "wss://api.hyperliquid.xyz/ws"
TESTNET_WS = "wss://api.hyperliquid-testnet.xyz/ws"

# Modes (one per CLI subcommand)
WATCH_BOOK = "watch-book"
WATCH_TRADES = "watch-trades"
GRAPH_BOOK = "graph-book"
MODES = (WATCH_BOOK, WATCH_TRADES, GRAPH_BOOK)

DEFAULT_HISTORY_CAPACITY = 100
DEFAULT_POLL_INTERVAL = 0.05           # Seconds between quit-key polls while idle
DEFAULT_SLIPPAGE_NOTIONALS = (10_000.0, 100_000.0)
DEFAULT_LEVELS = 10


@dataclass(frozen=True)
class MonitorConfig:
    """Everything one monitor run needs to know."""

    coin: str
    mode: str = WATCH_BOOK
    levels: int = DEFAULT_LEVELS
    show_extra_data: bool = False
    history_capacity: int = DEFAULT_HISTORY_CAPACITY
    poll_interval: float = DEFAULT_POLL_INTERVAL
    slippage_notionals: tuple[float, ...] = DEFAULT_SLIPPAGE_NOTIONALS
    testnet: bool = False

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ValueError(f"unknown mode {self.mode!r}")
        if self.history_capacity < 1:
            raise ValueError("history capacity must be at least 1")
        if self.levels < 0:
            raise ValueError("levels must be non-negative")
        if self.poll_interval <= 0:
            raise ValueError("poll interval must be positive")

    @property
    def ladder_depth(self) -> int:
        """Levels shown per side: the --levels count is split across both sides."""
        return self.levels // 2

    @property
    def api_url(self) -> str:
        return TESTNET_API if self.testnet else MAINNET_API

    @property
    def info_url(self) -> str:
        return f"{self.api_url}/info"

    @property
    def ws_url(self) -> str:
        return TESTNET_WS if self.testnet else MAINNET_WS
