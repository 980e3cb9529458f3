"""
Depth Monitor - real-time order book liquidity metrics for Hyperliquid.

Architecture:
- datafeed/: WebSocket subscription and message decoding
- engine/: Snapshot metrics, rolling history and the stream pump
- ui/: Frame renderers and the terminal app (Textual TUI)
"""

__version__ = "0.1.0"
