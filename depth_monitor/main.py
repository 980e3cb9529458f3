#!/usr/bin/env python3
"""
Depth Monitor - live liquidity metrics for one Hyperliquid coin in the terminal.

Usage:
    python -m depth_monitor.main watch-book --coin BTC --levels 10 --show-extra-data
    python -m depth_monitor.main watch-trades --coin ETH
    python -m depth_monitor.main graph-book --coin SOL

    Or via the console script:
    depth-monitor watch-book -c BTC

Controls:
    q - Quit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import (
    DEFAULT_HISTORY_CAPACITY,
    DEFAULT_LEVELS,
    GRAPH_BOOK,
    WATCH_BOOK,
    WATCH_TRADES,
    MonitorConfig,
)
from .engine.metrics import BookMetrics
from .engine.pump import PumpExit
from .engine.trades import TradeTape
from .ui.frames import BookChartRenderer, BookTableRenderer, TradeTapeRenderer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Route log records to `log_file`.

    The terminal belongs to the TUI, so without a file logging is silenced.
    """
    root = logging.getLogger()
    if log_file:
        logging.basicConfig(filename=log_file, level=level.upper(), format=LOG_FORMAT)
    else:
        root.addHandler(logging.NullHandler())
        root.setLevel(level.upper())


def build_app(config: MonitorConfig, channel: asyncio.Queue, sz_decimals: int = 0):
    """Wire renderer + transform for the configured mode into a MonitorApp."""
    from .ui.monitor_view import MonitorApp

    if config.mode == WATCH_TRADES:
        renderer = TradeTapeRenderer(sz_decimals=sz_decimals)
        transform = TradeTape()
    else:
        transform = BookMetrics(config.slippage_notionals, ladder_depth=config.ladder_depth)
        if config.mode == GRAPH_BOOK:
            renderer = BookChartRenderer(coin=config.coin)
        else:
            renderer = BookTableRenderer(
                sz_decimals=sz_decimals,
                levels=config.ladder_depth,
                show_extra_data=config.show_extra_data,
            )

    return MonitorApp(
        channel,
        renderer,
        transform,
        capacity=config.history_capacity,
        poll_interval=config.poll_interval,
    )


async def main(config: MonitorConfig) -> int:
    """Main entry point - runs data feed and UI concurrently. Returns exit status."""

    # Import here to avoid slow startup for --help
    import aiohttp

    from .datafeed.hyperliquid_client import L2_BOOK, TRADES, HyperliquidClient
    from .ui.monitor_view import run_monitor

    print(f"Starting depth monitor for {config.coin}...")
    print(f"  Mode: {config.mode}")
    print(f"  Network: {'testnet' if config.testnet else 'mainnet'}")
    print(f"  History: {config.history_capacity} snapshots")
    print()
    logger.info("Starting %s for %s (testnet=%s)", config.mode, config.coin, config.testnet)

    client = HyperliquidClient(
        coin=config.coin,
        subscription=TRADES if config.mode == WATCH_TRADES else L2_BOOK,
        api_url=config.api_url,
        ws_url=config.ws_url,
    )

    sz_decimals = 0
    if config.mode != GRAPH_BOOK:
        try:
            sz_decimals = await client.fetch_sz_decimals()
        except aiohttp.ClientError as e:
            print(f"Error: cannot load market metadata: {e}", file=sys.stderr)
            return 1

    app = build_app(config, client.event_queue, sz_decimals)
    feed_task = asyncio.create_task(client.run())

    try:
        # Run UI (blocks until quit, stream end or a fatal error)
        outcome, return_code = await run_monitor(app)
    finally:
        client.stop()
        feed_task.cancel()
        try:
            await feed_task
        except asyncio.CancelledError:
            pass

    if return_code:
        return return_code
    if client.failure:
        print(f"Error: feed failed: {client.failure}", file=sys.stderr)
        return 1

    if outcome is PumpExit.STREAM_ENDED:
        print("Stream ended")
    else:
        print("Exited successfully")
    return 0


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c", "--coin",
        required=True,
        help="Coin to monitor, e.g. BTC"
    )
    common.add_argument(
        "--testnet",
        action="store_true",
        help="Connect to Hyperliquid testnet instead of mainnet"
    )
    common.add_argument(
        "--history",
        type=int,
        default=DEFAULT_HISTORY_CAPACITY,
        help=f"Snapshots retained for the view (default: {DEFAULT_HISTORY_CAPACITY})"
    )
    common.add_argument(
        "--log-file",
        default=None,
        help="Write logs to this file (default: logging disabled)"
    )
    common.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)"
    )

    parser = argparse.ArgumentParser(
        prog="depth-monitor",
        description="Depth Monitor - live order book liquidity metrics for Hyperliquid",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    depth-monitor watch-book -c BTC --show-extra-data
    depth-monitor watch-trades -c ETH
    depth-monitor graph-book -c SOL
        """
    )
    commands = parser.add_subparsers(dest="mode", required=True)

    watch_book = commands.add_parser(WATCH_BOOK, parents=[common], help="Watch the L2 book")
    watch_book.add_argument(
        "-l", "--levels",
        type=int,
        default=DEFAULT_LEVELS,
        help=f"Levels of the book to show, split across both sides (default: {DEFAULT_LEVELS})"
    )
    watch_book.add_argument(
        "-s", "--show-extra-data",
        action="store_true",
        help="Show slippage, in-range liquidity and window statistics"
    )

    commands.add_parser(WATCH_TRADES, parents=[common], help="Watch trades")

    graph_book = commands.add_parser(GRAPH_BOOK, parents=[common], help="Graph top of book")
    graph_book.add_argument(
        "-l", "--levels",
        type=int,
        default=DEFAULT_LEVELS,
        help=f"Levels of the book to request; only the top level is graphed (default: {DEFAULT_LEVELS})"
    )

    return parser


def parse_config(argv: list[str] | None = None) -> tuple[MonitorConfig, argparse.Namespace]:
    """Parse CLI arguments into a MonitorConfig (plus the raw namespace for logging flags)."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = MonitorConfig(
            coin=args.coin,
            mode=args.mode,
            levels=getattr(args, "levels", DEFAULT_LEVELS),
            show_extra_data=getattr(args, "show_extra_data", False),
            history_capacity=args.history,
            testnet=args.testnet,
        )
    except ValueError as e:
        parser.error(str(e))

    return config, args


def cli(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    config, args = parse_config(argv)
    configure_logging(args.log_level, args.log_file)

    # Run
    try:
        status = asyncio.run(main(config))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)
    sys.exit(status)


if __name__ == "__main__":
    cli()
