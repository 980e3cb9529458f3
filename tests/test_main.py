"""Tests for CLI parsing, configuration and app wiring."""

import asyncio
import logging

import pytest

from depth_monitor.config import (
    MAINNET_WS,
    TESTNET_API,
    TESTNET_WS,
    MonitorConfig,
)
from depth_monitor.engine.metrics import BookMetrics
from depth_monitor.engine.trades import TradeTape
from depth_monitor.main import build_app, configure_logging, parse_config
from depth_monitor.ui.frames import BookChartRenderer, BookTableRenderer, TradeTapeRenderer


class TestParseConfig:
    def test_watch_book(self):
        config, args = parse_config(["watch-book", "-c", "BTC", "-l", "20", "--show-extra-data"])

        assert config.mode == "watch-book"
        assert config.coin == "BTC"
        assert config.levels == 20
        assert config.ladder_depth == 10
        assert config.show_extra_data
        assert args.log_file is None

    def test_watch_trades(self):
        config, _ = parse_config(["watch-trades", "--coin", "ETH", "--testnet"])

        assert config.mode == "watch-trades"
        assert config.testnet
        assert not config.show_extra_data

    def test_graph_book_defaults(self):
        config, args = parse_config(["graph-book", "-c", "SOL"])

        assert config.levels == 10
        assert config.history_capacity == 100
        assert args.log_level == "INFO"

    def test_coin_is_required(self):
        with pytest.raises(SystemExit):
            parse_config(["watch-book"])

    def test_invalid_history(self):
        with pytest.raises(SystemExit):
            parse_config(["graph-book", "-c", "SOL", "--history", "0"])


class TestMonitorConfig:
    def test_endpoints(self):
        assert MonitorConfig("BTC").ws_url == MAINNET_WS
        testnet = MonitorConfig("BTC", testnet=True)
        assert testnet.ws_url == TESTNET_WS
        assert testnet.info_url == f"{TESTNET_API}/info"

    def test_rejects_unknown_mode(self):
        with pytest.raises(ValueError):
            MonitorConfig("BTC", mode="place-order")

    def test_is_frozen(self):
        config = MonitorConfig("BTC")
        with pytest.raises(AttributeError):
            config.coin = "ETH"


class TestBuildApp:
    def _pump(self, config):
        async def runner():
            return build_app(config, asyncio.Queue(), sz_decimals=3).pump

        return asyncio.run(runner())

    def test_watch_book(self):
        pump = self._pump(MonitorConfig("BTC", levels=6, show_extra_data=True))

        assert isinstance(pump.renderer, BookTableRenderer)
        assert pump.renderer.levels == 3
        assert pump.renderer.sz_decimals == 3
        assert pump.renderer.show_extra_data
        assert isinstance(pump.transform, BookMetrics)

    def test_graph_book(self):
        pump = self._pump(MonitorConfig("BTC", mode="graph-book", history_capacity=50))

        assert isinstance(pump.renderer, BookChartRenderer)
        assert pump.history.capacity == 50

    def test_watch_trades(self):
        pump = self._pump(MonitorConfig("BTC", mode="watch-trades"))

        assert isinstance(pump.renderer, TradeTapeRenderer)
        assert isinstance(pump.transform, TradeTape)


class TestConfigureLogging:
    def test_log_file(self, tmp_path):
        log_file = tmp_path / "monitor.log"
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level
        try:
            root.handlers = []
            configure_logging("DEBUG", str(log_file))
            logging.getLogger("depth_monitor.test").debug("hello")
            for handler in root.handlers:
                handler.flush()
            assert "hello" in log_file.read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = handlers
            root.setLevel(level)
