"""
Hyperliquid websocket client with async orchestration.

Handles:
1. REST `meta` lookup for the coin's size decimals
2. A single websocket subscription (l2Book or trades) per client
3. Decoding messages into tagged feed events
4. Application-level keep-alive pings

Every decoded message is put on `event_queue` in arrival order; when the
socket closes or fails a final StreamEnded is enqueued. There is no
reconnection: a closed feed ends the monitor.

Performance notes:
- Uses orjson for fast JSON parsing
- Minimal logging in hot path
- All I/O is non-blocking (pure asyncio)
"""

from __future__ import annotations

import asyncio
import logging

import aiohttp
import orjson

from ..config import MAINNET_API, MAINNET_WS
from ..types import (
    BookEvent,
    BookLevel,
    BookSnapshot,
    FeedEvent,
    StreamEnded,
    Trade,
    TradesEvent,
    UnknownEvent,
)

logger = logging.getLogger(__name__)

L2_BOOK = "l2Book"
TRADES = "trades"
SUBSCRIPTIONS = (L2_BOOK, TRADES)

# Server drops connections idle for 60s
PING_INTERVAL_SEC = 50.0


def decode_message(raw: str | bytes) -> FeedEvent:
    """
    Decode one websocket message into a feed event.

    Formats:
        {"channel": "l2Book", "data": {"coin", "time", "levels": [[bids], [asks]]}}
        {"channel": "trades", "data": [{"coin", "side", "px", "sz", "time", "hash"}, ...]}

    Anything else (subscriptionResponse, pong, ...) decodes to UnknownEvent.
    """
    message = orjson.loads(raw)
    channel = message.get('channel', '')
    data = message.get('data')

    if channel == L2_BOOK:
        levels = data.get('levels') or [[], []]
        bids, asks = (levels + [[], []])[:2]
        return BookEvent(BookSnapshot(
            coin=data.get('coin', ''),
            time_ms=int(data.get('time', 0)),
            bids=tuple(_level(level) for level in bids),
            asks=tuple(_level(level) for level in asks),
        ))

    if channel == TRADES:
        return TradesEvent(tuple(
            Trade(
                coin=trade.get('coin', ''),
                side=trade.get('side', ''),
                px=trade.get('px', ''),
                sz=trade.get('sz', ''),
                time_ms=int(trade.get('time', 0)),
                hash=trade.get('hash', ''),
            )
            for trade in data or []
        ))

    return UnknownEvent(channel)


def _level(level: dict) -> BookLevel:
    return BookLevel(px=level.get('px', ''), sz=level.get('sz', ''), n=int(level.get('n', 0)))


class HyperliquidClient:
    """
    Async Hyperliquid client for one coin and one subscription.

    Usage:
        client = HyperliquidClient("BTC", subscription="l2Book")
        feed_task = asyncio.create_task(client.run())
        event = await client.event_queue.get()
    """

    def __init__(
        self,
        coin: str,
        subscription: str = L2_BOOK,
        api_url: str = MAINNET_API,
        ws_url: str = MAINNET_WS,
        ping_interval_sec: float = PING_INTERVAL_SEC,
    ) -> None:
        if subscription not in SUBSCRIPTIONS:
            raise ValueError(f"unsupported subscription {subscription!r}")

        self.coin = coin
        self.subscription = subscription
        self.api_url = api_url
        self.ws_url = ws_url
        self.ping_interval_sec = ping_interval_sec

        # State
        self._running = False
        self.failure: str | None = None
        self.messages_received = 0

        # Unbounded: the pump consumes every event in order, nothing is dropped
        self.event_queue: asyncio.Queue[FeedEvent] = asyncio.Queue()

    async def fetch_sz_decimals(self) -> int:
        """Size decimals for the coin from the `meta` endpoint. 0 if the coin is unknown."""
        async with aiohttp.ClientSession() as session:
            async with session.post(f"{self.api_url}/info", json={"type": "meta"}) as resp:
                resp.raise_for_status()
                meta = orjson.loads(await resp.read())

        for market in meta.get('universe', []):
            if market.get('name') == self.coin:
                return int(market.get('szDecimals', 0))

        logger.warning("Coin %s not found in meta universe, using 0 size decimals", self.coin)
        return 0

    def _subscribe_message(self) -> bytes:
        return orjson.dumps({
            "method": "subscribe",
            "subscription": {"type": self.subscription, "coin": self.coin},
        })

    async def _keepalive(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        ping = orjson.dumps({"method": "ping"}).decode()
        while True:
            await asyncio.sleep(self.ping_interval_sec)
            await ws.send_str(ping)

    async def run(self) -> None:
        """
        Main run loop. Connects, subscribes and forwards events until closed.

        Always finishes by enqueuing StreamEnded, with the failure reason if any.
        """
        self._running = True

        try:
            async with aiohttp.ClientSession() as session:
                async with session.ws_connect(self.ws_url) as ws:
                    await ws.send_str(self._subscribe_message().decode())
                    logger.info("Subscribed to %s %s at %s", self.subscription, self.coin, self.ws_url)

                    keepalive = asyncio.create_task(self._keepalive(ws))
                    try:
                        async for msg in ws:
                            if not self._running:
                                break

                            if msg.type == aiohttp.WSMsgType.TEXT:
                                self._handle_ws_message(msg.data)
                            elif msg.type == aiohttp.WSMsgType.ERROR:
                                raise ws.exception() or ConnectionError("websocket error")
                    finally:
                        keepalive.cancel()
        except (aiohttp.ClientError, ConnectionError, OSError) as exc:
            self.failure = f"{type(exc).__name__}: {exc}"
            logger.error("Feed failed: %s", self.failure)
        finally:
            self._running = False
            self.event_queue.put_nowait(StreamEnded(self.failure))
            logger.info("Feed closed after %d messages", self.messages_received)

    def _handle_ws_message(self, raw: str) -> None:
        """
        Handle incoming websocket message.

        HOT PATH - called for every message.
        """
        self.messages_received += 1
        try:
            event = decode_message(raw)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("Dropping undecodable message: %s", exc)
            return

        if isinstance(event, UnknownEvent):
            logger.debug("Ignoring %s message", event.channel or "untyped")

        self.event_queue.put_nowait(event)

    def stop(self) -> None:
        """Signal the client to stop."""
        self._running = False
