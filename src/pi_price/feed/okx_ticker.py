"""OKX public WebSocket ticker feed.

Keeps one connection open to the OKX public endpoint, subscribes to the
``tickers`` channel of a single instrument and writes every ``last`` price it
sees into :class:`~pi_price.types.AppState`. Closed or failed connections are
reopened after a fixed delay taken from a :class:`~pi_price.types.RetryPolicy`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

import websockets

from pi_price.types import AppState, RetryPolicy, TickerUpdate

logger = logging.getLogger("pi_price.feed")

DEFAULT_OKX_WS_URL = "wss://ws.okx.com:8443/ws/v5/public"


class FeedConnection(Protocol):
    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


Connector = Callable[[str], Awaitable[FeedConnection]]


def _is_finite_decimal(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return False
    try:
        return Decimal(str(value)).is_finite()
    except InvalidOperation:
        return False


async def _websockets_connect(url: str) -> FeedConnection:
    return await websockets.connect(url, ping_interval=20, ping_timeout=20, max_size=2**20)


class OkxTickerFeed:
    def __init__(
        self,
        *,
        state: AppState,
        url: str = DEFAULT_OKX_WS_URL,
        inst_id: str = "PI-USD",
        retry_policy: RetryPolicy | None = None,
        connect: Connector | None = None,
    ) -> None:
        self._state = state
        self._url = url
        self._inst_id = inst_id
        self._retry_policy = retry_policy if retry_policy is not None else RetryPolicy()
        self._connect = connect if connect is not None else _websockets_connect
        self.reconnect_count = 0

    def subscribe_message(self) -> dict[str, Any]:
        return {"op": "subscribe", "args": [{"channel": "tickers", "instId": self._inst_id}]}

    def parse_message(self, raw: str | bytes) -> list[TickerUpdate]:
        try:
            msg = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("feed_message_invalid", extra={"inst_id": self._inst_id}, exc_info=True)
            return []

        if not isinstance(msg, dict):
            logger.warning("feed_message_invalid", extra={"inst_id": self._inst_id})
            return []

        event = msg.get("event")
        if event == "error":
            logger.warning(
                "feed_event_error",
                extra={"inst_id": self._inst_id, "action": str(msg.get("msg", ""))},
            )
        elif event is not None:
            # subscribe acks carry no ticks
            logger.info("feed_event", extra={"inst_id": self._inst_id, "action": str(event)})

        data = msg.get("data")
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("feed_message_invalid", extra={"inst_id": self._inst_id})
            return []

        updates: list[TickerUpdate] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            last = item.get("last")
            if last in (None, ""):
                last = None
            elif not _is_finite_decimal(last):
                logger.warning(
                    "feed_message_invalid",
                    extra={"inst_id": self._inst_id, "price": str(last)},
                )
                last = None
            updates.append(
                TickerUpdate(
                    inst_id=str(item.get("instId", self._inst_id)),
                    last=str(last) if last is not None else None,
                )
            )
        return updates

    def handle_message(self, raw: str | bytes) -> int:
        applied = 0
        for update in self.parse_message(raw):
            if update.last is None:
                continue
            self._state.latest_price = update.last
            applied += 1
            logger.debug("price_updated", extra={"inst_id": update.inst_id, "price": update.last})
        return applied

    async def run(self) -> None:
        while True:
            try:
                await self._listen_once()
                logger.warning("feed_closed", extra={"inst_id": self._inst_id})
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("feed_error", extra={"inst_id": self._inst_id})

            self.reconnect_count += 1
            if not self._retry_policy.allows(self.reconnect_count):
                logger.error(
                    "feed_retries_exhausted",
                    extra={"inst_id": self._inst_id, "attempt": self.reconnect_count},
                )
                return
            logger.info(
                "feed_reconnecting",
                extra={"inst_id": self._inst_id, "attempt": self.reconnect_count},
            )
            await asyncio.sleep(self._retry_policy.delay_seconds)

    async def _listen_once(self) -> None:
        ws = await self._connect(self._url)
        try:
            logger.info("feed_connected", extra={"inst_id": self._inst_id})
            await ws.send(json.dumps(self.subscribe_message()))
            async for raw in ws:
                self.handle_message(raw)
        finally:
            await ws.close()
