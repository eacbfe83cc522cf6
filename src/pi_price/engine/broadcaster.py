from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Protocol

from pi_price.types import AppState

logger = logging.getLogger("pi_price.broadcaster")

_DEFAULT_INTERVAL_SECONDS = 60.0
_RISE_MARKER = " 🟢"
_FALL_MARKER = " 🔴"


class Notifier(Protocol):
    async def send(self, text: str) -> None: ...


def format_message(price: str, previous: str | None) -> str:
    marker = ""
    if previous is not None:
        marker = _RISE_MARKER if Decimal(price) > Decimal(previous) else _FALL_MARKER
    return f"PI Network: {price} USD{marker}"


class PriceBroadcaster:
    def __init__(
        self,
        *,
        state: AppState,
        notifier: Notifier,
        interval_seconds: float = _DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self._state = state
        self._notifier = notifier
        self._interval_seconds = interval_seconds

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("tick_failed", extra={"price": self._state.latest_price})

    async def tick(self) -> bool:
        state = self._state
        price = state.latest_price
        if not state.is_active or price is None or price == state.previous_price:
            return False

        message = format_message(price, state.previous_price)
        try:
            await self._notifier.send(message)
        except Exception:
            # previous_price still holds the last delivered value, so the next
            # tick compares against it again.
            logger.exception("broadcast_failed", extra={"price": price})
            return False

        state.previous_price = price
        logger.info("broadcast_sent", extra={"price": price})
        return True
