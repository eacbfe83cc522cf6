from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pi_price.control import messages
from pi_price.notifications.telegram import TelegramBotClient
from pi_price.types import AppState

logger = logging.getLogger("pi_price.control")

_POLL_ERROR_BACKOFF_SECONDS = 5.0
_ALLOWED_UPDATES = ["message", "callback_query"]


def _is_start_command(text: str) -> bool:
    head = text.strip().split(maxsplit=1)[0] if text.strip() else ""
    return head == "/start" or head.startswith("/start@")


class ControlPanel:
    def __init__(
        self,
        *,
        state: AppState,
        client: TelegramBotClient,
        admin_user_id: str,
        poll_timeout_seconds: int = 30,
        poll_error_backoff_seconds: float = _POLL_ERROR_BACKOFF_SECONDS,
    ) -> None:
        self._state = state
        self._client = client
        self._admin_user_id = admin_user_id.strip()
        self._poll_timeout_seconds = poll_timeout_seconds
        self._poll_error_backoff_seconds = poll_error_backoff_seconds
        self._offset: int | None = None
        self._actions: dict[str, Callable[[], str]] = {
            "status": self._status,
            "on": self._turn_on,
            "off": self._turn_off,
            "get_price": self._get_price,
        }

    def is_admin(self, user_id: object) -> bool:
        return bool(self._admin_user_id) and str(user_id) == self._admin_user_id

    async def run(self) -> None:
        logger.info("control_panel_started")
        while True:
            try:
                updates = await self._client.get_updates(
                    offset=self._offset,
                    timeout=self._poll_timeout_seconds,
                    allowed_updates=_ALLOWED_UPDATES,
                )
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("updates_poll_failed")
                await asyncio.sleep(self._poll_error_backoff_seconds)
                continue

            for update in updates:
                update_id = update.get("update_id")
                if isinstance(update_id, int):
                    self._offset = update_id + 1
                try:
                    await self.handle_update(update)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("update_handling_failed", extra={"update_id": update_id})

    async def handle_update(self, update: dict[str, Any]) -> None:
        message = update.get("message")
        if isinstance(message, dict):
            await self._handle_message(message)
            return
        callback_query = update.get("callback_query")
        if isinstance(callback_query, dict):
            await self._handle_callback(callback_query)

    async def _handle_message(self, message: dict[str, Any]) -> None:
        text = message.get("text")
        if not isinstance(text, str) or not _is_start_command(text):
            return
        chat_id = (message.get("chat") or {}).get("id")
        user_id = (message.get("from") or {}).get("id")
        if chat_id is None:
            return

        if not self.is_admin(user_id):
            logger.warning("unauthorized_start", extra={"user_id": user_id, "chat_id": chat_id})
            await self._safe_call(
                self._client.send_message(chat_id=chat_id, text=messages.UNAUTHORIZED_START),
                action="start",
            )
            return

        await self._safe_call(
            self._client.send_message(
                chat_id=chat_id,
                text=messages.WELCOME,
                reply_markup=messages.inline_keyboard(),
            ),
            action="start",
        )

    async def _handle_callback(self, callback_query: dict[str, Any]) -> None:
        query_id = str(callback_query.get("id", ""))
        user_id = (callback_query.get("from") or {}).get("id")
        data = callback_query.get("data")

        if not self.is_admin(user_id):
            logger.warning("unauthorized_callback", extra={"user_id": user_id, "action": data})
            await self._safe_call(
                self._client.answer_callback_query(
                    callback_query_id=query_id,
                    text=messages.UNAUTHORIZED_CALLBACK,
                    show_alert=True,
                ),
                action=str(data),
            )
            return

        action = self._actions.get(data) if isinstance(data, str) else None
        if action is None:
            logger.debug("callback_ignored", extra={"action": data})
            return

        response_text = action()
        logger.info("callback_handled", extra={"user_id": user_id, "action": data})

        menu = callback_query.get("message") or {}
        chat_id = (menu.get("chat") or {}).get("id")
        message_id = menu.get("message_id")
        if chat_id is None or message_id is None:
            return

        # a failed edit skips the ack
        try:
            await self._client.edit_message_text(
                chat_id=chat_id,
                message_id=message_id,
                text=response_text,
                reply_markup=messages.inline_keyboard(),
            )
            await self._client.answer_callback_query(callback_query_id=query_id)
        except Exception:
            logger.exception("control_reply_failed", extra={"chat_id": chat_id, "action": data})

    def _status(self) -> str:
        return messages.STATUS_ACTIVE if self._state.is_active else messages.STATUS_INACTIVE

    def _turn_on(self) -> str:
        self._state.is_active = True
        return messages.TURNED_ON

    def _turn_off(self) -> str:
        self._state.is_active = False
        return messages.TURNED_OFF

    def _get_price(self) -> str:
        price = self._state.latest_price
        if price is None:
            return messages.PRICE_UNAVAILABLE
        return messages.current_price(price)

    async def _safe_call(self, call: Awaitable[Any], *, action: str) -> None:
        try:
            await call
        except Exception:
            logger.exception("control_reply_failed", extra={"action": action})
