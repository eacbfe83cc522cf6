from __future__ import annotations

from typing import Any

import httpx

_DEFAULT_BASE_URL = "https://api.telegram.org"
# Long-poll timeout is added on top of this for getUpdates.
_DEFAULT_TIMEOUT_SECONDS = 10.0


class TelegramApiError(RuntimeError):
    def __init__(self, *, method: str, status_code: int, error_code: int | None, description: str):
        super().__init__(
            f"Telegram API error: method={method} status={status_code} "
            f"error_code={error_code} description={description!r}"
        )
        self.method = method
        self.status_code = status_code
        self.error_code = error_code
        self.description = description


class TelegramBotClient:
    """Minimal async client for the Telegram Bot HTTP API."""

    def __init__(
        self,
        *,
        bot_token: str,
        base_url: str = _DEFAULT_BASE_URL,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._bot_token = bot_token.strip()
        self._timeout_seconds = timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/bot{self._bot_token}",
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def enabled(self) -> bool:
        return bool(self._bot_token)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send_message(
        self,
        *,
        chat_id: int | str,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return await self._call("sendMessage", payload)

    async def edit_message_text(
        self,
        *,
        chat_id: int | str,
        message_id: int,
        text: str,
        reply_markup: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"chat_id": chat_id, "message_id": message_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return await self._call("editMessageText", payload)

    async def answer_callback_query(
        self,
        *,
        callback_query_id: str,
        text: str | None = None,
        show_alert: bool = False,
    ) -> bool:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text is not None:
            payload["text"] = text
        if show_alert:
            payload["show_alert"] = True
        return bool(await self._call("answerCallbackQuery", payload))

    async def get_updates(
        self,
        *,
        offset: int | None = None,
        timeout: int = 30,
        allowed_updates: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout}
        if offset is not None:
            payload["offset"] = offset
        if allowed_updates is not None:
            payload["allowed_updates"] = allowed_updates
        result = await self._call(
            "getUpdates",
            payload,
            timeout=httpx.Timeout(self._timeout_seconds + timeout),
        )
        if not isinstance(result, list):
            return []
        return [u for u in result if isinstance(u, dict)]

    async def _call(
        self,
        method: str,
        payload: dict[str, Any],
        *,
        timeout: httpx.Timeout | None = None,
    ) -> Any:
        if timeout is None:
            resp = await self._client.post(f"/{method}", json=payload)
        else:
            resp = await self._client.post(f"/{method}", json=payload, timeout=timeout)

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400 or not isinstance(data, dict) or not data.get("ok", False):
            error_code: int | None = None
            description = resp.text
            if isinstance(data, dict):
                raw_code = data.get("error_code")
                error_code = int(raw_code) if isinstance(raw_code, int) else None
                description = str(data.get("description", description))
            raise TelegramApiError(
                method=method,
                status_code=resp.status_code,
                error_code=error_code,
                description=description,
            )
        return data.get("result")


class TelegramNotifier:
    def __init__(self, *, client: TelegramBotClient, chat_id: str) -> None:
        self._client = client
        self._chat_id = chat_id.strip()

    def enabled(self) -> bool:
        return bool(self._client.enabled() and self._chat_id)

    async def send(self, text: str) -> None:
        if not self.enabled():
            return
        await self._client.send_message(chat_id=self._chat_id, text=text)
