from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_REQUIRED = {
    "telegram_bot_token": "TELEGRAM_BOT_TOKEN",
    "telegram_channel_id": "TELEGRAM_CHANNEL_ID",
    "admin_user_id": "ADMIN_USER_ID",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Telegram
    telegram_bot_token: str = Field(default="", validation_alias="TELEGRAM_BOT_TOKEN")
    telegram_channel_id: str = Field(default="", validation_alias="TELEGRAM_CHANNEL_ID")
    admin_user_id: str = Field(default="", validation_alias="ADMIN_USER_ID")

    # OKX feed
    okx_ws_url: str = Field(
        default="wss://ws.okx.com:8443/ws/v5/public",
        validation_alias="OKX_WS_URL",
    )
    inst_id: str = Field(default="PI-USD", validation_alias="INST_ID")
    reconnect_delay_seconds: float = Field(default=5.0, ge=0, validation_alias="RECONNECT_DELAY_SECONDS")

    # Broadcast
    broadcast_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        validation_alias="BROADCAST_INTERVAL_SECONDS",
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    def missing_required(self) -> list[str]:
        return [env for field, env in _REQUIRED.items() if not str(getattr(self, field)).strip()]
