from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer

from pi_price.control import ControlPanel
from pi_price.engine import PriceBroadcaster
from pi_price.feed import OkxTickerFeed
from pi_price.logging_utils import configure_logging
from pi_price.notifications import TelegramBotClient, TelegramNotifier
from pi_price.settings import Settings
from pi_price.types import AppState, RetryPolicy

app = typer.Typer(no_args_is_help=True, add_completion=False)
logger = logging.getLogger("pi_price")


def _load_settings() -> Settings:
    settings = Settings()
    configure_logging(settings.log_level)
    return settings


@app.command()
def config_init(
    path: Path = typer.Option(Path(".env"), help="Path to write a starter .env file."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite if exists."),
) -> None:
    """
    Create a starter `.env` file (copy from `.env.example`).
    """
    example_path = Path(".env.example")
    if not example_path.exists():
        raise typer.Exit(code=2)

    if path.exists() and not overwrite:
        raise typer.Exit(code=1)

    path.write_text(example_path.read_text(encoding="utf-8"), encoding="utf-8")
    typer.echo(f"Wrote {path}")


@app.command()
def show_config() -> None:
    settings = _load_settings()
    redacted = settings.model_dump()
    redacted["telegram_bot_token"] = "***" if redacted["telegram_bot_token"] else ""
    logger.info("loaded_config", extra={"inst_id": settings.inst_id})
    typer.echo(redacted)


@app.command()
def alerts_test(
    message: str = typer.Option("pi-price test alert", help="Message to send."),
) -> None:
    """
    Send one message to the configured channel.
    """
    settings = _load_settings()

    async def _run() -> None:
        client = TelegramBotClient(bot_token=settings.telegram_bot_token)
        notifier = TelegramNotifier(client=client, chat_id=settings.telegram_channel_id)
        try:
            await notifier.send(message)
            typer.echo({"ok": True, "channel": "telegram", "enabled": notifier.enabled()})
        finally:
            await client.aclose()

    asyncio.run(_run())


@app.command()
def run() -> None:
    """
    Relay the OKX ticker price to the Telegram channel until interrupted.
    """
    settings = _load_settings()

    missing = settings.missing_required()
    if missing:
        raise typer.BadParameter(f"missing required settings: {', '.join(missing)}")

    async def _run() -> None:
        state = AppState()
        client = TelegramBotClient(bot_token=settings.telegram_bot_token)
        feed = OkxTickerFeed(
            state=state,
            url=settings.okx_ws_url,
            inst_id=settings.inst_id,
            retry_policy=RetryPolicy(delay_seconds=settings.reconnect_delay_seconds),
        )
        broadcaster = PriceBroadcaster(
            state=state,
            notifier=TelegramNotifier(client=client, chat_id=settings.telegram_channel_id),
            interval_seconds=settings.broadcast_interval_seconds,
        )
        panel = ControlPanel(state=state, client=client, admin_user_id=settings.admin_user_id)

        logger.info("relay_started", extra={"inst_id": settings.inst_id})
        try:
            await asyncio.gather(feed.run(), broadcaster.run(), panel.run())
        finally:
            await client.aclose()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("relay_stopped", extra={"inst_id": settings.inst_id})

