import asyncio

import pytest

import pi_price.engine.broadcaster as broadcaster_module
from pi_price.engine.broadcaster import PriceBroadcaster, format_message
from pi_price.feed.okx_ticker import OkxTickerFeed
from pi_price.types import AppState


class _Notifier:
    def __init__(self, *, fail: bool = False) -> None:
        self.messages: list[str] = []
        self.fail = fail

    async def send(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("telegram unavailable")
        self.messages.append(text)


def test_format_message_markers() -> None:
    assert format_message("0.50", None) == "PI Network: 0.50 USD"
    assert format_message("0.52", "0.50") == "PI Network: 0.52 USD 🟢"
    assert format_message("0.48", "0.52") == "PI Network: 0.48 USD 🔴"
    # numeric, not lexicographic
    assert format_message("10.1", "9.9") == "PI Network: 10.1 USD 🟢"


def test_rise_is_broadcast_once_with_green_marker() -> None:
    state = AppState(latest_price="0.52", previous_price="0.50")
    notifier = _Notifier()
    broadcaster = PriceBroadcaster(state=state, notifier=notifier)

    assert asyncio.run(broadcaster.tick()) is True
    assert asyncio.run(broadcaster.tick()) is False

    assert notifier.messages == ["PI Network: 0.52 USD 🟢"]
    assert state.previous_price == "0.52"


def test_first_broadcast_has_no_marker_and_nothing_before_first_tick() -> None:
    state = AppState()
    notifier = _Notifier()
    broadcaster = PriceBroadcaster(state=state, notifier=notifier)

    assert asyncio.run(broadcaster.tick()) is False
    state.latest_price = "0.50"
    assert asyncio.run(broadcaster.tick()) is True

    assert notifier.messages == ["PI Network: 0.50 USD"]


def test_disabled_suppresses_and_reenable_does_not_backfill() -> None:
    state = AppState(latest_price="0.52", previous_price="0.52")
    notifier = _Notifier()
    broadcaster = PriceBroadcaster(state=state, notifier=notifier)

    state.is_active = False
    for price in ("0.48", "0.47", "0.50"):
        state.latest_price = price
        assert asyncio.run(broadcaster.tick()) is False
    assert notifier.messages == []

    state.is_active = True
    asyncio.run(broadcaster.tick())
    asyncio.run(broadcaster.tick())

    assert notifier.messages == ["PI Network: 0.50 USD 🔴"]


def test_send_failure_keeps_previous_price() -> None:
    state = AppState(latest_price="0.52", previous_price="0.50")
    notifier = _Notifier(fail=True)
    broadcaster = PriceBroadcaster(state=state, notifier=notifier)

    assert asyncio.run(broadcaster.tick()) is False
    assert state.previous_price == "0.50"

    notifier.fail = False
    assert asyncio.run(broadcaster.tick()) is True
    assert notifier.messages == ["PI Network: 0.52 USD 🟢"]


def test_run_ticks_on_fixed_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    state = AppState(latest_price="0.50")
    notifier = _Notifier()
    broadcaster = PriceBroadcaster(state=state, notifier=notifier, interval_seconds=60)

    sleep_calls: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleep_calls.append(seconds)
        if len(sleep_calls) == 2:
            state.latest_price = "0.52"
        if len(sleep_calls) >= 4:
            raise asyncio.CancelledError()

    monkeypatch.setattr(broadcaster_module.asyncio, "sleep", fake_sleep)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(broadcaster.run())

    assert sleep_calls == [60, 60, 60, 60]
    assert notifier.messages == ["PI Network: 0.50 USD", "PI Network: 0.52 USD 🟢"]


def test_nan_from_feed_does_not_stop_the_timer(monkeypatch: pytest.MonkeyPatch) -> None:
    state = AppState(latest_price="0.50", previous_price="0.50")
    feed = OkxTickerFeed(state=state)
    notifier = _Notifier()
    broadcaster = PriceBroadcaster(state=state, notifier=notifier)

    sleep_calls: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleep_calls.append(seconds)
        if len(sleep_calls) == 1:
            feed.handle_message('{"data": [{"last": "NaN"}]}')
        if len(sleep_calls) == 2:
            state.latest_price = "0.52"
        if len(sleep_calls) >= 3:
            raise asyncio.CancelledError()

    monkeypatch.setattr(broadcaster_module.asyncio, "sleep", fake_sleep)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(broadcaster.run())

    assert notifier.messages == ["PI Network: 0.52 USD 🟢"]


def test_run_keeps_ticking_after_a_failed_tick(monkeypatch: pytest.MonkeyPatch) -> None:
    # bypasses feed validation to exercise the loop guard itself
    state = AppState(latest_price="NaN", previous_price="0.50")
    notifier = _Notifier()
    broadcaster = PriceBroadcaster(state=state, notifier=notifier)

    sleep_calls: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleep_calls.append(seconds)
        if len(sleep_calls) == 2:
            state.latest_price = "0.48"
        if len(sleep_calls) >= 3:
            raise asyncio.CancelledError()

    monkeypatch.setattr(broadcaster_module.asyncio, "sleep", fake_sleep)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(broadcaster.run())

    assert len(sleep_calls) == 3
    assert notifier.messages == ["PI Network: 0.48 USD 🔴"]
    assert state.previous_price == "0.48"
