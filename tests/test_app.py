import asyncio

import pytest

from degen_bot.app import DegenBotApp
from degen_bot.config import AppConfig, HttpConfig, TelegramConfig
from tests.fakes import FakeMessenger, command


def names(app: DegenBotApp) -> list[str]:
    return [s.service_name for s in app.service_manager._services]


def test_disabled_telegram_only_serves_web():
    app = DegenBotApp(AppConfig(telegram=TelegramConfig(enabled=False)))
    assert app.adapter is None
    assert app.dispatcher is None
    assert names(app) == ["web"]


@pytest.mark.asyncio
async def test_enabled_app_wires_dispatcher_to_adapter():
    fake = FakeMessenger()
    app = DegenBotApp(AppConfig(telegram=TelegramConfig(enabled=True), bot_token="t"), adapter=fake)

    assert names(app) == ["web", "queue_worker", "sweeper"]
    assert fake._message_callback == app.dispatcher.handle

    await fake._message_callback(command("/start"))
    assert len(fake.texts) == 1


@pytest.mark.asyncio
async def test_start_and_stop(monkeypatch):
    fake = FakeMessenger()
    config = AppConfig(
        telegram=TelegramConfig(enabled=True),
        bot_token="t",
        http=HttpConfig(host="127.0.0.1", port=0),
    )
    app = DegenBotApp(config, adapter=fake)

    await app.start()
    health = await app.service_manager.health_check_all()
    assert health["queue_worker"] and health["sweeper"]

    await app.stop()
    assert [c[0] for c in fake.calls] == ["start", "stop"]
    assert not any((await app.service_manager.health_check_all()).values())


class RejectedTokenMessenger(FakeMessenger):
    async def start(self) -> None:
        raise RuntimeError("The token `t` was rejected by the server.")


@pytest.mark.asyncio
async def test_failed_adapter_start_still_stops_services():
    config = AppConfig(
        telegram=TelegramConfig(enabled=True),
        bot_token="t",
        http=HttpConfig(host="127.0.0.1", port=0),
    )
    app = DegenBotApp(config, adapter=RejectedTokenMessenger())

    with pytest.raises(RuntimeError, match="rejected"):
        await app.run_until(asyncio.Event())

    assert not any((await app.service_manager.health_check_all()).values())
    assert app.service_manager._started == []


@pytest.mark.asyncio
async def test_run_until_stops_when_event_is_set():
    fake = FakeMessenger()
    config = AppConfig(
        telegram=TelegramConfig(enabled=True),
        bot_token="t",
        http=HttpConfig(host="127.0.0.1", port=0),
    )
    app = DegenBotApp(config, adapter=fake)
    stop_event = asyncio.Event()
    stop_event.set()

    await app.run_until(stop_event)

    assert [c[0] for c in fake.calls] == ["start", "stop"]
