from datetime import datetime, timezone
from types import SimpleNamespace

import httpx
import pytest
from telegram import Chat, Message, PhotoSize, Update, User
from telegram.error import NetworkError

from degen_bot.errors import BodyReadError, TransportError
from degen_bot.messenger.telegram import TelegramAdapter, build_file_url, to_incoming

NOW = datetime(2024, 7, 1, tzinfo=timezone.utc)
CHAT = Chat(id=-1001, type="supergroup")
USER = User(id=42, first_name="Una", is_bot=False, username="una")


def photo_message() -> Message:
    prompt = Message(message_id=7, date=NOW, chat=CHAT, text="Hey, @una!")
    return Message(
        message_id=8,
        date=NOW,
        chat=CHAT,
        from_user=USER,
        reply_to_message=prompt,
        photo=[
            PhotoSize(file_id="s", file_unique_id="us", width=90, height=60, file_size=1_000),
            PhotoSize(file_id="l", file_unique_id="ul", width=1280, height=853, file_size=90_000),
        ],
    )


def test_to_incoming_photo_reply():
    incoming = to_incoming(photo_message())

    assert incoming.chat_id == -1001
    assert incoming.user_id == 42
    assert incoming.username == "una"
    assert incoming.message_id == 8
    assert incoming.reply_to_message_id == 7
    assert incoming.text is None
    assert [p.file_id for p in incoming.photos] == ["s", "l"]
    assert incoming.largest_photo().file_id == "l"


def test_to_incoming_without_sender():
    incoming = to_incoming(Message(message_id=1, date=NOW, chat=CHAT, text="/degenme"))
    assert incoming.user_id == 0
    assert incoming.username is None
    assert incoming.photos == []
    assert incoming.text == "/degenme"


def test_build_file_url():
    assert build_file_url("123:abc", "photos/file_1.jpg") == "https://api.telegram.org/file/bot123:abc/photos/file_1.jpg"
    absolute = "https://api.telegram.org/file/bot123:abc/photos/file_1.jpg"
    assert build_file_url("123:abc", absolute) == absolute


def test_adapter_requires_token():
    with pytest.raises(ValueError):
        TelegramAdapter("")


@pytest.mark.asyncio
async def test_updates_reach_callback_and_errors_are_contained():
    adapter = TelegramAdapter("123:abc")
    received = []

    async def callback(message):
        received.append(message)
        raise RuntimeError("handler bug")

    adapter.on_message(callback)
    await adapter._on_telegram_message(Update(update_id=1, message=photo_message()), None)

    assert [m.message_id for m in received] == [8]


class FailingBot:
    async def send_message(self, **kwargs):
        raise NetworkError("connection reset")

    async def delete_message(self, **kwargs):
        raise NetworkError("connection reset")

    async def get_file(self, file_id):
        return SimpleNamespace(file_path="photos/file_9.jpg")


@pytest.mark.asyncio
async def test_platform_errors_become_transport_errors():
    adapter = TelegramAdapter("123:abc")
    adapter._app = SimpleNamespace(bot=FailingBot())

    with pytest.raises(TransportError):
        await adapter.send_text(1, "hi")
    with pytest.raises(TransportError):
        await adapter.delete_message(1, 2)
    assert await adapter.get_file_url("f") == "https://api.telegram.org/file/bot123:abc/photos/file_9.jpg"


@pytest.mark.asyncio
async def test_download_maps_http_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("ok.jpg"):
            return httpx.Response(200, content=b"bytes")
        return httpx.Response(404)

    adapter = TelegramAdapter("123:abc")
    adapter._http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        assert await adapter.download("https://files.test/ok.jpg") == b"bytes"
        with pytest.raises(TransportError):
            await adapter.download("https://files.test/missing.jpg")
    finally:
        await adapter._http.aclose()


class BrokenBody(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"\x89PNG"
        raise httpx.ReadError("connection reset")


@pytest.mark.asyncio
async def test_download_body_failure_is_a_read_error():
    adapter = TelegramAdapter("123:abc")
    adapter._http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, stream=BrokenBody()))
    )
    try:
        with pytest.raises(BodyReadError) as excinfo:
            await adapter.download("https://files.test/bot123:abc/cut.jpg")
        assert "123:abc" not in str(excinfo.value)
    finally:
        await adapter._http.aclose()
