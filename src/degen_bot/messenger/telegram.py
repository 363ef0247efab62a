"""Telegram messenger adapter using python-telegram-bot v21+."""

from __future__ import annotations

from typing import Any

import httpx
from telegram import InputFile, Message, Update
from telegram.error import TelegramError
from telegram.ext import Application, MessageHandler as TGMessageHandler, filters

from degen_bot.errors import BodyReadError, TransportError
from degen_bot.log import get_logger
from degen_bot.messenger.base import MessengerAdapter
from degen_bot.messenger.models import ChatMember, IncomingMessage, PhotoRef

logger = get_logger(__name__)

FILE_URL_TEMPLATE = "https://api.telegram.org/file/bot{token}/{path}"
DOWNLOAD_TIMEOUT = 30.0


def to_incoming(msg: Message) -> IncomingMessage:
    """Normalize a Telegram message into the platform-neutral model."""
    user = msg.from_user
    return IncomingMessage(
        chat_id=msg.chat_id,
        user_id=user.id if user else 0,
        message_id=msg.message_id,
        text=msg.text,
        username=user.username if user else None,
        reply_to_message_id=(
            msg.reply_to_message.message_id if msg.reply_to_message else None
        ),
        photos=[
            PhotoRef(
                file_id=p.file_id,
                file_unique_id=p.file_unique_id,
                width=p.width,
                height=p.height,
                file_size=p.file_size,
            )
            for p in msg.photo
        ],
    )


def build_file_url(token: str, file_path: str) -> str:
    # python-telegram-bot already returns absolute URLs for the hosted Bot API
    if file_path.startswith(("http://", "https://")):
        return file_path
    return FILE_URL_TEMPLATE.format(token=token, path=file_path.lstrip("/"))


class TelegramAdapter(MessengerAdapter):
    """Telegram bot adapter using python-telegram-bot long polling."""

    def __init__(self, token: str):
        super().__init__()
        if not token:
            raise ValueError("Telegram bot token not configured")
        self._token = token
        self._app: Application | None = None  # type: ignore[type-arg]
        self._http: httpx.AsyncClient | None = None

    @property
    def app(self) -> Application:  # type: ignore[type-arg]
        if self._app is None:
            raise RuntimeError("Telegram adapter not started. Call start() first.")
        return self._app

    async def start(self) -> None:
        self._app = Application.builder().token(self._token).build()
        self._app.add_handler(
            TGMessageHandler(filters.TEXT | filters.PHOTO, self._on_telegram_message)
        )
        self._http = httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT)

        await self._app.initialize()
        await self._app.start()
        await self._app.updater.start_polling(drop_pending_updates=True)  # type: ignore[union-attr]
        logger.info("telegram_adapter_started", bot=self._app.bot.username)

    async def stop(self) -> None:
        if self._app:
            if self._app.updater and self._app.updater.running:
                await self._app.updater.stop()
            await self._app.stop()
            await self._app.shutdown()
            self._app = None
        if self._http:
            await self._http.aclose()
            self._http = None
        logger.info("telegram_adapter_stopped")

    async def send_text(self, chat_id: int, text: str) -> int:
        try:
            sent = await self.app.bot.send_message(chat_id=chat_id, text=text)
        except TelegramError as e:
            raise TransportError(f"send_message failed: {e}") from e
        return sent.message_id

    async def send_photo(self, chat_id: int, data: bytes, filename: str, caption: str | None = None) -> int:
        try:
            sent = await self.app.bot.send_photo(
                chat_id=chat_id,
                photo=InputFile(data, filename=filename),
                caption=caption,
            )
        except TelegramError as e:
            raise TransportError(f"send_photo failed: {e}") from e
        return sent.message_id

    async def delete_message(self, chat_id: int, message_id: int) -> None:
        try:
            await self.app.bot.delete_message(chat_id=chat_id, message_id=message_id)
        except TelegramError as e:
            raise TransportError(f"delete_message failed: {e}") from e

    async def get_file_url(self, file_id: str) -> str:
        try:
            tg_file = await self.app.bot.get_file(file_id)
        except TelegramError as e:
            raise TransportError(f"get_file failed: {e}") from e
        if not tg_file.file_path:
            raise TransportError(f"get_file returned no path for {file_id}")
        return build_file_url(self._token, tg_file.file_path)

    async def download(self, url: str) -> bytes:
        if self._http is None:
            raise RuntimeError("Telegram adapter not started. Call start() first.")
        # the URL embeds the bot token, keep it out of the messages
        try:
            async with self._http.stream("GET", url) as response:
                response.raise_for_status()
                try:
                    return await response.aread()
                except httpx.HTTPError as e:
                    raise BodyReadError(f"reading download body failed: {type(e).__name__}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"download failed: {type(e).__name__}") from e

    async def get_chat_member(self, chat_id: int, user_id: int) -> ChatMember:
        try:
            member = await self.app.bot.get_chat_member(chat_id=chat_id, user_id=user_id)
        except TelegramError as e:
            raise TransportError(f"get_chat_member failed: {e}") from e
        return ChatMember(user_id=member.user.id, username=member.user.username)

    async def _on_telegram_message(self, update: Update, context: Any) -> None:
        """Handle an incoming Telegram message (text and/or photo)."""
        if not update.message:
            return
        if not self._message_callback:
            return

        incoming = to_incoming(update.message)
        if not incoming.text and not incoming.photos:
            return

        try:
            await self._message_callback(incoming)
        except Exception as e:
            logger.error("telegram_handler_error", error=str(e), chat_id=incoming.chat_id)
