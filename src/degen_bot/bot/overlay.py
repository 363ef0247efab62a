"""The /degenme state machine: prompt, wait for a photo reply, composite, deliver.

A session is keyed by (chat_id, user_id) and is either idle (no entry in the
pending table) or awaiting a photo. ``handle_degenme`` moves it to awaiting;
``process_photo`` moves it back to idle, as does the expiry sweeper.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import numpy as np
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_fixed

from degen_bot.bot import messages
from degen_bot.core.rate_limiter import RateLimiter
from degen_bot.core.session import EXPIRY_SECONDS, PendingRequestTable
from degen_bot.core.types import SessionKey
from degen_bot.errors import BodyReadError, CompositeError, DecodeError, DegenBotError, TransportError
from degen_bot.imaging.assets import OverlayAssets
from degen_bot.imaging.compositor import compose, decode_image, encode_png
from degen_bot.log import get_logger
from degen_bot.messenger.base import MessengerAdapter
from degen_bot.messenger.models import IncomingMessage

logger = get_logger(__name__)

MAX_RETRIES = 3
RETRY_WAIT_SECONDS = 0.5


def _log_compose_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("compose_retry", attempt=retry_state.attempt_number, error=str(error))


class OverlaySessionHandler:
    def __init__(
        self,
        adapter: MessengerAdapter,
        pending: PendingRequestTable,
        rate_limiter: RateLimiter,
        assets: OverlayAssets,
        expiry: float = EXPIRY_SECONDS,
        max_attempts: int = MAX_RETRIES,
        retry_wait: float = RETRY_WAIT_SECONDS,
    ):
        self._adapter = adapter
        self._pending = pending
        self._rate_limiter = rate_limiter
        self._assets = assets
        self._expiry = expiry
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait

    async def handle_degenme(self, message: IncomingMessage) -> None:
        """Prompt the sender for a photo, replacing any request they already have open."""
        key = SessionKey(message.chat_id, message.user_id)

        if not await self._rate_limiter.check(key.rate_key()):
            await self._send_quietly(message.chat_id, messages.RATE_LIMITED)
            return

        replaced = await self._pending.get(key) is not None
        text = messages.prompt_text(message.username, replaced=replaced)
        try:
            prompt_id = await self._adapter.send_text(message.chat_id, text)
        except TransportError as e:
            logger.error("prompt_send_failed", chat_id=key.chat_id, user_id=key.user_id, error=str(e))
            return

        # The previous prompt, if any, stays in the chat
        await self._pending.insert_replacing(key, prompt_id)

    async def process_photo(self, message: IncomingMessage) -> None:
        """Handle a queued photo. Photos that answer no live prompt are ignored silently."""
        if message.reply_to_message_id is None:
            logger.debug("photo_not_a_reply", chat_id=message.chat_id, user_id=message.user_id)
            return

        key = SessionKey(message.chat_id, message.user_id)
        entry = await self._pending.take_if_prompt(key, message.reply_to_message_id)
        if entry is None:
            logger.debug(
                "photo_without_pending_request",
                chat_id=key.chat_id,
                user_id=key.user_id,
                reply_to=message.reply_to_message_id,
            )
            return

        if entry.is_expired(self._pending.now(), self._expiry):
            logger.info("overlay_request_expired_on_reply", chat_id=key.chat_id, user_id=key.user_id)
            await self._send_quietly(message.chat_id, messages.EXPIRED_ON_PHOTO)
            return

        await self._render(message)

    async def _render(self, message: IncomingMessage) -> None:
        chat_id = message.chat_id
        photo = message.largest_photo()
        if photo is None:
            return
        who = messages.mention(message.username, "Anonymous")

        try:
            progress_id = await self._adapter.send_text(chat_id, messages.PROCESSING.format(who=who))
        except TransportError as e:
            logger.error("progress_send_failed", chat_id=chat_id, error=str(e))
            await self._apologize(chat_id, None, messages.GENERIC_FAILURE)
            return

        apology = messages.FILE_LOOKUP_FAILED
        try:
            url = await self._adapter.get_file_url(photo.file_id)
            apology = messages.DOWNLOAD_FAILED
            data = await self._adapter.download(url)
            apology = messages.DECODE_FAILED
            base = await asyncio.to_thread(decode_image, data)
            apology = messages.OVERLAY_FAILED
            overlay = await self._assets.for_image(base)
            apology = messages.COMPOSE_FAILED
            result = await self._compose_with_retry(base, overlay)
            apology = messages.GENERIC_FAILURE
            png = await asyncio.to_thread(encode_png, result)
            await self._adapter.send_photo(
                chat_id,
                png,
                messages.RESULT_FILENAME,
                caption=messages.SUCCESS_CAPTION.format(who=who),
            )
        except DegenBotError as e:
            if isinstance(e, DecodeError):
                apology = messages.DECODE_FAILED
            elif isinstance(e, BodyReadError):
                apology = messages.READ_FAILED
            logger.error(
                "overlay_processing_failed",
                chat_id=chat_id,
                user_id=message.user_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            await self._apologize(chat_id, progress_id, apology)
            return

        logger.info("overlay_delivered", chat_id=chat_id, user_id=message.user_id, size=len(png))
        try:
            await self._adapter.delete_message(chat_id, progress_id)
        except TransportError as e:
            logger.error("progress_delete_failed", chat_id=chat_id, error=str(e))

    async def _compose_with_retry(self, base: np.ndarray, overlay: np.ndarray) -> np.ndarray:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(self._retry_wait),
            retry=retry_if_exception_type(CompositeError),
            before_sleep=_log_compose_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await asyncio.to_thread(compose, base, overlay)
        raise CompositeError("compose retries exhausted")  # unreachable with reraise=True

    async def _apologize(self, chat_id: int, progress_id: Optional[int], text: str) -> None:
        if progress_id is not None:
            try:
                await self._adapter.delete_message(chat_id, progress_id)
            except TransportError as e:
                logger.error("progress_delete_failed", chat_id=chat_id, error=str(e))
        await self._send_quietly(chat_id, text)

    async def _send_quietly(self, chat_id: int, text: str) -> None:
        try:
            await self._adapter.send_text(chat_id, text)
        except TransportError as e:
            logger.error("send_failed", chat_id=chat_id, error=str(e))
