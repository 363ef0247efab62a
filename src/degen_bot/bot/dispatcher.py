"""Routes inbound messages: commands to their handlers, photos onto the work queue."""

from __future__ import annotations

from degen_bot.bot import messages
from degen_bot.bot.overlay import OverlaySessionHandler
from degen_bot.core.queue import QueueJob, WorkQueue
from degen_bot.core.types import Command, SessionKey
from degen_bot.errors import TransportError
from degen_bot.log import get_logger
from degen_bot.messenger.base import MessengerAdapter
from degen_bot.messenger.models import IncomingMessage

logger = get_logger(__name__)


def parse_command(text: str | None) -> str | None:
    """Extract ``cmd`` from ``/cmd``, ``/cmd@botname`` or ``/cmd args``."""
    if not text or not text.startswith("/"):
        return None
    token = text.split(maxsplit=1)[0]
    return token[1:].split("@", 1)[0]


class CommandDispatcher:
    def __init__(self, adapter: MessengerAdapter, overlay: OverlaySessionHandler, queue: WorkQueue):
        self._adapter = adapter
        self._overlay = overlay
        self._queue = queue

    async def handle(self, message: IncomingMessage) -> None:
        if message.text:
            name = parse_command(message.text)
            if name is None:
                return
            try:
                command = Command(name)
            except ValueError:
                # Probably addressed to another bot in the same chat
                logger.debug("unknown_command_ignored", command=name, chat_id=message.chat_id)
                return
            logger.info("command_received", command=command.value, chat_id=message.chat_id, user_id=message.user_id)
            await self._dispatch(command, message)
        elif message.has_photo:
            await self._queue.enqueue(
                QueueJob(key=SessionKey(message.chat_id, message.user_id), message=message)
            )
            logger.info("photo_enqueued", chat_id=message.chat_id, user_id=message.user_id, queued=len(self._queue))

    async def _dispatch(self, command: Command, message: IncomingMessage) -> None:
        match command:
            case Command.START:
                try:
                    await self._adapter.send_text(message.chat_id, messages.WELCOME)
                except TransportError as e:
                    logger.error("start_reply_failed", chat_id=message.chat_id, error=str(e))
            case Command.DEGENME:
                await self._overlay.handle_degenme(message)
