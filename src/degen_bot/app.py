"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from degen_bot.bot.dispatcher import CommandDispatcher
from degen_bot.bot.overlay import OverlaySessionHandler
from degen_bot.config import AppConfig
from degen_bot.core.queue import WorkQueue
from degen_bot.core.rate_limiter import RateLimiter
from degen_bot.core.session import PendingRequestTable
from degen_bot.imaging.assets import OverlayAssets
from degen_bot.log import get_logger
from degen_bot.messenger.base import MessengerAdapter
from degen_bot.services.queue_worker import QueueWorker
from degen_bot.services.service_manager import ServiceManager
from degen_bot.services.sweeper import ExpirySweeper
from degen_bot.services.web import WebService

logger = get_logger(__name__)


class DegenBotApp:
    """Top-level application orchestrator."""

    def __init__(
        self,
        config: AppConfig,
        adapter: MessengerAdapter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.service_manager = ServiceManager()
        self.service_manager.register(WebService(config.http))

        self.adapter: MessengerAdapter | None = None
        self.dispatcher: CommandDispatcher | None = None
        if not config.telegram.enabled:
            return

        self.adapter = adapter or self._create_adapter()
        self.rate_limiter = RateLimiter(clock=clock)
        self.queue = WorkQueue()
        self.pending = PendingRequestTable(clock=clock)
        self.assets = OverlayAssets(config.assets)

        self.overlay = OverlaySessionHandler(
            adapter=self.adapter,
            pending=self.pending,
            rate_limiter=self.rate_limiter,
            assets=self.assets,
        )
        self.dispatcher = CommandDispatcher(self.adapter, self.overlay, self.queue)
        self.adapter.on_message(self.dispatcher.handle)

        self.service_manager.register(QueueWorker(self.queue, self.overlay.process_photo))
        self.service_manager.register(ExpirySweeper(self.adapter, self.pending, self.rate_limiter))

    async def start(self) -> None:
        """Start the web front page and, when enabled, the bot tasks."""
        await self.service_manager.start_all()

        if self.adapter is None:
            logger.info("telegram_disabled")
        else:
            await self.adapter.start()

        logger.info("degen_bot_started", telegram=self.adapter is not None)

    async def stop(self) -> None:
        """Gracefully shut down all components."""
        if self.adapter is not None:
            try:
                await self.adapter.stop()
            except Exception as e:
                logger.error("adapter_stop_error", error=str(e))

        await self.service_manager.stop_all()
        logger.info("degen_bot_stopped")

    async def run_until(self, stop_event: asyncio.Event) -> None:
        """Run until ``stop_event`` is set. Whatever got started is stopped, even if start-up fails."""
        try:
            await self.start()
            await stop_event.wait()
        finally:
            await self.stop()

    def _create_adapter(self) -> MessengerAdapter:
        from degen_bot.messenger.telegram import TelegramAdapter

        return TelegramAdapter(self.config.bot_token or "")
