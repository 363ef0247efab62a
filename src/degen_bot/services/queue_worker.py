"""The single long-lived consumer draining the photo work queue."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Callable

from degen_bot.core.queue import QueueJob, WorkQueue
from degen_bot.log import get_logger
from degen_bot.messenger.models import IncomingMessage
from degen_bot.services.base import Service

logger = get_logger(__name__)

POLL_INTERVAL_SECONDS = 0.1


class QueueWorker(Service):
    """Polls the queue and hands each photo message to ``process``, one at a time, in order."""

    def __init__(
        self,
        queue: WorkQueue,
        process: Callable[[IncomingMessage], Awaitable[None]],
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ):
        self._queue = queue
        self._process = process
        self._poll_interval = poll_interval
        self._task: asyncio.Task[None] | None = None

    @property
    def service_name(self) -> str:
        return "queue_worker"

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="degen-bot-queue-worker")
        logger.info("queue_worker_started")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("queue_worker_stopped", pending=len(self._queue))

    async def run_once(self) -> bool:
        """Process at most one job. Returns False when the queue was empty."""
        job = await self._queue.dequeue()
        if job is None:
            return False
        await self._handle(job)
        return True

    async def _run(self) -> None:
        while True:
            if not await self.run_once():
                await asyncio.sleep(self._poll_interval)

    async def _handle(self, job: QueueJob) -> None:
        try:
            await self._process(job.message)
        except Exception as e:
            logger.exception(
                "queue_job_failed",
                chat_id=job.key.chat_id,
                user_id=job.key.user_id,
                error=str(e),
            )
