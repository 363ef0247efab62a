"""APScheduler-driven sweeper that expires forgotten /degenme requests."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from degen_bot.bot import messages
from degen_bot.core.rate_limiter import RateLimiter
from degen_bot.core.session import EXPIRY_SECONDS, PendingRequest, PendingRequestTable
from degen_bot.errors import TransportError
from degen_bot.log import get_logger
from degen_bot.messenger.base import MessengerAdapter
from degen_bot.services.base import Service

logger = get_logger(__name__)

SWEEP_INTERVAL_SECONDS = 60
SWEEP_JOB_ID = "expiry_sweep"
FALLBACK_NAME = "Degen"


class ExpirySweeper(Service):
    """Every minute, evicts requests older than the expiry and tells their users."""

    def __init__(
        self,
        adapter: MessengerAdapter,
        pending: PendingRequestTable,
        rate_limiter: RateLimiter | None = None,
        interval: float = SWEEP_INTERVAL_SECONDS,
        expiry: float = EXPIRY_SECONDS,
    ):
        self._adapter = adapter
        self._pending = pending
        self._rate_limiter = rate_limiter
        self._interval = interval
        self._expiry = expiry
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def service_name(self) -> str:
        return "sweeper"

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def start(self) -> None:
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.sweep,
            IntervalTrigger(seconds=self._interval),
            id=SWEEP_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("sweeper_started", interval=self._interval, expiry=self._expiry)

    async def stop(self) -> None:
        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
        logger.info("sweeper_stopped")

    async def sweep(self) -> int:
        """Run one pass. Returns the number of requests expired."""
        expired = await self._pending.scan_expired(self._pending.now(), self._expiry)
        # entries are already out of the table, so one failure must not drop the rest
        for entry in expired:
            try:
                await self._expire(entry)
            except Exception:
                logger.exception("expiry_failed", chat_id=entry.key.chat_id, user_id=entry.key.user_id)

        if self._rate_limiter is not None:
            pruned = await self._rate_limiter.prune()
            if pruned:
                logger.debug("rate_buckets_pruned", count=pruned)

        if expired:
            logger.info("sweep_done", expired=len(expired), remaining=len(self._pending))
        return len(expired)

    async def _expire(self, entry: PendingRequest) -> None:
        chat_id, user_id = entry.key
        logger.info("overlay_request_expired", chat_id=chat_id, user_id=user_id)

        name = FALLBACK_NAME
        try:
            member = await self._adapter.get_chat_member(chat_id, user_id)
            name = member.username or FALLBACK_NAME
        except TransportError as e:
            logger.warning("chat_member_lookup_failed", chat_id=chat_id, user_id=user_id, error=str(e))

        try:
            await self._adapter.send_text(chat_id, messages.EXPIRED_BY_SWEEPER.format(who=name))
        except TransportError as e:
            logger.error("expiry_notice_failed", chat_id=chat_id, error=str(e))

        try:
            await self._adapter.delete_message(chat_id, entry.prompt_message_id)
        except TransportError as e:
            logger.error("expired_prompt_delete_failed", chat_id=chat_id, error=str(e))
