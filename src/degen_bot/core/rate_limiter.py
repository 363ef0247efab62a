"""Fixed-window rate limiter keyed by "chat:user"."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable

from degen_bot.log import get_logger

logger = get_logger(__name__)

MAX_REQUESTS = 5
WINDOW_SECONDS = 60.0


@dataclass(slots=True)
class RateBucket:
    window_start: float
    count: int


class RateLimiter:
    """Admits at most ``max_requests`` per key within each ``window`` seconds."""

    def __init__(
        self,
        max_requests: int = MAX_REQUESTS,
        window: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_requests = max_requests
        self._window = window
        self._clock = clock
        self._buckets: dict[str, RateBucket] = {}
        self._lock = asyncio.Lock()

    async def check(self, key: str) -> bool:
        """Record one request for ``key``; return False if it is over the limit."""
        async with self._lock:
            now = self._clock()
            bucket = self._buckets.get(key)
            if bucket is None:
                self._buckets[key] = RateBucket(window_start=now, count=1)
                return True
            if now - bucket.window_start > self._window:
                bucket.window_start = now
                bucket.count = 1
                return True
            if bucket.count >= self._max_requests:
                logger.info("rate_limited", key=key, count=bucket.count)
                return False
            bucket.count += 1
            return True

    async def prune(self) -> int:
        """Drop buckets whose window has elapsed. Returns how many were removed."""
        async with self._lock:
            now = self._clock()
            stale = [
                key
                for key, bucket in self._buckets.items()
                if now - bucket.window_start > self._window
            ]
            for key in stale:
                del self._buckets[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._buckets)
