"""FIFO of photo messages waiting for the queue worker."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass

from degen_bot.core.types import SessionKey
from degen_bot.messenger.models import IncomingMessage


@dataclass(frozen=True, slots=True)
class QueueJob:
    key: SessionKey
    message: IncomingMessage


class WorkQueue:
    """Single-consumer FIFO. ``dequeue`` never blocks; it returns None when empty."""

    def __init__(self) -> None:
        self._items: deque[QueueJob] = deque()
        self._lock = asyncio.Lock()

    async def enqueue(self, job: QueueJob) -> None:
        async with self._lock:
            self._items.append(job)

    async def dequeue(self) -> QueueJob | None:
        async with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    async def is_empty(self) -> bool:
        async with self._lock:
            return not self._items

    def __len__(self) -> int:
        return len(self._items)
