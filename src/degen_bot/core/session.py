"""Pending-request table mapping (chat_id, user_id) to the prompt awaiting a photo."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable

from degen_bot.core.types import SessionKey
from degen_bot.log import get_logger

logger = get_logger(__name__)

EXPIRY_SECONDS = 180.0


@dataclass(frozen=True, slots=True)
class PendingRequest:
    key: SessionKey
    prompt_message_id: int
    created_at: float

    def age(self, now: float) -> float:
        return now - self.created_at

    def is_expired(self, now: float, expiry: float = EXPIRY_SECONDS) -> bool:
        return self.age(now) > expiry


class PendingRequestTable:
    """At most one live request per SessionKey.

    Every operation takes the table lock for its own duration only; callers
    never hold it across I/O.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[SessionKey, PendingRequest] = {}
        self._lock = asyncio.Lock()

    def now(self) -> float:
        return self._clock()

    async def get(self, key: SessionKey) -> PendingRequest | None:
        async with self._lock:
            return self._entries.get(key)

    async def insert_replacing(self, key: SessionKey, prompt_message_id: int) -> PendingRequest | None:
        """Store a fresh request for ``key``; return the one it replaced, if any."""
        async with self._lock:
            previous = self._entries.get(key)
            self._entries[key] = PendingRequest(
                key=key, prompt_message_id=prompt_message_id, created_at=self._clock()
            )
        logger.info(
            "pending_request_stored",
            chat_id=key.chat_id,
            user_id=key.user_id,
            prompt_message_id=prompt_message_id,
            replaced=previous is not None,
        )
        return previous

    async def remove(self, key: SessionKey) -> PendingRequest | None:
        async with self._lock:
            return self._entries.pop(key, None)

    async def take_if_prompt(self, key: SessionKey, reply_to_message_id: int) -> PendingRequest | None:
        """Remove and return the entry for ``key`` only if its prompt is ``reply_to_message_id``.

        Doing the match and the removal under one lock means two replies to
        the same prompt can never both be processed.
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.prompt_message_id != reply_to_message_id:
                return None
            del self._entries[key]
            return entry

    async def scan_expired(self, now: float, expiry: float = EXPIRY_SECONDS) -> list[PendingRequest]:
        """Atomically remove and return all entries older than ``expiry``."""
        async with self._lock:
            expired = [entry for entry in self._entries.values() if entry.is_expired(now, expiry)]
            for entry in expired:
                del self._entries[entry.key]
        return expired

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
