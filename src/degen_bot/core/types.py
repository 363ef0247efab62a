"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum
from typing import NamedTuple


class Command(StrEnum):
    START = "start"
    DEGENME = "degenme"


class SessionKey(NamedTuple):
    """Scope of a pending request: the same user in two chats has two sessions."""

    chat_id: int
    user_id: int

    def rate_key(self) -> str:
        return f"{self.chat_id}:{self.user_id}"
