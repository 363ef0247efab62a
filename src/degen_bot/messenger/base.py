"""Abstract messenger adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from degen_bot.messenger.models import ChatMember, IncomingMessage


class MessengerAdapter(ABC):
    """Facade over a messaging platform.

    Every operation raises :class:`degen_bot.errors.TransportError` on
    failure, whatever the underlying client library raises.
    """

    def __init__(self) -> None:
        self._message_callback: Callable[[IncomingMessage], Awaitable[None]] | None = None

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform and begin receiving messages."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Gracefully disconnect."""
        ...

    @abstractmethod
    async def send_text(self, chat_id: int, text: str) -> int:
        """Send a text message; return its message id."""
        ...

    @abstractmethod
    async def send_photo(self, chat_id: int, data: bytes, filename: str, caption: str | None = None) -> int:
        """Send an in-memory image; return its message id."""
        ...

    @abstractmethod
    async def delete_message(self, chat_id: int, message_id: int) -> None:
        ...

    @abstractmethod
    async def get_file_url(self, file_id: str) -> str:
        """Resolve an attachment identifier to a downloadable URL."""
        ...

    @abstractmethod
    async def download(self, url: str) -> bytes:
        ...

    @abstractmethod
    async def get_chat_member(self, chat_id: int, user_id: int) -> ChatMember:
        ...

    def on_message(self, callback: Callable[[IncomingMessage], Awaitable[None]]) -> None:
        """Register the callback invoked for every incoming message."""
        self._message_callback = callback
