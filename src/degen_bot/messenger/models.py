"""Platform-neutral message models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True, slots=True)
class PhotoRef:
    """One size variant of an attached photo."""

    file_id: str
    width: int
    height: int
    file_unique_id: str = ""
    file_size: Optional[int] = None

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    chat_id: int
    user_id: int
    message_id: int
    text: Optional[str] = None
    username: Optional[str] = None
    reply_to_message_id: Optional[int] = None
    photos: list[PhotoRef] = field(default_factory=list)

    @property
    def has_photo(self) -> bool:
        return bool(self.photos)

    def largest_photo(self) -> PhotoRef | None:
        if not self.photos:
            return None
        return max(self.photos, key=lambda p: (p.area, p.file_size or 0))


@dataclass(frozen=True, slots=True)
class ChatMember:
    user_id: int
    username: Optional[str] = None
