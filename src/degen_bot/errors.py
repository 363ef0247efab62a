"""Error taxonomy shared by every component."""

from __future__ import annotations


class DegenBotError(Exception):
    """Base class for all degen-bot errors."""


class TransportError(DegenBotError):
    """Any failure talking to the messaging platform (send, delete, download, file lookup)."""


class BodyReadError(TransportError):
    """The download started but its body could not be read to the end."""


class DecodeError(DegenBotError):
    """Image bytes could not be turned into a raster."""


class UnsupportedFormatError(DecodeError):
    """Raster has a channel layout the compositor cannot handle."""


class CompositeError(DegenBotError):
    """The compositor failed on otherwise valid inputs."""


class OverlayAssetError(DegenBotError):
    """An overlay PNG is missing or unreadable."""


class ConfigError(DegenBotError):
    """Missing secret or malformed configuration. Fatal at start-up."""
