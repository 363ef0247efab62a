"""User-visible chat text."""

from __future__ import annotations

from typing import Optional

WELCOME = (
    "Welcome to the Degen POV bot! Use /degenme to create an overlay "
    "in any channel, group, or DM I am in!"
)

PROMPT = (
    "Hey, {who}! Please reply within 3 minutes to this message with an image "
    "to see the Degen Point of View!"
)
PROMPT_REPLACED_PREFIX = "Previous request cancelled. "

RATE_LIMITED = "You're sending commands too quickly. Please wait a moment before trying again."
PROCESSING = "Making {who} a degen... Please wait..."
SUCCESS_CAPTION = "Here you go {who}, you degen."
EXPIRED_ON_PHOTO = "Your overlay request has expired. Please use the /degenme command again."
EXPIRED_BY_SWEEPER = (
    "{who}, you degen, you forgot to send me a picture! "
    "Please run /degenme again to send an image."
)

FILE_LOOKUP_FAILED = "Failed to process your image. Please try again."
DOWNLOAD_FAILED = "Failed to download your image. Please try again."
READ_FAILED = "Failed to read your image. Please try again."
DECODE_FAILED = "Failed to decode your image. Please try again."
OVERLAY_FAILED = "Failed to process overlay. Please try again later."
COMPOSE_FAILED = "Failed to process your image. Please try again later."
GENERIC_FAILURE = "Failed to process your image. Please try again."

RESULT_FILENAME = "overlay.png"


def mention(username: Optional[str], fallback: str) -> str:
    return f"@{username}" if username else fallback


def prompt_text(username: Optional[str], replaced: bool) -> str:
    text = PROMPT.format(who=mention(username, "there"))
    return PROMPT_REPLACED_PREFIX + text if replaced else text
