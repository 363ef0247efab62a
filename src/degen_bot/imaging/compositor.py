"""Alpha-blend a bottom-aligned overlay onto a photo (OpenCV + NumPy)."""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from degen_bot.errors import CompositeError, DecodeError, UnsupportedFormatError

ASPECT_RATIO_TOLERANCE = 0.05


def compose(
    base: np.ndarray,
    overlay: np.ndarray,
    previous_result: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Return a 4-channel copy of ``base`` with ``overlay`` blended over its bottom edge.

    The overlay is scaled to the base width keeping its aspect ratio, then
    placed so its bottom edge meets the bottom of the base. An overlay taller
    than the base keeps its top at y=0 and loses its bottom rows. Only pixels
    with non-zero alpha are touched and they end up fully opaque.

    ``previous_result`` is accepted for call-site compatibility and ignored.
    """
    if base.ndim != 3 or base.shape[2] not in (3, 4):
        raise UnsupportedFormatError(f"Unsupported base image format: shape {base.shape}")
    if overlay.ndim != 3 or overlay.shape[2] != 4:
        raise CompositeError(f"Overlay must have 4 channels, got shape {overlay.shape}")

    base_h, base_w = base.shape[:2]
    over_h, over_w = overlay.shape[:2]
    if base_h < 1 or base_w < 1 or over_h < 1 or over_w < 1:
        raise CompositeError("Empty image")

    if base.shape[2] == 3:
        result = cv2.cvtColor(base, cv2.COLOR_BGR2BGRA)
    else:
        result = base.copy()

    aspect = over_w / over_h
    new_w = base_w
    new_h = max(1, int(round(new_w / aspect)))
    try:
        resized = cv2.resize(overlay, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
    except cv2.error as e:
        raise CompositeError(f"Overlay resize failed: {e}") from e

    y_offset = max(0, base_h - new_h)
    rows = min(new_h, base_h)

    region = result[y_offset : y_offset + rows, :new_w]
    top = resized[:rows]

    mask = top[:, :, 3] > 0
    alpha = top[:, :, 3:4].astype(np.float32) / 255.0
    blended = (1.0 - alpha) * region[:, :, :3].astype(np.float32) + alpha * top[:, :, :3].astype(np.float32)

    region[:, :, :3][mask] = blended[mask].astype(np.uint8)
    region[:, :, 3][mask] = 255
    return result


def is_portrait(image: np.ndarray) -> bool:
    """Taller than wide by more than the square tolerance."""
    height, width = image.shape[:2]
    return height / width > 1.0 + ASPECT_RATIO_TOLERANCE


def decode_image(data: bytes) -> np.ndarray:
    """Decode JPEG/PNG/WebP bytes into a 3-channel BGR array."""
    if not data:
        raise DecodeError("Empty image data")
    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise DecodeError(f"Failed to decode image: {e}") from e
    if image is None:
        raise DecodeError("Image data is not a supported format")
    return image


def encode_png(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise CompositeError("PNG encoding failed")
    return buffer.tobytes()
