"""Lazy, cached loading of the portrait/landscape overlay PNGs."""

from __future__ import annotations

import asyncio
from pathlib import Path

import cv2
import numpy as np

from degen_bot.config import AssetConfig
from degen_bot.errors import OverlayAssetError
from degen_bot.imaging.compositor import is_portrait
from degen_bot.log import get_logger

logger = get_logger(__name__)


def load_overlay(path: Path) -> np.ndarray:
    """Read an RGBA PNG from disk, keeping its alpha channel."""
    if not path.is_file():
        raise OverlayAssetError(f"Overlay asset not found: {path}")
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise OverlayAssetError(f"Overlay asset unreadable: {path}")
    if image.ndim != 3 or image.shape[2] != 4:
        raise OverlayAssetError(f"Overlay asset has no alpha channel: {path}")
    return image


class OverlayAssets:
    """Overlay images, loaded on first use and shared read-only afterwards."""

    def __init__(self, config: AssetConfig):
        self._paths = {
            "portrait": config.portrait_path,
            "landscape": config.landscape_path,
        }
        self._cache: dict[str, np.ndarray] = {}

    async def get(self, orientation: str) -> np.ndarray:
        cached = self._cache.get(orientation)
        if cached is not None:
            return cached
        path = self._paths[orientation]
        image = await asyncio.to_thread(load_overlay, path)
        self._cache[orientation] = image
        logger.info("overlay_asset_loaded", orientation=orientation, path=str(path), shape=image.shape)
        return image

    async def for_image(self, base: np.ndarray) -> np.ndarray:
        """Pick the overlay matching ``base``'s orientation."""
        return await self.get("portrait" if is_portrait(base) else "landscape")
