"""Load frame and art images from disk into the asset maps used by the renderers."""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, Optional

from PIL import Image, UnidentifiedImageError
from psd_tools import PSDImage

from .models import CardData
from .scene import AssetMaps

logger = logging.getLogger(__name__)

ART_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")


class ImageLoader:
    def load(self, path: Optional[str]) -> Optional[Image.Image]:
        """Load image safely. Returns None if the file is missing or unreadable."""
        if not path or not os.path.exists(path):
            return None
        try:
            if path.lower().endswith(".psd"):
                return self._load_psd(path)
            with Image.open(path) as img:
                return img.convert("RGBA")
        except (OSError, UnidentifiedImageError, ValueError) as exc:
            logger.warning("Could not load image %s: %s", path, exc)
            return None

    def _load_psd(self, path: str) -> Optional[Image.Image]:
        composite = PSDImage.open(path).composite()
        if composite is None:
            logger.warning("PSD file could not be composited: %s", path)
            return None
        return composite.convert("RGBA")


class AssetCache:
    """Load-once cache: frames keyed by template id, art keyed by card name.

    A failed load is remembered so the file is not read again; the renderers
    show a placeholder for it.
    """

    def __init__(self, loader: Optional[ImageLoader] = None, maps: Optional[AssetMaps] = None):
        self.loader = loader or ImageLoader()
        self.maps = maps if maps is not None else AssetMaps()
        self._attempted_frames: set = set()
        self._attempted_art: set = set()

    def frame(self, template_id: str, path: Optional[str]) -> Optional[Image.Image]:
        if template_id not in self._attempted_frames:
            self._attempted_frames.add(template_id)
            image = self.loader.load(path)
            if image is not None:
                self.maps.frames[template_id] = image
        return self.maps.frames.get(template_id)

    def art(self, card_name: str, path: Optional[str]) -> Optional[Image.Image]:
        if card_name not in self._attempted_art:
            self._attempted_art.add(card_name)
            image = self.loader.load(path)
            if image is not None:
                self.maps.art[card_name] = image
        return self.maps.art.get(card_name)

    def forget_frame(self, template_id: str) -> None:
        self._attempted_frames.discard(template_id)
        self.maps.frames.pop(template_id, None)


def find_art_path(folder: str, card_name: str) -> Optional[str]:
    if not folder:
        return None
    for ext in ART_EXTENSIONS:
        candidate = os.path.join(folder, f"{card_name}{ext}")
        if os.path.exists(candidate):
            return candidate
    return None


def preload_art_images(folder: str, cards: Iterable[CardData], cache: Optional[AssetCache] = None) -> AssetCache:
    cache = cache or AssetCache()
    for card in cards:
        cache.art(card.name, find_art_path(folder, card.name))
    return cache


def preload_frame_images(frame_paths: Dict[str, str], cache: Optional[AssetCache] = None) -> AssetCache:
    cache = cache or AssetCache()
    for template_id, path in frame_paths.items():
        cache.frame(template_id, path)
    return cache
