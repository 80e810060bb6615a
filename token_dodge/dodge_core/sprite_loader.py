"""
Sprite Loader
=============

Loads and caches entity images for the pygame renderer. Acts as the asset
provider for ``render``: ``get(key)`` returns a pygame Surface, or None when
the file is missing or unreadable.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import pygame

logger = logging.getLogger(__name__)

SPRITES_DIR = Path(__file__).parent.parent.parent / "assets" / "sprites"

# Asset key -> file name in the sprites directory
SPRITE_FILES = {
    "player": "player.png",
    "token": "coin.png",
    "obstacle_rug": "rug.png",
    "obstacle_bear": "bear.png",
    "obstacle_fud": "fud.png",
    "obstacle_paper": "paperhands.png",
    "obstacle_scam": "scam.png",
}


class SpriteLoader:
    """
    Loads sprites on first request and caches the result, including misses.
    """

    def __init__(self, sprites_dir: Optional[Path] = None):
        """
        Initialize sprite loader.

        Args:
            sprites_dir: Path to sprites directory. Uses default if None.
        """
        self._sprites_dir = Path(sprites_dir) if sprites_dir is not None else SPRITES_DIR
        self._cache: Dict[str, Optional[pygame.Surface]] = {}

    @property
    def sprites_dir(self) -> Path:
        return self._sprites_dir

    def get(self, key: str) -> Optional[pygame.Surface]:
        if key not in self._cache:
            self._cache[key] = self._load(key)
        return self._cache[key]

    def _load(self, key: str) -> Optional[pygame.Surface]:
        filename = SPRITE_FILES.get(key, f"{key}.png")
        path = self._sprites_dir / filename
        if not path.exists():
            logger.debug("Sprite %s not found at %s", key, path)
            return None

        try:
            image = pygame.image.load(str(path))
            if pygame.display.get_surface() is not None:
                image = image.convert_alpha()
            return image
        except pygame.error:
            logger.debug("Failed to load sprite %s", path, exc_info=True)
            return None

    def clear(self) -> None:
        self._cache.clear()
