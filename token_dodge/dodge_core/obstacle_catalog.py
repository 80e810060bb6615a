"""
Obstacle Catalog
================

Provides access to obstacle type definitions loaded from config, weighted
type selection, and sized obstacle construction.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from token_dodge.dodge_core.config_loader import GameConfig, ObstacleTypeConfig, get_config
from token_dodge.dodge_core.difficulty import DifficultyController
from token_dodge.dodge_core.entities import Obstacle
from token_dodge.dodge_core.rng import SpawnRng


class ObstacleCatalog:
    """
    Catalog of obstacle types.

    Types are kept in config order, which is also the cumulative sampling
    order used by ``choose_type``.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize catalog from config.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._types: List[ObstacleTypeConfig] = list(config.obstacle_types)
        self._by_name: Dict[str, ObstacleTypeConfig] = {t.name: t for t in self._types}
        self._fallback = config.fallback_type
        self._difficulty = DifficultyController(config)

    def __len__(self) -> int:
        return len(self._types)

    def __getitem__(self, name: str) -> ObstacleTypeConfig:
        if name in self._by_name:
            return self._by_name[name]
        raise ValueError(f"Invalid obstacle type: {name}")

    def __iter__(self):
        return iter(self._types)

    @property
    def names(self) -> List[str]:
        return [t.name for t in self._types]

    def weights(self, level: int) -> List[float]:
        """Sampling weights per type at a difficulty level, in catalog order."""
        return [t.weight_at(level) for t in self._types]

    def choose_type(self, level: int, rng: SpawnRng) -> str:
        """Draw an obstacle type for ``level`` (one uniform draw)."""
        return rng.weighted_choice(self.names, self.weights(level), fallback=self._fallback)

    def create(
        self,
        entity_id: int,
        x: float,
        y: float,
        level: int,
        rng: SpawnRng,
        forced_type: Optional[str] = None
    ) -> Obstacle:
        """
        Build an obstacle sized for its type and the difficulty level.

        Args:
            entity_id: Id to assign.
            x: Spawn X (may be right of the visible field).
            y: Proposed spawn Y; the placement solver usually replaces it.
            level: Difficulty level, drives type weights and size growth.
            rng: Random source for the type draw.
            forced_type: Skip the draw and use this type.

        Returns:
            A new obstacle.
        """
        type_name = forced_type if forced_type is not None else self.choose_type(level, rng)
        obstacle_type = self[type_name]
        width, height = self._difficulty.scaled_size(obstacle_type.width, obstacle_type.height, level)
        return Obstacle(
            id=entity_id,
            x=x,
            y=y,
            width=width,
            height=height,
            type=type_name
        )
