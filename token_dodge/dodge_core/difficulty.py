"""
Difficulty Controller
=====================

Maps elapsed session time to a difficulty level and derives every
level-dependent spawn parameter from it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from token_dodge.dodge_core.config_loader import GameConfig, get_config


@dataclass(frozen=True)
class DifficultyProfile:
    """Spawn parameters for one difficulty level."""
    level: int
    obstacle_chance: float       # Per-tick obstacle spawn probability
    token_chance: float          # Per-tick token spawn probability
    max_obstacles: int
    max_tokens: int
    size_multiplier: float
    corridor_width: float


class DifficultyController:
    """
    Difficulty curve.

    The level rises by one every ``level_interval_ms`` of session time and
    is capped at ``max_level``. The controller remembers the highest level
    it has reported, so the level never decreases within a session even if
    it is fed a smaller elapsed time.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize difficulty controller.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._cfg = config.difficulty
        self._level = self._cfg.min_level

    @property
    def level(self) -> int:
        """Current (highest reached) level."""
        return self._level

    def level_for(self, elapsed_ms: float) -> int:
        """Level for an elapsed time, ignoring history."""
        raw = self._cfg.min_level + math.floor(max(0.0, elapsed_ms) / self._cfg.level_interval_ms)
        return int(min(max(raw, self._cfg.min_level), self._cfg.max_level))

    def refresh(self, elapsed_ms: float) -> int:
        """
        Update the level from elapsed session time.

        Args:
            elapsed_ms: Milliseconds since the session started.

        Returns:
            The (non-decreasing) current level.
        """
        self._level = max(self._level, self.level_for(elapsed_ms))
        return self._level

    def restore(self, level: int) -> None:
        """Seed the controller with a previously reached level."""
        self._level = int(min(max(level, self._cfg.min_level), self._cfg.max_level))

    def reset(self) -> None:
        self._level = self._cfg.min_level

    def profile(self, level: Optional[int] = None) -> DifficultyProfile:
        """Spawn parameters for ``level`` (current level if None)."""
        if level is None:
            level = self._level
        cfg = self._cfg
        return DifficultyProfile(
            level=level,
            obstacle_chance=cfg.obstacle_chance_base + level * cfg.obstacle_chance_per_level,
            token_chance=cfg.token_chance_base + level * cfg.token_chance_per_level,
            max_obstacles=cfg.max_obstacles_base + level,
            max_tokens=cfg.max_tokens_base + level // 2,
            size_multiplier=1.0 + (level - 1) * cfg.size_growth_per_level,
            corridor_width=cfg.corridor_width_base + cfg.corridor_width_per_level * (cfg.max_level - level),
        )

    def scaled_size(self, width: float, height: float, level: Optional[int] = None) -> Tuple[float, float]:
        """Base obstacle size grown for the level, each side capped."""
        multiplier = self.profile(level).size_multiplier
        cap = self._cfg.max_dimension
        return (min(width * multiplier, cap), min(height * multiplier, cap))
