"""
Game entity dataclasses
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class Direction(str, Enum):
    """Discrete player movement input."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self):
        return _DIRECTION_DELTAS[self]


_DIRECTION_DELTAS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}


@dataclass(frozen=True)
class Player:
    """Player hitbox. Only input moves it."""
    x: float
    y: float
    width: float = 50.0
    height: float = 50.0

    def moved(self, dx: float, dy: float, board_width: float, board_height: float) -> "Player":
        """Return the player shifted by (dx, dy), clamped to the board."""
        x = min(max(0.0, self.x + dx), board_width - self.width)
        y = min(max(0.0, self.y + dy), board_height - self.height)
        return replace(self, x=x, y=y)


@dataclass(frozen=True)
class Obstacle:
    """Scrolling hazard; touching it costs a life."""
    id: int
    x: float
    y: float
    width: float
    height: float
    type: str

    def shifted(self, dx: float) -> "Obstacle":
        return replace(self, x=self.x + dx)


@dataclass(frozen=True)
class Token:
    """Collectible worth a fixed score."""
    id: int
    x: float
    y: float
    width: float = 40.0
    height: float = 40.0

    def shifted(self, dx: float) -> "Token":
        return replace(self, x=self.x + dx)
