"""
Placement Solver
================

Bounded-retry search for a spawn position that keeps the minimum spacing
to everything already on the field.

The solver never mutates the collections it is given. Callers pass explicit
snapshots of "what is placed so far" (including candidates accepted earlier
in the same tick) so obstacle and token placement can constrain each other
without sharing mutable lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.geometry import Box, center_y, clamp, overlaps
from token_dodge.dodge_core.rng import SpawnRng


class PlacementKind(str, Enum):
    OBSTACLE = "obstacle"
    TOKEN = "token"


@dataclass(frozen=True)
class Candidate:
    """A trial box during the search."""
    x: float
    y: float
    width: float
    height: float


class PlacementSolver:
    """
    Finds collision-free spawn positions.

    Attempt 0 tries the proposed position as-is. Each later attempt adds a
    centered random vertical offset whose span grows linearly with the
    attempt index, then re-clamps to the playfield. The first candidate
    that satisfies every spacing rule wins; if none does the solver returns
    None and the caller simply skips that spawn.

    Spacing rules:
    - obstacle vs obstacle: max(min_spacing, w/2 + h/2) of the new obstacle
    - obstacle vs token: obstacle_token_spacing
    - token vs obstacle: token_obstacle_spacing
    - token vs token: token_token_spacing
    - token look-ahead: obstacles still near the right edge must not be
      vertically aligned with the token, since they keep approaching
    """

    def __init__(self, rng: SpawnRng, config: Optional[GameConfig] = None):
        """
        Initialize solver.

        Args:
            rng: Random source for jitter.
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._cfg = config.placement
        self._rng = rng
        self._board_width = config.board.width
        self._board_height = config.board.height

    def find_safe_position(
        self,
        proposed: Tuple[float, float],
        dims: Tuple[float, float],
        obstacles: Sequence[Box],
        tokens: Sequence[Box],
        kind: PlacementKind
    ) -> Optional[Tuple[float, float]]:
        """
        Search for a safe spawn position near ``proposed``.

        Args:
            proposed: Desired (x, y) top-left position.
            dims: (width, height) of the entity being placed.
            obstacles: Obstacles already on the field or accepted this tick.
            tokens: Tokens already on the field or accepted this tick.
            kind: Whether an obstacle or a token is being placed.

        Returns:
            Accepted (x, y), or None when every attempt failed.
        """
        kind = PlacementKind(kind)
        x, proposed_y = proposed
        width, height = dims

        if kind is PlacementKind.OBSTACLE:
            attempts = self._cfg.obstacle_attempts
            jitter = self._cfg.obstacle_jitter
        else:
            attempts = self._cfg.token_attempts
            jitter = self._cfg.token_jitter

        for attempt in range(attempts):
            if attempt == 0:
                y = proposed_y
            else:
                # Search radius grows with the attempt index
                y = proposed_y + self._rng.centered(jitter) * (attempt / attempts)

            candidate = Candidate(x, self._clamp_y(y, height, kind), width, height)
            if self.is_safe(candidate, obstacles, tokens, kind):
                return (candidate.x, candidate.y)

        return None

    def _clamp_y(self, y: float, height: float, kind: PlacementKind) -> float:
        if kind is PlacementKind.OBSTACLE:
            margin = self._cfg.obstacle_clamp_margin
            return clamp(y, margin, self._board_height - height - margin)
        return clamp(
            y,
            self._cfg.token_top_margin,
            self._board_height - self._cfg.token_bottom_margin
        )

    def is_safe(
        self,
        candidate: Box,
        obstacles: Sequence[Box],
        tokens: Sequence[Box],
        kind: PlacementKind
    ) -> bool:
        """Check a candidate box against every spacing rule for its kind."""
        if kind is PlacementKind.OBSTACLE:
            return self._obstacle_is_safe(candidate, obstacles, tokens)
        return self._token_is_safe(candidate, obstacles, tokens)

    def obstacle_spacing(self, width: float, height: float) -> float:
        """Minimum obstacle-to-obstacle margin for an obstacle of this size."""
        return max(self._cfg.obstacle_min_spacing, width / 2 + height / 2)

    def _obstacle_is_safe(
        self,
        candidate: Box,
        obstacles: Sequence[Box],
        tokens: Sequence[Box]
    ) -> bool:
        buffer = self._cfg.obstacle_edge_buffer
        if candidate.y < buffer or candidate.y > self._board_height - candidate.height - buffer:
            return False

        margin = self.obstacle_spacing(candidate.width, candidate.height)
        if any(overlaps(candidate, other, margin) for other in obstacles):
            return False

        token_margin = self._cfg.obstacle_token_spacing
        return not any(overlaps(candidate, token, token_margin) for token in tokens)

    def _token_is_safe(
        self,
        candidate: Box,
        obstacles: Sequence[Box],
        tokens: Sequence[Box]
    ) -> bool:
        obstacle_margin = self._cfg.token_obstacle_spacing
        if any(overlaps(candidate, obstacle, obstacle_margin) for obstacle in obstacles):
            return False

        token_margin = self._cfg.token_token_spacing
        if any(overlaps(candidate, token, token_margin) for token in tokens):
            return False

        # Look-ahead: obstacles still entering from the right
        lookahead_x = self._board_width - self._cfg.lookahead_distance
        token_cy = center_y(candidate)
        for obstacle in obstacles:
            if obstacle.x > lookahead_x and abs(center_y(obstacle) - token_cy) <= obstacle_margin:
                return False

        return True
