"""
State Snapshot
==============

Packs a GameState into fixed-size numpy arrays for Gymnasium observations.
Entities are ordered by x so index 0 is always the one closest to the
player's side of the board.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.geometry import center_x, center_y
from token_dodge.dodge_core.patterns import PatternKind
from token_dodge.dodge_core.simulation import GameState

PATTERN_IDS = {kind: i for i, kind in enumerate(PatternKind)}


@dataclass
class GameSnapshot:
    """
    Game state snapshot.

    All arrays are fixed-size with masking for variable entity counts.
    """
    # Core state
    player_x: float
    player_y: float
    score: int
    lives: int
    level: int
    elapsed_ms: float
    pattern_id: int
    obstacle_count: int
    token_count: int

    # Derived features
    nearest_obstacle_dx: float        # Center-to-center, board width if none
    nearest_obstacle_dy: float
    nearest_token_dx: float
    nearest_token_dy: float

    # Obstacle arrays (fixed size, padded)
    obstacle_type_id: np.ndarray      # (MAX_OBS,) int16, -1 for padding
    obstacle_x: np.ndarray            # (MAX_OBS,) float32
    obstacle_y: np.ndarray
    obstacle_w: np.ndarray
    obstacle_h: np.ndarray
    obstacle_mask: np.ndarray         # (MAX_OBS,) bool

    # Token arrays
    token_x: np.ndarray               # (MAX_TOK,) float32
    token_y: np.ndarray
    token_mask: np.ndarray            # (MAX_TOK,) bool

    # Optional image
    board_rgb: Optional[np.ndarray] = None

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        obs = {
            "player_x": np.array(self.player_x, dtype=np.float32),
            "player_y": np.array(self.player_y, dtype=np.float32),
            "score": np.array(self.score, dtype=np.int64),
            "lives": np.array(self.lives, dtype=np.int32),
            "level": np.array(self.level, dtype=np.int32),
            "elapsed_ms": np.array(self.elapsed_ms, dtype=np.float32),
            "pattern_id": np.array(self.pattern_id, dtype=np.int32),
            "obstacle_count": np.array(self.obstacle_count, dtype=np.int32),
            "token_count": np.array(self.token_count, dtype=np.int32),

            "nearest_obstacle_dx": np.array(self.nearest_obstacle_dx, dtype=np.float32),
            "nearest_obstacle_dy": np.array(self.nearest_obstacle_dy, dtype=np.float32),
            "nearest_token_dx": np.array(self.nearest_token_dx, dtype=np.float32),
            "nearest_token_dy": np.array(self.nearest_token_dy, dtype=np.float32),

            "obstacle_type_id": self.obstacle_type_id,
            "obstacle_x": self.obstacle_x,
            "obstacle_y": self.obstacle_y,
            "obstacle_w": self.obstacle_w,
            "obstacle_h": self.obstacle_h,
            "obstacle_mask": self.obstacle_mask,
            "token_x": self.token_x,
            "token_y": self.token_y,
            "token_mask": self.token_mask,
        }

        if self.board_rgb is not None:
            obs["board_rgb"] = self.board_rgb

        return obs


class SnapshotBuilder:
    """Builds game state snapshots with pre-allocated arrays."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_obstacles = config.observation.max_obstacles
        self._max_tokens = config.observation.max_tokens
        self._type_ids = {name: i for i, name in enumerate(config.obstacle_type_names)}

        self._obstacle_type_id = np.full(self._max_obstacles, -1, dtype=np.int16)
        self._obstacle_x = np.zeros(self._max_obstacles, dtype=np.float32)
        self._obstacle_y = np.zeros(self._max_obstacles, dtype=np.float32)
        self._obstacle_w = np.zeros(self._max_obstacles, dtype=np.float32)
        self._obstacle_h = np.zeros(self._max_obstacles, dtype=np.float32)
        self._obstacle_mask = np.zeros(self._max_obstacles, dtype=bool)
        self._token_x = np.zeros(self._max_tokens, dtype=np.float32)
        self._token_y = np.zeros(self._max_tokens, dtype=np.float32)
        self._token_mask = np.zeros(self._max_tokens, dtype=bool)

    @property
    def max_obstacles(self) -> int:
        return self._max_obstacles

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    def build(
        self,
        state: GameState,
        board_rgb: Optional[np.ndarray] = None
    ) -> GameSnapshot:
        """Build a snapshot from a game state."""
        self._obstacle_type_id.fill(-1)
        self._obstacle_x.fill(0)
        self._obstacle_y.fill(0)
        self._obstacle_w.fill(0)
        self._obstacle_h.fill(0)
        self._obstacle_mask.fill(False)
        self._token_x.fill(0)
        self._token_y.fill(0)
        self._token_mask.fill(False)

        player = state.player
        px = center_x(player)
        py = center_y(player)
        board_width = float(self._config.board.width)

        obstacles = sorted(state.obstacles, key=lambda o: o.x)[:self._max_obstacles]
        for i, obstacle in enumerate(obstacles):
            self._obstacle_type_id[i] = self._type_ids.get(obstacle.type, -1)
            self._obstacle_x[i] = obstacle.x
            self._obstacle_y[i] = obstacle.y
            self._obstacle_w[i] = obstacle.width
            self._obstacle_h[i] = obstacle.height
            self._obstacle_mask[i] = True

        tokens = sorted(state.tokens, key=lambda t: t.x)[:self._max_tokens]
        for i, token in enumerate(tokens):
            self._token_x[i] = token.x
            self._token_y[i] = token.y
            self._token_mask[i] = True

        obstacle_dx, obstacle_dy = self._nearest_ahead(obstacles, px, py, board_width)
        token_dx, token_dy = self._nearest_ahead(tokens, px, py, board_width)

        return GameSnapshot(
            player_x=player.x,
            player_y=player.y,
            score=state.score,
            lives=state.lives,
            level=state.level,
            elapsed_ms=state.elapsed_ms,
            pattern_id=PATTERN_IDS[state.pattern.kind],
            obstacle_count=len(state.obstacles),
            token_count=len(state.tokens),
            nearest_obstacle_dx=obstacle_dx,
            nearest_obstacle_dy=obstacle_dy,
            nearest_token_dx=token_dx,
            nearest_token_dy=token_dy,
            obstacle_type_id=self._obstacle_type_id.copy(),
            obstacle_x=self._obstacle_x.copy(),
            obstacle_y=self._obstacle_y.copy(),
            obstacle_w=self._obstacle_w.copy(),
            obstacle_h=self._obstacle_h.copy(),
            obstacle_mask=self._obstacle_mask.copy(),
            token_x=self._token_x.copy(),
            token_y=self._token_y.copy(),
            token_mask=self._token_mask.copy(),
            board_rgb=board_rgb
        )

    @staticmethod
    def _nearest_ahead(entities, px: float, py: float, default: float):
        """Offset to the closest entity whose center is not behind the player."""
        best = None
        for entity in entities:
            dx = center_x(entity) - px
            if dx < 0:
                continue
            if best is None or dx < best[0]:
                best = (dx, center_y(entity) - py)
        if best is None:
            return default, 0.0
        return best
