"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the dodge game.
One environment step is one simulation tick. Reward is always 0.0; agents
compute their own from info.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

import gymnasium as gym
from gymnasium import spaces

from token_dodge.dodge_core.config_loader import GameConfig, load_config
from token_dodge.dodge_core.entities import Direction
from token_dodge.dodge_core.game import DodgeGame
from token_dodge.dodge_core.patterns import PatternKind
from token_dodge.dodge_core.state_snapshot import SnapshotBuilder

# Discrete action index -> direction (None = no input)
ACTIONS = (None, Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


class DodgeEnv(gym.Env):
    """
    Token dodge game as a Gymnasium environment.

    Action Space:
        Discrete(5): 0 noop, 1 up, 2 down, 3 left, 4 right.

    Observation Space:
        Dict of player state, padded obstacle / token arrays with masks and
        optional RGB image.

    Reward:
        Always 0.0. Compute your own reward from the info dict.

    Info:
        Contains score, delta_score, lives, level, collected, hits, etc.
    """

    metadata = {
        "render_modes": ["human", "rgb_array"],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        render_mode: Optional[str] = None,
        image_obs: bool = False,
        image_width: Optional[int] = None,
        image_height: Optional[int] = None,
        max_ticks: Optional[int] = None,
        config: Optional[GameConfig] = None,
    ):
        """
        Initialize dodge environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            render_mode: "human" for window, "rgb_array" for numpy, None for headless.
            image_obs: If True, include board_rgb in observations.
            image_width: Override observation image width.
            image_height: Override observation image height.
            max_ticks: Truncate episodes after this many ticks. No limit if None.
            config: Preloaded configuration; takes precedence over config_path.
        """
        super().__init__()

        self._config = config if config is not None else load_config(config_path)

        self.render_mode = render_mode
        self._image_obs = image_obs
        self._max_ticks = max_ticks

        self._img_width = image_width or self._config.observation.image_width
        self._img_height = image_height or self._config.observation.image_height

        self._game = DodgeGame(config=self._config)
        self._snapshot_builder = SnapshotBuilder(self._config)

        # Renderers (lazy)
        self._solid_renderer = None
        self._human_renderer = None

        self.action_space = spaces.Discrete(len(ACTIONS))
        self.observation_space = self._build_observation_space()

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def game(self) -> DodgeGame:
        return self._game

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        board = self._config.board
        max_obs = self._config.observation.max_obstacles
        max_tok = self._config.observation.max_tokens
        num_types = len(self._config.obstacle_types)

        obs_dict = {
            "player_x": spaces.Box(low=0, high=board.width, shape=(), dtype=np.float32),
            "player_y": spaces.Box(low=0, high=board.height, shape=(), dtype=np.float32),
            "score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "lives": spaces.Box(low=0, high=self._config.session.starting_lives, shape=(), dtype=np.int32),
            "level": spaces.Box(
                low=self._config.difficulty.min_level,
                high=self._config.difficulty.max_level,
                shape=(),
                dtype=np.int32
            ),
            "elapsed_ms": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "pattern_id": spaces.Box(low=0, high=len(PatternKind) - 1, shape=(), dtype=np.int32),
            "obstacle_count": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(), dtype=np.int32),
            "token_count": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(), dtype=np.int32),

            "nearest_obstacle_dx": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),
            "nearest_obstacle_dy": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),
            "nearest_token_dx": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),
            "nearest_token_dy": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),

            "obstacle_type_id": spaces.Box(low=-1, high=num_types - 1, shape=(max_obs,), dtype=np.int16),
            "obstacle_x": spaces.Box(low=-np.inf, high=np.inf, shape=(max_obs,), dtype=np.float32),
            "obstacle_y": spaces.Box(low=-np.inf, high=np.inf, shape=(max_obs,), dtype=np.float32),
            "obstacle_w": spaces.Box(low=0, high=np.inf, shape=(max_obs,), dtype=np.float32),
            "obstacle_h": spaces.Box(low=0, high=np.inf, shape=(max_obs,), dtype=np.float32),
            "obstacle_mask": spaces.MultiBinary(max_obs),
            "token_x": spaces.Box(low=-np.inf, high=np.inf, shape=(max_tok,), dtype=np.float32),
            "token_y": spaces.Box(low=-np.inf, high=np.inf, shape=(max_tok,), dtype=np.float32),
            "token_mask": spaces.MultiBinary(max_tok),
        }

        if self._image_obs:
            obs_dict["board_rgb"] = spaces.Box(
                low=0,
                high=255,
                shape=(self._img_height, self._img_width, 3),
                dtype=np.uint8
            )

        return spaces.Dict(obs_dict)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment and start a session.

        Args:
            seed: Random seed for reproducibility.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        self._game.stop("reset")
        self._game.reset(seed=seed)
        self._game.start()

        obs = self._build_obs()
        info = self._game.get_info()
        info["delta_score"] = 0
        info["collected"] = 0
        info["hits"] = 0

        return obs, info

    def step(
        self,
        action: Union[int, np.integer, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one tick.

        Args:
            action: Index into ACTIONS.

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        if isinstance(action, np.ndarray):
            action = int(action.item())
        action = int(action)
        if not 0 <= action < len(ACTIONS):
            raise ValueError(f"Invalid action {action}; expected 0..{len(ACTIONS) - 1}")

        direction = ACTIONS[action]
        result = self._game.step(inputs=[direction] if direction is not None else [])

        obs = self._build_obs()
        reward = 0.0

        terminated = bool(result.finished)
        truncated = False
        if not terminated and self._max_ticks is not None and self._game.state.tick >= self._max_ticks:
            truncated = True

        info = self._game.get_info()
        info["delta_score"] = result.delta_score
        info["collected"] = len(result.collisions.collected)
        info["hits"] = len(result.collisions.hits)

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, truncated, info

    def _build_obs(self) -> Dict[str, np.ndarray]:
        board_rgb = self._render_to_array() if self._image_obs else None
        return self._snapshot_builder.build(self._game.state, board_rgb=board_rgb).to_obs_dict()

    def _render_to_array(self) -> np.ndarray:
        """Render board to RGB array."""
        if self._solid_renderer is None:
            from token_dodge.dodge_core.render_solid import SolidRenderer
            self._solid_renderer = SolidRenderer(self._config)
        return self._solid_renderer.render(self._game.state, self._img_width, self._img_height)

    def render(self) -> Optional[np.ndarray]:
        """
        Render the current state.

        Returns:
            RGB array for "rgb_array" mode, None otherwise.
        """
        if self.render_mode == "rgb_array":
            return self._render_to_array()

        if self.render_mode == "human":
            if self._human_renderer is None:
                from token_dodge.dodge_core.render_pygame import PygameRenderer
                self._human_renderer = PygameRenderer(self._config)
            import pygame
            self._human_renderer.render_to_screen(self._game.state)
            pygame.display.flip()

        return None

    def close(self) -> None:
        """Clean up resources."""
        if self._human_renderer is not None:
            self._human_renderer.close()
            self._human_renderer = None
        self._solid_renderer = None
