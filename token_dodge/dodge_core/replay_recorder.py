"""
Replay Recorder
===============

Records DodgeEnv episodes (seed + discrete actions) so they can be replayed
deterministically.

Usage:
    from token_dodge.dodge_core import DodgeEnv, ReplayRecorder

    env = DodgeEnv()
    recorder = ReplayRecorder(env)

    obs, info = recorder.reset(seed=42)

    done = False
    while not done:
        action = your_agent(obs)
        obs, reward, terminated, truncated, info = recorder.step(action)
        done = terminated or truncated

    recorder.save("my_replay.json")
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import gymnasium as gym

from token_dodge.dodge_core.config_loader import GameConfig, get_config


def generate_replay_filename(
    agent_name: str = "replay",
    seed: Optional[int] = None,
    directory: Optional[Union[str, Path]] = None
) -> Path:
    """
    Generate a timestamped replay filename.

    Format: {agent_name}_{YYYYMMDD_HHMMSS}_s{seed}.json
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    if seed is not None:
        filename = f"{agent_name}_{timestamp}_s{seed}.json"
    else:
        filename = f"{agent_name}_{timestamp}.json"

    if directory:
        return Path(directory) / filename
    return Path(filename)


def compute_config_hash(config: Optional[GameConfig] = None) -> str:
    """Hash of every parameter that affects spawning or collisions."""
    if config is None:
        config = get_config()

    hash_data = {
        "board": [config.board.width, config.board.height],
        "player": [config.player.start_x, config.player.width, config.player.height, config.player.speed],
        "scroll_speed": config.timing.scroll_speed,
        "tick_ms": config.timing.tick_ms,
        "difficulty": vars(config.difficulty),
        "placement": vars(config.placement),
        "tokens": vars(config.tokens),
        "patterns": {
            "switch_interval_ms": config.patterns.switch_interval_ms,
            "kinds": list(config.patterns.kinds),
            "each": {
                kind: {
                    "cooldown_ms": p.cooldown_ms,
                    "chance_multiplier": p.chance_multiplier,
                    "params": p.params,
                }
                for kind, p in config.patterns.patterns.items()
            },
        },
        "obstacles": [
            [t.name, t.width, t.height, t.weight, t.boosted_weight, t.boost_above_level, t.boost_below_level]
            for t in config.obstacle_types
        ],
        "fallback_type": config.fallback_type,
        "session": vars(config.session),
    }
    encoded = json.dumps(hash_data, sort_keys=True, default=str).encode()
    return hashlib.md5(encoded).hexdigest()[:8]


class ReplayRecorder:
    """
    Wrapper that records environment interactions for replay.

    Attributes:
        env: The wrapped Gymnasium environment.
        recording: Whether currently recording.
    """

    def __init__(
        self,
        env: gym.Env,
        agent_name: str = "unknown",
        auto_save_path: Optional[str] = None
    ):
        """
        Initialize the replay recorder.

        Args:
            env: The DodgeEnv to wrap.
            agent_name: Name of the agent (stored in replay metadata).
            auto_save_path: If provided, automatically save replay on episode end.
        """
        self.env = env
        self.agent_name = agent_name
        self.auto_save_path = auto_save_path

        self._recording = False
        self._seed: Optional[int] = None
        self._actions: List[int] = []
        self._scores: List[int] = []
        self._termination_reason: str = ""
        self._config_hash = compute_config_hash(getattr(env, "config", None))

    @property
    def recording(self) -> bool:
        """Whether currently recording."""
        return self._recording

    @property
    def observation_space(self):
        return self.env.observation_space

    @property
    def action_space(self):
        return self.env.action_space

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict] = None
    ) -> Tuple[Any, Dict]:
        """Reset the environment and start recording."""
        self._actions = []
        self._scores = []
        self._termination_reason = ""
        self._seed = seed
        self._recording = True

        return self.env.reset(seed=seed, options=options)

    def step(self, action: Union[int, np.ndarray]) -> Tuple[Any, float, bool, bool, Dict]:
        """Take a step and record it."""
        if isinstance(action, np.ndarray):
            action_val = int(action.item())
        else:
            action_val = int(action)

        obs, reward, terminated, truncated, info = self.env.step(action_val)

        if self._recording:
            self._actions.append(action_val)
            self._scores.append(int(info.get("score", 0)))
            if terminated or truncated:
                self._termination_reason = info.get("terminated_reason", "") or ("truncated" if truncated else "unknown")

        if (terminated or truncated) and self.auto_save_path:
            self.save(self.auto_save_path)

        return obs, reward, terminated, truncated, info

    def get_replay_data(self) -> Dict[str, Any]:
        """Get the current replay data as a dictionary."""
        return {
            "seed": self._seed,
            "agent": self.agent_name,
            "config_hash": self._config_hash,
            "actions": self._actions.copy(),
            "scores": self._scores.copy(),
            "final_score": self._scores[-1] if self._scores else 0,
            "total_steps": len(self._actions),
            "termination_reason": self._termination_reason,
        }

    def save(
        self,
        path: Optional[Union[str, Path]] = None,
        overwrite: bool = True,
        directory: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Save the replay to a JSON file.

        Args:
            path: Path to save the replay. If None, auto-generates a timestamped name.
            overwrite: If True, overwrite existing file.
            directory: Directory for auto-generated filename (only used if path is None).

        Returns:
            Path where the replay was saved.
        """
        if path is None:
            path = generate_replay_filename(
                agent_name=self.agent_name,
                seed=self._seed,
                directory=directory
            )
        else:
            path = Path(path)

        if path.exists() and not overwrite:
            raise FileExistsError(f"Replay file already exists: {path}")

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.get_replay_data(), f, indent=2)

        return path

    def close(self) -> None:
        """Close the wrapped environment."""
        self.env.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def load_replay(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path) as f:
        return json.load(f)


def replay_actions(
    replay: Dict[str, Any],
    env: Optional[gym.Env] = None,
    check_hash: bool = True
) -> Dict[str, Any]:
    """
    Re-run a recorded episode.

    Args:
        replay: Replay data (from ``get_replay_data`` or ``load_replay``).
        env: Environment to replay in. A fresh DodgeEnv if None.
        check_hash: Refuse replays recorded with different gameplay settings.

    Returns:
        Dict with the replayed ``scores``, ``final_score`` and ``matches``
        (True if every score agrees with the recording).

    Raises:
        ValueError: If the config hash differs and ``check_hash`` is set.
    """
    if env is None:
        from token_dodge.dodge_core.env_gym import DodgeEnv
        env = DodgeEnv()

    if check_hash:
        current = compute_config_hash(getattr(env, "config", None))
        if replay.get("config_hash") not in (None, current):
            raise ValueError(
                f"Replay config hash {replay.get('config_hash')} does not match current {current}"
            )

    env.reset(seed=replay.get("seed"))
    scores: List[int] = []
    for action in replay.get("actions", []):
        _, _, terminated, truncated, info = env.step(int(action))
        scores.append(int(info.get("score", 0)))
        if terminated or truncated:
            break

    return {
        "scores": scores,
        "final_score": scores[-1] if scores else 0,
        "matches": scores == list(replay.get("scores", [])),
    }


def record_episode(
    env: gym.Env,
    agent_fn,
    seed: int,
    save_path: Optional[str] = None,
    agent_name: str = "unknown",
    max_steps: Optional[int] = None
) -> Dict[str, Any]:
    """
    Convenience function to record a single episode.

    Args:
        env: The Gymnasium environment.
        agent_fn: Function that takes observation and returns action.
        seed: Random seed for the episode.
        save_path: If provided, save replay to this path.
        agent_name: Name of the agent.
        max_steps: Stop after this many steps even if the episode continues.

    Returns:
        Replay data dictionary.
    """
    recorder = ReplayRecorder(env, agent_name=agent_name)

    obs, info = recorder.reset(seed=seed)

    steps = 0
    done = False
    while not done:
        obs, reward, terminated, truncated, info = recorder.step(agent_fn(obs))
        steps += 1
        done = terminated or truncated or (max_steps is not None and steps >= max_steps)

    if save_path:
        recorder.save(save_path)

    return recorder.get_replay_data()
