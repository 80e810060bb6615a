"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml


PATTERN_KINDS = ("random", "wave", "corridor", "cluster")


@dataclass(frozen=True)
class BoardConfig:
    """Playfield geometry."""
    width: int
    height: int


@dataclass(frozen=True)
class PlayerConfig:
    """Player hitbox and movement."""
    start_x: float
    width: float
    height: float
    speed: float                 # Pixels moved per direction input

    def start_y(self, board_height: float) -> float:
        """Vertical start position (centered on the board)."""
        return board_height / 2 - self.height / 2


@dataclass(frozen=True)
class TimingConfig:
    """Fixed-tick timing."""
    tick_ms: float
    scroll_speed: float          # Pixels per tick, applied to every entity
    slow_step_warning: bool


@dataclass(frozen=True)
class DifficultyConfig:
    """Difficulty curve parameters."""
    min_level: int
    max_level: int
    level_interval_ms: float
    obstacle_chance_base: float
    obstacle_chance_per_level: float
    token_chance_base: float
    token_chance_per_level: float
    max_obstacles_base: int
    max_tokens_base: int
    size_growth_per_level: float
    max_dimension: float
    corridor_width_base: float
    corridor_width_per_level: float


@dataclass(frozen=True)
class PlacementConfig:
    """Placement solver limits and spacing margins."""
    obstacle_attempts: int
    obstacle_jitter: float
    obstacle_clamp_margin: float
    obstacle_edge_buffer: float
    obstacle_min_spacing: float
    obstacle_token_spacing: float
    token_attempts: int
    token_jitter: float
    token_top_margin: float
    token_bottom_margin: float
    token_obstacle_spacing: float
    token_token_spacing: float
    lookahead_distance: float


@dataclass(frozen=True)
class TokenConfig:
    """Collectible token parameters."""
    width: float
    height: float
    value: int
    cooldown_ms: float


@dataclass(frozen=True)
class PatternConfig:
    """Tuning for a single obstacle pattern."""
    cooldown_ms: float
    chance_multiplier: float
    params: Dict[str, object]

    def param(self, name: str, default: object = None) -> object:
        return self.params.get(name, default)


@dataclass(frozen=True)
class PatternsConfig:
    """Pattern selector parameters."""
    switch_interval_ms: float
    kinds: Tuple[str, ...]
    patterns: Dict[str, PatternConfig]

    def get(self, kind: str) -> PatternConfig:
        """Get pattern tuning by kind name."""
        if kind in self.patterns:
            return self.patterns[kind]
        raise ValueError(f"Unknown pattern kind: {kind}")


@dataclass(frozen=True)
class ObstacleTypeConfig:
    """Configuration for a single obstacle type."""
    name: str
    width: float
    height: float
    weight: float
    boosted_weight: Optional[float]
    boost_above_level: Optional[int]
    boost_below_level: Optional[int]
    color: Tuple[int, int, int]
    label: str

    def weight_at(self, level: int) -> float:
        """Sampling weight for this type at a difficulty level."""
        if self.boosted_weight is None:
            return self.weight
        if self.boost_above_level is not None and level > self.boost_above_level:
            return self.boosted_weight
        if self.boost_below_level is not None and level < self.boost_below_level:
            return self.boosted_weight
        return self.weight


@dataclass(frozen=True)
class SessionConfig:
    """Session ledger parameters."""
    starting_lives: int
    damage_per_hit: int


@dataclass(frozen=True)
class FeedbackConfig:
    """Collect-combo feedback for the audio sink."""
    combo_window_ms: float
    pitch_step: float
    max_pitch: float


@dataclass(frozen=True)
class SubmissionConfig:
    """Score payload sanity limits."""
    max_score: int
    min_duration_ms: float


@dataclass(frozen=True)
class ObservationConfig:
    """Observation space parameters."""
    max_obstacles: int
    max_tokens: int
    image_width: int
    image_height: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    board: BoardConfig
    player: PlayerConfig
    timing: TimingConfig
    difficulty: DifficultyConfig
    placement: PlacementConfig
    tokens: TokenConfig
    patterns: PatternsConfig
    obstacle_types: Tuple[ObstacleTypeConfig, ...]
    fallback_type: str
    session: SessionConfig
    feedback: FeedbackConfig
    submission: SubmissionConfig
    observation: ObservationConfig

    @property
    def obstacle_type_names(self) -> Tuple[str, ...]:
        """Obstacle type names in sampling order."""
        return tuple(t.name for t in self.obstacle_types)

    def get_obstacle_type(self, name: str) -> ObstacleTypeConfig:
        """Get obstacle type config by name."""
        for obstacle_type in self.obstacle_types:
            if obstacle_type.name == name:
                return obstacle_type
        raise ValueError(f"Invalid obstacle type: {name}")


def _parse_color(color_data) -> Tuple[int, int, int]:
    """Parse RGB color from YAML."""
    if len(color_data) != 3:
        raise ValueError(f"Color must have 3 values [R, G, B], got {color_data}")
    return (int(color_data[0]), int(color_data[1]), int(color_data[2]))


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


def _parse_obstacle_type(data: dict) -> ObstacleTypeConfig:
    """Parse a single obstacle type from YAML."""
    boosted = data.get("boosted_weight")
    return ObstacleTypeConfig(
        name=str(data["name"]),
        width=float(data["width"]),
        height=float(data["height"]),
        weight=float(data["weight"]),
        boosted_weight=None if boosted is None else float(boosted),
        boost_above_level=_optional_int(data.get("boost_above_level")),
        boost_below_level=_optional_int(data.get("boost_below_level")),
        color=_parse_color(data.get("color", [200, 60, 60])),
        label=str(data.get("label", data["name"].upper()))
    )


def _parse_patterns(data: dict) -> PatternsConfig:
    """Parse the patterns section; per-kind keys beyond cooldown/chance are kept as params."""
    kinds = tuple(str(k) for k in data.get("kinds", PATTERN_KINDS))
    patterns = {}
    for kind in kinds:
        kind_data = dict(data.get(kind, {}))
        cooldown = float(kind_data.pop("cooldown_ms", 0.0))
        multiplier = float(kind_data.pop("chance_multiplier", 1.0))
        patterns[kind] = PatternConfig(
            cooldown_ms=cooldown,
            chance_multiplier=multiplier,
            params=kind_data
        )
    return PatternsConfig(
        switch_interval_ms=float(data["switch_interval_ms"]),
        kinds=kinds,
        patterns=patterns
    )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    if config.timing.tick_ms <= 0:
        raise ValueError(f"tick_ms must be positive, got {config.timing.tick_ms}")

    if config.difficulty.min_level > config.difficulty.max_level:
        raise ValueError(
            f"min_level ({config.difficulty.min_level}) exceeds "
            f"max_level ({config.difficulty.max_level})"
        )

    if config.difficulty.level_interval_ms <= 0:
        raise ValueError("level_interval_ms must be positive")

    # Every configured pattern must be one the selector knows how to run
    for kind in config.patterns.kinds:
        if kind not in PATTERN_KINDS:
            raise ValueError(f"Unknown pattern kind '{kind}', expected one of {PATTERN_KINDS}")
    if not config.patterns.kinds:
        raise ValueError("At least one pattern kind is required")

    names = config.obstacle_type_names
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate obstacle type names: {names}")
    if config.fallback_type not in names:
        raise ValueError(f"fallback_type '{config.fallback_type}' is not a configured obstacle type")

    lead = config.patterns.get("cluster").param("lead_type") if "cluster" in config.patterns.kinds else None
    if lead is not None and lead not in names:
        raise ValueError(f"cluster lead_type '{lead}' is not a configured obstacle type")

    if config.placement.obstacle_attempts < 1 or config.placement.token_attempts < 1:
        raise ValueError("Placement attempts must be at least 1")

    if config.session.starting_lives < 1:
        raise ValueError("starting_lives must be at least 1")

    max_level = config.difficulty.max_level
    if config.observation.max_obstacles < config.difficulty.max_obstacles_base + max_level:
        raise ValueError(
            f"observation.max_obstacles ({config.observation.max_obstacles}) is smaller "
            f"than the obstacle cap at max level"
        )
    if config.observation.max_tokens < config.difficulty.max_tokens_base + max_level // 2:
        raise ValueError(
            f"observation.max_tokens ({config.observation.max_tokens}) is smaller "
            f"than the token cap at max level"
        )


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    board_data = raw["board"]
    board = BoardConfig(
        width=int(board_data["width"]),
        height=int(board_data["height"])
    )

    player_data = raw["player"]
    player = PlayerConfig(
        start_x=float(player_data.get("start_x", 50)),
        width=float(player_data["width"]),
        height=float(player_data["height"]),
        speed=float(player_data["speed"])
    )

    timing_data = raw["timing"]
    timing = TimingConfig(
        tick_ms=float(timing_data["tick_ms"]),
        scroll_speed=float(timing_data["scroll_speed"]),
        slow_step_warning=bool(timing_data.get("slow_step_warning", True))
    )

    diff_data = raw["difficulty"]
    difficulty = DifficultyConfig(
        min_level=int(diff_data.get("min_level", 1)),
        max_level=int(diff_data.get("max_level", 10)),
        level_interval_ms=float(diff_data["level_interval_ms"]),
        obstacle_chance_base=float(diff_data["obstacle_chance_base"]),
        obstacle_chance_per_level=float(diff_data["obstacle_chance_per_level"]),
        token_chance_base=float(diff_data["token_chance_base"]),
        token_chance_per_level=float(diff_data["token_chance_per_level"]),
        max_obstacles_base=int(diff_data["max_obstacles_base"]),
        max_tokens_base=int(diff_data["max_tokens_base"]),
        size_growth_per_level=float(diff_data["size_growth_per_level"]),
        max_dimension=float(diff_data["max_dimension"]),
        corridor_width_base=float(diff_data["corridor_width_base"]),
        corridor_width_per_level=float(diff_data["corridor_width_per_level"])
    )

    place_data = raw["placement"]
    placement = PlacementConfig(
        obstacle_attempts=int(place_data["obstacle_attempts"]),
        obstacle_jitter=float(place_data["obstacle_jitter"]),
        obstacle_clamp_margin=float(place_data["obstacle_clamp_margin"]),
        obstacle_edge_buffer=float(place_data["obstacle_edge_buffer"]),
        obstacle_min_spacing=float(place_data["obstacle_min_spacing"]),
        obstacle_token_spacing=float(place_data["obstacle_token_spacing"]),
        token_attempts=int(place_data["token_attempts"]),
        token_jitter=float(place_data["token_jitter"]),
        token_top_margin=float(place_data["token_top_margin"]),
        token_bottom_margin=float(place_data["token_bottom_margin"]),
        token_obstacle_spacing=float(place_data["token_obstacle_spacing"]),
        token_token_spacing=float(place_data["token_token_spacing"]),
        lookahead_distance=float(place_data["lookahead_distance"])
    )

    token_data = raw["tokens"]
    tokens = TokenConfig(
        width=float(token_data["width"]),
        height=float(token_data["height"]),
        value=int(token_data["value"]),
        cooldown_ms=float(token_data.get("cooldown_ms", 0))
    )

    patterns = _parse_patterns(raw["patterns"])

    obstacle_data = raw["obstacles"]
    obstacle_types = tuple(_parse_obstacle_type(t) for t in obstacle_data["types"])
    fallback_type = str(obstacle_data.get("fallback_type", obstacle_types[0].name))

    session_data = raw["session"]
    session = SessionConfig(
        starting_lives=int(session_data["starting_lives"]),
        damage_per_hit=int(session_data.get("damage_per_hit", 1))
    )

    # Optional sections
    fb_data = raw.get("feedback", {})
    feedback = FeedbackConfig(
        combo_window_ms=float(fb_data.get("combo_window_ms", 2000)),
        pitch_step=float(fb_data.get("pitch_step", 0.1)),
        max_pitch=float(fb_data.get("max_pitch", 2.0))
    )

    sub_data = raw.get("submission", {})
    submission = SubmissionConfig(
        max_score=int(sub_data.get("max_score", 100000)),
        min_duration_ms=float(sub_data.get("min_duration_ms", 5000))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        max_obstacles=int(obs_data.get("max_obstacles", 18)),
        max_tokens=int(obs_data.get("max_tokens", 11)),
        image_width=int(obs_data.get("image_width", 400)),
        image_height=int(obs_data.get("image_height", 200))
    )

    config = GameConfig(
        board=board,
        player=player,
        timing=timing,
        difficulty=difficulty,
        placement=placement,
        tokens=tokens,
        patterns=patterns,
        obstacle_types=obstacle_types,
        fallback_type=fallback_type,
        session=session,
        feedback=feedback,
        submission=submission,
        observation=observation
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
