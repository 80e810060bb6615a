"""
Dodge Core - The game engine.

This module provides the simulation step, the game orchestrator, the
Gymnasium environment wrapper and all supporting systems (difficulty,
placement, patterns, collisions, session ledger).

Main exports:
- DodgeGame: Game orchestrator (entry gate, clock, events, score submission)
- advance: Pure per-tick step function
- DodgeEnv: Gymnasium environment for agents
- GameConfig: Configuration loaded from game_config.yaml
"""

from token_dodge.dodge_core.config_loader import GameConfig, load_config, get_config
from token_dodge.dodge_core.entities import Direction, Player, Obstacle, Token
from token_dodge.dodge_core.rng import SpawnRng
from token_dodge.dodge_core.session import (
    SessionPhase,
    SessionStateError,
    SessionClosedError,
)
from token_dodge.dodge_core.events import EventKind, GameEvent
from token_dodge.dodge_core.simulation import GameState, StepOutcome, advance, initial_state
from token_dodge.dodge_core.entry_gate import AlwaysOpen, BalanceGate
from token_dodge.dodge_core.score_reporter import (
    ScoreReport,
    ScoreReporter,
    SubmitResult,
    JsonFileScoreSink,
    validate_score_report,
)
from token_dodge.dodge_core.game import DodgeGame, StepResult
from token_dodge.dodge_core.env_gym import DodgeEnv
from token_dodge.dodge_core.replay_recorder import (
    ReplayRecorder,
    record_episode,
    replay_actions,
    generate_replay_filename,
)

__all__ = [
    "GameConfig",
    "load_config",
    "get_config",
    "Direction",
    "Player",
    "Obstacle",
    "Token",
    "SpawnRng",
    "SessionPhase",
    "SessionStateError",
    "SessionClosedError",
    "EventKind",
    "GameEvent",
    "GameState",
    "StepOutcome",
    "advance",
    "initial_state",
    "AlwaysOpen",
    "BalanceGate",
    "ScoreReport",
    "ScoreReporter",
    "SubmitResult",
    "JsonFileScoreSink",
    "validate_score_report",
    "DodgeGame",
    "StepResult",
    "DodgeEnv",
    "ReplayRecorder",
    "record_episode",
    "replay_actions",
    "generate_replay_filename",
]
