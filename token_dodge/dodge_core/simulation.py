"""
Simulation Step
===============

The pure tick function: ``advance(state, inputs, rng, dt_ms)`` takes an
immutable GameState and returns the next one together with the events it
produced. Nothing here draws, plays sounds or touches the network.

Per tick: input -> difficulty refresh -> pattern switch -> obstacle and
token spawns -> move and cull -> collisions -> terminal check.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Tuple, Union

from token_dodge.dodge_core.collision import CollisionReport, CollisionResolver
from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.difficulty import DifficultyController
from token_dodge.dodge_core.entities import Direction, Obstacle, Player, Token
from token_dodge.dodge_core.entity_store import EntityStore
from token_dodge.dodge_core.events import ComboState, EventKind, GameEvent, advance_combo
from token_dodge.dodge_core.patterns import PatternSelector, PatternState
from token_dodge.dodge_core.rng import SpawnRng
from token_dodge.dodge_core.session import LedgerSnapshot, SessionLedger, SessionPhase


@dataclass(frozen=True)
class GameState:
    """
    Complete engine state after a tick.

    Published states are never mutated; every tick builds a new one.
    """
    player: Player
    ledger: LedgerSnapshot
    obstacles: Tuple[Obstacle, ...] = ()
    tokens: Tuple[Token, ...] = ()
    pattern: PatternState = field(default_factory=PatternState)
    combo: ComboState = field(default_factory=ComboState)
    level: int = 1
    elapsed_ms: float = 0.0
    tick: int = 0
    next_entity_id: int = 1

    @property
    def phase(self) -> SessionPhase:
        return self.ledger.phase

    @property
    def running(self) -> bool:
        return self.ledger.running

    @property
    def score(self) -> int:
        return self.ledger.score

    @property
    def lives(self) -> int:
        return self.ledger.lives


@dataclass(frozen=True)
class StepOutcome:
    """Result of one ``advance`` call."""
    state: GameState
    events: Tuple[GameEvent, ...] = ()
    collisions: CollisionReport = field(default_factory=CollisionReport)
    spawned_obstacles: int = 0
    spawned_tokens: int = 0


def initial_state(
    config: Optional[GameConfig] = None,
    phase: SessionPhase = SessionPhase.WAITING
) -> GameState:
    """
    Fresh state: player at the start position, empty field, full lives.

    Args:
        config: Game configuration. Uses default if None.
        phase: Phase to start in (waiting before a session, playing for a
            session that has just been admitted).
    """
    if config is None:
        config = get_config()

    player_cfg = config.player
    player = Player(
        x=player_cfg.start_x,
        y=player_cfg.start_y(config.board.height),
        width=player_cfg.width,
        height=player_cfg.height
    )
    ledger = LedgerSnapshot(lives=config.session.starting_lives, phase=phase)
    return GameState(player=player, ledger=ledger, level=config.difficulty.min_level)


def apply_inputs(
    player: Player,
    inputs: Iterable[Union[Direction, str]],
    config: GameConfig
) -> Player:
    """Move the player once per direction input, clamped to the board."""
    speed = config.player.speed
    for direction in inputs:
        dx, dy = Direction(direction).delta
        player = player.moved(dx * speed, dy * speed, config.board.width, config.board.height)
    return player


def advance(
    state: GameState,
    inputs: Iterable[Union[Direction, str]],
    rng: SpawnRng,
    dt_ms: float,
    config: Optional[GameConfig] = None
) -> StepOutcome:
    """
    Advance the simulation by one tick.

    A state that is not playing is returned unchanged (inputs ignored).

    Args:
        state: State after the previous tick.
        inputs: Direction inputs to apply this tick, in order.
        rng: Random source for every spawn decision.
        dt_ms: Session time covered by this tick.
        config: Game configuration. Uses default if None.

    Returns:
        StepOutcome with the new state and the events it produced.
    """
    if not state.running:
        return StepOutcome(state=state)

    if config is None:
        config = get_config()

    player = apply_inputs(state.player, inputs, config)
    elapsed = state.elapsed_ms + max(0.0, dt_ms)
    tick = state.tick + 1

    # Difficulty never decreases, even if elapsed time were to jump back
    difficulty = DifficultyController(config)
    difficulty.restore(state.level)
    level = difficulty.refresh(elapsed)
    profile = difficulty.profile(level)

    store = EntityStore(state.obstacles, state.tokens, state.next_entity_id)
    selector = PatternSelector(rng, config)

    pattern = selector.maybe_switch(state.pattern, elapsed)
    pattern, new_obstacles = selector.spawn_obstacles(pattern, elapsed, profile, store)
    spawned_obstacles = store.add_obstacles(new_obstacles, profile.max_obstacles)

    # Tokens see the obstacles accepted above
    pattern, token = selector.spawn_token(pattern, elapsed, profile, store)
    spawned_tokens = 1 if token is not None and store.add_token(token, profile.max_tokens) else 0

    store.advance(config.timing.scroll_speed)

    ledger = SessionLedger(config, state.ledger)
    report = CollisionResolver(config).resolve(player, store, ledger)

    events: List[GameEvent] = []
    combo = state.combo
    for collected in report.collected:
        combo, pitch = advance_combo(combo, elapsed, config.feedback)
        events.append(GameEvent(
            kind=EventKind.TOKEN_COLLECT,
            tick=tick,
            elapsed_ms=elapsed,
            data={"token_id": collected.id, "combo": combo.count, "pitch": pitch}
        ))

    for i, obstacle in enumerate(report.hits):
        final_hit = report.finished and i == len(report.hits) - 1
        events.append(GameEvent(
            kind=EventKind.LIFE_LOST if final_hit else EventKind.OBSTACLE_HIT,
            tick=tick,
            elapsed_ms=elapsed,
            data={"obstacle_id": obstacle.id, "type": obstacle.type}
        ))

    ledger_snapshot = ledger.snapshot()
    if report.finished:
        events.append(GameEvent(
            kind=EventKind.GAME_OVER,
            tick=tick,
            elapsed_ms=elapsed,
            data={"score": ledger_snapshot.score, "reason": ledger_snapshot.finish_reason}
        ))

    new_state = replace(
        state,
        player=player,
        ledger=ledger_snapshot,
        obstacles=store.obstacles,
        tokens=store.tokens,
        pattern=pattern,
        combo=combo,
        level=level,
        elapsed_ms=elapsed,
        tick=tick,
        next_entity_id=store.next_id
    )
    return StepOutcome(
        state=new_state,
        events=tuple(events),
        collisions=report,
        spawned_obstacles=spawned_obstacles,
        spawned_tokens=spawned_tokens
    )


def finish_state(
    state: GameState,
    reason: str = "stopped",
    config: Optional[GameConfig] = None
) -> GameState:
    """Return ``state`` moved to finished (unchanged if already finished)."""
    ledger = SessionLedger(config, state.ledger)
    if not ledger.finish(reason):
        return state
    return replace(state, ledger=ledger.snapshot())
