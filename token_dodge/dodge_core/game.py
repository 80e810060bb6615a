"""
Dodge Game
==========

Main game orchestrator: owns the current GameState, feeds it through
``advance`` once per tick and handles everything that happens around a
tick (entry gating, input buffering, event dispatch, score submission).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from token_dodge.dodge_core.clock import SimulationClock
from token_dodge.dodge_core.collision import CollisionReport
from token_dodge.dodge_core.config_loader import GameConfig, get_config
from token_dodge.dodge_core.entities import Direction
from token_dodge.dodge_core.entry_gate import AlwaysOpen, EntryGate
from token_dodge.dodge_core.events import EventDispatcher, EventKind, GameEvent, Listener
from token_dodge.dodge_core.rng import SpawnRng
from token_dodge.dodge_core.score_reporter import ScoreReport, ScoreReporter
from token_dodge.dodge_core.session import SessionPhase, SessionStateError
from token_dodge.dodge_core.simulation import GameState, advance, finish_state, initial_state

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Result of a single executed tick."""
    state: GameState
    events: List[GameEvent] = field(default_factory=list)
    collisions: CollisionReport = field(default_factory=CollisionReport)
    delta_score: int = 0
    finished: bool = False
    wall_ms: float = 0.0


class DodgeGame:
    """
    Main game class.

    Orchestrates:
    - Entry gate (may a session start?)
    - Input buffer (directions consumed once per tick)
    - Simulation clock (fixed tick cadence)
    - The pure step function
    - Event listeners (telemetry, audio)
    - Score reporter (exactly one submission per finished session)

    The published ``state`` is replaced only after a full tick.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        entry_gate: Optional[Union[EntryGate, Callable[[], bool]]] = None,
        reporter: Optional[ScoreReporter] = None,
        listeners: Iterable[Listener] = (),
        clock: Optional[SimulationClock] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducible spawns.
            entry_gate: Object with ``can_start()`` or a plain callable.
                Admits everything if None.
            reporter: Receives the final score of each finished session.
            listeners: Callables receiving every GameEvent.
            clock: Tick gate for ``frame()``. Built from config if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._seed = seed
        self._rng = SpawnRng(seed)
        self._gate = entry_gate if entry_gate is not None else AlwaysOpen()
        self._reporter = reporter
        self._dispatcher = EventDispatcher(listeners)
        self._clock = clock if clock is not None else SimulationClock(config)

        self._state = initial_state(config)
        self._pending_inputs: List[Direction] = []
        self._submitted = False

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def state(self) -> GameState:
        """Last published state."""
        return self._state

    @property
    def rng(self) -> SpawnRng:
        return self._rng

    @property
    def clock(self) -> SimulationClock:
        return self._clock

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def running(self) -> bool:
        return self._state.running

    @property
    def is_over(self) -> bool:
        """True once the session has finished."""
        return self._state.phase is SessionPhase.FINISHED

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def lives(self) -> int:
        return self._state.lives

    @property
    def level(self) -> int:
        return self._state.level

    @property
    def submitted(self) -> bool:
        """True once this session's score has been handed to the reporter."""
        return self._submitted

    def subscribe(self, listener: Listener) -> None:
        self._dispatcher.subscribe(listener)

    def _gate_allows(self) -> bool:
        check = getattr(self._gate, "can_start", self._gate)
        try:
            return bool(check())
        except Exception:
            logger.warning("Entry gate failed; session not started", exc_info=True)
            return False

    def reset(self, seed: Optional[int] = None) -> GameState:
        """
        Return to the waiting phase with a fresh field.

        Args:
            seed: New random seed. Uses previous if None.

        Returns:
            The new waiting state.
        """
        if seed is not None:
            self._seed = seed
        self._rng.reset(self._seed)
        self._state = initial_state(self._config)
        self._pending_inputs = []
        self._submitted = False
        self._clock.reset()
        return self._state

    def start(self, seed: Optional[int] = None) -> bool:
        """
        Start a new session if the entry gate allows it.

        Counters, lives, entities, patterns and the combo are all reset.

        Args:
            seed: New random seed. Uses previous if None.

        Returns:
            True if the session started, False if the gate refused.

        Raises:
            SessionStateError: If a session is already playing.
        """
        if self.running:
            raise SessionStateError("Session already running; stop it first")

        if not self._gate_allows():
            logger.info("Entry gate refused session start")
            return False

        self.reset(seed)
        self._state = initial_state(self._config, phase=SessionPhase.PLAYING)
        logger.info("Session started (seed=%s)", self._seed)
        self._dispatcher.dispatch([
            GameEvent(kind=EventKind.GAME_START, tick=0, elapsed_ms=0.0, data={"seed": self._seed})
        ])
        return True

    def queue_input(self, direction: Union[Direction, str]) -> None:
        """Buffer one direction for the next tick. Ignored unless playing."""
        if not self.running:
            return
        self._pending_inputs.append(Direction(direction))

    def step(
        self,
        inputs: Optional[Iterable[Union[Direction, str]]] = None,
        dt_ms: Optional[float] = None
    ) -> StepResult:
        """
        Execute one tick.

        Args:
            inputs: Directions for this tick. Uses (and clears) the input
                buffer if None.
            dt_ms: Session time covered by the tick. One configured tick if
                None.

        Returns:
            StepResult; a no-op result if no session is playing.
        """
        if inputs is None:
            inputs = self._pending_inputs
            self._pending_inputs = []
        if dt_ms is None:
            dt_ms = self._config.timing.tick_ms

        if not self.running:
            return StepResult(state=self._state, finished=self.is_over)

        score_before = self._state.score
        started = time.perf_counter()
        outcome = advance(self._state, list(inputs), self._rng, dt_ms, self._config)
        wall_ms = (time.perf_counter() - started) * 1000.0

        if self._config.timing.slow_step_warning and wall_ms > self._config.timing.tick_ms:
            logger.warning(
                "Slow step: tick %d took %.2f ms (budget %.2f ms)",
                outcome.state.tick, wall_ms, self._config.timing.tick_ms
            )

        # Publish first; listeners and submission only see complete ticks
        self._state = outcome.state
        self._dispatcher.dispatch(outcome.events)

        finished = self.is_over
        if finished:
            self._on_finished()

        return StepResult(
            state=self._state,
            events=list(outcome.events),
            collisions=outcome.collisions,
            delta_score=self._state.score - score_before,
            finished=finished,
            wall_ms=wall_ms
        )

    def frame(self, now_ms: float) -> Optional[StepResult]:
        """
        Frame callback entry point.

        Runs at most one tick, and only if the clock says one is due.

        Args:
            now_ms: Monotonic time of the callback in milliseconds.

        Returns:
            StepResult if a tick ran, else None.
        """
        if not self.running:
            return None
        delta = self._clock.poll(now_ms)
        if delta is None:
            return None
        return self.step(dt_ms=delta)

    def stop(self, reason: str = "stopped") -> bool:
        """
        End the current session.

        Idempotent: stopping a finished (or never started) session does
        nothing.

        Returns:
            True if this call finished a running session.
        """
        if not self.running:
            return False
        self._state = finish_state(self._state, reason, self._config)
        self._pending_inputs = []
        self._dispatcher.dispatch([
            GameEvent(
                kind=EventKind.GAME_OVER,
                tick=self._state.tick,
                elapsed_ms=self._state.elapsed_ms,
                data={"score": self._state.score, "reason": reason}
            )
        ])
        self._on_finished()
        return True

    def _on_finished(self) -> None:
        if self._submitted:
            return
        self._submitted = True

        ledger = self._state.ledger
        logger.info(
            "Session finished: score=%d tokens=%d hits=%d reason=%s",
            ledger.score, ledger.tokens_collected, ledger.obstacles_hit, ledger.finish_reason
        )
        if self._reporter is None:
            return

        self._reporter.submit(ScoreReport(
            final_score=ledger.score,
            tokens_collected=ledger.tokens_collected,
            obstacles_hit=ledger.obstacles_hit,
            duration_ms=self._state.elapsed_ms,
            lives_remaining=ledger.lives,
            finish_reason=ledger.finish_reason
        ))

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        ledger = self._state.ledger
        return {
            "score": ledger.score,
            "lives": ledger.lives,
            "level": self._state.level,
            "tokens_collected": ledger.tokens_collected,
            "obstacles_hit": ledger.obstacles_hit,
            "obstacle_count": len(self._state.obstacles),
            "token_count": len(self._state.tokens),
            "pattern": self._state.pattern.kind.value,
            "elapsed_ms": self._state.elapsed_ms,
            "tick": self._state.tick,
            "phase": ledger.phase.value,
            "terminated_reason": ledger.finish_reason,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with board size, player box, entities and HUD values.
        """
        state = self._state
        return {
            "board_width": self._config.board.width,
            "board_height": self._config.board.height,
            "player": (state.player.x, state.player.y, state.player.width, state.player.height),
            "obstacles": [
                {"id": o.id, "x": o.x, "y": o.y, "width": o.width, "height": o.height, "type": o.type}
                for o in state.obstacles
            ],
            "tokens": [
                {"id": t.id, "x": t.x, "y": t.y, "width": t.width, "height": t.height}
                for t in state.tokens
            ],
            "score": state.score,
            "lives": state.lives,
            "level": state.level,
            "phase": state.phase.value,
        }
