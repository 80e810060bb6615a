"""
Session Ledger
==============

Score, counters and lives for one playthrough, plus the
waiting -> playing -> finished state machine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from token_dodge.dodge_core.config_loader import GameConfig, get_config


class SessionPhase(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class SessionStateError(RuntimeError):
    """Operation not valid in the current session phase."""


class SessionClosedError(SessionStateError):
    """Ledger mutation attempted after the session finished."""


@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable view of the ledger after a tick."""
    score: int = 0
    tokens_collected: int = 0
    obstacles_hit: int = 0
    lives: int = 3
    phase: SessionPhase = SessionPhase.WAITING
    finish_reason: str = ""

    @property
    def running(self) -> bool:
        return self.phase is SessionPhase.PLAYING


class SessionLedger:
    """
    Mutable ledger used by the step function for one tick.

    Rules:
    - score only grows, by the token value, together with tokens_collected
    - lives never go below zero; reaching zero finishes the session
    - finished is terminal: mutations raise SessionClosedError, finish()
      is a no-op
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        snapshot: Optional[LedgerSnapshot] = None
    ):
        """
        Initialize ledger.

        Args:
            config: Game configuration. Uses default if None.
            snapshot: State to resume from. A fresh waiting ledger if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        if snapshot is None:
            snapshot = LedgerSnapshot(lives=config.session.starting_lives)

        self._score = snapshot.score
        self._tokens_collected = snapshot.tokens_collected
        self._obstacles_hit = snapshot.obstacles_hit
        self._lives = snapshot.lives
        self._phase = snapshot.phase
        self._finish_reason = snapshot.finish_reason

    @property
    def score(self) -> int:
        return self._score

    @property
    def tokens_collected(self) -> int:
        return self._tokens_collected

    @property
    def obstacles_hit(self) -> int:
        return self._obstacles_hit

    @property
    def lives(self) -> int:
        return self._lives

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def running(self) -> bool:
        return self._phase is SessionPhase.PLAYING

    @property
    def finish_reason(self) -> str:
        return self._finish_reason

    def start(self) -> None:
        """
        Begin a new session with fresh counters.

        Raises:
            SessionStateError: If a session is already playing.
        """
        if self._phase is SessionPhase.PLAYING:
            raise SessionStateError("Session already running")
        self._score = 0
        self._tokens_collected = 0
        self._obstacles_hit = 0
        self._lives = self._config.session.starting_lives
        self._phase = SessionPhase.PLAYING
        self._finish_reason = ""

    def _require_playing(self) -> None:
        if self._phase is SessionPhase.FINISHED:
            raise SessionClosedError("Session is finished; ledger is closed")
        if self._phase is not SessionPhase.PLAYING:
            raise SessionStateError(f"Session is {self._phase.value}, not playing")

    def record_token(self, value: int) -> None:
        """Credit one collected token worth ``value`` points."""
        self._require_playing()
        self._tokens_collected += 1
        self._score += value

    def record_hit(self, damage: int = 1) -> bool:
        """
        Apply one obstacle hit.

        Returns:
            True if this hit took the last life and finished the session.
        """
        self._require_playing()
        self._obstacles_hit += 1
        self._lives = max(0, self._lives - damage)
        if self._lives == 0:
            self._phase = SessionPhase.FINISHED
            self._finish_reason = "out_of_lives"
            return True
        return False

    def finish(self, reason: str = "stopped") -> bool:
        """
        End the session.

        Idempotent: finishing a finished session changes nothing.

        Returns:
            True if this call performed the transition.
        """
        if self._phase is SessionPhase.FINISHED:
            return False
        self._phase = SessionPhase.FINISHED
        self._finish_reason = reason
        return True

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            score=self._score,
            tokens_collected=self._tokens_collected,
            obstacles_hit=self._obstacles_hit,
            lives=self._lives,
            phase=self._phase,
            finish_reason=self._finish_reason
        )
