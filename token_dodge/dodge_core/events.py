"""
Game Events
===========

Fire-and-forget notifications for telemetry and audio collaborators.

The step function only produces events; the game dispatches them after the
tick is published. A failing listener is logged and never reaches the
simulation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from token_dodge.dodge_core.config_loader import FeedbackConfig

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    GAME_START = "game_start"
    TOKEN_COLLECT = "token_collect"
    OBSTACLE_HIT = "obstacle_hit"
    LIFE_LOST = "life_lost"          # The hit that took the last life
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class GameEvent:
    """Something a listener may want to react to."""
    kind: EventKind
    tick: int
    elapsed_ms: float
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ComboState:
    """Consecutive-collect tracking for the collect sound pitch."""
    count: int = 0
    last_collect_ms: Optional[float] = None


def advance_combo(
    combo: ComboState,
    now_ms: float,
    feedback: FeedbackConfig
) -> Tuple[ComboState, float]:
    """
    Register one collection.

    The combo resets when more than ``combo_window_ms`` passed since the
    previous collection. Pitch rises by ``pitch_step`` per combo step and is
    capped at ``max_pitch``.

    Returns:
        (new combo state, playback pitch multiplier)
    """
    count = combo.count
    if combo.last_collect_ms is not None and now_ms - combo.last_collect_ms > feedback.combo_window_ms:
        count = 0
    count += 1
    pitch = min(1.0 + count * feedback.pitch_step, feedback.max_pitch)
    return replace(combo, count=count, last_collect_ms=now_ms), pitch


Listener = Callable[[GameEvent], None]


class EventDispatcher:
    """Delivers events to registered listeners."""

    def __init__(self, listeners: Iterable[Listener] = ()):
        self._listeners: List[Listener] = list(listeners)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, events: Iterable[GameEvent]) -> None:
        for event in events:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception:
                    logger.warning("Event listener failed on %s", event.kind.value, exc_info=True)
