"""
Simulation Clock
================

Gates the step function to a fixed cadence, independent of how often the
host calls it (e.g. once per display refresh).
"""

from __future__ import annotations

from typing import Optional

from token_dodge.dodge_core.config_loader import GameConfig, get_config


class SimulationClock:
    """
    Fixed-tick gate.

    Call ``poll(now_ms)`` once per frame callback. It returns the time since
    the previous executed step when at least one tick has passed, else None
    (skip this callback). Missed time is not accumulated: however long the
    gap, at most one step runs per callback.
    """

    def __init__(self, config: Optional[GameConfig] = None, tick_ms: Optional[float] = None):
        """
        Initialize clock.

        Args:
            config: Game configuration. Uses default if None.
            tick_ms: Override the configured tick length.
        """
        if config is None:
            config = get_config()

        self._tick_ms = tick_ms if tick_ms is not None else config.timing.tick_ms
        self._last_step_ms: Optional[float] = None
        self._steps = 0
        self._skipped = 0

    @property
    def tick_ms(self) -> float:
        return self._tick_ms

    @property
    def steps(self) -> int:
        """Number of callbacks that produced a step."""
        return self._steps

    @property
    def skipped(self) -> int:
        """Number of callbacks skipped for arriving early."""
        return self._skipped

    def reset(self, now_ms: Optional[float] = None) -> None:
        """Restart timing; the next step is due one tick after ``now_ms``."""
        self._last_step_ms = now_ms
        self._steps = 0
        self._skipped = 0

    def poll(self, now_ms: float) -> Optional[float]:
        """
        Decide whether this frame callback runs a step.

        Args:
            now_ms: Monotonic time of the callback in milliseconds.

        Returns:
            Milliseconds since the last step if a step is due, else None.
        """
        if self._last_step_ms is None:
            # First callback only establishes the time base
            self._last_step_ms = now_ms
            self._skipped += 1
            return None

        delta = now_ms - self._last_step_ms
        if delta < self._tick_ms:
            self._skipped += 1
            return None

        self._last_step_ms = now_ms
        self._steps += 1
        return delta
