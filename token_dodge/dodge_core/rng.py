"""
RNG - Injectable Spawn Randomness
=================================

Every random decision in the engine (spawn rolls, pattern reselection,
obstacle type draws, placement jitter) goes through one SpawnRng so that a
seed reproduces a whole session.
"""

from __future__ import annotations

import random
from typing import Any, Optional, Sequence, TypeVar

T = TypeVar("T")


class SpawnRng:
    """
    Seeded random source for the spawning engine.

    Wraps ``random.Random`` with the handful of draws the engine needs.
    Pass the same seed to get the same spawn sequence.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize RNG.

        Args:
            seed: Random seed for reproducibility. Random if None.
        """
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        """Seed the generator was last reset with."""
        return self._seed

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return self._rng.random()

    def chance(self, probability: float) -> bool:
        """True with the given per-call probability."""
        return self._rng.random() < probability

    def uniform(self, lo: float, hi: float) -> float:
        """Uniform float between lo and hi."""
        return lo + self._rng.random() * (hi - lo)

    def centered(self, span: float) -> float:
        """Uniform offset in [-span/2, span/2)."""
        return (self._rng.random() - 0.5) * span

    def choice(self, items: Sequence[T]) -> T:
        """Uniformly pick one item."""
        return items[int(self._rng.random() * len(items))]

    def weighted_choice(
        self,
        items: Sequence[T],
        weights: Sequence[float],
        fallback: Optional[T] = None
    ) -> T:
        """
        Choose an item by cumulative-distribution sampling of one draw.

        Weights need not sum to 1. The draw is taken in [0, 1) and compared
        against the running total, so if the weights sum to less than 1 a
        high draw can run past every bucket; ``fallback`` is returned then
        (or the last item when no fallback is given).

        Args:
            items: Candidates, in sampling order.
            weights: Weight per candidate.
            fallback: Result when the draw exceeds the cumulative total.

        Returns:
            The chosen item.
        """
        if len(items) != len(weights):
            raise ValueError(f"Got {len(items)} items but {len(weights)} weights")
        r = self._rng.random()
        cumulative = 0.0
        for item, weight in zip(items, weights):
            cumulative += weight
            if r <= cumulative:
                return item
        return fallback if fallback is not None else items[-1]

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset the generator.

        Args:
            seed: New random seed. Keeps current if None.
        """
        if seed is not None:
            self._seed = seed
        self._rng = random.Random(self._seed)

    def get_state(self) -> Any:
        """Get generator state for checkpointing."""
        return self._rng.getstate()

    def set_state(self, state: Any) -> None:
        """Restore generator state."""
        self._rng.setstate(state)
