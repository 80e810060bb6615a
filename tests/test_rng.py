"""
Tests for the seeded spawn RNG.
"""

import pytest

from token_dodge.dodge_core.rng import SpawnRng


class TestSpawnRng:
    """Reproducibility and draw helpers."""

    def test_deterministic_with_seed(self):
        """Same seed should produce same sequence."""
        r1 = SpawnRng(42)
        r2 = SpawnRng(42)

        assert [r1.random() for _ in range(50)] == [r2.random() for _ in range(50)]

    def test_different_seeds_differ(self):
        """Different seeds should produce different sequences."""
        r1 = SpawnRng(42)
        r2 = SpawnRng(123)

        assert [r1.random() for _ in range(50)] != [r2.random() for _ in range(50)]

    def test_reset_replays(self):
        """Reset replays the sequence from the seed."""
        rng = SpawnRng(7)
        first = [rng.random() for _ in range(10)]
        rng.reset()
        assert [rng.random() for _ in range(10)] == first

    def test_state_roundtrip(self):
        """Restoring saved state replays the following draws."""
        rng = SpawnRng(7)
        rng.random()
        state = rng.get_state()
        expected = [rng.random() for _ in range(5)]
        rng.set_state(state)
        assert [rng.random() for _ in range(5)] == expected

    def test_centered_and_uniform_ranges(self):
        """Draw helpers stay in their ranges."""
        rng = SpawnRng(3)
        for _ in range(500):
            assert -50 <= rng.centered(100) < 50
            assert 35 <= rng.uniform(35, 345) < 345

    def test_choice_covers_all(self):
        """Choice eventually picks every item."""
        rng = SpawnRng(5)
        seen = {rng.choice(["a", "b", "c", "d"]) for _ in range(200)}
        assert seen == {"a", "b", "c", "d"}


class TestWeightedChoice:
    """Cumulative sampling with a fallback."""

    def test_fallback_when_weights_do_not_cover_draw(self):
        """Uncovered draws return the fallback."""
        rng = SpawnRng(1)
        for _ in range(50):
            assert rng.weighted_choice(["a", "b"], [0.0, 0.0], fallback="z") == "z"

    def test_last_item_without_fallback(self):
        """Without a fallback the last item is returned."""
        rng = SpawnRng(1)
        assert rng.weighted_choice(["a", "b"], [0.0, 0.0]) == "b"

    def test_full_weight(self):
        """A weight of 1 always wins."""
        rng = SpawnRng(1)
        for _ in range(50):
            assert rng.weighted_choice(["a", "b"], [1.0, 0.0], fallback="z") == "a"

    def test_length_mismatch(self):
        """Items and weights must have the same length."""
        with pytest.raises(ValueError):
            SpawnRng(1).weighted_choice(["a"], [0.5, 0.5])
