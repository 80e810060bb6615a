"""
Tests for the difficulty curve.
"""

import pytest

from token_dodge.dodge_core.config_loader import load_config
from token_dodge.dodge_core.difficulty import DifficultyController


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def difficulty(config):
    return DifficultyController(config)


class TestLevels:
    """Elapsed time to level mapping."""

    def test_starts_at_one(self, difficulty):
        """A new controller starts at level 1."""
        assert difficulty.level == 1
        assert difficulty.level_for(0) == 1

    def test_level_after_45_seconds(self, difficulty):
        """1 + floor(45000 / 15000) = 4."""
        assert difficulty.level_for(45000) == 4
        assert difficulty.refresh(45000) == 4

    def test_boundary(self, difficulty):
        """Level changes exactly at 15 seconds."""
        assert difficulty.level_for(14999) == 1
        assert difficulty.level_for(15000) == 2

    def test_capped_at_ten(self, difficulty):
        """Level never exceeds 10."""
        assert difficulty.level_for(10 ** 9) == 10

    def test_never_decreases(self, difficulty):
        """Feeding an earlier time keeps the highest level reached."""
        assert difficulty.refresh(60000) == 5
        assert difficulty.refresh(0) == 5
        assert difficulty.level == 5

    def test_monotonic_over_time(self, difficulty):
        """Level stays in range and never drops as time passes."""
        previous = 0
        for t in range(0, 200000, 997):
            level = difficulty.refresh(t)
            assert 1 <= level <= 10
            assert level >= previous
            previous = level

    def test_restore_and_reset(self, difficulty):
        """Restore clamps to the cap and reset returns to 1."""
        difficulty.restore(7)
        assert difficulty.level == 7
        difficulty.restore(99)
        assert difficulty.level == 10
        difficulty.reset()
        assert difficulty.level == 1


class TestProfile:
    """Per-level spawn parameters."""

    def test_level_one(self, difficulty):
        """Level 1 uses the base chances and caps."""
        profile = difficulty.profile(1)

        assert profile.obstacle_chance == pytest.approx(0.011)
        assert profile.token_chance == pytest.approx(0.017)
        assert profile.max_obstacles == 9
        assert profile.max_tokens == 6
        assert profile.size_multiplier == pytest.approx(1.0)

    def test_harder_levels_spawn_more(self, difficulty):
        """Higher levels spawn more and narrow the corridor."""
        easy = difficulty.profile(1)
        hard = difficulty.profile(10)

        assert hard.obstacle_chance > easy.obstacle_chance
        assert hard.max_obstacles > easy.max_obstacles
        assert hard.max_tokens > easy.max_tokens
        assert hard.corridor_width < easy.corridor_width

    def test_scaled_size_capped(self, difficulty):
        """Scaled obstacle sizes stop at 90."""
        width, height = difficulty.scaled_size(65, 65, 10)
        assert width == 90
        assert height == 90

    def test_scaled_size_level_one_unchanged(self, difficulty):
        """Level 1 keeps base sizes."""
        assert difficulty.scaled_size(40, 55, 1) == (40, 55)
