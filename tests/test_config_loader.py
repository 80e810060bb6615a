"""
Tests for configuration loading and validation.
"""

from pathlib import Path

import yaml
import pytest

from token_dodge.dodge_core import config_loader
from token_dodge.dodge_core.config_loader import get_config, load_config, reload_config


@pytest.fixture
def raw_config():
    default_path = Path(config_loader.__file__).parent.parent / "game_config.yaml"
    with open(default_path) as f:
        return yaml.safe_load(f)


def write_config(tmp_path, raw):
    path = tmp_path / "game_config.yaml"
    path.write_text(yaml.safe_dump(raw))
    return str(path)


class TestLoadConfig:
    """Test loading the YAML config."""

    def test_defaults(self):
        """Default file should give the standard board and rules."""
        config = load_config()
        assert config.board.width == 800
        assert config.board.height == 400
        assert config.player.start_y(config.board.height) == 175
        assert config.tokens.value == 10
        assert config.session.starting_lives == 3
        assert config.patterns.kinds == ("random", "wave", "corridor", "cluster")
        assert config.fallback_type == "fud"

    def test_pattern_params(self):
        """Pattern entries expose cooldowns and extra parameters."""
        config = load_config()
        cluster = config.patterns.get("cluster")
        assert cluster.cooldown_ms == 1200
        assert cluster.param("lead_type") == "rug"
        assert cluster.param("missing", 7) == 7

    def test_obstacle_weights_by_level(self):
        """Obstacle weights switch at their level thresholds."""
        config = load_config()
        rug = config.get_obstacle_type("rug")
        paper = config.get_obstacle_type("paper")
        assert rug.weight_at(5) == 0.15
        assert rug.weight_at(6) == 0.30
        assert paper.weight_at(4) == 0.25
        assert paper.weight_at(5) == 0.15

    def test_unknown_obstacle_type(self):
        """Looking up an unknown type raises ValueError."""
        with pytest.raises(ValueError):
            load_config().get_obstacle_type("moon")

    def test_missing_file(self, tmp_path):
        """A missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_custom_file(self, tmp_path, raw_config):
        """Values from a custom file override the defaults."""
        raw_config["session"]["starting_lives"] = 5
        config = load_config(write_config(tmp_path, raw_config))
        assert config.session.starting_lives == 5


class TestValidation:
    """Test config validation errors."""
    @pytest.mark.parametrize("section, key, value", [
        ("timing", "tick_ms", 0),
        ("difficulty", "min_level", 20),
        ("session", "starting_lives", 0),
        ("placement", "token_attempts", 0),
        ("observation", "max_obstacles", 3),
        ("obstacles", "fallback_type", "moon"),
    ])
    def test_invalid_values(self, tmp_path, raw_config, section, key, value):
        """Out-of-range values are rejected."""
        raw_config[section][key] = value
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw_config))

    def test_unknown_pattern_kind(self, tmp_path, raw_config):
        """Unknown pattern kinds are rejected."""
        raw_config["patterns"]["kinds"] = ["random", "spiral"]
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw_config))

    def test_duplicate_obstacle_names(self, tmp_path, raw_config):
        """Obstacle type names must be unique."""
        raw_config["obstacles"]["types"].append(dict(raw_config["obstacles"]["types"][0]))
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw_config))


class TestSingleton:
    """Test the cached default config."""

    def test_get_config_cached(self):
        """get_config returns the same object each time."""
        assert get_config() is get_config()

    def test_reload(self, tmp_path, raw_config):
        """reload_config replaces the cached config."""
        raw_config["tokens"]["value"] = 25
        try:
            assert reload_config(write_config(tmp_path, raw_config)).tokens.value == 25
            assert get_config().tokens.value == 25
        finally:
            reload_config()
        assert get_config().tokens.value == 10
