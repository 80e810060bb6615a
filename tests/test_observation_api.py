"""
Test suite for the observation snapshot.

Ensures snapshots are correctly shaped, typed, ordered and padded.
"""

from dataclasses import replace

import numpy as np
import pytest

from token_dodge.dodge_core.config_loader import load_config
from token_dodge.dodge_core.entities import Obstacle, Token
from token_dodge.dodge_core.patterns import PatternKind, PatternState
from token_dodge.dodge_core.session import SessionPhase
from token_dodge.dodge_core.simulation import initial_state
from token_dodge.dodge_core.state_snapshot import PATTERN_IDS, SnapshotBuilder


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def builder(config):
    return SnapshotBuilder(config)


@pytest.fixture
def state(config):
    state = initial_state(config, phase=SessionPhase.PLAYING)
    return replace(
        state,
        obstacles=(
            Obstacle(id=1, x=600, y=100, width=50, height=50, type="fud"),
            Obstacle(id=2, x=20, y=300, width=65, height=65, type="rug"),
            Obstacle(id=3, x=300, y=250, width=55, height=40, type="scam"),
        ),
        tokens=(Token(id=4, x=700, y=60), Token(id=5, x=200, y=120)),
        pattern=PatternState(kind=PatternKind.CORRIDOR),
        next_entity_id=6
    )


class TestSnapshot:
    """Verify snapshot contents."""

    def test_array_shapes(self, builder, state):
        """Entity arrays have fixed length and dtype."""
        obs = builder.build(state).to_obs_dict()
        assert obs["obstacle_x"].shape == (builder.max_obstacles,)
        assert obs["obstacle_type_id"].dtype == np.int16
        assert obs["token_mask"].shape == (builder.max_tokens,)
        assert obs["token_mask"].dtype == bool

    def test_scalars(self, builder, state):
        """Scalar fields are 0-d arrays with the right values."""
        obs = builder.build(state).to_obs_dict()
        assert obs["player_x"].dtype == np.float32
        assert obs["player_x"].shape == ()
        assert obs["score"].dtype == np.int64
        assert int(obs["lives"]) == 3
        assert int(obs["obstacle_count"]) == 3
        assert int(obs["token_count"]) == 2
        assert int(obs["pattern_id"]) == PATTERN_IDS[PatternKind.CORRIDOR]

    def test_entities_sorted_by_x(self, builder, state):
        """Entities are ordered left to right."""
        snap = builder.build(state)
        assert list(snap.obstacle_x[:3]) == [20, 300, 600]
        assert list(snap.token_x[:2]) == [200, 700]

    def test_type_ids_and_padding(self, config, builder, state):
        """Type ids follow config order and empty slots are padded."""
        snap = builder.build(state)
        names = config.obstacle_type_names
        assert snap.obstacle_type_id[0] == names.index("rug")
        assert snap.obstacle_type_id[1] == names.index("scam")
        assert snap.obstacle_type_id[2] == names.index("fud")
        assert np.all(snap.obstacle_type_id[3:] == -1)
        assert snap.obstacle_mask.sum() == 3
        assert not snap.obstacle_mask[3:].any()
        assert snap.token_mask.sum() == 2

    def test_nearest_ahead_skips_entities_behind(self, builder, state):
        """Nearest entity offsets ignore entities behind the player."""
        snap = builder.build(state)
        # Player center is (75, 200); the rug at x=20 is behind it
        assert snap.nearest_obstacle_dx == pytest.approx(327.5 - 75)
        assert snap.nearest_obstacle_dy == pytest.approx(270 - 200)
        assert snap.nearest_token_dx == pytest.approx(220 - 75)
        assert snap.nearest_token_dy == pytest.approx(140 - 200)

    def test_empty_field_defaults(self, config, builder):
        """An empty board reports a board-width distance."""
        snap = builder.build(initial_state(config))
        assert snap.nearest_obstacle_dx == config.board.width
        assert snap.nearest_obstacle_dy == 0.0
        assert not snap.obstacle_mask.any()

    def test_snapshots_do_not_share_buffers(self, config, builder, state):
        """A later snapshot does not overwrite an earlier one."""
        first = builder.build(state)
        builder.build(initial_state(config))
        assert first.obstacle_mask.sum() == 3

    def test_board_rgb_passthrough(self, builder, state):
        """The board image is included only when given."""
        image = np.zeros((4, 8, 3), dtype=np.uint8)
        obs = builder.build(state, board_rgb=image).to_obs_dict()
        assert obs["board_rgb"] is image
        assert "board_rgb" not in builder.build(state).to_obs_dict()
