"""
Tests for the pure tick function.
"""

from dataclasses import replace

import pytest

from token_dodge.dodge_core.config_loader import load_config
from token_dodge.dodge_core.entities import Direction, Obstacle, Token
from token_dodge.dodge_core.events import EventKind
from token_dodge.dodge_core.geometry import overlaps
from token_dodge.dodge_core.rng import SpawnRng
from token_dodge.dodge_core.session import SessionPhase
from token_dodge.dodge_core.simulation import advance, finish_state, initial_state


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def playing(config):
    return initial_state(config, phase=SessionPhase.PLAYING)


def run(config, seed, ticks, dt_ms=100.0):
    """Run a long session and return every state along the way."""
    rng = SpawnRng(seed)
    state = initial_state(config, phase=SessionPhase.PLAYING)
    states = [state]
    for _ in range(ticks):
        state = advance(state, [], rng, dt_ms, config).state
        states.append(state)
        if not state.running:
            break
    return states


@pytest.fixture
def durable_config(config):
    return replace(config, session=replace(config.session, starting_lives=1000))


class TestInitialState:
    """Test the starting state."""

    def test_player_centered(self, config):
        """The player starts at the left, centred vertically."""
        state = initial_state(config)
        assert state.player.x == 50
        assert state.player.y == 175
        assert state.phase is SessionPhase.WAITING
        assert state.lives == 3
        assert state.level == 1


class TestAdvance:
    """Single-tick behavior."""

    def test_waiting_state_unchanged(self, config):
        """A waiting state is returned unchanged."""
        state = initial_state(config)
        outcome = advance(state, [Direction.UP], SpawnRng(1), 16.67, config)
        assert outcome.state is state
        assert outcome.events == ()

    def test_input_moves_player(self, config, playing):
        """Direction input moves the player."""
        outcome = advance(playing, [Direction.UP], SpawnRng(1), 16.67, config)
        assert outcome.state.player.y == 170
        assert outcome.state.player.x == 50

    def test_inputs_accept_strings(self, config, playing):
        """Direction names work as input."""
        outcome = advance(playing, ["right", "right"], SpawnRng(1), 16.67, config)
        assert outcome.state.player.x == 60

    def test_player_clamped_to_board(self, config, playing):
        """The player cannot leave the board."""
        state = replace(playing, player=replace(playing.player, y=2))
        outcome = advance(state, [Direction.UP], SpawnRng(1), 16.67, config)
        assert outcome.state.player.y == 0

    def test_time_and_tick_advance(self, config, playing):
        """Each tick adds dt and counts one tick."""
        state = advance(playing, [], SpawnRng(1), 16.67, config).state
        assert state.tick == 1
        assert state.elapsed_ms == pytest.approx(16.67)

    def test_negative_dt_ignored(self, config, playing):
        """Negative dt does not move time back."""
        state = advance(playing, [], SpawnRng(1), -50, config).state
        assert state.elapsed_ms == 0

    def test_entities_scroll(self, config, playing):
        """Entities scroll left each tick."""
        state = replace(
            playing,
            obstacles=(Obstacle(id=1, x=400, y=40, width=50, height=50, type="fud"),),
            tokens=(Token(id=2, x=500, y=300),),
            next_entity_id=3
        )
        outcome = advance(state, [], SpawnRng(1), 16.67, config)
        obstacle = next(o for o in outcome.state.obstacles if o.id == 1)
        token = next(t for t in outcome.state.tokens if t.id == 2)
        assert obstacle.x == 398
        assert token.x == 498

    def test_collect_event_carries_combo(self, config, playing):
        """Collect events carry combo count and pitch."""
        state = replace(
            playing,
            tokens=(Token(id=1, x=62, y=180), Token(id=2, x=62, y=190)),
            next_entity_id=3
        )
        outcome = advance(state, [], SpawnRng(1), 16.67, config)

        collects = [e for e in outcome.events if e.kind is EventKind.TOKEN_COLLECT]
        assert [e.data["combo"] for e in collects] == [1, 2]
        assert [e.data["pitch"] for e in collects] == pytest.approx([1.1, 1.2])
        assert outcome.state.score == 20
        assert outcome.state.combo.count == 2

    def test_last_hit_is_life_lost(self, config, playing):
        """The last hit emits life_lost and game_over."""
        state = replace(
            playing,
            ledger=replace(playing.ledger, lives=1),
            obstacles=(Obstacle(id=1, x=62, y=180, width=50, height=50, type="bear"),),
            next_entity_id=2
        )
        outcome = advance(state, [], SpawnRng(1), 16.67, config)

        kinds = [e.kind for e in outcome.events]
        assert kinds == [EventKind.LIFE_LOST, EventKind.GAME_OVER]
        assert outcome.state.phase is SessionPhase.FINISHED
        assert outcome.state.ledger.finish_reason == "out_of_lives"

    def test_non_final_hit_is_obstacle_hit(self, config, playing):
        """A hit with lives left emits obstacle_hit."""
        state = replace(
            playing,
            obstacles=(Obstacle(id=1, x=62, y=180, width=50, height=50, type="bear"),),
            next_entity_id=2
        )
        outcome = advance(state, [], SpawnRng(1), 16.67, config)
        assert [e.kind for e in outcome.events] == [EventKind.OBSTACLE_HIT]
        assert outcome.state.lives == 2

    def test_published_state_not_mutated(self, config, playing):
        """advance does not change its input state."""
        before = replace(playing)
        advance(playing, [Direction.DOWN], SpawnRng(1), 16.67, config)
        assert playing == before


class TestFinishState:
    """Test finishing a state."""

    def test_finish(self, config, playing):
        """Finishing records the reason."""
        finished = finish_state(playing, "stopped", config)
        assert finished.phase is SessionPhase.FINISHED
        assert finished.ledger.finish_reason == "stopped"

    def test_finish_twice_is_noop(self, config, playing):
        """Finishing a finished state returns it as is."""
        finished = finish_state(playing, "stopped", config)
        assert finish_state(finished, "other", config) is finished


class TestLongRun:
    """Invariants over a long seeded session."""

    def test_spacing_counters_and_difficulty(self, durable_config):
        """Spacing, scoring, level and caps hold over a long run."""
        solver_spacing = durable_config.placement
        states = run(durable_config, seed=7, ticks=2000)
        assert len(states) > 1000

        spawned_any = False
        for prev, curr in zip(states, states[1:]):
            old_obstacle_ids = {o.id for o in prev.obstacles}
            old_token_ids = {t.id for t in prev.tokens}
            new_obstacles = [o for o in curr.obstacles if o.id not in old_obstacle_ids]
            new_tokens = [t for t in curr.tokens if t.id not in old_token_ids]
            old_obstacles = [o for o in curr.obstacles if o.id in old_obstacle_ids]
            old_tokens = [t for t in curr.tokens if t.id in old_token_ids]
            spawned_any = spawned_any or bool(new_obstacles)

            for new in new_obstacles:
                margin = max(solver_spacing.obstacle_min_spacing, new.width / 2 + new.height / 2)
                for old in old_obstacles:
                    assert not overlaps(new, old, margin - 1e-6)

            for new in new_tokens:
                for obstacle in curr.obstacles:
                    assert not overlaps(new, obstacle, solver_spacing.token_obstacle_spacing - 1e-6)
                for old in old_tokens:
                    assert not overlaps(new, old, solver_spacing.token_token_spacing - 1e-6)

            assert curr.score - prev.score == 10 * (curr.ledger.tokens_collected - prev.ledger.tokens_collected)
            assert prev.level <= curr.level <= 10
            assert curr.lives <= prev.lives
            assert len(curr.obstacles) <= 8 + curr.level
            assert len(curr.tokens) <= 6 + curr.level // 2

        assert spawned_any
        assert states[-1].level == 10

    def test_same_seed_same_session(self, durable_config):
        """Same seed gives the same session."""
        first = run(durable_config, seed=11, ticks=600)
        second = run(durable_config, seed=11, ticks=600)
        assert first[-1] == second[-1]

    def test_different_seed_different_session(self, durable_config):
        """Different seeds give different sessions."""
        first = run(durable_config, seed=1, ticks=600)
        second = run(durable_config, seed=2, ticks=600)
        assert first[-1].obstacles != second[-1].obstacles
