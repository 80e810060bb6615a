"""
Tests for the game orchestrator: gating, input, clock, events, submission.
"""

import itertools
import logging
from dataclasses import replace

import pytest

from token_dodge.dodge_core.config_loader import load_config
from token_dodge.dodge_core.entities import Obstacle
from token_dodge.dodge_core.entry_gate import BalanceGate
from token_dodge.dodge_core.events import EventKind
from token_dodge.dodge_core.game import DodgeGame
from token_dodge.dodge_core.session import SessionPhase, SessionStateError


@pytest.fixture
def config():
    return load_config()


class FakeReporter:
    def __init__(self):
        self.reports = []

    def submit(self, report):
        self.reports.append(report)


def put_obstacle_on_player(game, lives=None):
    """Place an obstacle that will touch the player on the next tick."""
    state = game.state
    ledger = state.ledger if lives is None else replace(state.ledger, lives=lives)
    obstacle = Obstacle(id=999, x=62, y=180, width=50, height=50, type="rug")
    game._state = replace(state, ledger=ledger, obstacles=(obstacle,))


class TestEntryGate:
    """Test start gating."""

    def test_default_gate_admits(self, config):
        """Without a gate, start always succeeds."""
        game = DodgeGame(config=config, seed=1)
        assert game.start()
        assert game.phase is SessionPhase.PLAYING

    def test_refusing_callable(self, config):
        """A plain callable returning False blocks start."""
        game = DodgeGame(config=config, seed=1, entry_gate=lambda: False)
        assert not game.start()
        assert game.phase is SessionPhase.WAITING

    def test_balance_gate(self, config):
        """Balance gate decides start by balance."""
        poor = DodgeGame(config=config, entry_gate=BalanceGate(100, lambda: 50))
        rich = DodgeGame(config=config, entry_gate=BalanceGate(100, lambda: 150))
        assert not poor.start()
        assert rich.start()

    def test_gate_error_refuses(self, config):
        """A raising gate blocks start."""
        def broken():
            raise ConnectionError("wallet offline")

        game = DodgeGame(config=config, entry_gate=broken)
        assert not game.start()
        assert not game.running


class TestLifecycle:
    """Test start, step and stop."""

    def test_start_emits_game_start(self, config):
        """Start emits game_start with the seed."""
        events = []
        game = DodgeGame(config=config, seed=3, listeners=[events.append])
        game.start()
        assert [e.kind for e in events] == [EventKind.GAME_START]
        assert events[0].data["seed"] == 3

    def test_start_while_playing_raises(self, config):
        """Starting during play raises SessionStateError."""
        game = DodgeGame(config=config)
        game.start()
        with pytest.raises(SessionStateError):
            game.start()

    def test_step_while_waiting_is_noop(self, config):
        """Stepping before start leaves the state alone."""
        game = DodgeGame(config=config)
        result = game.step()
        assert result.state is game.state
        assert game.state.tick == 0

    def test_input_ignored_while_waiting(self, config):
        """Input before start is not queued."""
        game = DodgeGame(config=config)
        game.queue_input("up")
        assert game._pending_inputs == []

    def test_queued_inputs_consumed_once(self, config):
        """Queued inputs apply on the next tick only."""
        game = DodgeGame(config=config, seed=1)
        game.start()
        game.queue_input("up")
        game.queue_input("up")
        game.step()
        assert game.state.player.y == 165
        game.step()
        assert game.state.player.y == 165

    def test_stop_is_idempotent(self, config):
        """Stopping twice reports and emits game over once."""
        reporter = FakeReporter()
        events = []
        game = DodgeGame(config=config, reporter=reporter, listeners=[events.append])
        game.start()
        game.step()

        assert game.stop()
        assert not game.stop()
        assert game.is_over
        assert len(reporter.reports) == 1
        assert reporter.reports[0].finish_reason == "stopped"
        assert [e.kind for e in events].count(EventKind.GAME_OVER) == 1

    def test_restart_after_finish(self, config):
        """A finished game can start a new session."""
        reporter = FakeReporter()
        game = DodgeGame(config=config, reporter=reporter)
        game.start()
        game.stop()
        assert game.start()
        assert not game.submitted
        assert game.score == 0
        assert game.lives == 3
        game.stop()
        assert len(reporter.reports) == 2


class TestGameOver:
    """Test running out of lives."""

    def test_last_life_ends_session(self, config):
        """The last hit emits life_lost then game_over and reports once."""
        reporter = FakeReporter()
        events = []
        game = DodgeGame(config=config, seed=1, reporter=reporter, listeners=[events.append])
        game.start()
        put_obstacle_on_player(game, lives=1)

        result = game.step()

        kinds = [e.kind for e in result.events]
        assert kinds == [EventKind.LIFE_LOST, EventKind.GAME_OVER]
        assert result.finished
        assert game.is_over
        assert game.lives == 0
        assert len(reporter.reports) == 1
        assert reporter.reports[0].obstacles_hit == 1
        assert reporter.reports[0].finish_reason == "out_of_lives"

        # Nothing more happens once finished
        game.step()
        assert not game.stop()
        assert len(reporter.reports) == 1
        assert [e.kind for e in events].count(EventKind.GAME_OVER) == 1

    def test_hit_with_lives_left(self, config):
        """A hit with lives left emits obstacle_hit and play goes on."""
        game = DodgeGame(config=config, seed=1)
        game.start()
        put_obstacle_on_player(game)

        result = game.step()

        assert [e.kind for e in result.events] == [EventKind.OBSTACLE_HIT]
        assert game.lives == 2
        assert game.running


class TestClock:
    """Test frame-driven ticks."""

    def test_frames_gate_ticks(self, config):
        """Frames run a tick only once a tick interval has passed."""
        game = DodgeGame(config=config, seed=1)
        game.start()

        assert game.frame(0) is None
        assert game.frame(10) is None
        assert game.frame(17) is not None
        assert game.frame(20) is None
        assert game.frame(40) is not None

        assert game.state.tick == 2
        assert game.state.elapsed_ms == pytest.approx(40)
        assert game.clock.steps == 2
        assert game.clock.skipped == 3

    def test_long_gap_runs_single_step(self, config):
        """A long frame gap runs one tick without catch-up."""
        game = DodgeGame(config=config, seed=1)
        game.start()
        game.frame(0)
        game.frame(1000)
        assert game.state.tick == 1
        assert game.state.elapsed_ms == pytest.approx(1000)

    def test_frame_ignored_when_not_running(self, config):
        """Frames do nothing before start."""
        game = DodgeGame(config=config)
        assert game.frame(100) is None


class TestSafety:
    """Test slow-step and listener safety."""

    def test_slow_step_logs_warning(self, config, monkeypatch, caplog):
        """A step slower than the tick logs a warning."""
        counter = itertools.count(0.0, 1.0)
        monkeypatch.setattr(
            "token_dodge.dodge_core.game.time.perf_counter", lambda: next(counter)
        )
        game = DodgeGame(config=config, seed=1)
        game.start()

        with caplog.at_level(logging.WARNING, logger="token_dodge.dodge_core.game"):
            result = game.step()

        assert result.wall_ms == pytest.approx(1000.0)
        assert "Slow step" in caplog.text

    def test_slow_step_warning_can_be_disabled(self, config, monkeypatch, caplog):
        """The slow-step warning can be turned off in config."""
        config = replace(config, timing=replace(config.timing, slow_step_warning=False))
        counter = itertools.count(0.0, 1.0)
        monkeypatch.setattr(
            "token_dodge.dodge_core.game.time.perf_counter", lambda: next(counter)
        )
        game = DodgeGame(config=config, seed=1)
        game.start()

        with caplog.at_level(logging.WARNING, logger="token_dodge.dodge_core.game"):
            game.step()

        assert "Slow step" not in caplog.text

    def test_failing_listener_does_not_break_game(self, config, caplog):
        """A failing listener is logged and the game keeps running."""
        def broken(event):
            raise RuntimeError("audio device gone")

        received = []
        game = DodgeGame(config=config, seed=1, listeners=[broken, received.append])
        with caplog.at_level(logging.WARNING):
            assert game.start()
            game.step()

        assert game.running
        assert received[0].kind is EventKind.GAME_START
        assert "Event listener failed" in caplog.text


class TestInfo:
    """Test info and render data."""

    def test_info_keys(self, config):
        """Info reports score, lives, tick, phase and pattern."""
        game = DodgeGame(config=config, seed=1)
        game.start()
        game.step()
        info = game.get_info()
        assert info["score"] == 0
        assert info["lives"] == 3
        assert info["tick"] == 1
        assert info["phase"] == "playing"
        assert info["pattern"] == "random"

    def test_render_data(self, config):
        """Render data describes the board and player."""
        game = DodgeGame(config=config)
        data = game.get_render_data()
        assert data["board_width"] == 800
        assert data["player"] == (50, 175, 50, 50)
        assert data["phase"] == "waiting"
