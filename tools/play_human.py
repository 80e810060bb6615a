"""
Human Play Mode
================

Play Token Dodge interactively with the keyboard.

Controls:
    - Arrows / WASD: Move (hold to keep moving)
    - Space / R: Start or restart
    - ESC: Quit

Usage:
    python -m tools.play_human [--seed SEED] [--scores PATH] [--min-balance N]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

import pygame

from token_dodge.dodge_core.config_loader import GameConfig, load_config
from token_dodge.dodge_core.entities import Direction
from token_dodge.dodge_core.entry_gate import AlwaysOpen, BalanceGate
from token_dodge.dodge_core.events import EventKind, GameEvent
from token_dodge.dodge_core.game import DodgeGame
from token_dodge.dodge_core.render_pygame import PygameRenderer
from token_dodge.dodge_core.score_reporter import JsonFileScoreSink, ScoreReporter, SubmitResult

logger = logging.getLogger(__name__)

KEY_DIRECTIONS = {
    pygame.K_UP: Direction.UP,
    pygame.K_w: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_s: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_a: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_d: Direction.RIGHT,
}

# Key repeat while held (delay, interval) in ms
KEY_REPEAT = (120, 30)


class HumanPlayer:
    """
    Keyboard-driven game loop.

    The display refreshes at ``target_fps``; the game itself only ticks
    when its clock says a tick is due.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        scores_path: str = "scores.json",
        min_balance: Optional[float] = None,
        balance: float = 0.0,
        target_fps: int = 60
    ):
        if config is None:
            config = load_config()

        self._config = config
        self._seed = seed
        self._target_fps = target_fps

        self._sink = JsonFileScoreSink(scores_path)
        self._reporter = ScoreReporter(self._sink, config, on_result=self._on_submit)
        gate = BalanceGate(min_balance, lambda: balance) if min_balance is not None else AlwaysOpen()

        self._game = DodgeGame(
            config=config,
            seed=seed,
            entry_gate=gate,
            reporter=self._reporter,
            listeners=[self._on_event]
        )

        pygame.init()
        pygame.key.set_repeat(*KEY_REPEAT)
        self._clock = pygame.time.Clock()
        self._renderer = PygameRenderer(config)
        self._running = True

    def run(self) -> int:
        """Run the game loop. Returns final score."""
        print("=== Token Dodge ===")
        print("Arrows/WASD to move, SPACE to start, ESC to quit")
        print(f"High score: {self._sink.high_score}")
        print()

        while self._running:
            self._handle_events()
            self._game.frame(pygame.time.get_ticks())
            self._renderer.render_to_screen(self._game.state)
            pygame.display.flip()
            self._clock.tick(self._target_fps)

        self._game.stop("quit")
        self._reporter.flush(timeout=2.0)
        self._reporter.close()
        self._renderer.close()
        pygame.quit()
        return self._game.score

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key in (pygame.K_SPACE, pygame.K_r):
                    self._start()
                elif event.key in KEY_DIRECTIONS:
                    self._game.queue_input(KEY_DIRECTIONS[event.key])

    def _start(self) -> None:
        if self._game.running:
            return
        if not self._game.start():
            print("Entry refused: not enough tokens to play")
            return
        self._game.clock.reset(pygame.time.get_ticks())

    def _on_event(self, event: GameEvent) -> None:
        if event.kind is EventKind.LIFE_LOST or event.kind is EventKind.OBSTACLE_HIT:
            logger.debug("Hit %s at tick %d", event.data.get("type"), event.tick)
        elif event.kind is EventKind.GAME_OVER:
            print(f"Game over! Score: {event.data['score']}")

    def _on_submit(self, result: SubmitResult) -> None:
        if result.ok:
            print(f"Score saved. High score: {self._sink.high_score}")
        else:
            print(f"Score not saved: {result.error}")


def main():
    parser = argparse.ArgumentParser(description="Play Token Dodge interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--scores", type=str, default="scores.json", help="Score history file")
    parser.add_argument("--min-balance", type=float, default=None,
                        help="Require this token balance to play")
    parser.add_argument("--balance", type=float, default=0.0, help="Simulated holder balance")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    player = HumanPlayer(
        config=load_config(),
        seed=args.seed,
        scores_path=args.scores,
        min_balance=args.min_balance,
        balance=args.balance,
        target_fps=args.fps
    )
    score = player.run()
    print(f"\nFinal Score: {score}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
