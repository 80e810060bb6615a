"""
Performance Benchmark
=====================

Measures simulation tick throughput against the real-time tick budget.

Usage:
    python -m tools.benchmark_speed [--steps S] [--quick]
"""

from __future__ import annotations

import argparse
import sys
import time

import numpy as np

from token_dodge.dodge_core.config_loader import load_config
from token_dodge.dodge_core.env_gym import ACTIONS, DodgeEnv
from token_dodge.dodge_core.game import DodgeGame


def _summary(mode: str, num_steps: int, elapsed: float) -> dict:
    return {
        "mode": mode,
        "num_steps": num_steps,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_game(num_steps: int = 1000, seed: int = 42) -> dict:
    """
    Benchmark raw DodgeGame ticks without Gym overhead.

    Args:
        num_steps: Number of ticks.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    config = load_config()
    game = DodgeGame(config=config, seed=seed)
    rng = np.random.default_rng(seed)

    game.start(seed=seed)
    start = time.perf_counter()

    for _ in range(num_steps):
        direction = ACTIONS[int(rng.integers(len(ACTIONS)))]
        result = game.step([direction] if direction is not None else [])
        if result.finished:
            game.start()

    elapsed = time.perf_counter() - start
    return _summary("dodge_game", num_steps, elapsed)


def benchmark_env(num_steps: int = 1000, seed: int = 42, image_obs: bool = False) -> dict:
    """
    Benchmark DodgeEnv steps.

    Args:
        num_steps: Number of steps.
        seed: Random seed.
        image_obs: Include rendered board images in observations.

    Returns:
        Dict with timing results.
    """
    env = DodgeEnv(image_obs=image_obs)
    rng = np.random.default_rng(seed)

    env.reset(seed=seed)
    start = time.perf_counter()

    for _ in range(num_steps):
        _, _, terminated, truncated, _ = env.step(int(rng.integers(len(ACTIONS))))
        if terminated or truncated:
            env.reset()

    elapsed = time.perf_counter() - start
    env.close()
    return _summary("env_image" if image_obs else "env", num_steps, elapsed)


def run_all_benchmarks(steps: int = 2000) -> list:
    """Run every benchmark and print a summary table."""
    tick_ms = load_config().timing.tick_ms
    results = [
        benchmark_game(num_steps=steps),
        benchmark_env(num_steps=steps),
        benchmark_env(num_steps=max(1, steps // 10), image_obs=True),
    ]

    print("=" * 60)
    print("TOKEN DODGE PERFORMANCE BENCHMARK")
    print("=" * 60)
    print()
    print(f"{'Mode':<20} {'Steps':>8} {'Steps/s':>12} {'ms/step':>10} {'budget':>8}")
    print("-" * 62)

    for r in results:
        headroom = "ok" if r["ms_per_step"] < tick_ms else "SLOW"
        print(
            f"{r['mode']:<20} {r['num_steps']:>8} {r['steps_per_second']:>12.1f} "
            f"{r['ms_per_step']:>10.3f} {headroom:>8}"
        )

    print()
    print(f"Tick budget: {tick_ms:.2f} ms")
    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark Token Dodge simulation speed")
    parser.add_argument("--steps", type=int, default=2000, help="Steps per benchmark")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer steps)")

    args = parser.parse_args()

    run_all_benchmarks(steps=200 if args.quick else args.steps)
    return 0


if __name__ == "__main__":
    sys.exit(main())
