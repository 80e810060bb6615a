"""
Score Reporter
==============

Hands a finished session's score to a score sink without blocking the
simulation.

Submissions go through a queue to a daemon worker thread. Failures are
logged and recorded as SubmitResult; they never propagate back into the
game loop.

Usage:
    from token_dodge.dodge_core import ScoreReporter, JsonFileScoreSink

    reporter = ScoreReporter(JsonFileScoreSink("scores.json"))
    reporter.submit(ScoreReport(final_score=120, ...))
    reporter.flush()
"""

from __future__ import annotations

import json
import logging
import queue
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

from token_dodge.dodge_core.config_loader import GameConfig, get_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreReport:
    """Final result of one session."""
    final_score: int
    tokens_collected: int
    obstacles_hit: int
    duration_ms: float
    lives_remaining: int = 0
    finish_reason: str = ""

    def details(self) -> Dict[str, Any]:
        """Payload details sent alongside the score."""
        return {
            "tokensCollected": self.tokens_collected,
            "obstaclesHit": self.obstacles_hit,
            "durationMs": int(self.duration_ms),
            "lives": self.lives_remaining,
            "finishReason": self.finish_reason,
        }


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of one submission."""
    ok: bool
    error: str = ""
    problems: Tuple[str, ...] = ()
    report: Optional[ScoreReport] = None


class ScoreSink(Protocol):
    # Sinks may set ``requires_validation = False`` to receive every session;
    # otherwise reports are checked against the submission limits first.
    def submit_score(self, final_score: int, details: Dict[str, Any]) -> Optional[bool]:
        ...


def validate_score_report(
    report: ScoreReport,
    config: Optional[GameConfig] = None
) -> List[str]:
    """
    Check a report against the submission limits.

    Args:
        report: Report to check.
        config: Game configuration. Uses default if None.

    Returns:
        List of problems; empty if the report is acceptable.
    """
    if config is None:
        config = get_config()
    limits = config.submission
    problems = []

    if report.final_score < 0:
        problems.append("score must be non-negative")
    if report.final_score > limits.max_score:
        problems.append(f"score exceeds maximum of {limits.max_score}")
    if report.duration_ms <= 0:
        problems.append("duration must be positive")
    elif report.duration_ms < limits.min_duration_ms:
        problems.append(f"session shorter than {limits.min_duration_ms} ms")
    if report.tokens_collected > report.final_score:
        problems.append("more tokens collected than points scored")
    if report.tokens_collected < 0 or report.obstacles_hit < 0:
        problems.append("counters must be non-negative")

    return problems


class ScoreReporter:
    """
    Fire-and-forget score submission on a background thread.

    Attributes:
        results: SubmitResult for every processed report, in order.
    """

    def __init__(
        self,
        sink: ScoreSink,
        config: Optional[GameConfig] = None,
        validate: Optional[bool] = None,
        on_result: Optional[Callable[[SubmitResult], None]] = None
    ):
        """
        Initialize reporter.

        Args:
            sink: Destination with a ``submit_score(final_score, details)``
                method. Returning False marks the submission as rejected.
            config: Game configuration. Uses default if None.
            validate: Check reports against submission limits before sending.
                If None, follows the sink's ``requires_validation`` flag
                (True when the sink does not declare one).
            on_result: Optional callback invoked (on the worker thread) with
                each SubmitResult, e.g. to show a notice to the player.
        """
        if config is None:
            config = get_config()
        if validate is None:
            validate = bool(getattr(sink, "requires_validation", True))

        self._sink = sink
        self._config = config
        self._validate = validate
        self._on_result = on_result
        self._queue: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self.results: List[SubmitResult] = []

    def submit(self, report: ScoreReport) -> None:
        """Queue a report. Returns immediately."""
        self._ensure_worker()
        self._queue.put(report)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every queued report has been processed.

        Returns:
            True if the queue drained, False if ``timeout`` expired first.
        """
        if self._thread is None:
            return True
        if timeout is None:
            self._queue.join()
            return True

        deadline = time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def close(self, timeout: float = 2.0) -> None:
        """Stop the worker after pending reports are processed."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._queue.put(None)
        thread.join(timeout=timeout)

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(target=self._run_loop, daemon=True)
            self._thread.start()

    def _run_loop(self) -> None:
        """Worker loop (runs in background thread)."""
        while True:
            report = self._queue.get()
            try:
                if report is None:
                    return
                result = self._process(report)
                self.results.append(result)
                if self._on_result is not None:
                    self._on_result(result)
            except Exception:
                logger.warning("Score result callback failed", exc_info=True)
            finally:
                self._queue.task_done()

    def _process(self, report: ScoreReport) -> SubmitResult:
        if self._validate:
            problems = validate_score_report(report, self._config)
            if problems:
                logger.warning("Score %d rejected: %s", report.final_score, "; ".join(problems))
                return SubmitResult(ok=False, error="invalid score", problems=tuple(problems), report=report)

        try:
            accepted = self._sink.submit_score(report.final_score, report.details())
        except Exception as e:
            logger.warning("Score submission failed: %s", e, exc_info=True)
            return SubmitResult(ok=False, error=str(e), report=report)

        if accepted is False:
            logger.warning("Score %d refused by sink", report.final_score)
            return SubmitResult(ok=False, error="refused by sink", report=report)

        logger.info("Score %d submitted", report.final_score)
        return SubmitResult(ok=True, report=report)


class JsonFileScoreSink:
    """
    Local score history kept in a JSON file.

    Every session is recorded, however short; submission limits apply only
    to leaderboard sinks. An unreadable file is treated as empty history.

    File layout:
        {"high_score": int, "history": [{"score": ..., "timestamp": ..., ...}]}
    """

    requires_validation = False

    def __init__(self, path: Union[str, Path], max_history: int = 100):
        self.path = Path(path)
        self.max_history = max_history
        self._lock = threading.Lock()

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"high_score": 0, "history": []}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable score history %s: %s", self.path, e)
            return {"high_score": 0, "history": []}
        if not isinstance(data, dict) or not isinstance(data.get("history", []), list):
            logger.warning("Ignoring malformed score history %s", self.path)
            return {"high_score": 0, "history": []}
        return data

    @property
    def high_score(self) -> int:
        return int(self.load().get("high_score", 0))

    def submit_score(self, final_score: int, details: Dict[str, Any]) -> bool:
        with self._lock:
            data = self.load()
            entry = {"score": final_score, "timestamp": datetime.now().isoformat(timespec="seconds")}
            entry.update(details)

            history = data.setdefault("history", [])
            history.append(entry)
            if len(history) > self.max_history:
                del history[:len(history) - self.max_history]
            data["high_score"] = max(int(data.get("high_score", 0)), final_score)

            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2)
        return True
