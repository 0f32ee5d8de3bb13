from __future__ import annotations

"""Session scoring: attempt counters, answered time, and summary formatting."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..app.explain import trace as xtrace
from ..drills.interval_comparison import RoundDescriptor
from ..policy.needs_practice import NeedsPracticeSource

# Answers slower than this are treated as the user having stepped away.
ELAPSED_OUTLIER_MS = 60_000


@dataclass
class ProgressCounters:
    correct_attempts: int = 0
    total_attempts: int = 0
    elapsed_seconds: int = 0
    sequences_answered: int = 0


def score_percent(correct: int, total: int) -> int:
    """Rounded percentage of correct answers; 100 before any attempt."""
    if total <= 0:
        return 100
    return int(round(100 * correct / total))


class ProgressTracker:
    """Accumulates the counters shown while a practice session runs."""

    def __init__(self, needs_practice: Optional[NeedsPracticeSource] = None) -> None:
        self.needs_practice = needs_practice
        self.counters = ProgressCounters()

    def reset(self) -> None:
        self.counters = ProgressCounters()

    def record_answer(self, selected_index: int, descriptor: RoundDescriptor, answer_latency_ms: float) -> bool:
        """Count one answer and return whether it was correct."""
        c = self.counters
        correct = descriptor.is_correct(selected_index)
        c.total_attempts += 1
        if correct:
            c.correct_attempts += 1
        c.sequences_answered += 1

        if answer_latency_ms > ELAPSED_OUTLIER_MS:
            xtrace("elapsed_discarded", {"latency_ms": int(answer_latency_ms)})
        else:
            c.elapsed_seconds += int(max(0.0, answer_latency_ms) // 1000)
        return correct

    @property
    def score_percent(self) -> int:
        return score_percent(self.counters.correct_attempts, self.counters.total_attempts)

    @property
    def avg_secs_per_answer(self) -> float:
        c = self.counters
        if c.sequences_answered <= 0:
            return 0.0
        return c.elapsed_seconds / c.sequences_answered

    @property
    def needs_practice_count(self) -> Optional[int]:
        return self.needs_practice.count() if self.needs_practice is not None else None

    @property
    def needs_practice_total(self) -> Optional[int]:
        return self.needs_practice.total() if self.needs_practice is not None else None

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view of the counters for display."""
        data: Dict[str, Any] = asdict(self.counters)
        data["score_percent"] = self.score_percent
        data["needs_practice_total"] = self.needs_practice_total
        return data


def format_summary(stats: Dict[str, Any]) -> str:
    """Return a human-readable summary of a counters snapshot."""
    total = int(stats.get("total_attempts", 0))
    correct = int(stats.get("correct_attempts", 0))
    lines = [
        f"Score: {score_percent(correct, total)}% ({correct}/{total} correct)",
        f"Answer time: {int(stats.get('elapsed_seconds', 0))}s",
    ]
    answered = int(stats.get("sequences_answered", 0))
    if answered:
        lines.append(f"Average: {int(stats.get('elapsed_seconds', 0)) / answered:.1f}s per answer")
    backlog = stats.get("needs_practice_total")
    if backlog is not None:
        lines.append(f"Needs practice: {backlog}")
    return "\n".join(lines)
