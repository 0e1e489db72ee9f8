"""Hit-rate summary over stored outcomes."""

from dataclasses import dataclass
from typing import Iterable

from boom_oracle.core.types import PredictionOutcome
from boom_oracle.core.utils import percent


@dataclass(frozen=True)
class HistoryMetrics:
    total: int
    correct: int
    success_rate: float
    fail_rate: float

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "correct": self.correct,
            "success_rate": self.success_rate,
            "fail_rate": self.fail_rate,
        }


def summarize(outcomes: Iterable[PredictionOutcome]) -> HistoryMetrics:
    """Count outcomes and the share that hit exactly."""
    total = 0
    correct = 0
    for outcome in outcomes:
        total += 1
        if outcome.is_correct:
            correct += 1
    return HistoryMetrics(
        total=total,
        correct=correct,
        success_rate=percent(correct, total),
        fail_rate=percent(total - correct, total),
    )
