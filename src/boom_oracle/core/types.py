"""Core data types for the pattern engine."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


NO_RANGE = "None"


class PredictionStatus(str, Enum):
    """Availability of a prediction for the current window."""
    NONE = "none"  # too little data or the window was never seen
    BELOW_THRESHOLD = "below_threshold"
    OK = "ok"


class TickSource(str, Enum):
    """Where an appended tick came from."""
    MANUAL = "manual"
    FEED = "feed"


@dataclass(frozen=True)
class PatternEntry:
    """Aggregated outcomes for one distinct window of the sequence."""
    pattern: tuple[int, ...]
    occurrences: tuple[int, ...]  # start indices, ascending
    next_values: tuple[int, ...]  # parallel to occurrences
    avg_next: float
    confidence: float  # 0-100

    @property
    def count(self) -> int:
        return len(self.occurrences)

    @property
    def key(self) -> str:
        return ",".join(str(v) for v in self.pattern)


@dataclass(frozen=True)
class RangeSummary:
    """Spread of the values that followed a pattern."""
    min: int
    max: int
    most_common: int


@dataclass(frozen=True)
class Prediction:
    """Point estimate derived from one PatternEntry."""
    pattern: tuple[int, ...]
    prediction: int
    confidence: int
    occurrences: int
    next_values: tuple[int, ...]
    range: RangeSummary

    def to_dict(self) -> dict:
        """Serialize for the API."""
        return {
            "pattern": list(self.pattern),
            "prediction": self.prediction,
            "confidence": self.confidence,
            "occurrences": self.occurrences,
            "next_values": list(self.next_values),
            "range": {
                "min": self.range.min,
                "max": self.range.max,
                "most_common": self.range.most_common,
            },
        }


@dataclass(frozen=True)
class RangeBin:
    """One named bin of a range classification pass."""
    name: str
    min: int
    max: Optional[int]  # None = unbounded
    count: int = 0
    probability: float = 0.0  # 0-100, one decimal
    recommended: bool = False

    def contains(self, value: int) -> bool:
        if value < self.min:
            return False
        return self.max is None or value <= self.max

    @property
    def width(self) -> float:
        if self.max is None:
            return float("inf")
        return self.max - self.min

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "min": self.min,
            "max": self.max,
            "count": self.count,
            "probability": self.probability,
            "recommended": self.recommended,
        }


@dataclass(frozen=True)
class PredictionOutcome:
    """Immutable record of how a prediction compared to the next tick."""
    predicted_value: int
    actual_value: int
    is_correct: bool
    pattern: str  # comma-joined window
    confidence: int
    predicted_range: str  # bin name or NO_RANGE
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        """Serialize for storage and the API."""
        return {
            "predicted_value": self.predicted_value,
            "actual_value": self.actual_value,
            "is_correct": self.is_correct,
            "pattern": self.pattern,
            "confidence": self.confidence,
            "predicted_range": self.predicted_range,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class Analysis:
    """Everything the engine derives from one snapshot of the sequence."""
    length: int
    pattern_length: int
    confidence_threshold: float
    window: tuple[int, ...]
    prediction: Optional[Prediction]
    status: PredictionStatus
    historical_ranges: tuple[RangeBin, ...]
    predicted_ranges: tuple[RangeBin, ...]

    @property
    def qualifies(self) -> bool:
        """True when the prediction cleared the threshold."""
        return self.status == PredictionStatus.OK
