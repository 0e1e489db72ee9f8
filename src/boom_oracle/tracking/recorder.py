"""Outcome recorder: grades the previous prediction against the new tick."""

from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from boom_oracle.core.types import Analysis, Prediction, PredictionOutcome, RangeBin
from boom_oracle.patterns.index import pattern_key
from boom_oracle.patterns.ranges import narrowest_matching


class OutcomeRecorder:
    """Builds PredictionOutcome records for qualifying predictions."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            clock: timestamp source, UTC now by default
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def record(
        self,
        prediction: Prediction,
        window: Sequence[int],
        actual: int,
        predicted_ranges: Sequence[RangeBin],
    ) -> PredictionOutcome:
        """
        Grade ``prediction`` against the observed value.

        Args:
            prediction: prediction made before ``actual`` was appended
            window: trailing window the prediction was computed from
            actual: newly observed tick
            predicted_ranges: prediction-relative bins of that prediction

        Returns:
            immutable outcome; ``predicted_range`` is the narrowest bin that
            contains ``actual`` or "None"
        """
        return PredictionOutcome(
            predicted_value=prediction.prediction,
            actual_value=actual,
            is_correct=actual == prediction.prediction,
            pattern=pattern_key(window),
            confidence=prediction.confidence,
            predicted_range=narrowest_matching(predicted_ranges, actual),
            timestamp=self._clock(),
        )

    def record_from_analysis(self, analysis: Analysis, actual: int) -> Optional[PredictionOutcome]:
        """Record against a pre-append snapshot, if its prediction qualified."""
        if not analysis.qualifies or analysis.prediction is None:
            return None
        return self.record(
            prediction=analysis.prediction,
            window=analysis.window,
            actual=actual,
            predicted_ranges=analysis.predicted_ranges,
        )
