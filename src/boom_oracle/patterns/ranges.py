"""Range classifier: empirical probability per value bin."""

from typing import Optional, Sequence

from boom_oracle.core.config import RangesConfig
from boom_oracle.core.types import NO_RANGE, Prediction, RangeBin
from boom_oracle.core.utils import percent


class RangeClassifier:
    """Bins tick values and reports how often each bin was hit."""

    def __init__(self, config: Optional[RangesConfig] = None):
        """
        Args:
            config: bin layout; defaults to the five historical bins and the
                four prediction-relative bins
        """
        self.config = config or RangesConfig()

    def historical_bins(self) -> list[RangeBin]:
        """Empty fixed bins over the raw tick domain."""
        return [RangeBin(name=b.name, min=b.min, max=b.max) for b in self.config.historical]

    def predicted_bins(self, predicted_value: int) -> list[RangeBin]:
        """Empty bins centred on a predicted value, lower bounds clamped at 0."""
        return [
            RangeBin(
                name=o.name,
                min=max(0, predicted_value - o.offset),
                max=predicted_value + o.offset,
            )
            for o in self.config.predicted
        ]

    def historical(self, sequence: Sequence[int], threshold: float) -> list[RangeBin]:
        """
        Probability of each historical bin over the whole sequence.

        Returns:
            bins sorted by probability, highest first
        """
        return self._classify(self.historical_bins(), sequence, threshold)

    def predicted(self, prediction: Optional[Prediction], threshold: float) -> list[RangeBin]:
        """
        Probability of each prediction-relative bin over the outcomes that
        followed the pattern. The bins are nested, so one outcome can count
        towards several of them.

        Returns:
            bins sorted by probability, highest first; empty when there is
            no prediction or its confidence is below ``threshold``
        """
        if prediction is None or prediction.confidence < threshold:
            return []
        bins = self.predicted_bins(prediction.prediction)
        return self._classify(bins, prediction.next_values, threshold)

    @staticmethod
    def _classify(bins: list[RangeBin], values: Sequence[int], threshold: float) -> list[RangeBin]:
        total = len(values)
        counted = []
        for b in bins:
            count = sum(1 for v in values if b.contains(v))
            probability = percent(count, total)
            counted.append(RangeBin(
                name=b.name,
                min=b.min,
                max=b.max,
                count=count,
                probability=probability,
                recommended=probability >= threshold,
            ))
        # sorted() is stable: equal probabilities keep definition order
        return sorted(counted, key=lambda b: b.probability, reverse=True)


def narrowest_matching(bins: Sequence[RangeBin], value: int) -> str:
    """Name of the narrowest bin containing ``value``, or NO_RANGE."""
    best: Optional[RangeBin] = None
    for b in bins:
        if b.contains(value) and (best is None or b.width < best.width):
            best = b
    return best.name if best is not None else NO_RANGE
