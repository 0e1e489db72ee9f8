"""Next-value prediction from the pattern index."""

from collections import Counter
from typing import Optional, Sequence

from boom_oracle.core.types import PatternEntry, Prediction, RangeSummary
from boom_oracle.core.utils import round_half_up
from boom_oracle.patterns.index import PatternIndex, build_pattern_index, pattern_key


def most_common_value(values: Sequence[int]) -> int:
    """Most frequent value; ties go to the smallest value."""
    counts = Counter(values)
    return min(counts, key=lambda v: (-counts[v], v))


def prediction_from_entry(entry: PatternEntry) -> Prediction:
    """Turn an index entry into a Prediction."""
    return Prediction(
        pattern=entry.pattern,
        prediction=round_half_up(entry.avg_next),
        confidence=round_half_up(entry.confidence),
        occurrences=entry.count,
        next_values=entry.next_values,
        range=RangeSummary(
            min=min(entry.next_values),
            max=max(entry.next_values),
            most_common=most_common_value(entry.next_values),
        ),
    )


def current_window(sequence: Sequence[int], length: int) -> tuple[int, ...]:
    """Trailing ``length`` values, or () if the sequence is too short."""
    if length < 1 or len(sequence) < length:
        return ()
    return tuple(int(v) for v in sequence[-length:])


def predict(
    sequence: Sequence[int],
    length: int,
    index: Optional[PatternIndex] = None,
) -> Optional[Prediction]:
    """
    Predict the value following the trailing window of ``sequence``.

    Args:
        sequence: tick values
        length: pattern length
        index: index built from the same (sequence, length); built if omitted

    Returns:
        Prediction, or None when the sequence is shorter than ``length`` or
        its trailing window has never been followed by a value.
    """
    window = current_window(sequence, length)
    if not window:
        return None

    if index is None:
        index = build_pattern_index(sequence, length)

    entry = index.get(pattern_key(window))
    if entry is None or not entry.next_values:
        return None
    return prediction_from_entry(entry)
