"""Pattern index: every window of the sequence and what followed it."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np

from boom_oracle.core.types import PatternEntry

PatternIndex = Mapping[str, PatternEntry]


def pattern_key(window: Iterable[int]) -> str:
    """Serialize a window as its lookup key ("5,5,20")."""
    return ",".join(str(int(v)) for v in window)


def entry_confidence(avg_next: float, std_dev: float) -> float:
    """
    Inverse coefficient of variation, clipped at 0.

    A zero mean uses 1 as the denominator. With non-negative ticks a zero
    mean implies zero spread, so such patterns always score 100.
    """
    denominator = 1.0 if avg_next == 0 else avg_next
    return max(0.0, 100.0 - (std_dev / denominator) * 100.0)


def _make_entry(pattern: tuple[int, ...], occurrences: list[int], next_values: list[int]) -> PatternEntry:
    avg_next = 0.0
    confidence = 0.0
    if next_values:
        values = np.asarray(next_values, dtype=np.float64)
        avg_next = float(values.mean())
        std_dev = float(np.sqrt(np.mean((values - avg_next) ** 2)))
        confidence = entry_confidence(avg_next, std_dev)
    return PatternEntry(
        pattern=pattern,
        occurrences=tuple(occurrences),
        next_values=tuple(next_values),
        avg_next=avg_next,
        confidence=confidence,
    )


def build_pattern_index(sequence: Sequence[int], length: int) -> PatternIndex:
    """
    Index every window of ``length`` values that has a successor.

    Args:
        sequence: tick values in arrival order
        length: pattern length L (>= 1)

    Returns:
        read-only mapping of pattern key -> PatternEntry, in discovery order.
        Empty when the sequence has no more than ``length`` values.
    """
    if length < 1:
        raise ValueError(f"pattern length must be positive, got {length}")

    values = [int(v) for v in sequence]
    windows: dict[str, tuple[tuple[int, ...], list[int], list[int]]] = {}

    for i in range(len(values) - length):
        window = tuple(values[i:i + length])
        key = pattern_key(window)
        if key not in windows:
            windows[key] = (window, [], [])
        _, occurrences, next_values = windows[key]
        occurrences.append(i)
        next_values.append(values[i + length])

    entries = {
        key: _make_entry(window, occurrences, next_values)
        for key, (window, occurrences, next_values) in windows.items()
    }
    return MappingProxyType(entries)


def top_patterns(index: PatternIndex, limit: int = 10) -> list[PatternEntry]:
    """Most frequent patterns first; ties keep discovery order."""
    return sorted(index.values(), key=lambda e: e.count, reverse=True)[:limit]


class PatternIndexCache:
    """
    Memo of the last built index keyed by (sequence length, pattern length).

    Valid only for an append-only sequence; call ``invalidate`` whenever the
    sequence changes in any other way, and on every append.
    """

    def __init__(self) -> None:
        self._key: Optional[tuple[int, int]] = None
        self._index: Optional[PatternIndex] = None
        self.hits = 0
        self.misses = 0

    def get(self, sequence: Sequence[int], length: int) -> PatternIndex:
        key = (len(sequence), length)
        if self._index is not None and self._key == key:
            self.hits += 1
            return self._index
        self.misses += 1
        self._index = build_pattern_index(sequence, length)
        self._key = key
        return self._index

    def invalidate(self) -> None:
        self._key = None
        self._index = None
