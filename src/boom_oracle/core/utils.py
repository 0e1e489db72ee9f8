"""Numeric helpers shared by the engine."""

import math
from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def percent(count: int, total: int) -> float:
    """count / total as a percentage with one decimal, halves going up."""
    if total <= 0:
        return 0.0
    exact = Decimal(count / total * 100)
    return float(exact.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
