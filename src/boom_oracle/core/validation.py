"""Tick validation at the boundary of the engine."""

import math
from typing import Any


class InvalidTickError(ValueError):
    """Raised for a tick value that must not enter the sequence."""


def parse_tick(value: Any) -> int:
    """
    Convert user or feed input into a tick value.

    Accepts non-negative integers, integral floats and numeric strings.

    Raises:
        InvalidTickError: value is missing, non-numeric, fractional or negative
    """
    if value is None or isinstance(value, bool):
        raise InvalidTickError(f"Invalid tick value: {value!r}")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidTickError("Tick value is empty")
        try:
            number = float(text)
        except ValueError:
            raise InvalidTickError(f"Tick value is not a number: {value!r}") from None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise InvalidTickError(f"Invalid tick value: {value!r}")

    if math.isnan(number) or math.isinf(number):
        raise InvalidTickError(f"Tick value is not finite: {value!r}")
    if not number.is_integer():
        raise InvalidTickError(f"Tick value must be a whole number: {value!r}")
    if number < 0:
        raise InvalidTickError(f"Tick value must be non-negative: {value!r}")
    return int(number)


def validate_pattern_length(length: int, allowed: list[int]) -> int:
    """Check a requested pattern length against the configured choices."""
    if length not in allowed:
        raise ValueError(f"Pattern length must be one of {allowed}, got {length}")
    return length


def validate_threshold(threshold: float) -> float:
    """Check a confidence threshold percentage."""
    if not 0 <= threshold <= 100:
        raise ValueError(f"Confidence threshold must be within 0-100, got {threshold}")
    return threshold
