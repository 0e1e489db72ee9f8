"""Tests for tick validation."""

import pytest

from boom_oracle.core.validation import InvalidTickError, parse_tick, validate_pattern_length


@pytest.mark.parametrize("value,expected", [(0, 0), (17, 17), ("42", 42), (" 8 ", 8), (3.0, 3), ("5.0", 5)])
def test_accepts_whole_non_negative(value, expected):
    assert parse_tick(value) == expected


@pytest.mark.parametrize("value", [-1, "-3", "abc", "", None, True, 2.5, "nan", float("inf"), [1]])
def test_rejects_invalid(value):
    with pytest.raises(InvalidTickError):
        parse_tick(value)


def test_invalid_tick_is_value_error():
    assert issubclass(InvalidTickError, ValueError)


def test_pattern_length_choices():
    assert validate_pattern_length(3, [2, 3, 4, 5]) == 3
    with pytest.raises(ValueError):
        validate_pattern_length(6, [2, 3, 4, 5])
