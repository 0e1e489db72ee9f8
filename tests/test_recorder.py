"""Tests for the outcome recorder and history metrics."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from boom_oracle.core.types import NO_RANGE, Prediction, PredictionOutcome, RangeSummary
from boom_oracle.patterns.ranges import RangeClassifier
from boom_oracle.tracking.metrics import summarize
from boom_oracle.tracking.recorder import OutcomeRecorder

FIXED_TS = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def recorder():
    return OutcomeRecorder(clock=lambda: FIXED_TS)


@pytest.fixture
def prediction():
    return Prediction(
        pattern=(5, 5, 5),
        prediction=15,
        confidence=67,
        occurrences=2,
        next_values=(10, 20),
        range=RangeSummary(min=10, max=20, most_common=10),
    )


def _ranges(prediction):
    return RangeClassifier().predicted(prediction, threshold=50)


def test_exact_hit(recorder, prediction):
    outcome = recorder.record(prediction, (5, 5, 5), 15, _ranges(prediction))

    assert outcome.is_correct
    assert outcome.predicted_value == 15
    assert outcome.actual_value == 15
    assert outcome.pattern == "5,5,5"
    assert outcome.confidence == 67
    assert outcome.predicted_range == "Exact Match"
    assert outcome.timestamp == FIXED_TS


def test_miss_uses_narrowest_range(recorder, prediction):
    # sorted by probability the wider bins come first; narrowest still wins
    ranges = _ranges(prediction)
    assert ranges[0].name == "Extended (±5)"

    assert recorder.record(prediction, (5, 5, 5), 16, ranges).predicted_range == "Close (±1)"
    assert recorder.record(prediction, (5, 5, 5), 12, ranges).predicted_range == "Near (±3)"
    assert recorder.record(prediction, (5, 5, 5), 20, ranges).predicted_range == "Extended (±5)"


def test_outside_all_ranges(recorder, prediction):
    outcome = recorder.record(prediction, (5, 5, 5), 40, _ranges(prediction))
    assert not outcome.is_correct
    assert outcome.predicted_range == NO_RANGE


def test_outcome_is_immutable(recorder, prediction):
    outcome = recorder.record(prediction, (5, 5, 5), 15, _ranges(prediction))
    with pytest.raises(FrozenInstanceError):
        outcome.actual_value = 3


def test_to_dict(recorder, prediction):
    data = recorder.record(prediction, (5, 5, 5), 40, _ranges(prediction)).to_dict()
    assert data["predicted_range"] == "None"
    assert data["timestamp"] == "2024-01-01T12:00:00+00:00"


def _outcome(correct):
    return PredictionOutcome(
        predicted_value=3,
        actual_value=3 if correct else 4,
        is_correct=correct,
        pattern="1,2",
        confidence=100,
        predicted_range="Exact Match" if correct else "Close (±1)",
    )


def test_summarize():
    metrics = summarize([_outcome(True), _outcome(False), _outcome(False)])
    assert metrics.total == 3
    assert metrics.correct == 1
    assert metrics.success_rate == 33.3
    assert metrics.fail_rate == 66.7


def test_summarize_empty():
    metrics = summarize([])
    assert metrics.to_dict() == {"total": 0, "correct": 0, "success_rate": 0.0, "fail_rate": 0.0}
