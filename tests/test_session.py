"""Tests for the tick session append path."""

import asyncio
import threading

import pytest
from sqlalchemy.exc import OperationalError

from boom_oracle.core.types import PredictionStatus, TickSource
from boom_oracle.core.validation import InvalidTickError
from boom_oracle.data.seed import DEFAULT_SEED_TICKS
from boom_oracle.data.store import MemoryStore
from boom_oracle.session import TickSession

from conftest import make_session


class FailingStore(MemoryStore):
    """Store whose writes always fail."""

    def add_tick(self, user_id, value, source=TickSource.MANUAL):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    def add_history(self, user_id, outcome):
        raise OSError("read-only file system")


def test_qualifying_prediction_is_graded_once(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])
    assert session.analyze().status == PredictionStatus.OK

    result = session.append(3)

    assert result.outcome is not None
    assert result.outcome.is_correct
    assert result.outcome.predicted_value == 3
    assert result.outcome.pattern == "1,2"
    assert result.outcome.predicted_range == "Exact Match"
    assert result.persisted
    assert session.ticks == (1, 2, 3, 1, 2, 3)
    assert len(session.history) == 1
    assert len(store.list_history("default")) == 1


def test_miss_records_range(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2, 3])
    # trailing (2, 3) was followed by 1 once
    result = session.append(4)

    assert not result.outcome.is_correct
    assert result.outcome.predicted_value == 1
    assert result.outcome.predicted_range == "Near (±3)"


def test_no_outcome_without_prediction(config, store):
    session = make_session(config, store, [1, 2, 3])
    assert session.analyze().status == PredictionStatus.NONE

    result = session.append(9)
    assert result.outcome is None
    assert session.history == ()
    assert session.ticks == (1, 2, 3, 9)


def test_no_outcome_below_threshold(config, store):
    session = make_session(config, store, [5, 5, 5, 10, 5, 5, 5, 20, 5, 5, 5], pattern_length=3, threshold=70)
    analysis = session.analyze()
    assert analysis.status == PredictionStatus.BELOW_THRESHOLD
    assert analysis.prediction.confidence == 67
    assert analysis.predicted_ranges == ()

    assert session.append(20).outcome is None


def test_threshold_boundary_is_inclusive(config, store):
    session = make_session(config, store, [5, 5, 5, 10, 5, 5, 5, 20, 5, 5, 5], pattern_length=3, threshold=67)
    assert session.analyze().status == PredictionStatus.OK
    outcome = session.append(15).outcome
    assert outcome.is_correct
    assert outcome.confidence == 67


def test_invalid_tick_does_not_touch_sequence(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])
    with pytest.raises(InvalidTickError):
        session.append(-4)
    with pytest.raises(InvalidTickError):
        session.append("x")
    assert session.ticks == (1, 2, 3, 1, 2)
    assert session.history == ()


def test_persistence_failure_does_not_block_append(config):
    store = FailingStore()
    store._ticks["default"] = [1, 2, 3, 1, 2]
    session = TickSession(config, store)
    session.load()
    session.set_pattern_length(2)

    result = session.append(3)

    assert not result.tick_persisted
    assert not result.outcome_persisted
    assert not result.persisted
    assert session.ticks[-1] == 3
    assert len(session.history) == 1


def test_analysis_follows_appends(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])
    assert session.analyze().prediction.prediction == 3
    session.append(3)
    # cache must not serve the stale index
    analysis = session.analyze()
    assert analysis.window == (2, 3)
    assert analysis.prediction.prediction == 1


def test_seed_used_when_store_empty(config, store):
    config.storage.use_seed_when_empty = True
    session = TickSession(config, store)
    assert session.load() == len(DEFAULT_SEED_TICKS)
    assert session.initial_length == 100
    assert store.list_ticks("default") == []


def test_chart_series_marks_new_ticks(config, store):
    session = make_session(config, store, [4, 5])
    session.append(6)
    series = session.chart_series()
    assert [p["is_new"] for p in series] == [False, False, True]
    assert series[-1] == {"index": 3, "value": 6, "is_new": True}


def test_reset_clears_everything(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])
    session.append(3)
    session.reset()
    assert session.ticks == ()
    assert session.history == ()
    assert store.list_ticks("default") == []
    assert store.list_history("default") == []


def test_settings_validated(config, store):
    session = make_session(config, store, [1])
    with pytest.raises(ValueError):
        session.set_pattern_length(9)
    with pytest.raises(ValueError):
        session.set_confidence_threshold(101)


def test_analyze_overrides_do_not_change_active_settings(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])

    analysis = session.analyze(pattern_length=4, confidence_threshold=90)
    assert analysis.pattern_length == 4
    assert analysis.status == PredictionStatus.NONE

    assert session.pattern_length == 2
    assert session.confidence_threshold == 50.0
    assert session.append(3).outcome.is_correct


def test_analyze_rejects_bad_overrides(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])
    with pytest.raises(ValueError):
        session.analyze(pattern_length=0)
    with pytest.raises(ValueError):
        session.analyze(confidence_threshold=150)
    assert session.analyze().pattern_length == 2


def test_configure_is_all_or_nothing(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])
    with pytest.raises(ValueError):
        session.configure(pattern_length=5, confidence_threshold=150)
    assert session.pattern_length == 2
    assert session.confidence_threshold == 50.0

    session.configure(pattern_length=3, confidence_threshold=80)
    assert session.pattern_length == 3
    assert session.confidence_threshold == 80


class InterleavingStore(MemoryStore):
    """Starts a concurrent append while a delete is in progress."""

    def __init__(self):
        super().__init__()
        self.session = None
        self.appender = None

    def delete_ticks(self, user_id):
        deleted = super().delete_ticks(user_id)
        self.appender = threading.Thread(target=self.session.append, args=(7,))
        self.appender.start()
        self.appender.join(timeout=0.2)
        return deleted


def test_delete_ticks_keeps_store_and_memory_in_step(config):
    store = InterleavingStore()
    session = make_session(config, store, [1, 2, 3])
    store.session = session

    assert session.delete_ticks() == 3
    store.appender.join()

    assert list(session.ticks) == store.list_ticks("default") == [7]


def test_metrics(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])
    session.append(3)
    session.append(4)
    metrics = session.metrics()
    assert metrics.total == 2
    assert metrics.correct == 1
    assert metrics.success_rate == 50.0


@pytest.mark.asyncio
async def test_writer_serializes_submissions(config, store):
    session = make_session(config, store, [1, 2, 3, 1, 2])
    writer = asyncio.create_task(session.run_writer())
    await asyncio.sleep(0)

    results = await asyncio.gather(
        session.submit(3),
        session.submit(7, TickSource.FEED),
        session.submit("8"),
    )

    assert [r.value for r in results] == [3, 7, 8]
    assert results[1].source == TickSource.FEED
    assert session.ticks == (1, 2, 3, 1, 2, 3, 7, 8)
    assert results[0].outcome.is_correct

    with pytest.raises(InvalidTickError):
        await session.submit("bad")

    writer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await writer


@pytest.mark.asyncio
async def test_submit_without_writer(config, store):
    session = make_session(config, store, [1, 2])
    result = await session.submit(5)
    assert result.value == 5
    assert session.ticks == (1, 2, 5)


@pytest.mark.asyncio
async def test_stopping_writer_cancels_pending_submissions(config, store):
    session = make_session(config, store, [1, 2])
    writer = asyncio.create_task(session.run_writer())
    await asyncio.sleep(0)

    pending = [asyncio.create_task(session.submit(v)) for v in (3, 4, 5)]
    await asyncio.sleep(0)
    writer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await writer

    done, not_done = await asyncio.wait(pending, timeout=1)
    assert not not_done
    assert all(task.cancelled() for task in done)
