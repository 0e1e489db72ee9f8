"""SQL repository roundtrip against a temporary sqlite file."""

from datetime import datetime, timedelta, timezone

import pytest

from boom_oracle.core.types import PredictionOutcome, TickSource
from boom_oracle.data.repository import SqlRepository
from boom_oracle.db import init_db, make_engine, make_session_factory


@pytest.fixture
def repo(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'nested' / 'boom.db'}")
    init_db(engine)
    yield SqlRepository(make_session_factory(engine))
    engine.dispose()


def _outcome(actual, ts):
    return PredictionOutcome(
        predicted_value=3,
        actual_value=actual,
        is_correct=actual == 3,
        pattern="1,2",
        confidence=88,
        predicted_range="Exact Match" if actual == 3 else "None",
        timestamp=ts,
    )


def test_ticks_roundtrip(repo):
    for value in (13, 56, 4):
        repo.add_tick("alice", value)
    repo.add_tick("alice", 21, TickSource.FEED)
    repo.add_tick("bob", 99)

    assert repo.list_ticks("alice") == [13, 56, 4, 21]
    assert repo.list_ticks("bob") == [99]
    assert repo.list_ticks("carol") == []


def test_delete_ticks_is_per_owner(repo):
    repo.add_tick("alice", 1)
    repo.add_tick("alice", 2)
    repo.add_tick("bob", 3)

    assert repo.delete_ticks("alice") == 2
    assert repo.list_ticks("alice") == []
    assert repo.list_ticks("bob") == [3]


def test_history_newest_first(repo):
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    repo.add_history("alice", _outcome(3, base))
    repo.add_history("alice", _outcome(9, base + timedelta(minutes=1)))

    history = repo.list_history("alice")
    assert [o.actual_value for o in history] == [9, 3]
    assert history[1].is_correct
    assert history[1].timestamp == base
    assert history[0].predicted_range == "None"


def test_add_history_returns_stored_record(repo):
    ts = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
    saved = repo.add_history("alice", _outcome(3, ts))
    assert saved == _outcome(3, ts)


def test_delete_history(repo):
    now = datetime.now(timezone.utc)
    repo.add_history("alice", _outcome(3, now))
    assert repo.delete_history("alice") == 1
    assert repo.list_history("alice") == []
