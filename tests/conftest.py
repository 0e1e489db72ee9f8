"""Shared fixtures."""

import pytest

from boom_oracle.core.config import Config, FeedConfig, LoggingConfig, StorageConfig
from boom_oracle.data.store import MemoryStore
from boom_oracle.session import TickSession


@pytest.fixture
def config(tmp_path):
    """Config with no files written and no seed sequence."""
    cfg = Config.default()
    cfg.storage = StorageConfig(
        database_url=f"sqlite:///{tmp_path / 'boom.db'}",
        use_seed_when_empty=False,
    )
    cfg.logging = LoggingConfig(level="WARNING", structured=False, log_file=None, outcomes_file=None)
    cfg.feed = FeedConfig(enabled=False, interval_seconds=0.01, seed=7)
    return cfg


@pytest.fixture
def store():
    return MemoryStore()


def make_session(config, store, ticks, pattern_length=2, threshold=50.0):
    for tick in ticks:
        store.add_tick("default", tick)
    session = TickSession(config, store)
    session.load()
    session.set_pattern_length(pattern_length)
    session.set_confidence_threshold(threshold)
    return session
