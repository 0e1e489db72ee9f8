"""Tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from boom_oracle.core.config import Config, EngineConfig, FeedConfig, RangesConfig, load_config


def test_defaults():
    config = Config.default()
    assert config.engine.pattern_length == 3
    assert config.engine.confidence_threshold == 50.0
    assert [b.max for b in config.ranges.historical] == [5, 15, 30, 50, None]
    assert [o.offset for o in config.ranges.predicted] == [0, 1, 3, 5]
    assert config.feed.interval_seconds == 5.0


def test_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "engine": {"pattern_length": 4, "confidence_threshold": 70},
        "feed": {"enabled": False, "max_value": 50},
        "server": {"port": 9000},
    }))

    config = Config.from_yaml(path)
    assert config.engine.pattern_length == 4
    assert config.engine.confidence_threshold == 70
    assert config.feed.max_value == 50
    assert config.server.port == 9000
    assert config.storage.use_seed_when_empty


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "nope.yaml") == Config.default()


def test_repository_default_yaml_loads():
    config = load_config()
    assert config.engine.allowed_pattern_lengths == [2, 3, 4, 5]
    assert len(config.ranges.historical) == 5


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        EngineConfig(pattern_length=7)
    with pytest.raises(ValidationError):
        EngineConfig(confidence_threshold=120)
    with pytest.raises(ValidationError):
        RangesConfig(historical=[{"name": "bad", "min": 10, "max": 5}])
    with pytest.raises(ValidationError):
        FeedConfig(min_value=10, max_value=5)
