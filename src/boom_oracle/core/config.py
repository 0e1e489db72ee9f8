"""Configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator


class EngineConfig(BaseModel):
    """Pattern engine configuration."""
    pattern_length: int = 3
    allowed_pattern_lengths: list[int] = Field(default=[2, 3, 4, 5])
    confidence_threshold: float = Field(default=50.0, ge=0.0, le=100.0)
    cache_index: bool = True

    @model_validator(mode="after")
    def _check_pattern_length(self) -> "EngineConfig":
        if self.pattern_length not in self.allowed_pattern_lengths:
            raise ValueError(
                f"pattern_length {self.pattern_length} not in {self.allowed_pattern_lengths}"
            )
        return self


class BinConfig(BaseModel):
    """One historical range bin."""
    name: str
    min: int = Field(ge=0)
    max: Optional[int] = None

    @model_validator(mode="after")
    def _check_bounds(self) -> "BinConfig":
        if self.max is not None and self.max < self.min:
            raise ValueError(f"bin {self.name!r}: max < min")
        return self


class OffsetConfig(BaseModel):
    """One prediction-relative bin (p - offset .. p + offset)."""
    name: str
    offset: int = Field(ge=0)


class RangesConfig(BaseModel):
    """Range classifier configuration."""
    historical: list[BinConfig] = Field(default=[
        BinConfig(name="Very Low (0-5)", min=0, max=5),
        BinConfig(name="Low (6-15)", min=6, max=15),
        BinConfig(name="Medium (16-30)", min=16, max=30),
        BinConfig(name="High (31-50)", min=31, max=50),
        BinConfig(name="Very High (51+)", min=51, max=None),
    ])
    predicted: list[OffsetConfig] = Field(default=[
        OffsetConfig(name="Exact Match", offset=0),
        OffsetConfig(name="Close (±1)", offset=1),
        OffsetConfig(name="Near (±3)", offset=3),
        OffsetConfig(name="Extended (±5)", offset=5),
    ])


class FeedConfig(BaseModel):
    """Simulated live feed."""
    enabled: bool = True
    interval_seconds: float = Field(default=5.0, gt=0)
    min_value: int = Field(default=0, ge=0)
    max_value: int = 99
    seed: Optional[int] = None
    queue_size: int = 1000
    auto_append: bool = False

    @model_validator(mode="after")
    def _check_bounds(self) -> "FeedConfig":
        if self.max_value < self.min_value:
            raise ValueError("feed max_value < min_value")
        return self


class StorageConfig(BaseModel):
    """Persistence configuration."""
    database_url: str = "sqlite:///data/boom_oracle.db"
    use_seed_when_empty: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    structured: bool = True
    log_file: Optional[str] = "logs/boom_oracle.log"
    outcomes_file: Optional[str] = "logs/outcomes.jsonl"


class ServerConfig(BaseModel):
    """HTTP service configuration."""
    host: str = "0.0.0.0"
    port: int = 8000
    user_id: str = "default"


@dataclass
class Config:
    """Top-level configuration."""
    engine: EngineConfig = field(default_factory=EngineConfig)
    ranges: RangesConfig = field(default_factory=RangesConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        config = cls()
        if "engine" in data:
            config.engine = EngineConfig(**data["engine"])
        if "ranges" in data:
            config.ranges = RangesConfig(**data["ranges"])
        if "feed" in data:
            config.feed = FeedConfig(**data["feed"])
        if "storage" in data:
            config.storage = StorageConfig(**data["storage"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])
        if "server" in data:
            config.server = ServerConfig(**data["server"])

        return config

    @classmethod
    def default(cls) -> "Config":
        return cls()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from a file, or defaults if it does not exist."""
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent.parent / "config" / "default.yaml"

    if config_path.exists():
        return Config.from_yaml(config_path)
    else:
        return Config.default()
