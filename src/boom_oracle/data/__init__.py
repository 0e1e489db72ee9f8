"""Tick and outcome storage."""

from boom_oracle.data.repository import SqlRepository
from boom_oracle.data.seed import DEFAULT_SEED_TICKS
from boom_oracle.data.store import MemoryStore, TickStore

__all__ = ["DEFAULT_SEED_TICKS", "MemoryStore", "SqlRepository", "TickStore"]
