"""Database layer (SQLAlchemy)."""

from boom_oracle.db.models import Base, PredictionHistory, Tick
from boom_oracle.db.session import init_db, make_engine, make_session_factory

__all__ = [
    "Base",
    "PredictionHistory",
    "Tick",
    "init_db",
    "make_engine",
    "make_session_factory",
]
