"""SQLAlchemy models for ticks and prediction history."""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Tick(Base):
    """One observed tick value."""

    __tablename__ = "ticks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    value = Column(Integer, nullable=False)
    source = Column(String(16), nullable=False, default="manual")  # manual, feed
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_ticks_user_time", "user_id", "timestamp"),
    )


class PredictionHistory(Base):
    """
    Outcome of a prediction that cleared the confidence threshold.

    Rows are written once and never updated.
    """

    __tablename__ = "prediction_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    predicted_value = Column(Integer, nullable=False)
    actual_value = Column(Integer, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    pattern = Column(String(255), nullable=False)  # "5,5,20"
    confidence = Column(Integer, nullable=False)
    predicted_range = Column(String(64), nullable=False)  # bin name or "None"
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_history_user_time", "user_id", "timestamp"),
    )
