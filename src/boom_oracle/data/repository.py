"""SQL-backed tick and outcome repository."""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from boom_oracle.core.types import PredictionOutcome, TickSource
from boom_oracle.db.models import PredictionHistory, Tick


def _as_utc(ts: datetime) -> datetime:
    # sqlite drops tzinfo on the way back
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _row_to_outcome(row: PredictionHistory) -> PredictionOutcome:
    return PredictionOutcome(
        predicted_value=row.predicted_value,
        actual_value=row.actual_value,
        is_correct=bool(row.is_correct),
        pattern=row.pattern,
        confidence=row.confidence,
        predicted_range=row.predicted_range,
        timestamp=_as_utc(row.timestamp),
    )


class SqlRepository:
    """TickStore implementation over a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def list_ticks(self, user_id: str) -> List[int]:
        """Ticks in arrival order."""
        with self.session_factory() as session:
            stmt = (
                select(Tick.value)
                .where(Tick.user_id == user_id)
                .order_by(Tick.timestamp.asc(), Tick.id.asc())
            )
            return [int(v) for v in session.execute(stmt).scalars()]

    def add_tick(self, user_id: str, value: int, source: TickSource = TickSource.MANUAL) -> int:
        with self.session_factory() as session:
            row = Tick(
                user_id=user_id,
                value=value,
                source=TickSource(source).value,
                timestamp=datetime.now(timezone.utc),
            )
            session.add(row)
            session.commit()
            return int(row.value)

    def delete_ticks(self, user_id: str) -> int:
        with self.session_factory() as session:
            result = session.execute(delete(Tick).where(Tick.user_id == user_id))
            session.commit()
            return result.rowcount or 0

    def list_history(self, user_id: str) -> List[PredictionOutcome]:
        """Outcomes, newest first."""
        with self.session_factory() as session:
            stmt = (
                select(PredictionHistory)
                .where(PredictionHistory.user_id == user_id)
                .order_by(PredictionHistory.timestamp.desc(), PredictionHistory.id.desc())
            )
            return [_row_to_outcome(row) for row in session.execute(stmt).scalars()]

    def add_history(self, user_id: str, outcome: PredictionOutcome) -> PredictionOutcome:
        with self.session_factory() as session:
            row = PredictionHistory(
                user_id=user_id,
                predicted_value=outcome.predicted_value,
                actual_value=outcome.actual_value,
                is_correct=outcome.is_correct,
                pattern=outcome.pattern,
                confidence=outcome.confidence,
                predicted_range=outcome.predicted_range,
                timestamp=outcome.timestamp,
            )
            session.add(row)
            session.commit()
            return _row_to_outcome(row)

    def delete_history(self, user_id: str) -> int:
        with self.session_factory() as session:
            result = session.execute(delete(PredictionHistory).where(PredictionHistory.user_id == user_id))
            session.commit()
            return result.rowcount or 0
