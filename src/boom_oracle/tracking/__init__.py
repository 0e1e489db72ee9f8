"""Prediction outcome tracking."""

from boom_oracle.tracking.metrics import HistoryMetrics, summarize
from boom_oracle.tracking.recorder import OutcomeRecorder

__all__ = ["HistoryMetrics", "OutcomeRecorder", "summarize"]
