"""In-memory tick and outcome store."""

from collections import defaultdict
from typing import DefaultDict, List, Protocol

from boom_oracle.core.types import PredictionOutcome, TickSource


class TickStore(Protocol):
    """Persistence used by TickSession and the HTTP service."""

    def list_ticks(self, user_id: str) -> List[int]: ...

    def add_tick(self, user_id: str, value: int, source: TickSource = TickSource.MANUAL) -> int: ...

    def delete_ticks(self, user_id: str) -> int: ...

    def list_history(self, user_id: str) -> List[PredictionOutcome]: ...

    def add_history(self, user_id: str, outcome: PredictionOutcome) -> PredictionOutcome: ...

    def delete_history(self, user_id: str) -> int: ...


class MemoryStore:
    """Process-local store, used by the CLI and tests."""

    def __init__(self):
        self._ticks: DefaultDict[str, List[int]] = defaultdict(list)
        self._history: DefaultDict[str, List[PredictionOutcome]] = defaultdict(list)

    def list_ticks(self, user_id: str) -> List[int]:
        """Ticks in arrival order."""
        return list(self._ticks.get(user_id, []))

    def add_tick(self, user_id: str, value: int, source: TickSource = TickSource.MANUAL) -> int:
        self._ticks[user_id].append(value)
        return value

    def delete_ticks(self, user_id: str) -> int:
        return len(self._ticks.pop(user_id, []))

    def list_history(self, user_id: str) -> List[PredictionOutcome]:
        """Outcomes, newest first."""
        return list(reversed(self._history.get(user_id, [])))

    def add_history(self, user_id: str, outcome: PredictionOutcome) -> PredictionOutcome:
        self._history[user_id].append(outcome)
        return outcome

    def delete_history(self, user_id: str) -> int:
        return len(self._history.pop(user_id, []))
