"""Tick session: the single writer of one owner's tick sequence."""

import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from boom_oracle.core.config import Config
from boom_oracle.core.log import OutcomeLog, get_logger
from boom_oracle.core.types import Analysis, PredictionOutcome, PredictionStatus, TickSource
from boom_oracle.core.validation import parse_tick, validate_pattern_length, validate_threshold
from boom_oracle.data.seed import DEFAULT_SEED_TICKS
from boom_oracle.data.store import TickStore
from boom_oracle.patterns.index import PatternIndex, PatternIndexCache, build_pattern_index
from boom_oracle.patterns.predictor import current_window, predict
from boom_oracle.patterns.ranges import RangeClassifier
from boom_oracle.tracking.metrics import HistoryMetrics, summarize
from boom_oracle.tracking.recorder import OutcomeRecorder

logger = get_logger(__name__)

PERSISTENCE_ERRORS = (SQLAlchemyError, OSError)


@dataclass(frozen=True)
class AppendResult:
    """What happened when a tick was appended."""
    value: int
    source: TickSource
    outcome: Optional[PredictionOutcome]
    tick_persisted: bool
    outcome_persisted: bool

    @property
    def persisted(self) -> bool:
        return self.tick_persisted and (self.outcome is None or self.outcome_persisted)


class TickSession:
    """
    Owns the in-memory sequence and prediction history for one user.

    Every tick, manual or from the feed, goes through ``append`` (directly
    or via the ``submit`` queue), so each new value is graded against the
    prediction made just before it exactly once.
    """

    def __init__(
        self,
        config: Config,
        store: TickStore,
        user_id: str = "default",
        recorder: Optional[OutcomeRecorder] = None,
        outcome_log: Optional[OutcomeLog] = None,
    ):
        self.config = config
        self.store = store
        self.user_id = user_id
        self.recorder = recorder or OutcomeRecorder()
        self.outcome_log = outcome_log
        self.classifier = RangeClassifier(config.ranges)

        self.pattern_length = config.engine.pattern_length
        self.confidence_threshold = config.engine.confidence_threshold

        self._ticks: List[int] = []
        self._history: List[PredictionOutcome] = []
        self._initial_length = 0
        self._cache = PatternIndexCache()
        self._lock = threading.RLock()
        self._queue: Optional[asyncio.Queue] = None

    @classmethod
    def from_config(cls, config: Config, store: TickStore, user_id: Optional[str] = None) -> "TickSession":
        outcome_log = None
        if config.logging.outcomes_file:
            outcome_log = OutcomeLog(Path(config.logging.outcomes_file))
        return cls(config, store, user_id=user_id or config.server.user_id, outcome_log=outcome_log)

    # ------------------------------------------------------------------ state

    def load(self) -> int:
        """
        Load ticks and history from the store.

        When the store holds no ticks the default seed sequence is used
        (in memory only) if ``storage.use_seed_when_empty`` is set.
        """
        ticks = self.store.list_ticks(self.user_id)
        history = self.store.list_history(self.user_id)
        with self._lock:
            if not ticks and self.config.storage.use_seed_when_empty:
                ticks = list(DEFAULT_SEED_TICKS)
            self._ticks = list(ticks)
            self._history = list(history)
            self._initial_length = len(self._ticks)
            self._cache.invalidate()
        logger.info(f"Session loaded: {len(self._ticks)} ticks, {len(self._history)} outcomes")
        return len(self._ticks)

    @property
    def ticks(self) -> tuple[int, ...]:
        """Snapshot of the current sequence."""
        with self._lock:
            return tuple(self._ticks)

    @property
    def history(self) -> tuple[PredictionOutcome, ...]:
        """Outcomes, newest first."""
        with self._lock:
            return tuple(self._history)

    @property
    def initial_length(self) -> int:
        return self._initial_length

    def set_pattern_length(self, length: int) -> None:
        self.pattern_length = validate_pattern_length(length, self.config.engine.allowed_pattern_lengths)

    def set_confidence_threshold(self, threshold: float) -> None:
        self.confidence_threshold = validate_threshold(threshold)

    def configure(
        self,
        pattern_length: Optional[int] = None,
        confidence_threshold: Optional[float] = None,
    ) -> None:
        """Change the active settings; nothing is applied unless both are valid."""
        allowed = self.config.engine.allowed_pattern_lengths
        length = self.pattern_length if pattern_length is None else validate_pattern_length(pattern_length, allowed)
        threshold = (
            self.confidence_threshold if confidence_threshold is None else validate_threshold(confidence_threshold)
        )
        with self._lock:
            self.pattern_length = length
            self.confidence_threshold = threshold
        logger.info(f"Settings changed: pattern_length={length} confidence_threshold={threshold}")

    # --------------------------------------------------------------- analysis

    def index(self, pattern_length: Optional[int] = None) -> PatternIndex:
        length = self.pattern_length if pattern_length is None else pattern_length
        with self._lock:
            if self.config.engine.cache_index:
                return self._cache.get(self._ticks, length)
            return build_pattern_index(self._ticks, length)

    def analyze(
        self,
        pattern_length: Optional[int] = None,
        confidence_threshold: Optional[float] = None,
    ) -> Analysis:
        """
        Run the engine over a snapshot of the current sequence.

        Explicit arguments apply to this call only; the active settings used
        to grade the next append are left unchanged.

        Raises:
            ValueError: an explicit pattern length or threshold is out of range
        """
        allowed = self.config.engine.allowed_pattern_lengths
        if pattern_length is not None:
            validate_pattern_length(pattern_length, allowed)
        if confidence_threshold is not None:
            validate_threshold(confidence_threshold)

        with self._lock:
            length = self.pattern_length if pattern_length is None else pattern_length
            threshold = self.confidence_threshold if confidence_threshold is None else confidence_threshold
            ticks = tuple(self._ticks)
            index = self.index(length)

        prediction = predict(ticks, length, index)
        if prediction is None:
            status = PredictionStatus.NONE
        elif prediction.confidence < threshold:
            status = PredictionStatus.BELOW_THRESHOLD
        else:
            status = PredictionStatus.OK

        return Analysis(
            length=len(ticks),
            pattern_length=length,
            confidence_threshold=threshold,
            window=current_window(ticks, length),
            prediction=prediction,
            status=status,
            historical_ranges=tuple(self.classifier.historical(ticks, threshold)),
            predicted_ranges=tuple(self.classifier.predicted(prediction, threshold)),
        )

    def metrics(self) -> HistoryMetrics:
        return summarize(self.history)

    def chart_series(self) -> list[dict]:
        """Sequence as chart points; ``is_new`` marks ticks added after load."""
        with self._lock:
            return [
                {"index": i + 1, "value": v, "is_new": i >= self._initial_length}
                for i, v in enumerate(self._ticks)
            ]

    # ----------------------------------------------------------------- writes

    def append(self, value: Any, source: TickSource = TickSource.MANUAL) -> AppendResult:
        """
        Validate and append one tick.

        The prediction computed before the append is graded first. Storage
        failures are logged and reported on the result; the in-memory
        sequence advances regardless.

        Raises:
            InvalidTickError: the value is not a non-negative whole number
        """
        tick = parse_tick(value)

        with self._lock:
            analysis = self.analyze()
            outcome = self.recorder.record_from_analysis(analysis, tick)

            outcome_persisted = False
            if outcome is not None:
                outcome_persisted = self._persist_outcome(outcome)
                self._history.insert(0, outcome)
                logger.info(
                    f"Outcome recorded: predicted={outcome.predicted_value} "
                    f"actual={outcome.actual_value} correct={outcome.is_correct} "
                    f"range={outcome.predicted_range}"
                )

            tick_persisted = self._persist_tick(tick, source)
            self._ticks.append(tick)
            self._cache.invalidate()

        logger.debug(f"Tick appended: {tick} ({source.value})")
        return AppendResult(
            value=tick,
            source=source,
            outcome=outcome,
            tick_persisted=tick_persisted,
            outcome_persisted=outcome_persisted,
        )

    # Store writes below run under the same lock as append so the store and
    # the in-memory state change together.

    def add_history(self, outcome: PredictionOutcome) -> PredictionOutcome:
        """Store an externally supplied outcome record."""
        with self._lock:
            saved = self.store.add_history(self.user_id, outcome)
            self._history.insert(0, saved)
        return saved

    def delete_ticks(self) -> int:
        with self._lock:
            deleted = self.store.delete_ticks(self.user_id)
            self._ticks.clear()
            self._initial_length = 0
            self._cache.invalidate()
        return deleted

    def delete_history(self) -> int:
        with self._lock:
            deleted = self.store.delete_history(self.user_id)
            self._history.clear()
        return deleted

    def reset(self) -> None:
        """Delete all ticks and history for this owner."""
        with self._lock:
            self.delete_ticks()
            self.delete_history()
        logger.info(f"Session reset for {self.user_id}")

    def _persist_tick(self, tick: int, source: TickSource) -> bool:
        try:
            self.store.add_tick(self.user_id, tick, source)
            return True
        except PERSISTENCE_ERRORS as e:
            logger.warning(f"Failed to save tick {tick}: {e}")
            return False

    def _persist_outcome(self, outcome: PredictionOutcome) -> bool:
        if self.outcome_log is not None:
            try:
                self.outcome_log.write(outcome)
            except OSError as e:
                logger.warning(f"Failed to write outcome journal: {e}")
        try:
            self.store.add_history(self.user_id, outcome)
            return True
        except PERSISTENCE_ERRORS as e:
            logger.warning(f"Failed to save prediction history: {e}")
            return False

    # ------------------------------------------------------------------ queue

    async def submit(self, value: Any, source: TickSource = TickSource.MANUAL) -> AppendResult:
        """
        Queue a tick for the writer loop and wait for its result.

        Falls back to a direct append when ``run_writer`` is not active.
        """
        if self._queue is None:
            return await asyncio.to_thread(self.append, value, source)
        future = asyncio.get_running_loop().create_future()
        await self._queue.put((value, source, future))
        return await future

    async def run_writer(self) -> None:
        """
        Drain the inbound queue one tick at a time until cancelled.

        On cancellation every submission still waiting, including the one in
        progress, is cancelled so no ``submit`` caller is left hanging.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.feed.queue_size)
        self._queue = queue
        try:
            while True:
                value, source, future = await queue.get()
                try:
                    result = await asyncio.to_thread(self.append, value, source)
                except asyncio.CancelledError:
                    future.cancel()
                    raise
                except Exception as e:
                    if not future.done():
                        future.set_exception(e)
                else:
                    if not future.done():
                        future.set_result(result)
                finally:
                    queue.task_done()
        finally:
            self._queue = None
            dropped = 0
            while not queue.empty():
                _, _, future = queue.get_nowait()
                queue.task_done()
                if future.cancel():
                    dropped += 1
            if dropped:
                logger.warning(f"Tick writer stopped with {dropped} pending submissions")

    def close(self) -> None:
        if self.outcome_log is not None:
            self.outcome_log.close()
