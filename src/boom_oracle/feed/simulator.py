"""Simulated live tick feed."""

import asyncio
import random
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from boom_oracle.core.config import FeedConfig
from boom_oracle.core.log import get_logger

logger = get_logger(__name__)

TickCallback = Callable[[int], Awaitable[None]]


class TickSimulator:
    """Emits a random tick every ``interval_seconds`` while running."""

    def __init__(self, config: FeedConfig):
        self.config = config
        self._rng = random.Random(config.seed)
        self._task: Optional[asyncio.Task] = None
        self.emitted: List[int] = []

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_value(self) -> int:
        """Draw one tick in [min_value, max_value]."""
        return self._rng.randint(self.config.min_value, self.config.max_value)

    async def stream(self, limit: Optional[int] = None) -> AsyncIterator[int]:
        """Yield ticks forever, or ``limit`` of them."""
        produced = 0
        while limit is None or produced < limit:
            await asyncio.sleep(self.config.interval_seconds)
            value = self.next_value()
            self.emitted.append(value)
            produced += 1
            yield value

    def start(self, callback: TickCallback) -> None:
        """Start emitting into ``callback``; previous simulated ticks are cleared."""
        if self.running:
            self._task.cancel()
        self.emitted.clear()
        self._task = asyncio.create_task(self._run(callback))
        logger.info(f"Tick simulation started (every {self.config.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Tick simulation stopped")

    async def _run(self, callback: TickCallback) -> None:
        async for value in self.stream():
            try:
                await callback(value)
            except Exception as e:
                # one failing consumer must not end the feed
                logger.error(f"Tick callback failed: {e}", exc_info=True)
