# core/sweeper.py
import asyncio
import logging
from enum import Enum
from typing import Optional, Protocol
from util.timing import timed

logger = logging.getLogger(__name__)


class SweeperState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ExpiredEvictor(Protocol):
    async def delete_expired(self) -> int: ...


class EvictionSweeper:
    """
    Background loop that reclaims expired snippets.

    Flow:
    - start(): one sweep right away, then one per `interval_seconds`.
    - A failed sweep is logged and skipped; the next tick is the retry.
    - stop(): signals the loop and waits for it to exit. A sweep already in
      flight is allowed to finish; it is never cancelled.
    """

    def __init__(self, store: ExpiredEvictor, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._store = store
        self._interval = float(interval_seconds)
        self._state = SweeperState.IDLE
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.sweeps = 0
        self.failures = 0
        self.last_count: Optional[int] = None

    @property
    def state(self) -> SweeperState:
        return self._state

    def start(self) -> None:
        if self._state is not SweeperState.IDLE:
            raise RuntimeError(f"sweeper cannot start from state {self._state.value}")
        self._state = SweeperState.RUNNING
        self._task = asyncio.create_task(self._run(), name="eviction-sweeper")
        logger.info("sweeper.start interval=%.0fs", self._interval)

    async def stop(self) -> None:
        if self._state is SweeperState.STOPPED:
            return
        self._stop.set()
        if self._task is not None:
            await asyncio.shield(self._task)
        self._state = SweeperState.STOPPED
        logger.info("sweeper.stopped sweeps=%d failures=%d", self.sweeps, self.failures)

    async def sweep_once(self) -> Optional[int]:
        """Run one eviction pass. Returns the count, or None if the pass failed."""
        try:
            with timed(logger, "sweeper.sweep"):
                count = await self._store.delete_expired()
        except Exception:
            self.failures += 1
            logger.error("sweeper.sweep.error", exc_info=True)
            return None
        self.sweeps += 1
        self.last_count = count
        if count > 0:
            logger.info("sweeper.sweep.ok deleted=%d", count)
        return count

    async def _run(self) -> None:
        while True:
            await self.sweep_once()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue
            return
