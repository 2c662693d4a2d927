import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from whackamole.core.detector import DuplicateDetector
from whackamole.core.history import SweepResult

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EvictionScheduler:
    """Background sweep that drops expired entries and silent authors.

    Per-message eviction only touches the author who just posted, so authors
    who stop talking would otherwise stay in memory until they post again.
    """

    def __init__(
        self,
        detector: DuplicateDetector,
        interval_seconds: float = 60,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.detector = detector
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.task: Optional[asyncio.Task] = None
        self.running: bool = False

    async def start(self) -> None:
        if self.task and not self.task.done():
            self.task.cancel()
        self.running = True
        self.task = asyncio.create_task(self._loop())
        logger.info("Eviction scheduler started, interval=%ss", self.interval_seconds)

    async def stop(self) -> None:
        self.running = False
        if self.task and not self.task.done():
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        self.task = None
        logger.info("Eviction scheduler stopped")

    async def sweep_once(self) -> SweepResult:
        result = await self.detector.sweep(self.clock())
        logger.debug(
            "Sweep done: evicted=%s dropped=%s", result.evicted, result.dropped
        )
        return result

    async def _loop(self) -> None:
        while self.running:
            try:
                await asyncio.sleep(self.interval_seconds)
                await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Eviction sweep failed")
