"""
Tests for whackamole/core/eviction.py
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from whackamole.core.detector import DuplicateDetector
from whackamole.core.eviction import EvictionScheduler, utcnow
from whackamole.core.history import SweepResult

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


class TestSweepOnce:
    """Tests for EvictionScheduler.sweep_once()."""

    @pytest.mark.asyncio
    async def test_removes_silent_authors(self):
        clock = FakeClock(T0)
        detector = DuplicateDetector(3, 5)
        scheduler = EvictionScheduler(detector, clock=clock)
        await detector.on_message(1, "hi", clock(), "a")
        clock.advance(3)
        await detector.on_message(2, "hi", clock(), "b")

        clock.advance(3)
        result = await scheduler.sweep_once()

        assert result == SweepResult(evicted=1, dropped=1)
        assert 1 not in detector.messages
        assert 2 in detector.messages

    @pytest.mark.asyncio
    async def test_second_sweep_changes_nothing(self):
        clock = FakeClock(T0)
        detector = DuplicateDetector(3, 5)
        scheduler = EvictionScheduler(detector, clock=clock)
        for author in range(5):
            await detector.on_message(author, "msg http://x.test", clock(), author)
            clock.advance(2)

        await scheduler.sweep_once()
        stats = detector.stats()
        again = await scheduler.sweep_once()

        assert again == SweepResult()
        assert detector.stats() == stats

    def test_default_clock_is_utc(self):
        assert utcnow().tzinfo is timezone.utc


class TestSchedulerLifecycle:
    """Tests for start()/stop() and the background loop."""

    @pytest.mark.asyncio
    async def test_loop_sweeps_periodically(self):
        clock = FakeClock(T0)
        detector = DuplicateDetector(3, 5)
        await detector.on_message(1, "hi", clock(), "a")
        clock.advance(10)
        scheduler = EvictionScheduler(detector, interval_seconds=0.01, clock=clock)

        await scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert not scheduler.running
        assert scheduler.task is None
        assert len(detector.messages) == 0

    @pytest.mark.asyncio
    async def test_loop_survives_failed_sweep(self):
        calls = []

        async def sweep(now):
            calls.append(now)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return SweepResult()

        detector = MagicMock()
        detector.sweep = sweep
        scheduler = EvictionScheduler(detector, interval_seconds=0.01)

        await scheduler.start()
        await asyncio.sleep(0.08)
        await scheduler.stop()

        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        scheduler = EvictionScheduler(DuplicateDetector(3, 5))
        await scheduler.stop()
        assert scheduler.task is None
