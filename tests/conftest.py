"""Pytest configuration and fixtures for rangesplit tests."""

import asyncio
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from rangesplit.core.models import CountResult, RangeFilter
from rangesplit.counter.base_counter import BaseCounter
from rangesplit.counter.memory_counter import MemoryCounter

# Configure logging
logging.basicConfig(level=logging.INFO)


class TrackingCounter(MemoryCounter):
    """MemoryCounter that yields to the event loop and records how many counts overlap"""

    def __init__(self, values, supports_concurrency: bool = True, **kwargs):
        super().__init__(values, **kwargs)
        self.supports_concurrency = supports_concurrency
        self.in_flight = 0
        self.max_in_flight = 0

    async def count(self, range_filter: RangeFilter) -> CountResult:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            return await super().count(range_filter)
        finally:
            self.in_flight -= 1


class BlockingCounter(BaseCounter):
    """Answers the root range immediately, then blocks every other count forever"""

    def __init__(self, root_total: int, fail_first_child: bool = False):
        super().__init__()
        self.root_total = root_total
        self.fail_first_child = fail_first_child
        self.started = 0
        self.cancelled = 0
        self._root_done = False
        self._release = asyncio.Event()

    async def count(self, range_filter: RangeFilter) -> CountResult:
        if not self._root_done:
            self._root_done = True
            return CountResult(total=self.root_total, exact=True)
        self.started += 1
        if self.fail_first_child and range_filter.lower_inclusive:
            for _ in range(3):
                await asyncio.sleep(0)
            raise RuntimeError("search service unavailable")
        try:
            await self._release.wait()
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return CountResult(total=0, exact=True)


@pytest.fixture
def utc_start() -> datetime:
    return datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def evenly_spaced_timestamps(utc_start) -> List[datetime]:
    """250,000 timestamps one second apart"""
    return [utc_start + timedelta(seconds=i) for i in range(250000)]


@pytest.fixture
def tracking_counter_factory():
    def factory(values, **kwargs) -> TrackingCounter:
        return TrackingCounter(values, **kwargs)
    return factory
