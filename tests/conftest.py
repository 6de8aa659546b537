"""
Shared test fixtures.
"""

from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from price_cache.cache import ExpiringPriceCache
from price_cache.storage import InMemoryStorage
from price_sources.models import HistoricalPoint, PriceRecord


FIXED_NOW = datetime(2025, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_record(
    commodity: str = "Gold",
    price: float = 2700.0,
    unit: str = "USD/oz",
    source: str = "Test Source",
    **overrides,
) -> PriceRecord:
    """Build a valid live PriceRecord for tests."""
    fields = dict(
        commodity=commodity,
        price=price,
        unit=unit,
        change=10.0,
        change_percent=0.37,
        last_updated=FIXED_NOW,
        source=source,
        is_synthetic=False,
        historical_series=(
            HistoricalPoint(datetime(2025, 1, 15, tzinfo=timezone.utc), price * 0.95),
            HistoricalPoint(datetime(2025, 2, 15, tzinfo=timezone.utc), price * 0.98),
        ),
    )
    fields.update(overrides)
    return PriceRecord(**fields)


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep that records delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def mock_clock():
    return MockClock(FIXED_NOW)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def cache(storage, mock_clock):
    return ExpiringPriceCache(storage, ttl_seconds=900, clock=mock_clock)


@pytest.fixture
def no_sleep():
    return SleepRecorder()


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def record_factory():
    return make_record
