"""
Synthetic Data Generator Tests.
"""

import random
from datetime import datetime, timezone

import pytest

from price_sources.exceptions import UnknownCommodityError
from price_sources.models import EXAMPLE_DATA_SOURCE
from price_sources.normalizer import validate
from synthetic_data.baselines import EXAMPLE_BASELINES
from synthetic_data.generator import (
    HISTORY_MONTHS,
    generate_series,
    get_all_example_records,
    get_example_record,
    is_example_record,
    shift_months,
)


# ============================================================
# SERIES TESTS
# ============================================================

class TestGenerateSeries:
    """Tests for generate_series."""

    def test_length_and_floor(self):
        for _ in range(20):
            series = generate_series(100, 0.15)

            assert len(series) == 24
            assert all(p.price >= 50 for p in series)

    def test_newest_point_has_least_discount(self):
        # With zero variation, the newest point is exactly the current price
        class Midpoint(random.Random):
            def random(self):
                return 0.5

        series = generate_series(100, 0.15, rng=Midpoint())

        assert series[-1].price == pytest.approx(100.0)
        assert series[0].price == pytest.approx(85.0)
        prices = [p.price for p in series]
        assert prices == sorted(prices)

    def test_variation_bounds(self):
        series = generate_series(100, 0.15, rng=random.Random(7))

        for months_ago, point in zip(range(23, -1, -1), series):
            trend_factor = (23 - months_ago) / 23
            base = 100 * (1 - 0.15 * (1 - trend_factor))
            assert base * (1 - 0.0225) - 1e-9 <= point.price <= base * (1 + 0.0225) + 1e-9

    def test_floor_applies_for_high_volatility(self):
        series = generate_series(100, 0.9, rng=random.Random(1))

        assert min(p.price for p in series) >= 50
        assert series[0].price == pytest.approx(50.0)

    def test_monthly_dates_end_now(self):
        now = datetime(2025, 3, 31, 9, 30, tzinfo=timezone.utc)
        series = generate_series(10, now=now, rng=random.Random(0))

        stamps = [p.timestamp for p in series]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == HISTORY_MONTHS
        assert stamps[-1] == now
        assert stamps[0] == datetime(2023, 4, 30, 9, 30, tzinfo=timezone.utc)

    def test_seeded_rng_is_deterministic(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        first = generate_series(50, now=now, rng=random.Random(42))
        second = generate_series(50, now=now, rng=random.Random(42))

        assert first == second


class TestShiftMonths:
    """Tests for shift_months."""

    def test_clamps_day(self):
        dt = datetime(2025, 3, 31, tzinfo=timezone.utc)

        assert shift_months(dt, 1) == datetime(2025, 2, 28, tzinfo=timezone.utc)
        assert shift_months(dt, 13) == datetime(2024, 2, 29, tzinfo=timezone.utc)

    def test_crosses_year(self):
        dt = datetime(2025, 1, 15, tzinfo=timezone.utc)

        assert shift_months(dt, 1) == datetime(2024, 12, 15, tzinfo=timezone.utc)
        assert shift_months(dt, 0) == dt


# ============================================================
# EXAMPLE RECORD TESTS
# ============================================================

class TestExampleRecords:
    """Tests for example records."""

    def test_gold_baseline(self, fixed_now):
        record = get_example_record("Gold", now=fixed_now)

        assert record.price == 2650.50
        assert record.unit == "USD/oz"
        assert record.change == 12.30
        assert record.change_percent == 0.47
        assert record.is_synthetic is True
        assert record.source == EXAMPLE_DATA_SOURCE
        assert record.last_updated == fixed_now
        assert len(record.historical_series) == 24
        assert validate(record)

    def test_unknown_commodity(self):
        with pytest.raises(UnknownCommodityError) as exc_info:
            get_example_record("Unobtainium")

        assert exc_info.value.commodity == "Unobtainium"

    def test_all_records_valid(self):
        records = get_all_example_records()

        assert set(records) == set(EXAMPLE_BASELINES)
        assert all(validate(r) and r.is_synthetic for r in records.values())

    def test_fresh_timestamp_each_call(self, fixed_now):
        later = fixed_now.replace(year=2026)

        assert get_example_record("Gas", now=fixed_now).last_updated == fixed_now
        assert get_example_record("Gas", now=later).last_updated == later

    def test_is_example_record(self, record_factory):
        assert is_example_record(get_example_record("Copper")) is True
        assert is_example_record(record_factory()) is False
        assert is_example_record(None) is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
