"""
Formatter Tests.
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from price_tracker.formatters import format_change, format_last_updated, format_price


class TestFormatPrice:
    """Tests for format_price."""

    @pytest.mark.parametrize("price, expected", [
        (2650.5, "2,650 USD/oz"),
        (85000, "85,000 USD/oz"),
        (985.25, "985.2 USD/oz"),
        (24.85, "24.85 USD/oz"),
        (0.4567, "0.457 USD/oz"),
        (0, "0.000 USD/oz"),
    ])
    def test_decimals_by_magnitude(self, price, expected):
        assert format_price(price, "USD/oz") == expected

    @pytest.mark.parametrize("price", [None, math.nan])
    def test_missing(self, price):
        assert format_price(price, "USD/oz") == "N/A"


class TestFormatChange:
    """Tests for format_change."""

    def test_positive(self):
        assert format_change(12.3, 0.47) == ("+12.30 (+0.47%)", "up")

    def test_negative(self):
        assert format_change(-0.15, -0.6) == ("-0.15 (-0.60%)", "down")

    def test_zero(self):
        assert format_change(0, 0) == ("+0.00 (+0.00%)", "flat")

    def test_thousands(self):
        assert format_change(1200, 1.43)[0] == "+1,200.00 (+1.43%)"

    def test_missing(self):
        assert format_change(None, 1.0) == ("N/A", "flat")
        assert format_change(math.nan, 1.0) == ("N/A", "flat")

    def test_missing_percent(self):
        assert format_change(1.0, None) == ("+1.00 (+0.00%)", "up")


class TestFormatLastUpdated:
    """Tests for format_last_updated."""

    NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("delta, expected", [
        (timedelta(seconds=30), "Just now"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=45), "45 minutes ago"),
        (timedelta(hours=1), "1 hour ago"),
        (timedelta(hours=5, minutes=59), "5 hours ago"),
        (timedelta(days=2), "Mar 13, 12:00"),
    ])
    def test_relative(self, delta, expected):
        assert format_last_updated(self.NOW - delta, now=self.NOW) == expected

    def test_none(self):
        assert format_last_updated(None) == "Unknown"

    def test_naive_is_utc(self):
        naive = datetime(2025, 3, 15, 11, 30)
        assert format_last_updated(naive, now=self.NOW) == "30 minutes ago"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
