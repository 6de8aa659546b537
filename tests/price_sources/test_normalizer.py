"""
Price Normalizer Tests.

============================================================
PURPOSE
============================================================
Unit tests for record validation and raw payload coercion.

TEST CATEGORIES:
- Validation: Required fields and price range
- Sanitizing: Commodity name cleanup
- Normalization: Defaults, coercion, legacy keys, series cleanup

============================================================
"""

import math
from datetime import datetime, timezone

import pytest

from price_sources.models import HistoricalPoint, PriceRecord
from price_sources.normalizer import (
    DEFAULT_SOURCE,
    DEFAULT_UNIT,
    is_valid_price,
    normalize,
    sanitize_commodity_name,
    validate,
)


# ============================================================
# VALIDATION TESTS
# ============================================================

class TestIsValidPrice:
    """Tests for is_valid_price."""

    @pytest.mark.parametrize("value", [0, 0.0, 1, 2650.5, 1e9])
    def test_accepts_finite_non_negative(self, value):
        assert is_valid_price(value) is True

    @pytest.mark.parametrize(
        "value",
        [-0.01, math.nan, math.inf, -math.inf, "12.5", None, True, False, [1]],
    )
    def test_rejects_everything_else(self, value):
        assert is_valid_price(value) is False


class TestValidate:
    """Tests for validate."""

    def test_valid_mapping(self):
        assert validate({"commodity": "Gold", "price": 2650.5, "unit": "USD/oz"}) is True

    def test_valid_record(self, record_factory):
        assert validate(record_factory()) is True

    @pytest.mark.parametrize("missing", ["commodity", "price", "unit"])
    def test_missing_required_field(self, missing):
        data = {"commodity": "Gold", "price": 1.0, "unit": "USD/oz"}
        del data[missing]
        assert validate(data) is False

    @pytest.mark.parametrize("missing", ["commodity", "price", "unit"])
    def test_none_required_field(self, missing):
        data = {"commodity": "Gold", "price": 1.0, "unit": "USD/oz", missing: None}
        assert validate(data) is False

    def test_negative_price(self):
        assert validate({"commodity": "Gold", "price": -1, "unit": "USD/oz"}) is False

    def test_nan_price(self, record_factory):
        assert validate(record_factory(price=math.nan)) is False

    def test_string_price_rejected(self):
        assert validate({"commodity": "Gold", "price": "12", "unit": "USD/oz"}) is False

    def test_blank_commodity(self):
        assert validate({"commodity": "  ", "price": 1, "unit": "USD/oz"}) is False

    def test_non_mapping(self):
        assert validate(None) is False
        assert validate("Gold") is False
        assert validate(42) is False


# ============================================================
# SANITIZE TESTS
# ============================================================

class TestSanitizeCommodityName:
    """Tests for sanitize_commodity_name."""

    def test_strips_symbols_and_whitespace(self):
        assert sanitize_commodity_name("  Gold!!") == "Gold"

    def test_keeps_inner_whitespace(self):
        assert sanitize_commodity_name("Rare Earths") == "Rare Earths"

    def test_removes_markup(self):
        assert sanitize_commodity_name("<b>Copper</b>") == "bCopperb"

    def test_non_string(self):
        assert sanitize_commodity_name(None) == ""
        assert sanitize_commodity_name(12) == ""


# ============================================================
# NORMALIZATION TESTS
# ============================================================

class TestNormalize:
    """Tests for normalize."""

    def test_none_returns_none(self):
        assert normalize(None) is None

    def test_non_mapping_returns_none(self):
        assert normalize(["Gold", 1.0]) is None

    def test_sanitizes_and_coerces(self):
        record = normalize({"commodity": "  Gold!!", "price": "12.5", "unit": None})

        assert record is not None
        assert record.commodity == "Gold"
        assert record.price == 12.5
        assert record.unit == DEFAULT_UNIT

    def test_defaults(self):
        before = datetime.now(timezone.utc)
        record = normalize({"commodity": "Gas", "price": 3.1})

        assert record.change == 0.0
        assert record.change_percent == 0.0
        assert record.source == DEFAULT_SOURCE
        assert record.is_synthetic is False
        assert record.historical_series == ()
        assert record.last_updated >= before

    def test_unparseable_numbers_become_zero(self):
        record = normalize({
            "commodity": "Gas",
            "price": "not a number",
            "unit": "USD/MMBtu",
            "change": "abc",
            "changePercent": math.nan,
        })

        assert record.price == 0.0
        assert record.change == 0.0
        assert record.change_percent == 0.0

    def test_infinite_price_fails_validation(self):
        record = normalize({"commodity": "Gas", "price": "inf", "unit": "USD/MMBtu"})

        assert math.isinf(record.price)
        assert validate(record) is False

    def test_camel_case_keys(self):
        record = normalize({
            "commodity": "Gold",
            "price": 2700,
            "unit": "USD/oz",
            "change": 5,
            "changePercent": 0.2,
            "lastUpdated": "2025-03-15T12:00:00Z",
            "source": "Yahoo Finance",
            "isSynthetic": False,
        })

        assert record.change == 5.0
        assert record.change_percent == 0.2
        assert record.last_updated == datetime(2025, 3, 15, 12, tzinfo=timezone.utc)
        assert record.source == "Yahoo Finance"

    def test_snake_case_keys(self):
        record = normalize({
            "commodity": "Gold",
            "price": 2700,
            "unit": "USD/oz",
            "change_percent": 0.4,
            "last_updated": datetime(2025, 3, 15, 12),
        })

        assert record.change_percent == 0.4
        assert record.last_updated.tzinfo is not None

    def test_legacy_keys(self):
        record = normalize({
            "commodity": "Gold",
            "price": 2650.5,
            "unit": "USD/oz",
            "isMockData": True,
            "historicalData": [
                {"date": "2025-02-15T00:00:00Z", "price": 2600},
                {"date": "2025-01-15T00:00:00Z", "price": 2550},
            ],
        })

        assert record.is_synthetic is True
        assert len(record.historical_series) == 2

    def test_series_sorted_and_cleaned(self):
        record = normalize({
            "commodity": "Copper",
            "price": 4.2,
            "unit": "USD/lb",
            "historicalSeries": [
                {"date": "2025-03-01T00:00:00Z", "price": 4.1},
                {"date": "2025-01-01T00:00:00Z", "price": 3.9},
                {"date": "2025-02-01T00:00:00Z", "price": 0},
                {"date": "2025-02-02T00:00:00Z", "price": -1},
                {"date": "2025-02-03T00:00:00Z", "price": "nan"},
                {"date": "not a date", "price": 4.0},
                {"price": 4.0},
                "garbage",
            ],
        })

        prices = [p.price for p in record.historical_series]
        stamps = [p.timestamp for p in record.historical_series]

        assert prices == [3.9, 4.1]
        assert stamps == sorted(stamps)

    def test_series_accepts_points_and_pairs(self):
        jan = datetime(2025, 1, 1, tzinfo=timezone.utc)
        feb = datetime(2025, 2, 1, tzinfo=timezone.utc)
        record = normalize({
            "commodity": "Copper",
            "price": 4.2,
            "unit": "USD/lb",
            "historicalSeries": [(feb, 4.0), HistoricalPoint(jan, 3.8)],
        })

        assert [p.timestamp for p in record.historical_series] == [jan, feb]

    def test_existing_record_round_trips(self, record_factory):
        original = record_factory()
        assert normalize(original) == original

    def test_returns_price_record(self):
        assert isinstance(normalize({"commodity": "Gold", "price": 1}), PriceRecord)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
