"""
Price Normalizer - Shapes and checks raw adapter output.

normalize() coerces an arbitrary mapping into a PriceRecord and
validate() checks the canonical shape. Both are pure and never raise.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

from core.clock import from_iso8601
from price_sources.models import HistoricalPoint, PriceRecord


logger = logging.getLogger(__name__)

DEFAULT_UNIT = "USD"
DEFAULT_SOURCE = "Unknown"

REQUIRED_FIELDS = ("commodity", "price", "unit")

_DISALLOWED_NAME_CHARS = re.compile(r"[^a-zA-Z0-9\s]")


# ============================================================
# VALIDATION
# ============================================================

def is_valid_price(value: Any) -> bool:
    """Check that a price is a finite, non-negative real number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def validate(record: Union[PriceRecord, Mapping[str, Any], None]) -> bool:
    """
    Check a record has commodity, price and unit, with a valid price.

    Accepts a PriceRecord or a plain mapping. Never raises.
    """
    if record is None:
        return False

    if isinstance(record, PriceRecord):
        commodity = record.commodity
        price = record.price
        unit = record.unit
    elif isinstance(record, Mapping):
        if any(record.get(name) is None for name in REQUIRED_FIELDS):
            return False
        commodity = record["commodity"]
        price = record["price"]
        unit = record["unit"]
    else:
        return False

    if not isinstance(commodity, str) or not commodity.strip():
        return False
    if not isinstance(unit, str):
        return False
    return is_valid_price(price)


# ============================================================
# NORMALIZATION
# ============================================================

def sanitize_commodity_name(name: Any) -> str:
    """Keep only ASCII letters, digits and whitespace, then trim."""
    if not isinstance(name, str):
        return ""
    return _DISALLOWED_NAME_CHARS.sub("", name).strip()


def normalize(raw: Union[PriceRecord, Mapping[str, Any], None]) -> Optional[PriceRecord]:
    """
    Coerce raw adapter output into a PriceRecord.

    Missing change fields default to 0, a missing unit to "USD", a
    missing timestamp to now and a missing series to empty. Numeric
    strings are coerced. Returns None for None or non-mapping input.
    """
    if raw is None:
        return None
    if isinstance(raw, PriceRecord):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        logger.debug(f"Cannot normalize {type(raw).__name__} input")
        return None

    unit = _first(raw, "unit")
    source = _first(raw, "source")
    is_synthetic = _first(raw, "isSynthetic", "is_synthetic", "isMockData")

    return PriceRecord(
        commodity=sanitize_commodity_name(_first(raw, "commodity") or ""),
        price=_to_float(_first(raw, "price")),
        unit=str(unit) if unit else DEFAULT_UNIT,
        change=_to_float(_first(raw, "change")),
        change_percent=_to_float(_first(raw, "changePercent", "change_percent")),
        last_updated=_to_datetime(_first(raw, "lastUpdated", "last_updated")),
        source=str(source) if source else DEFAULT_SOURCE,
        is_synthetic=bool(is_synthetic),
        historical_series=_to_series(
            _first(raw, "historicalSeries", "historical_series", "historicalData")
        ),
    )


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-None value among the given keys."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _to_float(value: Any) -> float:
    """Coerce to float; unparseable or NaN values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def _to_datetime(value: Any) -> datetime:
    """Coerce to an aware UTC datetime; unparseable values become now."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return datetime.now(timezone.utc)
    if isinstance(value, str) and value:
        try:
            return from_iso8601(value)
        except ValueError:
            logger.debug(f"Unparseable timestamp {value!r}, using now")
    return datetime.now(timezone.utc)


def _to_series(value: Any) -> tuple[HistoricalPoint, ...]:
    """Coerce a historical series; invalid points are dropped, result sorted."""
    if not value or isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        return ()

    points = []
    for item in value:
        point = _to_point(item)
        if point is not None:
            points.append(point)

    points.sort(key=lambda p: p.timestamp)
    return tuple(points)


def _to_point(item: Any) -> Optional[HistoricalPoint]:
    """Coerce one series entry; None if it has no usable positive price."""
    try:
        if isinstance(item, HistoricalPoint):
            point = item
        elif isinstance(item, Mapping):
            point = HistoricalPoint.from_dict(item)
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            point = HistoricalPoint.from_dict({"date": item[0], "price": item[1]})
        else:
            return None
    except (KeyError, TypeError, ValueError, OverflowError, OSError):
        return None

    if not math.isfinite(point.price) or point.price <= 0:
        return None
    return point
