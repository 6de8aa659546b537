"""
Synthetic Data - Example record generator.

Produces clearly-marked example PriceRecords with a plausible
24 month history. Used as the last resort of price resolution,
so every record it returns passes validation.
"""

import calendar
import logging
import random
from datetime import datetime, timezone
from typing import Dict, List, Optional

from price_sources.exceptions import UnknownCommodityError
from price_sources.models import EXAMPLE_DATA_SOURCE, HistoricalPoint, PriceRecord
from price_sources.normalizer import validate
from synthetic_data.baselines import EXAMPLE_BASELINES


logger = logging.getLogger(__name__)


HISTORY_MONTHS = 24
DEFAULT_VOLATILITY = 0.15

# Generated prices never fall below this share of the current price
PRICE_FLOOR_RATIO = 0.5

# Random variation spans +/- (VARIATION_SCALE / 2) * volatility
VARIATION_SCALE = 0.3


def shift_months(dt: datetime, months_back: int) -> datetime:
    """Move a datetime back by whole calendar months, clamping the day."""
    month_index = dt.year * 12 + (dt.month - 1) - months_back
    year, month = divmod(month_index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def generate_series(
    current_price: float,
    volatility: float = DEFAULT_VOLATILITY,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[HistoricalPoint]:
    """
    Generate 24 monthly points ending at the current month.

    Older points are discounted more heavily, so the series trends
    up toward current_price. Each price is
    max(base * (1 + variation), current_price * 0.5) where
    base = current_price * (1 - volatility * (1 - trend_factor)).

    Args:
        current_price: Price of the newest point's reference
        volatility: Maximum relative discount of the oldest point
        now: End of the series (defaults to current UTC)
        rng: Random source (defaults to the module generator)

    Returns:
        Points in chronological order
    """
    now = now or datetime.now(timezone.utc)
    rng = rng or random

    points = []
    last = HISTORY_MONTHS - 1
    for months_ago in range(last, -1, -1):
        # Newest point gets factor 1, oldest gets 0
        trend_factor = (last - months_ago) / last
        base = current_price * (1 - volatility * (1 - trend_factor))
        variation = (rng.random() - 0.5) * volatility * VARIATION_SCALE
        price = max(base * (1 + variation), current_price * PRICE_FLOOR_RATIO)

        points.append(HistoricalPoint(
            timestamp=shift_months(now, months_ago),
            price=price,
        ))

    return points


def get_example_record(
    commodity: str,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> PriceRecord:
    """
    Build an example record from the commodity's baseline.

    Raises:
        UnknownCommodityError: If no baseline exists for the commodity
    """
    baseline = EXAMPLE_BASELINES.get(commodity)
    if baseline is None:
        raise UnknownCommodityError(
            f"No example baseline for {commodity}",
            commodity=commodity,
        )

    now = now or datetime.now(timezone.utc)
    record = PriceRecord(
        commodity=commodity,
        price=baseline.price,
        unit=baseline.unit,
        change=baseline.change,
        change_percent=baseline.change_percent,
        last_updated=now,
        source=EXAMPLE_DATA_SOURCE,
        is_synthetic=True,
        historical_series=tuple(generate_series(baseline.price, now=now, rng=rng)),
    )

    if not validate(record):
        raise UnknownCommodityError(
            f"Example baseline for {commodity} is invalid",
            commodity=commodity,
        )

    return record


def get_all_example_records(
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, PriceRecord]:
    """One example record per baseline."""
    now = now or datetime.now(timezone.utc)
    return {
        commodity: get_example_record(commodity, now=now, rng=rng)
        for commodity in EXAMPLE_BASELINES
    }


def is_example_record(record: Optional[PriceRecord]) -> bool:
    """True when the record came from the example generator."""
    if record is None:
        return False
    return record.is_synthetic or record.source == EXAMPLE_DATA_SOURCE
