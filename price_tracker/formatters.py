"""
Price Tracker Formatters - Display strings for prices and changes.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Tuple


NOT_AVAILABLE = "N/A"

UP = "up"
DOWN = "down"
FLAT = "flat"


def _missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def price_decimals(price: float) -> int:
    """Decimal places used for a price of this magnitude."""
    if price >= 1000:
        return 0
    if price >= 100:
        return 1
    if price >= 1:
        return 2
    return 3


def format_price(price: Optional[float], unit: str) -> str:
    """Format a price with magnitude-based decimals, e.g. '2,651 USD/oz'."""
    if _missing(price):
        return NOT_AVAILABLE
    decimals = price_decimals(price)
    return f"{price:,.{decimals}f} {unit}"


def format_change(
    change: Optional[float],
    change_percent: Optional[float],
) -> Tuple[str, str]:
    """
    Format a change as '+12.30 (+0.47%)'.

    Returns:
        (text, direction) where direction is 'up', 'down' or 'flat'
    """
    if _missing(change):
        return NOT_AVAILABLE, FLAT

    percent = 0.0 if _missing(change_percent) else change_percent
    sign = "+" if change >= 0 else "-"
    text = f"{sign}{abs(change):,.2f} ({sign}{abs(percent):.2f}%)"

    if change > 0:
        direction = UP
    elif change < 0:
        direction = DOWN
    else:
        direction = FLAT
    return text, direction


def format_last_updated(
    dt: Optional[datetime],
    now: Optional[datetime] = None,
) -> str:
    """Relative time for recent updates, otherwise a short date."""
    if dt is None:
        return "Unknown"

    now = now or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    minutes = int((now - dt).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if minutes < 24 * 60:
        hours = minutes // 60
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    return dt.strftime("%b %d, %H:%M")
