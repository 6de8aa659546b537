"""
Price Tracker Package.

Consumer-facing state for tracked commodity prices.

Modules:
- tracker: PriceTracker (refresh, subscribe, auto refresh)
- models: TrackerSnapshot
- formatters: Display strings for prices, changes and times
- cli: Command-line entry point
"""

from price_tracker.formatters import format_change, format_last_updated, format_price
from price_tracker.models import TrackerSnapshot
from price_tracker.tracker import PriceTracker


__all__ = [
    "PriceTracker",
    "TrackerSnapshot",
    "format_price",
    "format_change",
    "format_last_updated",
]
