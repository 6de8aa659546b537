"""
Providers package - Price source implementations.
"""

from price_sources.providers.free_gold_price import FreeGoldPriceSource
from price_sources.providers.lbma import LBMAPriceSource
from price_sources.providers.mock import MockPriceSource, MockSourceConfig
from price_sources.providers.yahoo_finance import (
    YAHOO_FINANCE_SYMBOLS,
    YAHOO_METAL_SYMBOLS,
    SymbolSpec,
    YahooFinancePriceSource,
    create_yahoo_metals_source,
    extract_change,
)


__all__ = [
    "FreeGoldPriceSource",
    "LBMAPriceSource",
    "MockPriceSource",
    "MockSourceConfig",
    "YahooFinancePriceSource",
    "SymbolSpec",
    "YAHOO_FINANCE_SYMBOLS",
    "YAHOO_METAL_SYMBOLS",
    "create_yahoo_metals_source",
    "extract_change",
]
