"""
Price Sources Module - Provider adapters for commodity prices.

Every provider is isolated behind BasePriceSource and emits the
canonical PriceRecord. Routing and fallback order live in the
SourceRegistry; no downstream code depends on a specific provider.

Components:
- models: PriceRecord, HistoricalPoint and source bookkeeping types
- normalizer: Coercion and validation of raw provider mappings
- base: Abstract adapter with timeouts, relays and health tracking
- providers: Yahoo Finance, LBMA, FreeGoldPrice and mock adapters
- registry: Adapter registration and commodity routes
"""

from price_sources.base import BasePriceSource
from price_sources.exceptions import (
    NoSourceAvailableError,
    PriceSourceError,
    SourceUnavailableError,
    UnknownCommodityError,
    ValidationFailedError,
)
from price_sources.models import (
    EXAMPLE_DATA_SOURCE,
    HistoricalPoint,
    PriceRecord,
    SourceHealth,
    SourceIncident,
    SourceMetadata,
    SourceStatus,
)
from price_sources.normalizer import (
    is_valid_price,
    normalize,
    sanitize_commodity_name,
    validate,
)
from price_sources.registry import DEFAULT_ROUTES, SourceRegistry, create_default_registry


__all__ = [
    # Base
    "BasePriceSource",
    # Exceptions
    "PriceSourceError",
    "SourceUnavailableError",
    "NoSourceAvailableError",
    "ValidationFailedError",
    "UnknownCommodityError",
    # Models
    "EXAMPLE_DATA_SOURCE",
    "HistoricalPoint",
    "PriceRecord",
    "SourceHealth",
    "SourceIncident",
    "SourceMetadata",
    "SourceStatus",
    # Normalizer
    "normalize",
    "validate",
    "is_valid_price",
    "sanitize_commodity_name",
    # Registry
    "SourceRegistry",
    "DEFAULT_ROUTES",
    "create_default_registry",
]
