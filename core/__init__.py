"""
Core Module Package.

Shared infrastructure for the price pipeline.

Components:
- clock: Injectable UTC time abstraction
- config: Fixed constants and configuration dataclasses
- logging_config: Entry-point logging setup
"""

from core.clock import ClockProtocol, MockClock, SystemClock, from_iso8601, to_iso8601
from core.config import (
    COMMODITIES,
    COMMODITY_CATEGORIES,
    CacheConfig,
    RefreshConfig,
    RequestConfig,
    RetryConfig,
    TrackerConfig,
)
from core.logging_config import setup_logging


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "to_iso8601",
    "from_iso8601",
    "COMMODITIES",
    "COMMODITY_CATEGORIES",
    "RetryConfig",
    "RequestConfig",
    "CacheConfig",
    "RefreshConfig",
    "TrackerConfig",
    "setup_logging",
]
