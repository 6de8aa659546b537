"""
Core Module - Configuration.

============================================================
PURPOSE
============================================================
All configuration for the price resolution pipeline.

Values are fixed constants, not environment-driven. Components
accept these dataclasses (or explicit arguments) so tests can
shrink delays and time-to-live windows.

============================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List


# ============================================================
# FIXED CONSTANTS
# ============================================================

REFRESH_INTERVAL_SECONDS = 15 * 60
RETRY_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 1.0
CACHE_TTL_SECONDS = 15 * 60
REQUEST_TIMEOUT_SECONDS = 10.0
RELAY_TIMEOUT_SECONDS = 15.0
CACHE_KEY_PREFIX = "commodity_prices_"

# Relay endpoints, tried in order; the target URL is appended URL-encoded.
RELAY_ENDPOINTS = (
    "https://api.allorigins.win/raw?url=",
    "https://corsproxy.io/?",
)


# ============================================================
# TRACKED COMMODITIES
# ============================================================

COMMODITIES: List[str] = [
    "Gold",
    "Silver",
    "Platinum",
    "Copper",
    "Lithium",
    "Nickel",
    "Cobalt",
    "Graphite",
    "Rare Earths",
    "Electricity",
    "Gas",
]

COMMODITY_CATEGORIES: Dict[str, List[str]] = {
    "Precious Metals": ["Gold", "Silver", "Platinum"],
    "Base Metals": ["Copper", "Nickel"],
    "Battery Metals": ["Lithium", "Cobalt", "Graphite"],
    "Critical Minerals": ["Rare Earths"],
    "Energy": ["Electricity", "Gas"],
}


def category_for(commodity: str) -> str:
    """Return the display category of a commodity, or 'Other'."""
    for category, members in COMMODITY_CATEGORIES.items():
        if commodity in members:
            return category
    return "Other"


# ============================================================
# RETRY CONFIGURATION
# ============================================================

@dataclass
class RetryConfig:
    """
    Retry configuration for source adapters.

    Delay grows linearly with the attempt index:
    delay = base_delay_seconds * attempt_index.
    """

    attempts: int = RETRY_ATTEMPTS
    """Maximum calls per candidate adapter."""

    base_delay_seconds: float = RETRY_DELAY_SECONDS
    """Delay unit between attempts."""

    retry_secondary: bool = True
    """Whether fallback candidates get the same retry budget as the first."""

    def delay_for(self, attempt_index: int) -> float:
        """Delay to wait after the given 1-based attempt failed."""
        return self.base_delay_seconds * attempt_index


# ============================================================
# REQUEST CONFIGURATION
# ============================================================

@dataclass
class RequestConfig:
    """HTTP request configuration for adapters."""

    timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    """Timeout for direct provider calls."""

    relay_timeout_seconds: float = RELAY_TIMEOUT_SECONDS
    """Timeout for calls routed through a relay."""

    relay_endpoints: tuple = RELAY_ENDPOINTS
    """Relay prefixes, tried in order."""

    user_agent: str = "Mozilla/5.0 (compatible; CommodityPriceTracker/1.0)"


# ============================================================
# CACHE CONFIGURATION
# ============================================================

@dataclass
class CacheConfig:
    """Expiring cache configuration."""

    ttl_seconds: float = CACHE_TTL_SECONDS
    key_prefix: str = CACHE_KEY_PREFIX


# ============================================================
# REFRESH CONFIGURATION
# ============================================================

@dataclass
class RefreshConfig:
    """Tracker refresh configuration."""

    interval_seconds: float = REFRESH_INTERVAL_SECONDS
    commodities: List[str] = field(default_factory=lambda: list(COMMODITIES))


# ============================================================
# AGGREGATE CONFIGURATION
# ============================================================

@dataclass
class TrackerConfig:
    """Complete configuration for a tracker instance."""

    retry: RetryConfig = field(default_factory=RetryConfig)
    request: RequestConfig = field(default_factory=RequestConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.retry.attempts < 1:
            errors.append("retry.attempts must be at least 1")
        if self.retry.base_delay_seconds < 0:
            errors.append("retry.base_delay_seconds must be non-negative")
        if self.request.timeout_seconds <= 0:
            errors.append("request.timeout_seconds must be positive")
        if self.request.relay_timeout_seconds <= 0:
            errors.append("request.relay_timeout_seconds must be positive")
        if self.cache.ttl_seconds <= 0:
            errors.append("cache.ttl_seconds must be positive")
        if not self.cache.key_prefix:
            errors.append("cache.key_prefix must not be empty")
        if self.refresh.interval_seconds <= 0:
            errors.append("refresh.interval_seconds must be positive")
        if not self.refresh.commodities:
            errors.append("refresh.commodities must not be empty")

        return errors
