"""
Price Source Models - Canonical price record and source bookkeeping.

Provides strict typing for price normalization across all providers.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from core.clock import from_iso8601, to_iso8601


EXAMPLE_DATA_SOURCE = "Example Data"


class SourceStatus(Enum):
    """Health status of a price source."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class HistoricalPoint:
    """One (timestamp, price) point of a historical series."""
    timestamp: datetime
    price: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"date": to_iso8601(self.timestamp), "price": self.price}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoricalPoint":
        """Create from dictionary."""
        raw_ts = data.get("date", data.get("timestamp"))
        if isinstance(raw_ts, datetime):
            ts = raw_ts if raw_ts.tzinfo else raw_ts.replace(tzinfo=timezone.utc)
        elif isinstance(raw_ts, (int, float)):
            ts = datetime.fromtimestamp(raw_ts, tz=timezone.utc)
        else:
            ts = from_iso8601(str(raw_ts))
        return cls(timestamp=ts, price=float(data["price"]))


@dataclass(frozen=True)
class PriceRecord:
    """
    Canonical price record - STRICT schema.

    All adapters, the cache and the synthetic generator produce this
    shape. No downstream module depends on provider-specific fields.
    """
    commodity: str
    price: float
    unit: str
    change: float
    change_percent: float
    last_updated: datetime
    source: str
    is_synthetic: bool = False
    historical_series: tuple[HistoricalPoint, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "commodity": self.commodity,
            "price": self.price,
            "unit": self.unit,
            "change": self.change,
            "changePercent": self.change_percent,
            "lastUpdated": to_iso8601(self.last_updated),
            "source": self.source,
            "isSynthetic": self.is_synthetic,
            "historicalSeries": [p.to_dict() for p in self.historical_series],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceRecord":
        """Create from dictionary produced by to_dict()."""
        return cls(
            commodity=data["commodity"],
            price=float(data["price"]),
            unit=data["unit"],
            change=float(data.get("change", 0.0)),
            change_percent=float(data.get("changePercent", 0.0)),
            last_updated=from_iso8601(data["lastUpdated"]),
            source=data.get("source", "Unknown"),
            is_synthetic=bool(data.get("isSynthetic", False)),
            historical_series=tuple(
                HistoricalPoint.from_dict(p) for p in data.get("historicalSeries", [])
            ),
        )


@dataclass
class SourceHealth:
    """Health status of a price source."""
    status: SourceStatus
    last_check: datetime
    latency_ms: Optional[float] = None
    error_count: int = 0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    consecutive_failures: int = 0
    uptime_percentage: float = 100.0

    def is_healthy(self) -> bool:
        """Check if source is operational."""
        return self.status == SourceStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "last_check": self.last_check.isoformat(),
            "latency_ms": self.latency_ms,
            "error_count": self.error_count,
            "last_error": self.last_error,
            "last_error_time": self.last_error_time.isoformat() if self.last_error_time else None,
            "consecutive_failures": self.consecutive_failures,
            "uptime_percentage": self.uptime_percentage,
        }


@dataclass
class SourceMetadata:
    """Metadata about a price provider."""
    name: str
    display_name: str
    version: str
    supported_commodities: list[str]
    base_url: str = ""
    documentation_url: str = ""
    uses_relay: bool = False
    requires_license: bool = False
    priority: int = 0  # Lower = higher priority for fallback
    tags: list[str] = field(default_factory=list)

    def supports(self, commodity: str) -> bool:
        """Check if commodity is supported."""
        return commodity in self.supported_commodities

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "version": self.version,
            "supported_commodities": self.supported_commodities,
            "base_url": self.base_url,
            "documentation_url": self.documentation_url,
            "uses_relay": self.uses_relay,
            "requires_license": self.requires_license,
            "priority": self.priority,
            "tags": self.tags,
        }


@dataclass
class SourceIncident:
    """Record of a price source incident."""
    source_name: str
    incident_type: str
    timestamp: datetime
    error_message: str
    commodity: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_name": self.source_name,
            "incident_type": self.incident_type,
            "timestamp": self.timestamp.isoformat(),
            "error_message": self.error_message,
            "commodity": self.commodity,
        }
