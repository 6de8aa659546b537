"""
Price Tracker Models - Snapshot passed to subscribers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from core.clock import to_iso8601
from price_sources.models import PriceRecord


@dataclass(frozen=True)
class TrackerSnapshot:
    """Immutable view of tracker state at one moment."""
    records: Dict[str, PriceRecord] = field(default_factory=dict)
    is_loading: bool = False
    last_update: Optional[datetime] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {
            "records": [record.to_dict() for record in self.records.values()],
            "isLoading": self.is_loading,
            "lastUpdate": to_iso8601(self.last_update) if self.last_update else None,
        }
        if self.error:
            data["error"] = self.error
        return data
