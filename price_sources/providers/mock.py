"""
Mock Price Source - In-process adapter for tests and demos.

FEATURES:
- Fixed per-commodity responses
- Configurable failure injection (always, or the first N calls)
- Configurable latency
- Per-commodity call counting
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from price_sources.base import BasePriceSource
from price_sources.exceptions import PriceSourceError, SourceUnavailableError
from price_sources.models import PriceRecord, SourceHealth, SourceMetadata, SourceStatus


logger = logging.getLogger(__name__)


@dataclass
class MockSourceConfig:
    """Configuration for mock source."""

    latency_seconds: float = 0.0
    """Simulated latency per call."""

    always_fail: bool = False
    """Fail every call."""

    failures_before_success: int = 0
    """Fail this many calls per commodity, then succeed."""

    error_reason: str = SourceUnavailableError.NETWORK
    """Reason carried by injected SourceUnavailableError."""

    fail_with: Optional[PriceSourceError] = None
    """Explicit error to raise instead of the default one."""

    priority: int = 10

    tags: list[str] = field(default_factory=lambda: ["mock"])


class MockPriceSource(BasePriceSource):
    """
    Mock price source for testing.

    Responses are given as PriceRecords or raw mappings (which pass
    through the normal fetch/normalize path unchanged).
    """

    def __init__(
        self,
        name: str = "mock",
        responses: Optional[dict[str, Union[PriceRecord, dict[str, Any]]]] = None,
        config: Optional[MockSourceConfig] = None,
    ) -> None:
        super().__init__()
        self._name = name
        self._responses = dict(responses or {})
        self._mock_config = config or MockSourceConfig()
        self.calls: Counter = Counter()

    @property
    def name(self) -> str:
        """Unique identifier."""
        return self._name

    @property
    def call_count(self) -> int:
        """Total fetch_raw calls across all commodities."""
        return sum(self.calls.values())

    def set_response(self, commodity: str, response: Union[PriceRecord, dict[str, Any]]) -> None:
        """Set or replace the response for a commodity."""
        self._responses[commodity] = response

    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        return SourceMetadata(
            name=self.name,
            display_name=f"Mock ({self.name})",
            version="1.0.0",
            supported_commodities=list(self._responses.keys()),
            priority=self._mock_config.priority,
            tags=list(self._mock_config.tags),
        )

    async def fetch_raw(self, commodity: str) -> dict[str, Any]:
        """Return the configured response or inject a failure."""
        self.calls[commodity] += 1

        if self._mock_config.latency_seconds:
            await asyncio.sleep(self._mock_config.latency_seconds)

        failing = (
            self._mock_config.always_fail
            or self.calls[commodity] <= self._mock_config.failures_before_success
        )
        if failing:
            if self._mock_config.fail_with is not None:
                raise self._mock_config.fail_with
            raise SourceUnavailableError(
                message=f"Injected failure for {commodity}",
                source_name=self.name,
                reason=self._mock_config.error_reason,
            )

        if commodity not in self._responses:
            raise self._unsupported(commodity)

        response = self._responses[commodity]
        if isinstance(response, PriceRecord):
            return response.to_dict()
        return dict(response)

    async def health_check(self) -> SourceHealth:
        """Mock sources are healthy unless configured to always fail."""
        self._health.status = (
            SourceStatus.UNAVAILABLE if self._mock_config.always_fail else SourceStatus.HEALTHY
        )
        self._health.last_check = datetime.now(timezone.utc)
        self._health.latency_ms = self._mock_config.latency_seconds * 1000
        return self._health
