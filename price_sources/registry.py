"""
Source Registry - Central registry for price sources and their routes.

Provides:
- Source registration and discovery
- Commodity routes (ordered adapter names per commodity)
- Fallback and incident callbacks
- No downstream dependency on specific providers
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import aiohttp

from core.config import RequestConfig
from price_sources.base import BasePriceSource
from price_sources.models import (
    SourceHealth,
    SourceIncident,
    SourceMetadata,
    SourceStatus,
)


logger = logging.getLogger(__name__)


# Commodity -> adapter names, tried in order. Commodities without an
# entry have no live source.
DEFAULT_ROUTES: dict[str, list[str]] = {
    "Gold": ["lbma", "yahoo_finance", "free_gold_price"],
    "Silver": ["lbma", "yahoo_finance", "free_gold_price"],
    "Platinum": ["lbma", "yahoo_finance", "free_gold_price"],
    "Copper": ["yahoo_finance"],
    "Gas": ["yahoo_finance"],
    "Electricity": ["yahoo_finance"],
    "Nickel": ["yahoo_metals"],
    "Lithium": ["yahoo_metals"],
    "Rare Earths": ["yahoo_metals"],
}


class SourceRegistry:
    """
    Central registry for price sources.

    Features:
    - Register multiple price sources
    - Per-commodity routes with fallback order
    - Event callbacks for incidents and fallbacks
    - No downstream code depends on specific providers

    Usage:
        registry = SourceRegistry()
        registry.register(LBMAPriceSource())
        registry.register(YahooFinancePriceSource())
        registry.set_route("Gold", ["lbma", "yahoo_finance"])

        for source in registry.candidates_for("Gold"):
            ...
    """

    def __init__(
        self,
        routes: Optional[dict[str, list[str]]] = None,
        max_incidents: int = 1000,
    ) -> None:
        self._sources: dict[str, BasePriceSource] = {}
        self._source_order: list[str] = []  # Priority order
        self._routes: dict[str, list[str]] = {
            commodity: list(names) for commodity, names in (routes or {}).items()
        }

        # Incident tracking
        self._incidents: list[SourceIncident] = []
        self._max_incidents = max_incidents

        # Event callbacks
        self._on_incident_callbacks: list[Callable[[SourceIncident], None]] = []
        self._on_fallback_callbacks: list[Callable[[str, str, str], None]] = []

    def register(
        self,
        source: BasePriceSource,
        priority: Optional[int] = None,
    ) -> None:
        """
        Register a price source.

        Args:
            source: Price source instance
            priority: Lower = higher priority (optional, uses metadata priority)
        """
        name = source.name

        if name in self._sources:
            logger.warning(f"Source '{name}' already registered, replacing")
            self._source_order.remove(name)

        self._sources[name] = source

        if priority is None:
            priority = source.metadata().priority

        # Find insertion point
        insert_idx = len(self._source_order)
        for i, existing_name in enumerate(self._source_order):
            if priority < self._sources[existing_name].metadata().priority:
                insert_idx = i
                break

        self._source_order.insert(insert_idx, name)

        logger.info(f"Registered source '{name}' with priority {priority}")

    def unregister(self, name: str) -> Optional[BasePriceSource]:
        """Unregister a price source."""
        if name in self._sources:
            source = self._sources.pop(name)
            self._source_order.remove(name)
            logger.info(f"Unregistered source '{name}'")
            return source
        return None

    def get_source(self, name: str) -> Optional[BasePriceSource]:
        """Get a specific source by name."""
        return self._sources.get(name)

    def list_sources(self) -> list[str]:
        """List all registered source names in priority order."""
        return self._source_order.copy()

    # --------------------------------------------------------
    # ROUTES
    # --------------------------------------------------------

    def set_route(self, commodity: str, source_names: list[str]) -> None:
        """Set the ordered adapter names for a commodity (empty removes it)."""
        if source_names:
            self._routes[commodity] = list(source_names)
        else:
            self._routes.pop(commodity, None)

    @property
    def routes(self) -> dict[str, list[str]]:
        """Copy of the route table."""
        return {commodity: list(names) for commodity, names in self._routes.items()}

    def candidates_for(self, commodity: str) -> list[BasePriceSource]:
        """
        Registered adapters routed for a commodity, in route order.

        Route entries naming unregistered sources are skipped.
        """
        candidates = []
        for name in self._routes.get(commodity, []):
            source = self._sources.get(name)
            if source is None:
                logger.debug(f"Route for {commodity} names unregistered source '{name}'")
                continue
            candidates.append(source)
        return candidates

    # --------------------------------------------------------
    # HEALTH
    # --------------------------------------------------------

    def get_all_metadata(self) -> dict[str, SourceMetadata]:
        """Get metadata for all registered sources."""
        return {name: source.metadata() for name, source in self._sources.items()}

    def get_all_health(self) -> dict[str, SourceHealth]:
        """Get health status for all registered sources."""
        return {name: source.get_health() for name, source in self._sources.items()}

    async def health_check_all(self) -> dict[str, SourceHealth]:
        """Run health check on all sources concurrently."""
        names = list(self._sources)
        outcomes = await asyncio.gather(
            *(self._sources[name].health_check() for name in names),
            return_exceptions=True,
        )

        results = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"[{name}] Health check failed: {outcome}")
                results[name] = SourceHealth(
                    status=SourceStatus.UNAVAILABLE,
                    last_check=datetime.now(timezone.utc),
                    last_error=str(outcome),
                )
            else:
                results[name] = outcome
        return results

    # --------------------------------------------------------
    # EVENTS
    # --------------------------------------------------------

    def on_incident(self, callback: Callable[[SourceIncident], None]) -> None:
        """Register callback for incidents."""
        self._on_incident_callbacks.append(callback)

    def on_fallback(self, callback: Callable[[str, str, str], None]) -> None:
        """Register callback for source fallback (commodity, from_source, to_source)."""
        self._on_fallback_callbacks.append(callback)

    def record_failure(self, source_name: str, commodity: str, message: str) -> None:
        """Record that a routed source gave up on a commodity."""
        self._log_incident(source_name, "fetch_error", message, commodity)

    def record_fallback(self, commodity: str, from_source: str, to_source: str) -> None:
        """Handle source fallback."""
        logger.warning(f"Fallback for {commodity}: {from_source} -> {to_source}")

        self._log_incident(
            from_source,
            "fallback",
            f"Switched to {to_source}",
            commodity,
        )

        for callback in self._on_fallback_callbacks:
            try:
                callback(commodity, from_source, to_source)
            except Exception as e:
                logger.error(f"Fallback callback error: {e}")

    def _log_incident(
        self,
        source_name: str,
        incident_type: str,
        message: str,
        commodity: Optional[str] = None,
    ) -> None:
        """Log an incident."""
        incident = SourceIncident(
            source_name=source_name,
            incident_type=incident_type,
            timestamp=datetime.now(timezone.utc),
            error_message=message,
            commodity=commodity,
        )

        self._incidents.append(incident)

        # Trim to max size
        if len(self._incidents) > self._max_incidents:
            self._incidents = self._incidents[-self._max_incidents:]

        # Notify callbacks
        for callback in self._on_incident_callbacks:
            try:
                callback(incident)
            except Exception as e:
                logger.error(f"Incident callback error: {e}")

    def get_incidents(self, limit: int = 100) -> list[SourceIncident]:
        """Get recent incidents."""
        return self._incidents[-limit:]

    def get_source_incidents(self, source_name: str, limit: int = 50) -> list[SourceIncident]:
        """Get incidents for a specific source."""
        source_incidents = [i for i in self._incidents if i.source_name == source_name]
        return source_incidents[-limit:]

    def get_stats(self) -> dict[str, Any]:
        """Get registry statistics."""
        health_summary = {}
        for status in SourceStatus:
            health_summary[status.value] = sum(
                1 for s in self._sources.values()
                if s.get_health().status == status
            )

        return {
            "total_sources": len(self._sources),
            "source_order": self._source_order.copy(),
            "routes": self.routes,
            "health_summary": health_summary,
            "total_incidents": len(self._incidents),
            "sources": {
                name: {
                    "status": source.get_health().status.value,
                    "uses_relay": source.uses_relay,
                    "priority": source.metadata().priority,
                }
                for name, source in self._sources.items()
            },
        }

    async def close(self) -> None:
        """Close all resources."""
        for source in self._sources.values():
            try:
                await source.close()
            except Exception as e:
                logger.error(f"Error closing source {source.name}: {e}")

        self._sources.clear()
        self._source_order.clear()
        logger.info("Registry closed")

    async def __aenter__(self) -> "SourceRegistry":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


def create_default_registry(
    session: Optional[aiohttp.ClientSession] = None,
    request_config: Optional[RequestConfig] = None,
) -> SourceRegistry:
    """
    Build a registry with the standard sources and routes.

    FreeGoldPrice is the last precious-metal candidate; it carries no
    change data.
    """
    from price_sources.providers.free_gold_price import FreeGoldPriceSource
    from price_sources.providers.lbma import LBMAPriceSource
    from price_sources.providers.yahoo_finance import (
        YahooFinancePriceSource,
        create_yahoo_metals_source,
    )

    registry = SourceRegistry(routes=DEFAULT_ROUTES)

    registry.register(LBMAPriceSource(request_config=request_config, session=session))
    registry.register(YahooFinancePriceSource(request_config=request_config, session=session))
    registry.register(create_yahoo_metals_source(request_config=request_config, session=session))
    registry.register(FreeGoldPriceSource(request_config=request_config, session=session))

    return registry
