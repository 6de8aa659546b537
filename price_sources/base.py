"""
Base Price Source - Abstract interface for all price providers.

All providers MUST implement this interface to ensure:
- Isolation
- Replaceability
- A single canonical output shape (PriceRecord)
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import quote, urlencode

import aiohttp

from core.config import RequestConfig
from price_sources.exceptions import (
    NoSourceAvailableError,
    PriceSourceError,
    SourceUnavailableError,
)
from price_sources.models import (
    PriceRecord,
    SourceHealth,
    SourceIncident,
    SourceMetadata,
    SourceStatus,
)
from price_sources.normalizer import normalize


logger = logging.getLogger(__name__)


class BasePriceSource(ABC):
    """
    Abstract base class for all price sources.

    Each source implementation must:
    1. Implement fetch_raw() - Get one commodity's raw price mapping
    2. Implement health_check() - Verify provider connectivity
    3. Implement metadata() - Return provider metadata

    Features:
    - Bounded request timeouts
    - Optional relay routing with a second relay on failure
    - Health tracking
    - Incident logging
    """

    DEGRADED_THRESHOLD = 3  # consecutive failures before degraded
    UNAVAILABLE_THRESHOLD = 5  # consecutive failures before unavailable

    # Subclasses that cannot be reached directly set this to True
    USE_RELAY = False

    def __init__(
        self,
        request_config: Optional[RequestConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        use_relay: Optional[bool] = None,
    ) -> None:
        self._config = request_config or RequestConfig()
        self._session = session
        self._owns_session = session is None
        self._use_relay = self.USE_RELAY if use_relay is None else use_relay

        # Health tracking
        self._health = SourceHealth(
            status=SourceStatus.UNKNOWN,
            last_check=datetime.now(timezone.utc),
        )
        self._last_successful_request: Optional[datetime] = None
        self._request_count = 0
        self._success_count = 0
        self._error_count = 0

        # Incident log
        self._incidents: list[SourceIncident] = []
        self._max_incidents = 100

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this price source."""
        pass

    @property
    def uses_relay(self) -> bool:
        """Whether requests are routed through a relay endpoint."""
        return self._use_relay

    @abstractmethod
    async def fetch_raw(self, commodity: str) -> dict[str, Any]:
        """
        Fetch one commodity from the provider.

        Args:
            commodity: Commodity identifier, e.g. "Gold"

        Returns:
            Raw price mapping with at least commodity, price and unit

        Raises:
            SourceUnavailableError: On any provider failure
            NoSourceAvailableError: If the commodity is not supported
        """
        pass

    @abstractmethod
    async def health_check(self) -> SourceHealth:
        """
        Check provider connectivity and health.

        Returns:
            SourceHealth object with current status
        """
        pass

    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """
        Return provider metadata.

        Returns:
            SourceMetadata with provider information
        """
        pass

    async def fetch(self, commodity: str) -> PriceRecord:
        """
        Fetch and normalize one commodity's price (main entry point).

        Raises:
            SourceUnavailableError: Network, timeout, HTTP, payload or
                missing-field failure
            NoSourceAvailableError: Commodity not supported by this source
        """
        try:
            raw = await self.fetch_raw(commodity)

            if not isinstance(raw, Mapping):
                raise SourceUnavailableError(
                    message=f"Expected a mapping, got {type(raw).__name__}",
                    source_name=self.name,
                    reason=SourceUnavailableError.MALFORMED_PAYLOAD,
                )
            if raw.get("price") is None:
                raise SourceUnavailableError(
                    message=f"No price in response for {commodity}",
                    source_name=self.name,
                    reason=SourceUnavailableError.MISSING_FIELDS,
                )

            record = normalize(raw)
            self._on_success()
            return record

        except NoSourceAvailableError:
            raise
        except PriceSourceError as e:
            self._on_error(e, commodity)
            raise
        except Exception as e:
            error = SourceUnavailableError(
                message=f"Unexpected error: {e}",
                source_name=self.name,
                original_error=e,
            )
            self._on_error(error, commodity)
            raise error from e

    def _unsupported(self, commodity: str) -> NoSourceAvailableError:
        """Build the error raised for commodities this source does not cover."""
        return NoSourceAvailableError(
            message=f"{self.name} has no mapping for {commodity}",
            commodity=commodity,
            attempted_sources=[self.name],
            source_name=self.name,
        )

    # --------------------------------------------------------
    # HTTP
    # --------------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": self._config.user_agent,
        }

    async def _request_json(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        GET a JSON document, through the relays when this source uses them.

        The first relay is tried, then the alternate relay once, before
        the failure surfaces.
        """
        if params:
            url = f"{url}?{urlencode(params)}"

        if not self._use_relay:
            return await self._get_json(url, self._config.timeout_seconds)

        last_error: Optional[SourceUnavailableError] = None
        for relay in self._config.relay_endpoints:
            relayed_url = f"{relay}{quote(url, safe='')}"
            try:
                return await self._get_json(relayed_url, self._config.relay_timeout_seconds)
            except SourceUnavailableError as e:
                logger.debug(f"[{self.name}] Relay {relay} failed: {e}")
                last_error = e

        raise SourceUnavailableError(
            message=f"All relays failed for {url}",
            source_name=self.name,
            reason=last_error.reason if last_error else SourceUnavailableError.RELAY_FAILED,
            request_url=url,
            original_error=last_error,
        )

    async def _get_json(self, url: str, timeout: float) -> Any:
        """GET with a hard timeout; the pending request is cancelled on expiry."""
        session = await self._get_session()

        start_time = time.time()
        try:
            data = await asyncio.wait_for(self._do_get(session, url), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SourceUnavailableError(
                message=f"Request timed out after {timeout:.0f}s",
                source_name=self.name,
                reason=SourceUnavailableError.TIMEOUT,
                request_url=url,
                original_error=e,
            ) from e

        latency_ms = (time.time() - start_time) * 1000
        logger.debug(f"[{self.name}] Request completed in {latency_ms:.1f}ms")
        return data

    async def _do_get(self, session: aiohttp.ClientSession, url: str) -> Any:
        """Perform the GET and decode the JSON body."""
        try:
            async with session.get(url) as response:
                if response.status >= 400:
                    raise SourceUnavailableError(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        reason=SourceUnavailableError.HTTP_ERROR,
                        status_code=response.status,
                        request_url=url,
                    )

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise SourceUnavailableError(
                        message="Response is not valid JSON",
                        source_name=self.name,
                        reason=SourceUnavailableError.MALFORMED_PAYLOAD,
                        request_url=url,
                        original_error=e,
                    ) from e

        except aiohttp.ClientError as e:
            raise SourceUnavailableError(
                message=f"Connection error: {e}",
                source_name=self.name,
                reason=SourceUnavailableError.NETWORK,
                request_url=url,
                original_error=e,
            ) from e

    async def _probe(self, url: str) -> SourceHealth:
        """Run a health check against a single URL."""
        start_time = time.time()
        try:
            await self._request_json(url)
            latency_ms = (time.time() - start_time) * 1000

            self._health.status = SourceStatus.HEALTHY
            self._health.last_check = datetime.now(timezone.utc)
            self._health.latency_ms = latency_ms

            logger.debug(f"[{self.name}] Health check OK, latency={latency_ms:.1f}ms")

        except SourceUnavailableError as e:
            latency_ms = (time.time() - start_time) * 1000

            self._health.status = SourceStatus.UNAVAILABLE
            self._health.last_check = datetime.now(timezone.utc)
            self._health.latency_ms = latency_ms
            self._health.last_error = str(e)
            self._health.last_error_time = datetime.now(timezone.utc)

            logger.warning(f"[{self.name}] Health check FAILED: {e}")

        return self._health

    # --------------------------------------------------------
    # HEALTH TRACKING
    # --------------------------------------------------------

    def _on_success(self) -> None:
        """Handle successful request."""
        self._request_count += 1
        self._success_count += 1
        self._last_successful_request = datetime.now(timezone.utc)

        # Reset consecutive failures
        self._health.consecutive_failures = 0

        if self._health.status != SourceStatus.HEALTHY:
            self._health.status = SourceStatus.HEALTHY
            logger.info(f"[{self.name}] Recovered to HEALTHY status")

    def _on_error(
        self,
        error: PriceSourceError,
        commodity: Optional[str] = None,
    ) -> None:
        """Handle request error."""
        self._request_count += 1
        self._error_count += 1
        self._health.error_count += 1
        self._health.consecutive_failures += 1
        self._health.last_error = str(error)
        self._health.last_error_time = datetime.now(timezone.utc)

        if self._health.consecutive_failures >= self.UNAVAILABLE_THRESHOLD:
            if self._health.status != SourceStatus.UNAVAILABLE:
                self._health.status = SourceStatus.UNAVAILABLE
                logger.error(f"[{self.name}] Marked UNAVAILABLE after {self._health.consecutive_failures} failures")
        elif self._health.consecutive_failures >= self.DEGRADED_THRESHOLD:
            if self._health.status != SourceStatus.DEGRADED:
                self._health.status = SourceStatus.DEGRADED
                logger.warning(f"[{self.name}] Marked DEGRADED after {self._health.consecutive_failures} failures")

        self._log_incident(error, commodity)

    def _log_incident(
        self,
        error: PriceSourceError,
        commodity: Optional[str] = None,
    ) -> None:
        """Log an incident."""
        incident = SourceIncident(
            source_name=self.name,
            incident_type=error.__class__.__name__,
            timestamp=datetime.now(timezone.utc),
            error_message=str(error),
            commodity=commodity,
        )

        self._incidents.append(incident)

        if len(self._incidents) > self._max_incidents:
            self._incidents = self._incidents[-self._max_incidents:]

        logger.warning(f"[{self.name}] Incident logged: {error}")

    def get_health(self) -> SourceHealth:
        """Get current health status."""
        if self._request_count > 0:
            self._health.uptime_percentage = (
                self._success_count / self._request_count * 100
            )
        return self._health

    def get_incidents(self, limit: int = 10) -> list[SourceIncident]:
        """Get recent incidents."""
        return self._incidents[-limit:]

    def is_healthy(self) -> bool:
        """Check if source is healthy."""
        return self._health.status == SourceStatus.HEALTHY

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BasePriceSource":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, status={self._health.status.value})>"
