"""
Resolution Engine - Cache, live sources with retry, then example data.

============================================================
RESPONSIBILITY
============================================================
Turns a commodity name into a valid PriceRecord, always.

Order of resolution:
1. Non-expired cached record
2. Routed sources in order, each with its retry budget
3. Example record from the synthetic generator

============================================================
DESIGN PRINCIPLES
============================================================
- resolve() and resolve_all() never raise
- Only validated records are cached
- The sleep function is injected so tests run without delays

============================================================
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from core.clock import ClockProtocol, SystemClock
from core.config import RetryConfig
from price_cache.cache import ExpiringPriceCache
from price_sources.base import BasePriceSource
from price_sources.exceptions import (
    NoSourceAvailableError,
    PriceSourceError,
    UnknownCommodityError,
    ValidationFailedError,
)
from price_sources.models import EXAMPLE_DATA_SOURCE, PriceRecord
from price_sources.normalizer import normalize, validate
from price_sources.registry import SourceRegistry
from synthetic_data.generator import get_example_record


logger = logging.getLogger(__name__)


class ResolutionEngine:
    """
    Resolves commodities to canonical price records.

    Usage:
        engine = ResolutionEngine(create_default_registry(), ExpiringPriceCache())
        record = await engine.resolve("Gold")
    """

    def __init__(
        self,
        registry: SourceRegistry,
        cache: ExpiringPriceCache,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        example_factory: Callable[[str], PriceRecord] = get_example_record,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._retry = retry_config or RetryConfig()
        self._sleep = sleep
        self._example_factory = example_factory
        self._clock = clock or SystemClock()

        # Diagnostics: commodity -> last error message
        self._last_errors: Dict[str, str] = {}

    @property
    def registry(self) -> SourceRegistry:
        return self._registry

    @property
    def cache(self) -> ExpiringPriceCache:
        return self._cache

    @property
    def last_errors(self) -> Dict[str, str]:
        """Last failure per commodity, cleared when it next resolves live."""
        return dict(self._last_errors)

    # --------------------------------------------------------
    # PUBLIC API
    # --------------------------------------------------------

    async def resolve(self, commodity: str) -> PriceRecord:
        """
        Resolve one commodity. Never raises.

        Any failure of the cache or live path is logged and replaced
        by an example record.
        """
        try:
            return await self._resolve_live(commodity)
        except Exception as e:
            self._last_errors[commodity] = str(e)
            logger.warning(f"Using example data for {commodity}: {e}")
            return self._example(commodity)

    async def resolve_all(self, commodities: List[str]) -> List[PriceRecord]:
        """Resolve commodities concurrently; one record per input, in order."""
        return list(await asyncio.gather(*(self.resolve(c) for c in commodities)))

    async def close(self) -> None:
        """Close the registry and its sources."""
        await self._registry.close()

    # --------------------------------------------------------
    # LIVE PATH
    # --------------------------------------------------------

    async def _resolve_live(self, commodity: str) -> PriceRecord:
        cached = self._cache.get(commodity)
        if cached is not None:
            self._last_errors.pop(commodity, None)
            return cached

        candidates = self._registry.candidates_for(commodity)
        if not candidates:
            raise NoSourceAvailableError(
                f"No source configured for {commodity}",
                commodity=commodity,
            )

        attempted: List[str] = []
        last_error: Optional[PriceSourceError] = None

        for index, source in enumerate(candidates):
            if attempted:
                self._registry.record_fallback(commodity, attempted[-1], source.name)
            attempted.append(source.name)

            attempts = self._retry.attempts if index == 0 or self._retry.retry_secondary else 1
            try:
                fetched = await self._fetch_with_retry(source, commodity, attempts)
            except PriceSourceError as e:
                logger.warning(f"[{source.name}] Gave up on {commodity}: {e}")
                self._registry.record_failure(source.name, commodity, str(e))
                last_error = e
                continue

            record = normalize(fetched)
            if record is None or not validate(record):
                raise ValidationFailedError(
                    f"Record for {commodity} failed validation",
                    source_name=source.name,
                    raw_data=fetched,
                )

            self._cache.set(commodity, record)
            self._last_errors.pop(commodity, None)
            logger.debug(f"Resolved {commodity} from {source.name}")
            return record

        raise NoSourceAvailableError(
            f"All sources failed for {commodity}",
            commodity=commodity,
            attempted_sources=attempted,
            original_error=last_error,
        )

    async def _fetch_with_retry(
        self,
        source: BasePriceSource,
        commodity: str,
        attempts: int,
    ) -> PriceRecord:
        """Fetch with linear backoff retry; unsupported commodities are not retried."""
        attempts = max(attempts, 1)
        last_error: Optional[PriceSourceError] = None

        for attempt in range(1, attempts + 1):
            try:
                return await source.fetch(commodity)

            except NoSourceAvailableError:
                raise

            except PriceSourceError as e:
                last_error = e
                if attempt < attempts:
                    wait_time = self._retry.delay_for(attempt)
                    logger.warning(
                        f"[{source.name}] {commodity} failed: {e}, "
                        f"retrying in {wait_time}s (attempt {attempt}/{attempts})"
                    )
                    await self._sleep(wait_time)

        raise last_error

    # --------------------------------------------------------
    # FALLBACK
    # --------------------------------------------------------

    def _example(self, commodity: str) -> PriceRecord:
        try:
            return self._example_factory(commodity)
        except UnknownCommodityError as e:
            logger.error(f"No example data for {commodity}, returning empty record: {e}")
            return PriceRecord(
                commodity=commodity or "Unknown",
                price=0.0,
                unit="USD",
                change=0.0,
                change_percent=0.0,
                last_updated=self._clock.now(),
                source=EXAMPLE_DATA_SOURCE,
                is_synthetic=True,
            )
