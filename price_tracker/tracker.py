"""
Price Tracker - Holds tracked prices and drives refreshes.

============================================================
RESPONSIBILITY
============================================================
Owns the commodity -> PriceRecord state shown to consumers.

- Refreshes all tracked commodities through the resolution engine
- Backfills anything missing with example data
- Notifies subscribers with an immutable snapshot
- Optionally refreshes on a fixed interval

============================================================
STATE MACHINE
============================================================
IDLE -> LOADING -> IDLE

refresh() while LOADING is a no-op. The loading flag is set
before the first await, so overlapping calls resolve once.

============================================================
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from core.clock import ClockProtocol, SystemClock
from core.config import RefreshConfig
from price_sources.exceptions import UnknownCommodityError
from price_sources.models import PriceRecord
from price_tracker.models import TrackerSnapshot
from resolution_engine.engine import ResolutionEngine
from synthetic_data.generator import get_example_record


logger = logging.getLogger(__name__)


Listener = Callable[[TrackerSnapshot], None]


class PriceTracker:
    """
    Tracks prices for a fixed list of commodities.

    Usage:
        tracker = PriceTracker(engine)
        unsubscribe = tracker.subscribe(render)
        await tracker.initialize()
        ...
        await tracker.close()
    """

    def __init__(
        self,
        engine: ResolutionEngine,
        commodities: Optional[List[str]] = None,
        config: Optional[RefreshConfig] = None,
        clock: Optional[ClockProtocol] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        example_factory: Callable[[str], PriceRecord] = get_example_record,
    ) -> None:
        self._engine = engine
        self._config = config or RefreshConfig()
        self._commodities = list(commodities if commodities is not None else self._config.commodities)
        self._clock = clock or SystemClock()
        self._sleep = sleep
        self._example_factory = example_factory

        # State
        self._records: Dict[str, PriceRecord] = {}
        self._is_loading = False
        self._last_update: Optional[datetime] = None
        self._error: Optional[str] = None
        self._listeners: List[Listener] = []

        # Auto refresh
        self._refresh_task: Optional[asyncio.Task] = None

    # --------------------------------------------------------
    # PROPERTIES
    # --------------------------------------------------------

    @property
    def commodities(self) -> List[str]:
        return list(self._commodities)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_auto_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    @property
    def errors(self) -> Dict[str, str]:
        """Last resolution error per tracked commodity."""
        last_errors = self._engine.last_errors
        return {c: last_errors[c] for c in self._commodities if c in last_errors}

    def get_state(self) -> TrackerSnapshot:
        """Current snapshot."""
        return TrackerSnapshot(
            records=dict(self._records),
            is_loading=self._is_loading,
            last_update=self._last_update,
            error=self._error,
        )

    # --------------------------------------------------------
    # SUBSCRIPTIONS
    # --------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener and call it immediately with the current snapshot.

        Returns:
            Callable that removes the listener (safe to call twice)
        """
        self._listeners.append(listener)
        self._call_listener(listener, self.get_state())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.get_state()
        for listener in list(self._listeners):
            self._call_listener(listener, snapshot)

    def _call_listener(self, listener: Listener, snapshot: TrackerSnapshot) -> None:
        try:
            listener(snapshot)
        except Exception as e:
            logger.error(f"Listener {listener!r} failed: {e}")

    # --------------------------------------------------------
    # REFRESH
    # --------------------------------------------------------

    async def refresh(self) -> TrackerSnapshot:
        """
        Resolve every tracked commodity and publish the result.

        Never raises. Returns the snapshot published at the end, or the
        current snapshot when a refresh is already running.
        """
        if self._is_loading:
            logger.debug("Refresh already in progress, skipping")
            return self.get_state()

        self._is_loading = True
        self._error = None
        self._notify()

        try:
            records = await self._engine.resolve_all(self._commodities)
            for commodity, record in zip(self._commodities, records):
                self._records[commodity] = record
            logger.info(f"Refreshed {len(records)} commodities")
        except Exception as e:
            self._error = str(e)
            logger.error(f"Refresh failed: {e}")
        finally:
            self._backfill()
            self._last_update = self._clock.now()
            self._is_loading = False

        self._notify()
        return self.get_state()

    def _backfill(self) -> None:
        """Fill commodities still missing from state with example data."""
        for commodity in self._commodities:
            if commodity in self._records:
                continue
            try:
                self._records[commodity] = self._example_factory(commodity)
            except UnknownCommodityError as e:
                logger.error(f"Cannot backfill {commodity}: {e}")

    # --------------------------------------------------------
    # AUTO REFRESH
    # --------------------------------------------------------

    def start_auto_refresh(self) -> None:
        """Start periodic refresh, replacing any running timer."""
        self.stop_auto_refresh()
        self._refresh_task = asyncio.get_running_loop().create_task(self._auto_refresh_loop())
        logger.info(f"Started auto refresh (interval={self._config.interval_seconds}s)")

    def stop_auto_refresh(self) -> None:
        """Stop periodic refresh."""
        if self._refresh_task is not None:
            if not self._refresh_task.done():
                self._refresh_task.cancel()
                logger.info("Stopped auto refresh")
            self._refresh_task = None

    async def _auto_refresh_loop(self) -> None:
        while True:
            try:
                await self._sleep(self._config.interval_seconds)
                await self.refresh()
            except asyncio.CancelledError:
                break

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    async def initialize(self) -> TrackerSnapshot:
        """First refresh, then periodic refresh."""
        snapshot = await self.refresh()
        self.start_auto_refresh()
        return snapshot

    def get_price_with_fallback(self, commodity: str) -> Optional[PriceRecord]:
        """
        Best record available without network access.

        Order: tracked state, cache, example data. None only when the
        commodity has no example baseline either.
        """
        record = self._records.get(commodity)
        if record is not None:
            return record

        record = self._engine.cache.get(commodity)
        if record is not None:
            return record

        try:
            return self._example_factory(commodity)
        except UnknownCommodityError as e:
            logger.error(f"No price available for {commodity}: {e}")
            return None

    async def close(self) -> None:
        """Stop the timer, drop listeners and close the engine's sources."""
        self.stop_auto_refresh()
        self._listeners.clear()
        await self._engine.close()
        logger.info("Tracker closed")
