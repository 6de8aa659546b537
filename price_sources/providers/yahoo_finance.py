"""
Yahoo Finance Price Source - Public chart API adapter.

Fetches futures / ETF prices from the public Yahoo Finance chart
endpoint. No authentication required. The provider blocks direct
cross-origin access, so the default instance goes through a relay.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

import aiohttp

from core.config import RequestConfig
from price_sources.base import BasePriceSource
from price_sources.exceptions import SourceUnavailableError
from price_sources.models import SourceHealth, SourceMetadata


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolSpec:
    """One provider symbol to try for a commodity."""
    symbol: str
    unit: str
    source_label: str = "Yahoo Finance"


# Symbol lists are configuration data. Entries for a commodity are
# tried once each, in order; none is assumed to resolve.
YAHOO_FINANCE_SYMBOLS: dict[str, list[SymbolSpec]] = {
    "Gold": [SymbolSpec("GC=F", "USD/oz")],
    "Silver": [SymbolSpec("SI=F", "USD/oz")],
    "Platinum": [SymbolSpec("PL=F", "USD/oz")],
    "Copper": [SymbolSpec("HG=F", "USD/lb")],
    "Gas": [SymbolSpec("NG=F", "USD/MMBtu")],
    "Electricity": [
        SymbolSpec("PJME=F", "USD/MWh"),
        # Natural gas as a correlated proxy when no power future resolves
        SymbolSpec("NG=F", "USD/MWh", "Yahoo Finance (Gas Proxy)"),
    ],
}

YAHOO_METAL_SYMBOLS: dict[str, list[SymbolSpec]] = {
    "Nickel": [
        SymbolSpec("NI=F", "USD/metric ton"),
        SymbolSpec("NIL23.CMX", "USD/metric ton"),
        SymbolSpec("NIL24.CMX", "USD/metric ton"),
    ],
    "Lithium": [SymbolSpec("LIT", "USD/metric ton")],
    "Rare Earths": [SymbolSpec("REMX", "USD/index")],
}

# Priority-ordered previous close candidates in the chart meta block
PREVIOUS_CLOSE_FIELDS = (
    "chartPreviousClose",
    "previousClose",
    "regularMarketPreviousClose",
)

# Used when the meta block carries no previous close at all
FALLBACK_PREVIOUS_CLOSE_RATIO = 0.99


def extract_change(
    meta: Mapping[str, Any],
    current_price: float,
    intraday_closes: Sequence[Optional[float]] = (),
) -> tuple[float, float]:
    """
    Derive (change, change_percent) from a chart response.

    Order:
    1. Provider change fields, when both are present and non-null
    2. current - previous close (first available candidate field,
       else current * 0.99)
    3. Last two intraday closes, when step 2 produced no movement
    4. Zero
    """
    provider_change = meta.get("regularMarketChange")
    provider_percent = meta.get("regularMarketChangePercent")
    if provider_change is not None and provider_percent is not None:
        return float(provider_change), float(provider_percent)

    previous_close = _previous_close(meta, current_price)
    change = current_price - previous_close
    change_percent = (change / previous_close) * 100 if previous_close else 0.0

    if change == 0:
        closes = [c for c in intraday_closes if isinstance(c, (int, float)) and not isinstance(c, bool)]
        if len(closes) >= 2:
            last, prior = float(closes[-1]), float(closes[-2])
            if last and prior and last != prior:
                change = last - prior
                change_percent = (change / prior) * 100

    return float(change), float(change_percent)


def _previous_close(meta: Mapping[str, Any], current_price: float) -> float:
    """Best available previous close."""
    for field_name in PREVIOUS_CLOSE_FIELDS:
        value = meta.get(field_name)
        if value:
            return float(value)
    return current_price * FALLBACK_PREVIOUS_CLOSE_RATIO


class YahooFinancePriceSource(BasePriceSource):
    """
    Yahoo Finance chart API price source.

    Endpoints used:
    - /v8/finance/chart/{symbol}?interval=1d&range=1d - Current price
    - /v8/finance/chart/{symbol}?interval=1mo&range=2y - 24 month history
    """

    BASE_URL = "https://query2.finance.yahoo.com/v8/finance/chart"
    USE_RELAY = True

    def __init__(
        self,
        name: str = "yahoo_finance",
        display_name: str = "Yahoo Finance",
        symbols: Optional[dict[str, list[SymbolSpec]]] = None,
        use_relay: Optional[bool] = None,
        priority: int = 2,
        request_config: Optional[RequestConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(request_config, session, use_relay)
        self._name = name
        self._display_name = display_name
        self._symbols = dict(YAHOO_FINANCE_SYMBOLS if symbols is None else symbols)
        self._priority = priority

    @property
    def name(self) -> str:
        """Unique identifier."""
        return self._name

    @property
    def symbols(self) -> dict[str, list[SymbolSpec]]:
        """Commodity to symbol list mapping."""
        return self._symbols

    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        return SourceMetadata(
            name=self.name,
            display_name=self._display_name,
            version="1.0.0",
            supported_commodities=list(self._symbols.keys()),
            base_url=self.BASE_URL,
            documentation_url="https://finance.yahoo.com/",
            uses_relay=self.uses_relay,
            priority=self._priority,
            tags=["futures", "etf", "yahoo"],
        )

    async def fetch_raw(self, commodity: str) -> dict[str, Any]:
        """Try each configured symbol once, in order."""
        specs = self._symbols.get(commodity)
        if not specs:
            raise self._unsupported(commodity)

        last_error: Optional[SourceUnavailableError] = None
        for spec in specs:
            try:
                return await self._fetch_symbol(commodity, spec)
            except SourceUnavailableError as e:
                logger.debug(f"[{self.name}] {spec.symbol} failed for {commodity}: {e}")
                last_error = e

        tried = ", ".join(s.symbol for s in specs)
        raise SourceUnavailableError(
            message=f"No symbol resolved for {commodity} (tried {tried})",
            source_name=self.name,
            reason=last_error.reason if last_error else SourceUnavailableError.NETWORK,
            original_error=last_error,
        )

    async def _fetch_symbol(self, commodity: str, spec: SymbolSpec) -> dict[str, Any]:
        """Fetch current price and history for one symbol."""
        payload = await self._request_json(
            f"{self.BASE_URL}/{spec.symbol}",
            params={"interval": "1d", "range": "1d"},
        )
        result = self._chart_result(payload)
        meta = result.get("meta") or {}

        current_price = meta.get("regularMarketPrice") or meta.get("chartPreviousClose")
        if current_price is None:
            raise SourceUnavailableError(
                message=f"No market price for {spec.symbol}",
                source_name=self.name,
                reason=SourceUnavailableError.MISSING_FIELDS,
            )
        current_price = float(current_price)

        change, change_percent = extract_change(
            meta, current_price, self._closes(result)
        )
        history = await self._fetch_history(commodity, spec, current_price)

        return {
            "commodity": commodity,
            "price": current_price,
            "unit": spec.unit,
            "change": change,
            "changePercent": change_percent,
            "lastUpdated": datetime.now(timezone.utc),
            "source": spec.source_label,
            "isSynthetic": False,
            "historicalSeries": history,
        }

    async def _fetch_history(
        self,
        commodity: str,
        spec: SymbolSpec,
        current_price: float,
    ) -> list[dict[str, Any]]:
        """Fetch 24 monthly points; any failure degrades to an empty series."""
        try:
            payload = await self._request_json(
                f"{self.BASE_URL}/{spec.symbol}",
                params={"interval": "1mo", "range": "2y"},
            )
            result = self._chart_result(payload)
        except SourceUnavailableError as e:
            logger.warning(f"[{self.name}] Could not fetch historical data for {commodity}: {e}")
            return []

        timestamps = result.get("timestamp")
        if not isinstance(timestamps, list):
            timestamps = []
        closes = self._closes(result)

        history = []
        for index, ts in enumerate(timestamps):
            close = closes[index] if index < len(closes) else None
            try:
                price = float(close) if close else current_price
                date = datetime.fromtimestamp(ts, tz=timezone.utc)
            except (TypeError, ValueError, OverflowError, OSError):
                logger.debug(f"[{self.name}] Skipping bad history point {index} for {commodity}")
                continue
            if math.isfinite(price) and price > 0:
                history.append({"date": date, "price": price})
        return history

    def _chart_result(self, payload: Any) -> Mapping[str, Any]:
        """Extract chart.result[0] or fail with a malformed payload error."""
        try:
            result = payload["chart"]["result"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise SourceUnavailableError(
                message="No data returned from Yahoo Finance",
                source_name=self.name,
                reason=SourceUnavailableError.MALFORMED_PAYLOAD,
                original_error=e,
            ) from e
        if not isinstance(result, Mapping):
            raise SourceUnavailableError(
                message="Unexpected chart result shape",
                source_name=self.name,
                reason=SourceUnavailableError.MALFORMED_PAYLOAD,
            )
        return result

    @staticmethod
    def _closes(result: Mapping[str, Any]) -> list[Optional[float]]:
        """indicators.quote[0].close, or an empty list."""
        try:
            closes = result["indicators"]["quote"][0]["close"]
        except (KeyError, IndexError, TypeError):
            return []
        return list(closes) if isinstance(closes, list) else []

    async def health_check(self) -> SourceHealth:
        """Check Yahoo Finance reachability using the first configured symbol."""
        first = next(iter(self._symbols.values()), None)
        symbol = first[0].symbol if first else "GC=F"
        return await self._probe(f"{self.BASE_URL}/{symbol}?interval=1d&range=1d")


def create_yahoo_metals_source(
    request_config: Optional[RequestConfig] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> YahooFinancePriceSource:
    """Direct (non-relayed) instance covering industrial and battery metals."""
    return YahooFinancePriceSource(
        name="yahoo_metals",
        display_name="Yahoo Finance Metals",
        symbols=YAHOO_METAL_SYMBOLS,
        use_relay=False,
        priority=3,
        request_config=request_config,
        session=session,
    )
