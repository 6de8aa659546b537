"""
LBMA Price Source - London Bullion Market Association benchmark feeds.

Reads the public JSON price feeds published for the LBMA benchmark
auctions. Each feed is a chronological list of daily fixings:

    [{"d": "2024-01-02", "v": [2064.4, 1620.3, 1870.0]}, ...]

where v[0] is the USD price. Prices are set twice daily for gold
(10:30 and 15:00 London) and once for silver.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

from core.config import RequestConfig
from price_sources.base import BasePriceSource
from price_sources.exceptions import SourceUnavailableError
from price_sources.models import SourceHealth, SourceMetadata


logger = logging.getLogger(__name__)


class LBMAPriceSource(BasePriceSource):
    """
    LBMA benchmark price source for precious metals.

    The current value is the latest USD fixing, the change is measured
    against the previous fixing, and the history is the last fixing of
    each of the latest 24 months.
    """

    BASE_URL = "https://prices.lbma.org.uk/json"
    HISTORY_MONTHS = 24
    UNIT = "USD/oz"

    # Feed names are configuration data
    FEEDS = {
        "Gold": "gold_pm",
        "Silver": "silver",
        "Platinum": "platinum_pm",
    }

    def __init__(
        self,
        feeds: Optional[dict[str, str]] = None,
        request_config: Optional[RequestConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(request_config, session)
        self._feeds = dict(self.FEEDS if feeds is None else feeds)

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "lbma"

    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        return SourceMetadata(
            name=self.name,
            display_name="LBMA",
            version="1.0.0",
            supported_commodities=list(self._feeds.keys()),
            base_url=self.BASE_URL,
            documentation_url="https://www.lbma.org.uk/prices-and-data/precious-metal-prices",
            uses_relay=self.uses_relay,
            requires_license=True,
            priority=1,  # Official benchmark, preferred over market data
            tags=["benchmark", "precious-metals", "lbma"],
        )

    async def fetch_raw(self, commodity: str) -> dict[str, Any]:
        """Fetch the latest fixing and monthly history for one metal."""
        feed = self._feeds.get(commodity)
        if not feed:
            raise self._unsupported(commodity)

        payload = await self._request_json(f"{self.BASE_URL}/{feed}.json")
        fixings = self._parse_fixings(payload)

        if not fixings:
            raise SourceUnavailableError(
                message=f"No USD fixings in LBMA {feed} feed",
                source_name=self.name,
                reason=SourceUnavailableError.MISSING_FIELDS,
            )

        latest_date, latest_price = fixings[-1]
        change = 0.0
        change_percent = 0.0
        if len(fixings) >= 2:
            previous_price = fixings[-2][1]
            change = latest_price - previous_price
            change_percent = (change / previous_price) * 100

        return {
            "commodity": commodity,
            "price": latest_price,
            "unit": self.UNIT,
            "change": change,
            "changePercent": change_percent,
            "lastUpdated": latest_date,
            "source": "LBMA",
            "isSynthetic": False,
            "historicalSeries": self._monthly_history(commodity, fixings),
        }

    def _parse_fixings(self, payload: Any) -> list[tuple[datetime, float]]:
        """Parse the feed into chronological (date, usd_price) pairs."""
        if not isinstance(payload, list):
            raise SourceUnavailableError(
                message="LBMA feed is not a list",
                source_name=self.name,
                reason=SourceUnavailableError.MALFORMED_PAYLOAD,
            )

        fixings = []
        for entry in payload:
            try:
                day = datetime.strptime(entry["d"], "%Y-%m-%d").replace(tzinfo=timezone.utc)
                usd = float(entry["v"][0])
            except (KeyError, IndexError, TypeError, ValueError):
                continue
            if usd > 0:
                fixings.append((day, usd))

        fixings.sort(key=lambda item: item[0])
        return fixings

    def _monthly_history(
        self,
        commodity: str,
        fixings: list[tuple[datetime, float]],
    ) -> list[dict[str, Any]]:
        """Last fixing per month for the latest months; empty on any problem."""
        try:
            by_month: dict[tuple[int, int], tuple[datetime, float]] = {}
            for day, price in fixings:
                by_month[(day.year, day.month)] = (day, price)

            months = sorted(by_month)[-self.HISTORY_MONTHS:]
            return [
                {"date": by_month[key][0], "price": by_month[key][1]}
                for key in months
            ]
        except (TypeError, ValueError) as e:
            logger.warning(f"[{self.name}] Could not build history for {commodity}: {e}")
            return []

    async def health_check(self) -> SourceHealth:
        """Check LBMA feed reachability."""
        feed = next(iter(self._feeds.values()), "gold_pm")
        return await self._probe(f"{self.BASE_URL}/{feed}.json")
