"""
FreeGoldPrice Source - FreeGoldPrice.org spot price adapter.

Free API for gold, silver and platinum spot prices. No API key
required. The API reports a price only, so change fields are zero.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import aiohttp

from core.config import RequestConfig
from price_sources.base import BasePriceSource
from price_sources.exceptions import SourceUnavailableError
from price_sources.models import SourceHealth, SourceMetadata


logger = logging.getLogger(__name__)


class FreeGoldPriceSource(BasePriceSource):
    """FreeGoldPrice.org precious metal spot prices."""

    BASE_URL = "https://freegoldprice.org/api"
    UNIT = "USD/oz"

    ENDPOINTS = {
        "Gold": "gold-price",
        "Silver": "silver-price",
        "Platinum": "platinum-price",
    }

    # Response field names carrying the price, in preference order
    PRICE_FIELDS = ("price", "rate")

    def __init__(
        self,
        request_config: Optional[RequestConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(request_config, session)

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "free_gold_price"

    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        return SourceMetadata(
            name=self.name,
            display_name="FreeGoldPrice.org",
            version="1.0.0",
            supported_commodities=list(self.ENDPOINTS.keys()),
            base_url=self.BASE_URL,
            documentation_url="https://freegoldprice.org/",
            uses_relay=self.uses_relay,
            priority=4,
            tags=["spot", "precious-metals"],
        )

    async def fetch_raw(self, commodity: str) -> dict[str, Any]:
        """Fetch the spot price for one metal."""
        endpoint = self.ENDPOINTS.get(commodity)
        if not endpoint:
            raise self._unsupported(commodity)

        data = await self._request_json(f"{self.BASE_URL}/{endpoint}")
        if not isinstance(data, Mapping):
            raise SourceUnavailableError(
                message="Unexpected FreeGoldPrice response shape",
                source_name=self.name,
                reason=SourceUnavailableError.MALFORMED_PAYLOAD,
            )

        price = next((data[f] for f in self.PRICE_FIELDS if data.get(f)), None)
        if price is None:
            raise SourceUnavailableError(
                message=f"No price field in FreeGoldPrice response for {commodity}",
                source_name=self.name,
                reason=SourceUnavailableError.MISSING_FIELDS,
            )

        return {
            "commodity": commodity,
            "price": price,
            "unit": self.UNIT,
            "change": 0,
            "changePercent": 0,
            "lastUpdated": datetime.now(timezone.utc),
            "source": "FreeGoldPrice.org",
            "isSynthetic": False,
        }

    async def health_check(self) -> SourceHealth:
        """Check FreeGoldPrice reachability."""
        return await self._probe(f"{self.BASE_URL}/{self.ENDPOINTS['Gold']}")
