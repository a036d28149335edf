"""
CoinGecko Price Source
Fetches the current price of an asset from the CoinGecko simple price API.

Usage:
    source = CoinGeckoPriceSource(currency="usd")
    quote = source.fetch("bitcoin")
    quote.price  # Decimal("65000.5")

Response shape (validated here, never passed on):
    {"bitcoin": {"usd": 65000.5}}
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from pricepulse.core.exceptions import PriceUnavailable
from pricepulse.core.models import PriceQuote

logger = logging.getLogger(__name__)


class CoinGeckoPriceSource:
    """Client for the CoinGecko simple price endpoint"""

    DEFAULT_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        currency: str = "usd",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.currency = currency.lower()
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, asset_id: str) -> PriceQuote:
        """
        Raises:
            PriceUnavailable: network error, timeout, HTTP error or bad body
        """
        asset_id = asset_id.strip().lower()
        data = self._get(asset_id)
        return self._parse(asset_id, data)

    def _get(self, asset_id: str) -> Dict[str, Any]:
        try:
            resp = self.session.get(
                f"{self.base_url}/simple/price",
                params={"ids": asset_id, "vs_currencies": self.currency},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            # Decimal straight from the JSON text, no float round trip
            return resp.json(parse_float=Decimal)
        except requests.exceptions.Timeout as e:
            raise PriceUnavailable(asset_id, f"timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise PriceUnavailable(asset_id, str(e)) from e
        except ValueError as e:
            raise PriceUnavailable(asset_id, "response is not JSON") from e

    def _parse(self, asset_id: str, data: Any) -> PriceQuote:
        if not isinstance(data, dict):
            raise PriceUnavailable(asset_id, "unexpected response shape")

        prices = data.get(asset_id)
        if not isinstance(prices, dict) or self.currency not in prices:
            raise PriceUnavailable(asset_id, f"no {self.currency} price in response")

        raw = prices[self.currency]
        if isinstance(raw, int) and not isinstance(raw, bool):
            raw = Decimal(raw)

        try:
            quote = PriceQuote(asset_id=asset_id, currency=self.currency, price=raw)
        except ValidationError as e:
            raise PriceUnavailable(asset_id, f"invalid price {raw!r}") from e

        logger.debug("Fetched %s price %s %s", asset_id, quote.price, self.currency)
        return quote
