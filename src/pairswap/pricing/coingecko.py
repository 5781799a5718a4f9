"""CoinGecko price oracle with a fiat exchange-rate fallback."""

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import httpx

from pairswap.config import SwapConfig, TokenInfo
from pairswap.exceptions import ConfigurationError, PriceOracleError
from pairswap.pricing.base import PriceOracle

logger = logging.getLogger(__name__)

COINGECKO_API = "https://api.coingecko.com/api/v3"
EXCHANGE_RATE_API = "https://open.er-api.com/v6/latest/USD"

PRICE_CACHE_SECONDS = 300

# Fiat-backed stable tokens are assumed to trade at a 5% discount to their fiat
FIAT_TOKEN_DISCOUNT = Decimal("0.95")


class CoinGeckoPriceOracle(PriceOracle):
    """USD valuation for the configured tokens.

    USD-pegged tokens are valued 1:1. Other tokens are priced by CoinGecko id,
    falling back to the USD exchange rate of the token's fiat currency.
    Prices are cached per token for five minutes.
    """

    def __init__(
        self,
        config: SwapConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache_seconds: float = PRICE_CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.cache_seconds = cache_seconds
        self._transport = transport
        self._clock = clock
        self._price_cache: dict[str, tuple[Decimal, float]] = {}

    async def usd_value(self, token_address: str, amount: Decimal) -> Decimal:
        try:
            token = self.config.token(token_address)
        except ConfigurationError as e:
            raise PriceOracleError(f"Token price not available for address: {token_address}") from e

        if token.usd_pegged:
            return amount

        price = await self.get_price_usd(token)
        return amount * price

    async def get_price_usd(self, token: TokenInfo) -> Decimal:
        """Get the USD price of one token unit, served from cache when fresh."""
        key = token.address.lower()
        now = self._clock()
        cached = self._price_cache.get(key)
        if cached is not None and now - cached[1] < self.cache_seconds:
            return cached[0]

        price = await self._fetch_coingecko(token)
        if price is None:
            price = await self._fetch_fiat_rate(token)
        if price is None:
            raise PriceOracleError(f"No price source available for {token.symbol}")

        logger.info(f"{token.symbol} price: ${price}")
        self._price_cache[key] = (price, now)
        return price

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.http_timeout, transport=self._transport)

    async def _fetch_coingecko(self, token: TokenInfo) -> Optional[Decimal]:
        if not token.coingecko_id:
            return None

        try:
            async with self._client() as client:
                response = await client.get(
                    f"{COINGECKO_API}/simple/price",
                    params={
                        "ids": token.coingecko_id,
                        "vs_currencies": "usd",
                    },
                )
            if response.status_code == 200:
                price = response.json().get(token.coingecko_id, {}).get("usd")
                if price:
                    return Decimal(str(price))
            logger.warning(f"CoinGecko returned no price for {token.coingecko_id} ({response.status_code})")
        except (httpx.HTTPError, ValueError, InvalidOperation) as e:
            logger.warning(f"CoinGecko price fetch failed: {e}")

        return None

    async def _fetch_fiat_rate(self, token: TokenInfo) -> Optional[Decimal]:
        if not token.fiat_code:
            return None

        try:
            async with self._client() as client:
                response = await client.get(EXCHANGE_RATE_API)
            if response.status_code == 200:
                rate = response.json().get("rates", {}).get(token.fiat_code)
                if rate:
                    return Decimal(1) / Decimal(str(rate)) * FIAT_TOKEN_DISCOUNT
            logger.warning(f"Exchange rate API returned no {token.fiat_code} rate ({response.status_code})")
        except (httpx.HTTPError, ValueError, InvalidOperation) as e:
            logger.warning(f"Exchange rate fetch failed: {e}")

        return None
