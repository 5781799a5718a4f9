"""USD price oracles."""

from pairswap.pricing.base import PriceOracle
from pairswap.pricing.coingecko import CoinGeckoPriceOracle

__all__ = ["PriceOracle", "CoinGeckoPriceOracle"]
