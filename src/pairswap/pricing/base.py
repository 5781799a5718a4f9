"""Price oracle interface."""

from abc import ABC, abstractmethod
from decimal import Decimal


class PriceOracle(ABC):
    """Values a token amount in USD."""

    @abstractmethod
    async def usd_value(self, token_address: str, amount: Decimal) -> Decimal:
        """
        Get the USD value of a human token amount.

        Raises:
            PriceOracleError: Token unknown or no source returned a price
        """
        pass
