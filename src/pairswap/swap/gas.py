"""Gas buffering policy.

Aggregator gas estimates are frequently low. Under-limited transactions revert
out of gas and underpriced ones are not included, so both the limit and the
price are always padded.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Optional, Union

SWAP_GAS_BUFFER = Decimal("1.2")
APPROVAL_GAS_BUFFER = Decimal("1.3")
GAS_PRICE_PREMIUM = Decimal("1.1")

# Used when gas estimation for an approval fails
FALLBACK_APPROVAL_GAS = 100_000


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def buffered_gas_limit(estimate: Union[int, str], buffer: Decimal) -> int:
    """Return ``floor(estimate * buffer)``."""
    return _floor(Decimal(int(estimate)) * buffer)


@dataclass(frozen=True)
class GasPolicy:
    """Stateless gas limit and gas price policy."""

    swap_buffer: Decimal = SWAP_GAS_BUFFER
    approval_buffer: Decimal = APPROVAL_GAS_BUFFER
    price_premium: Decimal = GAS_PRICE_PREMIUM

    def swap_limit(self, estimate: Union[int, str]) -> int:
        """Gas limit for a swap transaction (20% buffer)."""
        return buffered_gas_limit(estimate, self.swap_buffer)

    def approval_limit(self, estimate: Union[int, str]) -> int:
        """Gas limit for an approval transaction (30% buffer)."""
        return buffered_gas_limit(estimate, self.approval_buffer)

    def gas_price(self, observed: int, quoted: Optional[Union[int, str]] = None) -> int:
        """Gas price to submit with.

        A price fixed by the provider is used as-is; otherwise the freshly
        observed chain price gets the premium.
        """
        if quoted is not None:
            return int(quoted)
        return _floor(Decimal(int(observed)) * self.price_premium)
