"""Conversion between human-readable token amounts and base units.

Base units are always integers. Every branch truncates toward zero.
"""

from decimal import Decimal, localcontext
from typing import Union

from web3 import Web3

# Enough digits for any uint256
_PRECISION = 80


def to_base_units(amount: Union[Decimal, str, int], decimals: int) -> int:
    """Convert a human amount to base units.

    Args:
        amount: Human-readable amount (e.g., Decimal("1.5"))
        decimals: Token decimal count

    Returns:
        Integer amount in the token's smallest unit
    """
    amount = Decimal(amount)
    if decimals == 18:
        return Web3.to_wei(amount, "ether")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        if decimals == 6:
            return int(amount * 1_000_000)
        return int(amount * (Decimal(10) ** decimals))


def from_base_units(value: Union[int, str], decimals: int) -> Decimal:
    """Convert base units back to a human-readable Decimal."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(int(value)) / (Decimal(10) ** decimals)
