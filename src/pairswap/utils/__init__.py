"""Utility modules for pairswap."""

from pairswap.utils.retry import recover_with_recheck
from pairswap.utils.units import from_base_units, to_base_units

__all__ = ["from_base_units", "recover_with_recheck", "to_base_units"]
