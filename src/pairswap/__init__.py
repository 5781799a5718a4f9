"""pairswap - two-token swaps routed through 1inch or 0x by trade size."""

__version__ = "0.1.0"
