"""Aggregator selection by trade size."""

import logging
from decimal import Decimal

from pairswap.exceptions import ConfigurationError
from pairswap.routing.base import ProviderKind, QuoteProvider

logger = logging.getLogger(__name__)


def select_provider_kind(amount_in_usd: Decimal, threshold_in_usd: Decimal) -> ProviderKind:
    """Trades at or above the threshold go through 0x, smaller ones through 1inch."""
    if amount_in_usd >= threshold_in_usd:
        return ProviderKind.ZEROEX
    return ProviderKind.ONEINCH


class AggregatorSelector:
    """Maps a trade's USD value to a configured provider."""

    def __init__(self, providers: dict[ProviderKind, QuoteProvider], threshold_usd: Decimal):
        self.providers = providers
        self.threshold_usd = threshold_usd

    def get(self, kind: ProviderKind) -> QuoteProvider:
        provider = self.providers.get(kind)
        if provider is None:
            raise ConfigurationError(f"Aggregator not configured: {kind.value}")
        return provider

    def select(self, amount_usd: Decimal) -> QuoteProvider:
        kind = select_provider_kind(amount_usd, self.threshold_usd)
        provider = self.get(kind)
        logger.info(
            f"Trade value ${amount_usd:.2f} vs threshold ${self.threshold_usd}: using {provider.name}"
        )
        return provider
