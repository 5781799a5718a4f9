"""DEX aggregator providers."""

from pairswap.routing.base import (
    MAX_UINT256,
    AllowanceState,
    ApprovalRequest,
    ProviderKind,
    Quote,
    QuotedTransaction,
    QuoteProvider,
    SwapIntent,
    SwapResult,
)
from pairswap.routing.factory import AggregatorSelector, select_provider_kind
from pairswap.routing.oneinch import OneInchProvider
from pairswap.routing.zeroex import ZeroExProvider

__all__ = [
    "MAX_UINT256",
    "AllowanceState",
    "ApprovalRequest",
    "ProviderKind",
    "Quote",
    "QuotedTransaction",
    "QuoteProvider",
    "SwapIntent",
    "SwapResult",
    "AggregatorSelector",
    "select_provider_kind",
    "OneInchProvider",
    "ZeroExProvider",
]
