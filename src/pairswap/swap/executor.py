"""Swap orchestration.

One swap runs strictly in order:
1. Value the trade in USD and pick the aggregator
2. Fetch a quote
3. Make sure the spender is approved
4. Build, sign, submit and confirm the swap
"""

import logging
from decimal import Decimal
from typing import Optional

from pairswap.chain.web3_client import Web3ChainClient
from pairswap.config import Settings, SwapConfig
from pairswap.exceptions import ConfigurationError, PriceOracleError, QuoteProviderError
from pairswap.pricing.base import PriceOracle
from pairswap.pricing.coingecko import CoinGeckoPriceOracle
from pairswap.routing.base import ApprovalRequest, ProviderKind, SwapIntent, SwapResult
from pairswap.routing.factory import AggregatorSelector
from pairswap.routing.oneinch import OneInchProvider
from pairswap.routing.zeroex import ZeroExProvider
from pairswap.signing.local import LocalKeyHolder
from pairswap.swap.approval import ApprovalManager
from pairswap.swap.receipts import ReceiptPoller
from pairswap.swap.submitter import TransactionSender
from pairswap.utils.units import from_base_units

logger = logging.getLogger(__name__)


class SwapOrchestrator:
    """Runs a single swap end to end."""

    def __init__(
        self,
        config: SwapConfig,
        oracle: PriceOracle,
        selector: AggregatorSelector,
        approvals: ApprovalManager,
        wallet_address: Optional[str] = None,
    ):
        self.config = config
        self.oracle = oracle
        self.selector = selector
        self.approvals = approvals
        self.wallet_address = wallet_address

    @classmethod
    def from_settings(cls, settings: Settings) -> "SwapOrchestrator":
        """Wire the web3 chain client, local key and both aggregators."""
        if not settings.has_wallet:
            raise ConfigurationError("PRIVATE_KEY is not set")

        config = settings.swap_config()
        chain = Web3ChainClient(settings.rpc_url)
        key_holder = LocalKeyHolder(settings.private_key)

        if settings.wallet_address and settings.wallet_address.lower() != key_holder.address.lower():
            raise ConfigurationError(
                f"WALLET_ADDRESS {settings.wallet_address} does not match the private key ({key_holder.address})"
            )

        sender = TransactionSender(chain, key_holder)
        poller = ReceiptPoller(chain)
        providers = {
            ProviderKind.ONEINCH: OneInchProvider(config, chain, sender, poller),
            ProviderKind.ZEROEX: ZeroExProvider(config, chain, sender, poller),
        }

        return cls(
            config=config,
            oracle=CoinGeckoPriceOracle(config),
            selector=AggregatorSelector(providers, config.threshold_usd),
            approvals=ApprovalManager(sender, poller),
            # Checksummed form; eth-account compares "from" verbatim
            wallet_address=key_holder.address,
        )

    async def _usd_value(self, intent: SwapIntent) -> Decimal:
        try:
            return await self.oracle.usd_value(intent.sell_token, intent.amount)
        except PriceOracleError as e:
            # Unknown value routes to the Permit2 aggregator
            fallback = self.config.threshold_usd + 1
            logger.warning(f"Error calculating USD value: {e}. Using ${fallback}")
            return fallback

    async def swap(self, intent: SwapIntent) -> SwapResult:
        """Execute a swap.

        Returns:
            SwapResult; a swap mined with failed status yields success=False

        Raises:
            ConfigurationError: Token or chain not configured
            QuoteProviderError: Aggregator API failure or mismatched quote
            ApprovalFailedOnChain: Approval mined with failed status
            ApprovalSubmissionTransient: Approval could not be completed
            ConfirmationTimeout: Swap receipt not observed in time
        """
        sell_symbol = self.config.symbol(intent.sell_token)
        buy_symbol = self.config.symbol(intent.buy_token)

        amount_usd = await self._usd_value(intent)
        logger.info(f"Swapping {intent.amount} {sell_symbol} -> {buy_symbol} (≈ ${amount_usd:.2f})")

        provider = self.selector.select(amount_usd)

        quote = await provider.get_quote(intent)
        if not quote.matches(intent):
            raise QuoteProviderError(
                provider.name,
                200,
                "",
                message=f"{provider.name} returned a quote for a different token pair",
            )

        expected = from_base_units(quote.buy_amount, self.config.decimals(intent.buy_token))
        logger.info(f"Liquidity sources: {', '.join(quote.sources) or 'unknown'}")
        logger.info(f"Expected output: {expected} {buy_symbol}")
        logger.info(f"Estimated gas: {quote.estimated_gas}")

        await self.approvals.ensure_approval(provider, ApprovalRequest.for_intent(intent))

        result = await provider.execute_swap(intent, quote)
        if result.success:
            logger.info(f"Swap completed: {result.tx_hash}")
        else:
            logger.error(f"Swap failed: {result.error} ({result.tx_hash})")
        return result
