"""Abstract aggregator interface and the swap value types.

Both aggregators answer with structurally different payloads. Providers
normalize them into Quote so the orchestrator never branches on protocol;
the parsed upstream response travels along as a tagged payload.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx
from pydantic import BaseModel

from pairswap.chain.base import ChainClient, TransactionRequest
from pairswap.config import SwapConfig
from pairswap.exceptions import QuoteProviderError, SwapFailedOnChain
from pairswap.signing.permit import PermitSigner
from pairswap.swap.gas import FALLBACK_APPROVAL_GAS, GasPolicy
from pairswap.swap.receipts import ReceiptPoller
from pairswap.swap.submitter import TransactionSender
from pairswap.utils.units import from_base_units, to_base_units

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1


class ProviderKind(str, Enum):
    """Supported aggregator protocols."""
    ONEINCH = "1inch"   # classic allowance, favors gas cost
    ZEROEX = "0x"       # Permit2 signature, favors security


@dataclass(frozen=True)
class SwapIntent:
    """What the wallet holder wants to swap."""

    sell_token: str
    buy_token: str
    amount: Decimal
    wallet_address: str
    chain_id: int
    slippage_percent: Decimal = Decimal("1.0")

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError(f"Swap amount must be positive, got {self.amount}")
        if self.sell_token.lower() == self.buy_token.lower():
            raise ValueError("Sell and buy token must differ")


@dataclass(frozen=True)
class ApprovalRequest:
    """Allowance check / approval parameters."""

    token_address: str
    owner_address: str
    amount: Decimal
    chain_id: int

    @classmethod
    def for_intent(cls, intent: SwapIntent) -> "ApprovalRequest":
        return cls(
            token_address=intent.sell_token,
            owner_address=intent.wallet_address,
            amount=intent.amount,
            chain_id=intent.chain_id,
        )


@dataclass(frozen=True)
class AllowanceState:
    """Current vs. required allowance, both in base units."""

    current: int
    required: int

    @property
    def needs_approval(self) -> bool:
        return self.current < self.required


@dataclass(frozen=True)
class QuotedTransaction:
    """Transaction payload returned by an aggregator."""

    to: str
    data: str
    value: int = 0
    gas: Optional[int] = None
    gas_price: Optional[int] = None


@dataclass(frozen=True)
class Quote:
    """A normalized swap quote. Amounts are base units."""

    provider: ProviderKind
    sell_token: str
    buy_token: str
    sell_amount: int
    buy_amount: int
    estimated_gas: int
    gas_price: Optional[int]
    requires_approval: bool
    payload: BaseModel  # parsed upstream response, type depends on provider
    sources: tuple[str, ...] = ()
    protocol_fee: Optional[int] = None
    permit: Optional[dict] = None
    transaction: Optional[QuotedTransaction] = None

    def matches(self, intent: SwapIntent) -> bool:
        """Check the quote is for the intent's token pair."""
        return (
            self.sell_token.lower() == intent.sell_token.lower()
            and self.buy_token.lower() == intent.buy_token.lower()
        )


@dataclass(frozen=True)
class SwapResult:
    """Result of a swap execution."""

    success: bool
    provider: str
    sell_amount: Decimal
    buy_amount: Optional[Decimal] = None
    tx_hash: Optional[str] = None
    gas_used: Optional[int] = None
    explorer_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def status(self) -> str:
        return "completed" if self.success else "failed"


class QuoteProvider(ABC):
    """Abstract base class for aggregator protocols.

    Subclasses implement quoting, the spender address, approval transaction
    building and swap transaction building. Allowance checks and the
    submit-and-confirm sequence are shared.
    """

    kind: ProviderKind

    def __init__(
        self,
        config: SwapConfig,
        chain: ChainClient,
        sender: TransactionSender,
        poller: ReceiptPoller,
        gas_policy: Optional[GasPolicy] = None,
        permit_signer: Optional[PermitSigner] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize provider.

        Args:
            config: Token, chain and endpoint lookup tables
            chain: Chain client for gas price, allowance and approvals
            sender: Signs and broadcasts transactions
            poller: Waits for receipts
            gas_policy: Gas buffering policy
            permit_signer: Permit2 signer, used when a quote carries a permit
            transport: Optional httpx transport (tests inject a mock)
            sleep: Injectable sleep for rate-limit delays
        """
        self.config = config
        self.chain = chain
        self.sender = sender
        self.poller = poller
        self.gas_policy = gas_policy or GasPolicy()
        self.permit_signer = permit_signer or PermitSigner()
        self._transport = transport
        self._sleep = sleep

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider display name."""
        pass

    @abstractmethod
    def spender_address(self, chain_id: int) -> str:
        """Contract that must be approved to spend the sell token."""
        pass

    @abstractmethod
    async def get_quote(self, intent: SwapIntent) -> Quote:
        """
        Get a swap quote.

        Args:
            intent: Swap to quote

        Returns:
            Normalized quote

        Raises:
            QuoteProviderError: Upstream did not return success
        """
        pass

    @abstractmethod
    async def get_approval_data(self, request: ApprovalRequest) -> TransactionRequest:
        """Build (but do not submit) an approval transaction."""
        pass

    @abstractmethod
    async def build_swap_transaction(self, intent: SwapIntent, quote: Quote) -> TransactionRequest:
        """Build the unsigned swap transaction for a quote."""
        pass

    def _headers(self) -> dict:
        return {"Accept": "application/json"}

    async def _get_json(self, url: str, params: dict) -> dict:
        """GET a JSON document, raising QuoteProviderError on any failure."""
        try:
            async with httpx.AsyncClient(
                timeout=self.config.http_timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers=self._headers(), params=params)
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} request failed: {e!r}")
            raise QuoteProviderError(self.name, 0, str(e), message=f"{self.name} request failed: {e}") from e

        if not response.is_success:
            logger.warning(f"{self.name} API error: {response.status_code} - {response.text}")
            raise QuoteProviderError(self.name, response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{self.name} returned invalid JSON: {response.text[:200]}")
            raise QuoteProviderError(
                self.name, response.status_code, response.text, message=f"{self.name} returned invalid JSON"
            ) from e

    def _sell_amount_base_units(self, token: str, amount: Decimal) -> int:
        return to_base_units(amount, self.config.decimals(token))

    async def check_allowance(self, request: ApprovalRequest) -> AllowanceState:
        """Compare the spender's allowance with the amount the trade needs."""
        spender = self.spender_address(request.chain_id)
        current = await self.chain.get_allowance(request.token_address, request.owner_address, spender)
        required = self._sell_amount_base_units(request.token_address, request.amount)
        state = AllowanceState(current=current, required=required)
        logger.info(
            f"{self.name}: current allowance {current}, required {required}, "
            f"needs approval: {state.needs_approval}"
        )
        return state

    async def needs_approval(self, request: ApprovalRequest) -> bool:
        state = await self.check_allowance(request)
        return state.needs_approval

    async def _approval_gas_limit(self, tx: TransactionRequest) -> int:
        """Buffered gas estimate for an approval, with a fixed fallback."""
        try:
            estimate = await self.chain.estimate_gas(tx)
        except Exception as e:
            logger.warning(f"Approval gas estimation failed ({e}), using fixed limit {FALLBACK_APPROVAL_GAS}")
            return FALLBACK_APPROVAL_GAS
        limit = self.gas_policy.approval_limit(estimate)
        logger.info(f"Estimated gas for approval: {estimate}, limit with buffer: {limit}")
        return limit

    async def execute_swap(self, intent: SwapIntent, quote: Quote) -> SwapResult:
        """Build, sign, submit and confirm the swap.

        A failed receipt is reported as an unsuccessful SwapResult.

        Raises:
            ConfirmationTimeout: No receipt within the polling bound
        """
        logger.info(f"Executing swap with {self.name}...")
        tx = await self.build_swap_transaction(intent, quote)

        if quote.permit is not None:
            logger.info("Quote contains Permit2 data, embedding signature")
            data = await self.permit_signer.sign_into(tx.data, quote.permit, self.sender.key_holder)
            tx = tx.with_data(data)

        tx_hash = await self.sender.send(tx)
        logger.info(f"Transaction sent: {tx_hash}. Waiting for confirmation...")

        try:
            receipt = await self.poller.wait_for_success(tx_hash, failure=SwapFailedOnChain)
        except SwapFailedOnChain as e:
            logger.error(f"Swap transaction {tx_hash} failed on-chain")
            return SwapResult(
                success=False,
                provider=self.name,
                sell_amount=intent.amount,
                tx_hash=tx_hash,
                gas_used=e.gas_used,
                explorer_url=self.config.explorer_url(tx_hash),
                error="Transaction failed on-chain",
            )

        buy_amount = from_base_units(quote.buy_amount, self.config.decimals(intent.buy_token))
        return SwapResult(
            success=True,
            provider=self.name,
            sell_amount=intent.amount,
            buy_amount=buy_amount,
            tx_hash=tx_hash,
            gas_used=receipt.gas_used,
            explorer_url=self.config.explorer_url(tx_hash),
        )
