"""1inch DEX aggregator integration (classic allowance model).

Approvals go to the 1inch router; the swap transaction is fetched from the
/swap endpoint at execution time.
API docs: https://portal.1inch.dev/documentation/apis/swap/introduction
"""

import logging
from dataclasses import replace
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pairswap.chain.base import TransactionRequest
from pairswap.routing.base import (
    MAX_UINT256,
    ApprovalRequest,
    ProviderKind,
    Quote,
    QuoteProvider,
    SwapIntent,
)

logger = logging.getLogger(__name__)

# Used when the quote response carries no gas figure
DEFAULT_QUOTE_GAS = 250_000


class OneInchProtocolHop(BaseModel):
    """One liquidity source inside a 1inch route."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    part: Optional[float] = None
    from_token_address: Optional[str] = Field(default=None, alias="fromTokenAddress")
    to_token_address: Optional[str] = Field(default=None, alias="toTokenAddress")


class OneInchQuoteResponse(BaseModel):
    """Response of GET /quote (v5 and v6 field names)."""

    model_config = ConfigDict(populate_by_name=True)

    dst_amount: Optional[int] = Field(default=None, alias="dstAmount")
    to_amount: Optional[int] = Field(default=None, alias="toAmount")
    src_amount: Optional[int] = Field(default=None, alias="srcAmount")
    from_amount: Optional[int] = Field(default=None, alias="fromAmount")
    protocols: Optional[list[list[list[OneInchProtocolHop]]]] = None
    gas: Optional[int] = None
    estimated_gas: Optional[int] = Field(default=None, alias="estimatedGas")


class OneInchTransaction(BaseModel):
    """Transaction object returned by /swap."""

    model_config = ConfigDict(populate_by_name=True)

    sender: Optional[str] = Field(default=None, alias="from")
    to: str
    data: str
    value: int = 0
    gas: int = 0
    gas_price: Optional[int] = Field(default=None, alias="gasPrice")


class OneInchSwapResponse(BaseModel):
    """Response of GET /swap."""

    model_config = ConfigDict(populate_by_name=True)

    dst_amount: Optional[int] = Field(default=None, alias="dstAmount")
    to_amount: Optional[int] = Field(default=None, alias="toAmount")
    tx: OneInchTransaction


class OneInchApproveResponse(BaseModel):
    """Response of GET /approve/transaction."""

    model_config = ConfigDict(populate_by_name=True)

    to: str
    data: str
    value: int = 0
    gas_price: Optional[int] = Field(default=None, alias="gasPrice")


def extract_sources(protocols: Optional[list[list[list[OneInchProtocolHop]]]]) -> tuple[str, ...]:
    """Flatten route -> segment -> hop into unique source names, in order."""
    if not protocols:
        return ("1inch",)

    sources: list[str] = []
    for path in protocols:
        for segment in path:
            for hop in segment:
                if hop.name not in sources:
                    sources.append(hop.name)
    return tuple(sources) or ("1inch",)


class OneInchProvider(QuoteProvider):
    """1inch aggregation protocol provider.

    Favors lower gas cost; used for trades below the USD threshold.
    """

    kind = ProviderKind.ONEINCH

    @property
    def name(self) -> str:
        return "1inch Protocol"

    def spender_address(self, chain_id: int) -> str:
        return self.config.router_address(chain_id)

    def _headers(self) -> dict:
        """Get API headers with authorization."""
        headers = {"Accept": "application/json"}
        if self.config.oneinch.api_key:
            headers["Authorization"] = f"Bearer {self.config.oneinch.api_key}"
        return headers

    def _base_url(self, chain_id: int) -> str:
        return f"{self.config.oneinch.base_url}/v6.0/{chain_id}"

    async def _respect_rate_limit(self) -> None:
        delay = self.config.oneinch.request_delay
        if delay > 0:
            await self._sleep(delay)

    async def get_quote(self, intent: SwapIntent) -> Quote:
        """Get swap quote from 1inch."""
        logger.info(f"Getting quote from {self.name}...")
        sell_amount = self._sell_amount_base_units(intent.sell_token, intent.amount)

        await self._respect_rate_limit()
        data = await self._get_json(
            f"{self._base_url(intent.chain_id)}/quote",
            params={
                "src": intent.sell_token,
                "dst": intent.buy_token,
                "amount": str(sell_amount),
                "includeProtocols": "true",
                "includeGas": "true",
            },
        )
        response = OneInchQuoteResponse.model_validate(data)
        logger.debug(f"Raw 1inch quote response: {data}")

        buy_amount = response.dst_amount if response.dst_amount is not None else response.to_amount
        quoted_sell = response.src_amount if response.src_amount is not None else response.from_amount
        estimated_gas = response.gas or response.estimated_gas or DEFAULT_QUOTE_GAS

        # 1inch quotes carry no gas price
        gas_price = await self.chain.get_gas_price()

        quote = Quote(
            provider=self.kind,
            sell_token=intent.sell_token,
            buy_token=intent.buy_token,
            sell_amount=quoted_sell if quoted_sell is not None else sell_amount,
            buy_amount=buy_amount or 0,
            estimated_gas=estimated_gas,
            gas_price=gas_price,
            # Checked against the router allowance before the swap
            requires_approval=True,
            payload=response,
            sources=extract_sources(response.protocols),
            protocol_fee=0,
        )
        logger.info(f"1inch quote received: {quote.buy_amount} (buy) for {quote.sell_amount} (sell)")
        return quote

    async def get_approval_data(self, request: ApprovalRequest) -> TransactionRequest:
        """Build an unlimited approval for the 1inch router."""
        logger.info(f"Getting approval data for {self.name}...")

        await self._respect_rate_limit()
        data = await self._get_json(
            f"{self._base_url(request.chain_id)}/approve/transaction",
            params={
                "tokenAddress": request.token_address,
                "amount": str(MAX_UINT256),
            },
        )
        response = OneInchApproveResponse.model_validate(data)

        tx = TransactionRequest(
            chain_id=request.chain_id,
            sender=request.owner_address,
            to=response.to,
            data=response.data,
            value=response.value,
        )
        gas_limit = await self._approval_gas_limit(tx)
        gas_price = self.gas_policy.gas_price(await self.chain.get_gas_price())

        logger.info(f"Approval transaction prepared: to={tx.to}, gas={gas_limit}, gasPrice={gas_price}")
        return replace(tx, gas=gas_limit, gas_price=gas_price)

    async def build_swap_transaction(self, intent: SwapIntent, quote: Quote) -> TransactionRequest:
        """Fetch the swap calldata from 1inch and apply the gas policy."""
        logger.info("Requesting swap transaction data from 1inch...")

        await self._respect_rate_limit()
        data = await self._get_json(
            f"{self._base_url(intent.chain_id)}/swap",
            params={
                "src": intent.sell_token,
                "dst": intent.buy_token,
                "amount": str(quote.sell_amount),
                "from": intent.wallet_address,
                "slippage": str(intent.slippage_percent),
            },
        )
        response = OneInchSwapResponse.model_validate(data)

        gas_estimate = response.tx.gas or quote.estimated_gas
        gas_price = self.gas_policy.gas_price(await self.chain.get_gas_price())

        return TransactionRequest(
            chain_id=intent.chain_id,
            sender=intent.wallet_address,
            to=response.tx.to,
            data=response.tx.data,
            value=response.tx.value,
            gas=self.gas_policy.swap_limit(gas_estimate),
            gas_price=gas_price,
        )
