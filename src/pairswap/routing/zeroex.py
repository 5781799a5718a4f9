"""0x Protocol integration (Permit2 signature model).

The sell token is approved to the canonical Permit2 contract; each swap then
carries an EIP-712 permit signature appended to the quoted calldata.
API docs: https://0x.org/docs/api
"""

import logging
from dataclasses import replace
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from pairswap.chain.base import TransactionRequest
from pairswap.exceptions import QuoteProviderError
from pairswap.routing.base import (
    ApprovalRequest,
    ProviderKind,
    Quote,
    QuotedTransaction,
    QuoteProvider,
    SwapIntent,
)

logger = logging.getLogger(__name__)


class ZeroExFill(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str
    sell_token: Optional[str] = Field(default=None, alias="from")
    buy_token: Optional[str] = Field(default=None, alias="to")
    proportion_bps: Optional[int] = Field(default=None, alias="proportionBps")


class ZeroExRoute(BaseModel):
    fills: list[ZeroExFill] = []


class ZeroExTransaction(BaseModel):
    """Ready-to-send transaction returned with a firm quote."""

    model_config = ConfigDict(populate_by_name=True)

    to: str
    data: str
    value: int = 0
    gas: Optional[int] = None
    gas_price: Optional[int] = Field(default=None, alias="gasPrice")


class ZeroExFee(BaseModel):
    amount: Optional[int] = None
    token: Optional[str] = None
    type: Optional[str] = None


class ZeroExFees(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    zero_ex_fee: Optional[ZeroExFee] = Field(default=None, alias="zeroExFee")


class ZeroExPermit2(BaseModel):
    type: Optional[str] = None
    hash: Optional[str] = None
    eip712: Optional[dict[str, Any]] = None


class ZeroExAllowanceIssue(BaseModel):
    actual: Optional[int] = None
    spender: Optional[str] = None


class ZeroExIssues(BaseModel):
    allowance: Optional[ZeroExAllowanceIssue] = None


class ZeroExQuoteResponse(BaseModel):
    """Response of GET /swap/permit2/quote."""

    model_config = ConfigDict(populate_by_name=True)

    buy_amount: int = Field(alias="buyAmount")
    sell_amount: int = Field(alias="sellAmount")
    buy_token: Optional[str] = Field(default=None, alias="buyToken")
    sell_token: Optional[str] = Field(default=None, alias="sellToken")
    liquidity_available: Optional[bool] = Field(default=None, alias="liquidityAvailable")
    route: Optional[ZeroExRoute] = None
    transaction: Optional[ZeroExTransaction] = None
    fees: Optional[ZeroExFees] = None
    permit2: Optional[ZeroExPermit2] = None
    issues: Optional[ZeroExIssues] = None


class ZeroExProvider(QuoteProvider):
    """0x Protocol provider using Permit2.

    Favors security (scoped, signed permits); used for trades at or above the
    USD threshold.
    """

    kind = ProviderKind.ZEROEX

    @property
    def name(self) -> str:
        return "0x Protocol"

    def spender_address(self, chain_id: int) -> str:
        # Permit2 has the same address on every chain
        return self.config.permit2_address

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.config.zeroex.api_key:
            headers["0x-api-key"] = self.config.zeroex.api_key
        if self.config.zeroex.api_version:
            headers["0x-version"] = self.config.zeroex.api_version
        return headers

    async def get_quote(self, intent: SwapIntent) -> Quote:
        """Get a firm Permit2 quote from 0x."""
        logger.info(f"Getting quote from {self.name}...")
        sell_amount = self._sell_amount_base_units(intent.sell_token, intent.amount)

        data = await self._get_json(
            f"{self.config.zeroex.base_url}/swap/permit2/quote",
            params={
                "chainId": str(intent.chain_id),
                "buyToken": intent.buy_token,
                "sellToken": intent.sell_token,
                "sellAmount": str(sell_amount),
                "taker": intent.wallet_address,
            },
        )
        logger.debug(f"Raw 0x quote response: {data}")
        response = ZeroExQuoteResponse.model_validate(data)

        if response.transaction is None:
            raise QuoteProviderError(self.name, 200, str(data), message="0x quote contains no transaction")

        tx = response.transaction
        if not tx.gas:
            raise QuoteProviderError(self.name, 200, str(data), message="0x quote contains no gas estimate")

        sources = tuple(dict.fromkeys(fill.source for fill in response.route.fills)) if response.route else ()
        permit = response.permit2.eip712 if response.permit2 else None
        fee = response.fees.zero_ex_fee if response.fees else None

        quote = Quote(
            provider=self.kind,
            sell_token=response.sell_token or intent.sell_token,
            buy_token=response.buy_token or intent.buy_token,
            sell_amount=response.sell_amount,
            buy_amount=response.buy_amount,
            estimated_gas=tx.gas,
            gas_price=tx.gas_price,
            requires_approval=bool(response.issues and response.issues.allowance) and response.permit2 is None,
            payload=response,
            sources=sources,
            protocol_fee=fee.amount if fee else None,
            permit=permit,
            transaction=QuotedTransaction(
                to=tx.to,
                data=tx.data,
                value=tx.value,
                gas=tx.gas,
                gas_price=tx.gas_price,
            ),
        )
        logger.info(f"0x quote received: {quote.buy_amount} (buy) for {quote.sell_amount} (sell)")
        return quote

    async def get_approval_data(self, request: ApprovalRequest) -> TransactionRequest:
        """Build an exact-amount approval of the sell token to Permit2."""
        spender = self.spender_address(request.chain_id)
        amount = self._sell_amount_base_units(request.token_address, request.amount)
        logger.info(f"Preparing approval of {amount} to Permit2 ({spender})")

        tx = TransactionRequest(
            chain_id=request.chain_id,
            sender=request.owner_address,
            to=request.token_address,
            data=self.chain.encode_approve(spender, amount),
        )
        gas_limit = await self._approval_gas_limit(tx)
        gas_price = self.gas_policy.gas_price(await self.chain.get_gas_price())
        return replace(tx, gas=gas_limit, gas_price=gas_price)

    async def build_swap_transaction(self, intent: SwapIntent, quote: Quote) -> TransactionRequest:
        """Use the quoted transaction with a buffered gas limit."""
        quoted = quote.transaction
        if quoted is None:
            raise QuoteProviderError(self.name, 200, "", message="0x quote contains no transaction")

        gas_estimate = quoted.gas or quote.estimated_gas
        if not gas_estimate:
            raise QuoteProviderError(self.name, 200, "", message="0x quote contains no gas estimate")
        if quoted.gas_price is not None:
            gas_price = self.gas_policy.gas_price(0, quoted=quoted.gas_price)
        else:
            gas_price = self.gas_policy.gas_price(await self.chain.get_gas_price())

        return TransactionRequest(
            chain_id=intent.chain_id,
            sender=intent.wallet_address,
            to=quoted.to,
            data=quoted.data,
            value=quoted.value,
            gas=self.gas_policy.swap_limit(gas_estimate),
            gas_price=gas_price,
        )
