"""Tests for the 1inch provider."""

from decimal import Decimal

import httpx
import pytest

from conftest import CHAIN_ID, ROUTER, TOKEN_A, TOKEN_B, WALLET, MockApi
from pairswap.exceptions import ConfigurationError, QuoteProviderError, SwapError
from pairswap.routing.base import MAX_UINT256, ApprovalRequest, ProviderKind, SwapIntent
from pairswap.routing.oneinch import (
    DEFAULT_QUOTE_GAS,
    OneInchProtocolHop,
    OneInchProvider,
    OneInchQuoteResponse,
    extract_sources,
)
from pairswap.swap.gas import FALLBACK_APPROVAL_GAS

QUOTE_PATH = "/swap/v6.0/137/quote"
SWAP_PATH = "/swap/v6.0/137/swap"
APPROVE_PATH = "/swap/v6.0/137/approve/transaction"

QUOTE_RESPONSE = {
    "dstAmount": "1987654",
    "protocols": [
        [
            [{"name": "QUICKSWAP", "part": 100, "fromTokenAddress": TOKEN_A, "toTokenAddress": TOKEN_B}],
            [
                {"name": "UNISWAP_V3", "part": 50, "fromTokenAddress": TOKEN_A, "toTokenAddress": TOKEN_B},
                {"name": "QUICKSWAP", "part": 50, "fromTokenAddress": TOKEN_A, "toTokenAddress": TOKEN_B},
            ],
        ]
    ],
    "gas": 180000,
}

SWAP_RESPONSE = {
    "dstAmount": "1987654",
    "tx": {
        "from": WALLET,
        "to": ROUTER,
        "data": "0x12aa3caf0000",
        "value": "0",
        "gas": 200000,
        "gasPrice": "31000000000",
    },
}

APPROVE_RESPONSE = {
    "data": "0x095ea7b3ffff",
    "gasPrice": "30000000000",
    "to": TOKEN_A,
    "value": "0",
}


def brla_intent(amount: str = "10") -> SwapIntent:
    return SwapIntent(
        sell_token=TOKEN_A,
        buy_token=TOKEN_B,
        amount=Decimal(amount),
        wallet_address=WALLET,
        chain_id=CHAIN_ID,
    )


class TestOneInchQuote:
    """Quote request and normalization."""

    @pytest.mark.asyncio
    async def test_get_quote(self, make_provider, chain):
        api = MockApi({QUOTE_PATH: (200, QUOTE_RESPONSE)})
        provider = make_provider(OneInchProvider, api)

        quote = await provider.get_quote(brla_intent())

        assert quote.provider == ProviderKind.ONEINCH
        assert quote.sell_amount == 10 * 10**18
        assert quote.buy_amount == 1_987_654
        assert quote.estimated_gas == 180_000
        assert quote.gas_price == chain.gas_price
        assert quote.sources == ("QUICKSWAP", "UNISWAP_V3")
        assert quote.requires_approval is True
        assert quote.permit is None
        assert isinstance(quote.payload, OneInchQuoteResponse)
        assert quote.matches(brla_intent())

    @pytest.mark.asyncio
    async def test_quote_request_parameters(self, make_provider):
        api = MockApi({QUOTE_PATH: (200, QUOTE_RESPONSE)})
        provider = make_provider(OneInchProvider, api)

        await provider.get_quote(brla_intent("1.5"))

        request = api.requests_to(QUOTE_PATH)[0]
        assert request.url.host == "1inch.test"
        assert request.url.params["src"] == TOKEN_A
        assert request.url.params["dst"] == TOKEN_B
        assert request.url.params["amount"] == "1500000000000000000"
        assert request.url.params["includeProtocols"] == "true"
        assert request.url.params["includeGas"] == "true"
        assert request.headers["Authorization"] == "Bearer oneinch-key"

    @pytest.mark.asyncio
    async def test_rate_limit_delay(self, make_provider, sleep):
        api = MockApi({QUOTE_PATH: (200, QUOTE_RESPONSE)})
        provider = make_provider(OneInchProvider, api)

        await provider.get_quote(brla_intent())

        assert sleep.calls == [1.0]

    @pytest.mark.asyncio
    async def test_legacy_field_names_and_defaults(self, make_provider):
        api = MockApi({QUOTE_PATH: (200, {"toAmount": "42"})})
        provider = make_provider(OneInchProvider, api)

        quote = await provider.get_quote(brla_intent())

        assert quote.buy_amount == 42
        assert quote.estimated_gas == DEFAULT_QUOTE_GAS
        assert quote.sources == ("1inch",)

    @pytest.mark.asyncio
    async def test_error_status(self, make_provider):
        api = MockApi({QUOTE_PATH: (400, "insufficient liquidity")})
        provider = make_provider(OneInchProvider, api)

        with pytest.raises(QuoteProviderError) as exc_info:
            await provider.get_quote(brla_intent())

        assert exc_info.value.status_code == 400
        assert exc_info.value.body == "insufficient liquidity"
        assert exc_info.value.provider == "1inch Protocol"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_cls", [httpx.ConnectError, httpx.ReadTimeout])
    async def test_transport_failure_is_typed(self, make_provider, error_cls):
        """Network failures surface as QuoteProviderError, which the CLI reports."""
        api = MockApi(errors={QUOTE_PATH: error_cls})
        provider = make_provider(OneInchProvider, api)

        with pytest.raises(QuoteProviderError) as exc_info:
            await provider.get_quote(brla_intent())

        assert isinstance(exc_info.value, SwapError)
        assert exc_info.value.status_code == 0
        assert isinstance(exc_info.value.__cause__, error_cls)

    @pytest.mark.asyncio
    async def test_invalid_json(self, make_provider):
        api = MockApi({QUOTE_PATH: (200, "<html>gateway</html>")})
        provider = make_provider(OneInchProvider, api)

        with pytest.raises(QuoteProviderError, match="invalid JSON") as exc_info:
            await provider.get_quote(brla_intent())

        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_swap_endpoint_transport_failure(self, make_provider):
        api = MockApi({QUOTE_PATH: (200, QUOTE_RESPONSE)}, errors={SWAP_PATH: httpx.ConnectError})
        provider = make_provider(OneInchProvider, api)
        intent = brla_intent()
        quote = await provider.get_quote(intent)

        with pytest.raises(QuoteProviderError):
            await provider.build_swap_transaction(intent, quote)


class TestExtractSources:
    def test_empty(self):
        assert extract_sources(None) == ("1inch",)
        assert extract_sources([]) == ("1inch",)

    def test_order_preserved(self):
        hops = [[[OneInchProtocolHop(name="B"), OneInchProtocolHop(name="A")], [OneInchProtocolHop(name="B")]]]
        assert extract_sources(hops) == ("B", "A")


class TestOneInchAllowance:
    """Spender and approval transaction."""

    def test_spender_is_router(self, make_provider):
        provider = make_provider(OneInchProvider, MockApi())
        assert provider.spender_address(CHAIN_ID) == ROUTER

    def test_unsupported_chain(self, make_provider):
        provider = make_provider(OneInchProvider, MockApi())

        with pytest.raises(ConfigurationError, match="Spender address not configured for chain ID: 1"):
            provider.spender_address(1)

    @pytest.mark.asyncio
    async def test_check_allowance(self, make_provider, chain):
        chain.allowances = [5 * 10**18]
        provider = make_provider(OneInchProvider, MockApi())

        state = await provider.check_allowance(ApprovalRequest.for_intent(brla_intent()))

        assert state.current == 5 * 10**18
        assert state.required == 10 * 10**18
        assert state.needs_approval is True
        assert chain.allowance_calls == [(TOKEN_A, WALLET, ROUTER)]

    @pytest.mark.asyncio
    async def test_exact_allowance_is_sufficient(self, make_provider, chain):
        chain.allowances = [10 * 10**18]
        provider = make_provider(OneInchProvider, MockApi())

        assert await provider.needs_approval(ApprovalRequest.for_intent(brla_intent())) is False

    @pytest.mark.asyncio
    async def test_approval_data(self, make_provider, chain):
        api = MockApi({APPROVE_PATH: (200, APPROVE_RESPONSE)})
        provider = make_provider(OneInchProvider, api)

        tx = await provider.get_approval_data(ApprovalRequest.for_intent(brla_intent()))

        request = api.requests_to(APPROVE_PATH)[0]
        assert request.url.params["tokenAddress"] == TOKEN_A
        assert request.url.params["amount"] == str(MAX_UINT256)
        assert tx.to == TOKEN_A
        assert tx.data == "0x095ea7b3ffff"
        assert tx.sender == WALLET
        assert tx.gas == 130_000
        assert tx.gas_price == 33_000_000_000

    @pytest.mark.asyncio
    async def test_approval_gas_fallback(self, make_provider, chain):
        chain.estimate_error = RuntimeError("execution reverted")
        api = MockApi({APPROVE_PATH: (200, APPROVE_RESPONSE)})
        provider = make_provider(OneInchProvider, api)

        tx = await provider.get_approval_data(ApprovalRequest.for_intent(brla_intent()))

        assert tx.gas == FALLBACK_APPROVAL_GAS


class TestOneInchSwapTransaction:
    """Swap transaction building."""

    @pytest.mark.asyncio
    async def test_build_swap_transaction(self, make_provider):
        api = MockApi({QUOTE_PATH: (200, QUOTE_RESPONSE), SWAP_PATH: (200, SWAP_RESPONSE)})
        provider = make_provider(OneInchProvider, api)
        intent = brla_intent()
        quote = await provider.get_quote(intent)

        tx = await provider.build_swap_transaction(intent, quote)

        request = api.requests_to(SWAP_PATH)[0]
        assert request.url.params["from"] == WALLET
        assert request.url.params["slippage"] == "1.0"
        assert request.url.params["amount"] == str(10 * 10**18)
        assert tx.to == ROUTER
        assert tx.data == "0x12aa3caf0000"
        assert tx.gas == 240_000
        # Chain price with premium, not the price echoed by 1inch
        assert tx.gas_price == 33_000_000_000

    @pytest.mark.asyncio
    async def test_swap_gas_falls_back_to_quote_estimate(self, make_provider):
        swap_response = {"tx": dict(SWAP_RESPONSE["tx"], gas=0)}
        api = MockApi({QUOTE_PATH: (200, QUOTE_RESPONSE), SWAP_PATH: (200, swap_response)})
        provider = make_provider(OneInchProvider, api)
        intent = brla_intent()
        quote = await provider.get_quote(intent)

        tx = await provider.build_swap_transaction(intent, quote)

        assert tx.gas == 216_000
