"""Pytest configuration and fixtures."""

import json
from decimal import Decimal
from typing import Optional, Union

import httpx
import pytest

from pairswap.chain.base import ChainClient, Receipt, TransactionRequest
from pairswap.config import PERMIT2_ADDRESS, AggregatorEndpoint, SwapConfig, TokenInfo
from pairswap.signing.base import SigningKeyHolder
from pairswap.swap.receipts import ReceiptPoller
from pairswap.swap.submitter import TransactionSender

CHAIN_ID = 137
TOKEN_A = "0xe6a537a407488807f0bbeb0038b79004f19dddfb"  # BRLA, 18 decimals
TOKEN_B = "0x2791bca1f2de4661ed88a30c99a7a9449aa84174"  # USDC, 6 decimals
WALLET = "0x1111111111111111111111111111111111111111"
ROUTER = "0x1111111254fb6c44bac0bed2854e76f90643097d"
ONEINCH_BASE = "https://1inch.test/swap"
ZEROEX_BASE = "https://0x.test"

FAKE_SIGNATURE = bytes([0x11]) * 65


def tx_hash_for(n: int) -> str:
    """Hash the fake chain assigns to the n-th sent transaction (1-based)."""
    return f"0x{n:064x}"


class RecordingSleep:
    """Instant sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeChainClient(ChainClient):
    """In-memory chain.

    Allowance values are consumed in order; the last one sticks. Receipts are
    successful unless the send index is listed in ``fail_sends``.
    """

    def __init__(
        self,
        gas_price: int = 30_000_000_000,
        allowance: Union[int, list[int]] = 0,
        gas_estimate: int = 100_000,
    ):
        self.gas_price = gas_price
        self.allowances = list(allowance) if isinstance(allowance, list) else [allowance]
        self.gas_estimate = gas_estimate
        self.estimate_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self.fail_sends: set[int] = set()
        self.pending_polls = 0
        self.never_mined = False

        self.sent: list[bytes] = []
        self.allowance_calls: list[tuple[str, str, str]] = []
        self.receipt_calls: list[str] = []
        self._failed_hashes: set[str] = set()

    async def get_gas_price(self) -> int:
        return self.gas_price

    async def get_nonce(self, address: str) -> int:
        return len(self.sent)

    async def estimate_gas(self, tx: TransactionRequest) -> int:
        if self.estimate_error is not None:
            raise self.estimate_error
        return self.gas_estimate

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        self.allowance_calls.append((token, owner, spender))
        if len(self.allowances) > 1:
            return self.allowances.pop(0)
        return self.allowances[0]

    def encode_approve(self, spender: str, amount: int) -> str:
        return "0x095ea7b3" + spender.lower()[2:].rjust(64, "0") + format(amount, "064x")

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw_tx)
        tx_hash = tx_hash_for(len(self.sent))
        if len(self.sent) in self.fail_sends:
            self._failed_hashes.add(tx_hash)
        return tx_hash

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        self.receipt_calls.append(tx_hash)
        if self.never_mined or self.receipt_calls.count(tx_hash) <= self.pending_polls:
            return None
        return Receipt(
            tx_hash=tx_hash,
            success=tx_hash not in self._failed_hashes,
            gas_used=150_000,
            block_number=1,
        )


class FakeKeyHolder(SigningKeyHolder):
    """Records what it signs and returns deterministic bytes."""

    def __init__(self, address: str = WALLET):
        self._address = address
        self.signed_transactions: list[dict] = []
        self.signed_typed_data: list[dict] = []

    @property
    def address(self) -> str:
        return self._address

    async def sign_transaction(self, tx_params: dict) -> bytes:
        self.signed_transactions.append(tx_params)
        return json.dumps(tx_params, sort_keys=True).encode()

    async def sign_typed_data(self, typed_data: dict) -> bytes:
        self.signed_typed_data.append(typed_data)
        return FAKE_SIGNATURE


class MockApi:
    """httpx MockTransport routing by URL path.

    Routes map a path to ``(status, body)``; dict bodies are sent as JSON.
    Paths in ``errors`` raise the given httpx exception class instead.
    """

    def __init__(self, routes: Optional[dict] = None, errors: Optional[dict] = None):
        self.routes = dict(routes or {})
        self.errors = dict(errors or {})
        self.requests: list[httpx.Request] = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        error_cls = self.errors.get(request.url.path)
        if error_cls is not None:
            raise error_cls("connection failed", request=request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        status, body = route
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


def make_swap_config(request_delay: float = 1.0, threshold: str = "100") -> SwapConfig:
    tokens = [
        TokenInfo(
            symbol="BRLA",
            address=TOKEN_A,
            decimals=18,
            coingecko_id="brazilian-real",
            fiat_code="BRL",
        ),
        TokenInfo(
            symbol="USDC",
            address=TOKEN_B,
            decimals=6,
            usd_pegged=True,
            coingecko_id="usd-coin",
        ),
    ]
    return SwapConfig(
        chain_id=CHAIN_ID,
        tokens={t.address.lower(): t for t in tokens},
        oneinch=AggregatorEndpoint(base_url=ONEINCH_BASE, api_key="oneinch-key", request_delay=request_delay),
        zeroex=AggregatorEndpoint(base_url=ZEROEX_BASE, api_key="zeroex-key", api_version="v2"),
        threshold_usd=Decimal(threshold),
        routers={CHAIN_ID: ROUTER},
        permit2_address=PERMIT2_ADDRESS,
        explorer_tx_url="https://polygonscan.com/tx/",
    )


@pytest.fixture
def swap_config() -> SwapConfig:
    return make_swap_config()


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def key_holder() -> FakeKeyHolder:
    return FakeKeyHolder()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def sender(chain, key_holder) -> TransactionSender:
    return TransactionSender(chain, key_holder)


@pytest.fixture
def poller(chain, sleep) -> ReceiptPoller:
    return ReceiptPoller(chain, sleep=sleep)


@pytest.fixture
def make_provider(swap_config, chain, sender, poller, sleep):
    """Build a provider of the given class wired to the fakes and a MockApi."""

    def _make(provider_cls, api: MockApi):
        return provider_cls(
            swap_config,
            chain,
            sender,
            poller,
            transport=api.transport,
            sleep=sleep,
        )

    return _make
