"""web3.py implementation of the chain client."""

import logging
from typing import Optional

from eth_abi import encode
from web3 import AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound

from pairswap.chain.base import ChainClient, Receipt, TransactionRequest

logger = logging.getLogger(__name__)

# Minimal ERC20 ABI: allowance + approve
ERC20_ABI = [
    {
        "inputs": [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# keccak("approve(address,uint256)")[:4]
APPROVE_SELECTOR = "0x095ea7b3"


class Web3ChainClient(ChainClient):
    """Chain client backed by an AsyncWeb3 HTTP provider."""

    def __init__(self, rpc_url: str, web3: Optional[AsyncWeb3] = None):
        self.rpc_url = rpc_url
        self._web3 = web3

    @property
    def web3(self) -> AsyncWeb3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        return self._web3

    async def get_gas_price(self) -> int:
        return int(await self.web3.eth.gas_price)

    async def get_nonce(self, address: str) -> int:
        return await self.web3.eth.get_transaction_count(
            Web3.to_checksum_address(address), "pending"
        )

    async def estimate_gas(self, tx: TransactionRequest) -> int:
        return await self.web3.eth.estimate_gas({
            "from": Web3.to_checksum_address(tx.sender),
            "to": Web3.to_checksum_address(tx.to),
            "data": tx.data,
            "value": tx.value,
        })

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        contract = self.web3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)
        allowance = await contract.functions.allowance(
            Web3.to_checksum_address(owner),
            Web3.to_checksum_address(spender),
        ).call()
        return int(allowance)

    def encode_approve(self, spender: str, amount: int) -> str:
        args = encode(["address", "uint256"], [Web3.to_checksum_address(spender), amount])
        return APPROVE_SELECTOR + args.hex()

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        tx_hash = await self.web3.eth.send_raw_transaction(raw_tx)
        return Web3.to_hex(tx_hash)

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        try:
            receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

        if receipt is None:
            return None

        return Receipt(
            tx_hash=tx_hash,
            success=receipt["status"] == 1,
            gas_used=int(receipt["gasUsed"]),
            block_number=receipt.get("blockNumber"),
        )
