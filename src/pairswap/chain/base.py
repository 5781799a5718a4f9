"""Chain client interface and the transaction value types it exchanges."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class TransactionRequest:
    """An unsigned transaction, built once per logical step (approval or swap)."""

    chain_id: int
    sender: str
    to: str
    data: str
    value: int = 0
    gas: int = 0
    gas_price: int = 0

    def with_data(self, data: str) -> "TransactionRequest":
        """Copy with replaced calldata."""
        return replace(self, data=data)

    def to_tx_params(self, nonce: int) -> dict:
        """Render as a web3 transaction dict."""
        return {
            "chainId": self.chain_id,
            "from": self.sender,
            "to": self.to,
            "data": self.data,
            "value": self.value,
            "gas": self.gas,
            "gasPrice": self.gas_price,
            "nonce": nonce,
        }


@dataclass(frozen=True)
class Receipt:
    """Final on-chain outcome of a mined transaction."""

    tx_hash: str
    success: bool
    gas_used: int
    block_number: Optional[int] = None


class ChainClient(ABC):
    """Read and write access to one EVM chain."""

    @abstractmethod
    async def get_gas_price(self) -> int:
        """Current gas price in wei."""
        pass

    @abstractmethod
    async def get_nonce(self, address: str) -> int:
        """Pending transaction count for an address."""
        pass

    @abstractmethod
    async def estimate_gas(self, tx: TransactionRequest) -> int:
        """Estimate gas units for a transaction."""
        pass

    @abstractmethod
    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        """Read ERC20 ``allowance(owner, spender)`` in base units."""
        pass

    @abstractmethod
    def encode_approve(self, spender: str, amount: int) -> str:
        """Calldata for ERC20 ``approve(spender, amount)`` as 0x-prefixed hex."""
        pass

    @abstractmethod
    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        """Broadcast a signed transaction and return its hash."""
        pass

    @abstractmethod
    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        """Receipt for a transaction, or None while it is not mined."""
        pass
