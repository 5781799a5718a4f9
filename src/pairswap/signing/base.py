"""Base interface for the signing key holder.

Signing flow:
1. Build unsigned transaction (or receive typed data from an aggregator)
2. Hand it to the key holder
3. Key holder returns signed bytes (never the raw private key)
4. Broadcast / embed the result
"""

import logging
from abc import ABC, abstractmethod

from pairswap.exceptions import SwapError

logger = logging.getLogger(__name__)


class SigningKeyHolder(ABC):
    """Abstract holder of the wallet key.

    Implementations should NEVER expose raw private keys.
    All signing operations return signatures only.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Wallet address controlled by this key."""
        pass

    @abstractmethod
    async def sign_transaction(self, tx_params: dict) -> bytes:
        """Sign a transaction dict.

        Args:
            tx_params: web3 transaction parameters including nonce and chainId

        Returns:
            Raw signed transaction bytes, ready to broadcast
        """
        pass

    @abstractmethod
    async def sign_typed_data(self, typed_data: dict) -> bytes:
        """Sign EIP-712 typed data (types, domain, primaryType, message).

        Returns:
            65-byte signature (r || s || v)
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(address={self.address})"


class SigningError(SwapError):
    """Exception raised when signing fails."""
    pass


class KeyNotFoundError(SigningError):
    """Exception raised when no signing key is configured."""
    pass
