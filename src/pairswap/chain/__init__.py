"""Chain access: client interface and web3 implementation."""

from pairswap.chain.base import ChainClient, Receipt, TransactionRequest
from pairswap.chain.web3_client import Web3ChainClient

__all__ = ["ChainClient", "Receipt", "TransactionRequest", "Web3ChainClient"]
