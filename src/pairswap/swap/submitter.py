"""Sign and broadcast a single transaction."""

import logging

from pairswap.chain.base import ChainClient, TransactionRequest
from pairswap.signing.base import SigningKeyHolder

logger = logging.getLogger(__name__)


class TransactionSender:
    """Assigns a nonce, signs with the key holder and broadcasts."""

    def __init__(self, chain: ChainClient, key_holder: SigningKeyHolder):
        self.chain = chain
        self.key_holder = key_holder

    @property
    def address(self) -> str:
        return self.key_holder.address

    async def send(self, tx: TransactionRequest) -> str:
        """Submit a transaction exactly once.

        Returns:
            Transaction hash
        """
        nonce = await self.chain.get_nonce(tx.sender)
        logger.info(
            f"Sending transaction: to={tx.to}, from={tx.sender}, "
            f"gas={tx.gas}, gasPrice={tx.gas_price}, nonce={nonce}"
        )
        raw_tx = await self.key_holder.sign_transaction(tx.to_tx_params(nonce))
        tx_hash = await self.chain.send_raw_transaction(raw_tx)
        logger.info(f"Transaction sent: {tx_hash}")
        return tx_hash
