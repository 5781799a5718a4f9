"""Transaction confirmation polling."""

import asyncio
import logging
from typing import Awaitable, Callable

from pairswap.chain.base import ChainClient, Receipt
from pairswap.exceptions import ConfirmationTimeout, SwapFailedOnChain

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5
MAX_POLL_ATTEMPTS = 30


class ReceiptPoller:
    """Waits for a transaction receipt with a hard attempt bound.

    At most ``max_attempts`` receipt queries are made, ``interval`` seconds
    apart. The sleep function is injectable so the bound can be exercised
    without real delay.
    """

    def __init__(
        self,
        chain: ChainClient,
        interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.chain = chain
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def wait_for_receipt(self, tx_hash: str) -> Receipt:
        """Block until the transaction is mined.

        Raises:
            ConfirmationTimeout: No receipt after ``max_attempts`` queries
        """
        for attempt in range(1, self.max_attempts + 1):
            receipt = await self.chain.get_receipt(tx_hash)
            if receipt is not None:
                logger.info(
                    f"Receipt for {tx_hash} after {attempt} attempt(s): "
                    f"status={'success' if receipt.success else 'failed'}, gas used={receipt.gas_used}"
                )
                return receipt

            logger.info(f"Waiting for receipt... Attempt {attempt}/{self.max_attempts}")
            if attempt < self.max_attempts:
                await self._sleep(self.interval)

        raise ConfirmationTimeout(tx_hash, self.max_attempts)

    async def wait_for_success(
        self,
        tx_hash: str,
        failure: Callable[[str, int], Exception] = SwapFailedOnChain,
    ) -> Receipt:
        """Wait for the receipt and require a success status.

        Args:
            tx_hash: Transaction to wait for
            failure: Exception type raised for a failed status

        Raises:
            ConfirmationTimeout: No receipt within the bound
            failure: Receipt status is not success
        """
        receipt = await self.wait_for_receipt(tx_hash)
        if not receipt.success:
            raise failure(tx_hash, receipt.gas_used)
        return receipt
