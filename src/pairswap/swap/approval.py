"""Token approval state machine.

UNKNOWN -> CHECKED -> (APPROVED | APPROVING -> APPROVED | FAILED)

An approval that errors during submission or confirmation may still have
landed, so the allowance is re-read once after a short wait before the error
is treated as fatal. A mined approval with a failed status is never retried.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional

from pairswap.exceptions import ApprovalFailedOnChain, ApprovalSubmissionTransient
from pairswap.routing.base import ApprovalRequest, QuoteProvider
from pairswap.swap.receipts import ReceiptPoller
from pairswap.swap.submitter import TransactionSender
from pairswap.utils.retry import recover_with_recheck

logger = logging.getLogger(__name__)

APPROVAL_RECHECK_DELAY = 2.0


class ApprovalState(str, Enum):
    UNKNOWN = "unknown"
    CHECKED = "checked"
    APPROVING = "approving"
    APPROVED = "approved"
    FAILED = "failed"


@dataclass
class ApprovalOutcome:
    """Final state of one ensure_approval call."""

    state: ApprovalState = ApprovalState.UNKNOWN
    tx_hash: Optional[str] = None
    history: list[ApprovalState] = field(default_factory=lambda: [ApprovalState.UNKNOWN])

    def advance(self, state: ApprovalState) -> None:
        logger.debug(f"Approval state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def submitted(self) -> bool:
        return self.tx_hash is not None


class ApprovalManager:
    """Ensures the provider's spender may move the sell amount."""

    def __init__(
        self,
        sender: TransactionSender,
        poller: ReceiptPoller,
        recheck_delay: float = APPROVAL_RECHECK_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.sender = sender
        self.poller = poller
        self.recheck_delay = recheck_delay
        self._sleep = sleep
        self.last_outcome: Optional[ApprovalOutcome] = None

    async def ensure_approval(self, provider: QuoteProvider, request: ApprovalRequest) -> ApprovalOutcome:
        """Approve the spender if the current allowance is insufficient.

        Sends no transaction when the allowance already covers the amount.

        Raises:
            ApprovalFailedOnChain: Approval mined with failed status
            ApprovalSubmissionTransient: Submission failed and the re-check
                still shows insufficient allowance
        """
        outcome = ApprovalOutcome()
        # Kept so the final state is inspectable when an error propagates
        self.last_outcome = outcome

        logger.info(f"Checking token allowance for {provider.name}...")
        needs_approval = await provider.needs_approval(request)
        outcome.advance(ApprovalState.CHECKED)

        if not needs_approval:
            logger.info("Token allowance is sufficient, no approval needed")
            outcome.advance(ApprovalState.APPROVED)
            return outcome

        logger.info("Insufficient allowance, approving...")
        outcome.advance(ApprovalState.APPROVING)

        async def submit() -> str:
            try:
                tx = await provider.get_approval_data(request)
                outcome.tx_hash = await self.sender.send(tx)
                logger.info(f"Approval transaction sent: {outcome.tx_hash}")
                await self.poller.wait_for_success(outcome.tx_hash, failure=ApprovalFailedOnChain)
            except ApprovalFailedOnChain:
                raise
            except Exception as e:
                raise ApprovalSubmissionTransient(e) from e
            return outcome.tx_hash

        async def allowance_landed() -> bool:
            return not await provider.needs_approval(request)

        try:
            await recover_with_recheck(
                submit,
                allowance_landed,
                delay=self.recheck_delay,
                recover_on=(ApprovalSubmissionTransient,),
                sleep=self._sleep,
            )
        except ApprovalFailedOnChain as e:
            logger.error(f"Approval transaction failed on-chain: {e.tx_hash}")
            outcome.advance(ApprovalState.FAILED)
            raise
        except ApprovalSubmissionTransient as e:
            logger.error(f"Approval failed and allowance is still insufficient: {e.original}")
            outcome.advance(ApprovalState.FAILED)
            raise

        logger.info("Token approval confirmed")
        outcome.advance(ApprovalState.APPROVED)
        return outcome
