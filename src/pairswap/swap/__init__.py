"""Transaction submission, confirmation and gas policy."""

from pairswap.swap.gas import GasPolicy
from pairswap.swap.receipts import ReceiptPoller
from pairswap.swap.submitter import TransactionSender

__all__ = [
    "GasPolicy",
    "ReceiptPoller",
    "TransactionSender",
]
