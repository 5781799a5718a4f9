"""Error taxonomy for the swap engine."""

from typing import Optional


class SwapError(Exception):
    """Base class for all swap engine errors."""
    pass


class ConfigurationError(SwapError):
    """Raised for unsupported chains, tokens or missing providers. Never retried."""
    pass


class QuoteProviderError(SwapError):
    """Raised when an aggregator API does not return success.

    Attributes:
        provider: Aggregator name
        status_code: Upstream HTTP status
        body: Upstream response body, kept for diagnostics
    """

    def __init__(self, provider: str, status_code: int, body: str, message: Optional[str] = None):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"{provider} API error: {status_code} - {body}")


class PriceOracleError(SwapError):
    """Raised when a USD price cannot be determined."""
    pass


class ApprovalFailedOnChain(SwapError):
    """Approval transaction was mined with a failure status."""

    def __init__(self, tx_hash: str, gas_used: int = 0):
        self.tx_hash = tx_hash
        self.gas_used = gas_used
        super().__init__(f"Approval transaction {tx_hash} failed on-chain")


class ApprovalSubmissionTransient(SwapError):
    """Error while sending or waiting for an approval transaction."""

    def __init__(self, original: BaseException):
        self.original = original
        super().__init__(f"Approval submission failed: {type(original).__name__}: {original}")


class SwapFailedOnChain(SwapError):
    """Swap transaction was mined with a failure status."""

    def __init__(self, tx_hash: str, gas_used: int = 0):
        self.tx_hash = tx_hash
        self.gas_used = gas_used
        super().__init__(f"Transaction {tx_hash} failed on-chain")


class ConfirmationTimeout(SwapError):
    """No receipt was observed within the polling bound.

    The transaction may still be mined later; this is not an on-chain failure.
    """

    def __init__(self, tx_hash: str, attempts: int):
        self.tx_hash = tx_hash
        self.attempts = attempts
        super().__init__(
            f"Transaction {tx_hash} not confirmed after {attempts} attempts. "
            f"Check the block explorer later for its final status."
        )
