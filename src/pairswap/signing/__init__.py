"""Signing: key holder interface, local eth-account holder, Permit2 signer."""

from pairswap.signing.base import KeyNotFoundError, SigningError, SigningKeyHolder
from pairswap.signing.local import LocalKeyHolder
from pairswap.signing.permit import PermitSigner, embed_signature

__all__ = [
    "KeyNotFoundError",
    "LocalKeyHolder",
    "PermitSigner",
    "SigningError",
    "SigningKeyHolder",
    "embed_signature",
]
