"""Permit2 signature generation and calldata embedding.

The Permit2 settler contract expects the swap calldata followed by a 32-byte
big-endian signature length and the raw signature bytes. Any deviation makes
the transaction revert on-chain.
"""

import logging

from pairswap.signing.base import SigningKeyHolder

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH_BYTES = 32


def _strip_hex_prefix(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def embed_signature(calldata: str, signature: bytes) -> str:
    """Append a signature block to transaction calldata.

    Layout: ``calldata || uint256_be(len(signature)) || signature``

    Args:
        calldata: Provider-supplied calldata, hex with or without 0x
        signature: Raw signature bytes

    Returns:
        0x-prefixed hex calldata
    """
    data = bytes.fromhex(_strip_hex_prefix(calldata))
    length = len(signature).to_bytes(SIGNATURE_LENGTH_BYTES, "big")
    return "0x" + (data + length + signature).hex()


class PermitSigner:
    """Signs Permit2 typed data and embeds the signature in swap calldata."""

    async def sign(self, typed_data: dict, key_holder: SigningKeyHolder) -> bytes:
        """Produce an EIP-712 signature over the permit message."""
        logger.info("Generating Permit2 signature...")
        signature = await key_holder.sign_typed_data(typed_data)
        logger.info(f"Permit2 signature generated: 0x{signature.hex()[:8]}...")
        return signature

    async def sign_into(self, calldata: str, typed_data: dict, key_holder: SigningKeyHolder) -> str:
        """Sign the permit and return calldata with the signature appended."""
        signature = await self.sign(typed_data, key_holder)
        return embed_signature(calldata, signature)
