"""Local signing backend.

Uses an in-memory private key. Suitable for a single operator wallet.

WARNING: The private key is held in process memory. It is never logged and
never part of repr().
"""

import logging
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_typed_data

from pairswap.signing.base import KeyNotFoundError, SigningError, SigningKeyHolder

logger = logging.getLogger(__name__)


def _parse_int(value: str) -> int:
    return int(value, 16) if value.lower().startswith("0x") else int(value)


def _coerce_value(types: dict, type_name: str, value):
    """Convert string-encoded integers to int following the EIP-712 types.

    Aggregators serialize uint256 fields as decimal strings, which the ABI
    encoder rejects.
    """
    if type_name.endswith("]"):
        item_type = type_name[: type_name.rindex("[")]
        return [_coerce_value(types, item_type, item) for item in value]

    if type_name in types:
        return {
            f["name"]: _coerce_value(types, f["type"], value[f["name"]])
            for f in types[type_name]
            if f["name"] in value
        }

    if type_name.startswith(("uint", "int")) and isinstance(value, str):
        return _parse_int(value)

    return value


def normalize_typed_data(typed_data: dict) -> dict:
    """Return a copy of typed data with numeric strings converted to ints."""
    types = typed_data.get("types", {})
    normalized = dict(typed_data)
    normalized["message"] = _coerce_value(types, typed_data["primaryType"], typed_data["message"])
    if "EIP712Domain" in types:
        normalized["domain"] = _coerce_value(types, "EIP712Domain", typed_data.get("domain", {}))
    return normalized


class LocalKeyHolder(SigningKeyHolder):
    """Key holder backed by eth-account."""

    def __init__(self, private_key: Optional[str]):
        if not private_key:
            raise KeyNotFoundError("PRIVATE_KEY not configured")

        key = private_key if private_key.startswith("0x") else f"0x{private_key}"
        try:
            self._account = Account.from_key(key)
        except (ValueError, TypeError) as e:
            raise SigningError(f"Invalid private key: {type(e).__name__}") from None

    @property
    def address(self) -> str:
        return self._account.address

    async def sign_transaction(self, tx_params: dict) -> bytes:
        signed_tx = self._account.sign_transaction(tx_params)
        # eth-account >= 0.13 uses raw_transaction, older versions rawTransaction
        raw_tx = getattr(signed_tx, "raw_transaction", None) or signed_tx.rawTransaction
        return bytes(raw_tx)

    async def sign_typed_data(self, typed_data: dict) -> bytes:
        signable = encode_typed_data(full_message=normalize_typed_data(typed_data))
        signed = self._account.sign_message(signable)
        return bytes(signed.signature)
