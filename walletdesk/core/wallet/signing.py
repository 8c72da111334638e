"""
Helpers for the signing routes: payload encoding, account lookup, and
shaping of sign-raw-payload / sign-transaction results.
"""

import json
import re
from typing import Any, Dict, List, Optional

from walletdesk.core.policy.conditions import EVM_ADDRESS_RE
from walletdesk.errors import InvalidInputError

HEX_RE = re.compile(r"(?:[0-9a-fA-F]{2})+")

# Filled in when the caller leaves them out of an eth_transfer
TRANSFER_DEFAULTS = {
    "data": "0x",
    "nonce": "0",
    "gasLimit": "21000",
    "chainId": "1",
}
TRANSFER_FIELDS = ("to", "value", "data", "nonce", "gasLimit", "gasPrice", "chainId")


def message_to_hex(message: str) -> str:
    """UTF-8 bytes of ``message`` as lowercase hex, no ``0x``."""
    return message.encode("utf-8").hex()


def _strip_0x(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value


def find_account_by_address(
    accounts: List[Dict[str, Any]], address: str
) -> Optional[Dict[str, Any]]:
    wanted = address.strip().lower()
    for account in accounts:
        if (account.get("address") or "").lower() == wanted:
            return account
    return None


def join_signature(result: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Concatenate ``r``, ``s`` and ``v`` of a sign-raw-payload result into one
    ``0x``-prefixed signature; None if any component is missing.
    """
    if not result:
        return None
    parts = [result.get("r"), result.get("s"), result.get("v")]
    if not all(parts):
        return None
    return "0x" + "".join(_strip_0x(str(part)) for part in parts)


def build_unsigned_transaction(params: Dict[str, Any]) -> str:
    """
    Unsigned transaction string for an ``eth_transfer``.

    An explicit ``unsignedTransaction`` hex string is passed through (without
    ``0x``). Otherwise the transfer fields are serialized as compact JSON with
    defaults for data, nonce, gas limit and chain id.

    Raises:
        InvalidInputError: malformed hex, missing or malformed recipient, missing value
    """
    raw = params.get("unsignedTransaction")
    if raw is not None:
        text = _strip_0x(str(raw).strip())
        if not HEX_RE.fullmatch(text):
            raise InvalidInputError("unsignedTransaction must be an even-length hex string")
        return text

    to = params.get("to")
    if not isinstance(to, str) or not EVM_ADDRESS_RE.fullmatch(to):
        raise InvalidInputError(f"transactionParams.to must be a 0x-prefixed 20-byte hex address, got {to!r}")
    if params.get("value") in (None, ""):
        raise InvalidInputError("transactionParams.value is required")

    merged = {**TRANSFER_DEFAULTS, **{k: v for k, v in params.items() if v not in (None, "")}}
    transaction = {field: merged[field] for field in TRANSFER_FIELDS if field in merged}
    return json.dumps(transaction, separators=(",", ":"))
