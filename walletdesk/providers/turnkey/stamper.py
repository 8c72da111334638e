"""
API-key request stamper.

The custodial API authenticates server-side calls with a "stamp": an ECDSA
P-256 signature over the exact request body, sent alongside the API public
key in the ``X-Stamp`` header. The header value is the unpadded base64url
encoding of::

    {"publicKey": "<compressed P-256 public key, hex>",
     "scheme": "SIGNATURE_SCHEME_TK_API_P256",
     "signature": "<DER-encoded signature, hex>"}
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Dict, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from walletdesk.errors import CustodyNotConfiguredError


STAMP_HEADER_NAME = "X-Stamp"
SIGNATURE_SCHEME = "SIGNATURE_SCHEME_TK_API_P256"


@dataclass(frozen=True)
class Stamp:
    header_name: str
    header_value: str

    def to_dict(self) -> Dict[str, str]:
        return {"stampHeaderName": self.header_name, "stampHeaderValue": self.header_value}


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def load_private_key(private_key_hex: str) -> ec.EllipticCurvePrivateKey:
    try:
        scalar = int(private_key_hex.strip().removeprefix("0x"), 16)
        return ec.derive_private_key(scalar, ec.SECP256R1())
    except ValueError as exc:
        raise CustodyNotConfiguredError(f"API private key is not a valid P-256 scalar: {exc}") from exc


def compressed_public_key(private_key: ec.EllipticCurvePrivateKey) -> str:
    return private_key.public_key().public_bytes(Encoding.X962, PublicFormat.CompressedPoint).hex()


class ApiKeyStamper:
    """Signs request bodies with the organization's API key pair."""

    def __init__(self, api_public_key: str, api_private_key: str):
        if not api_public_key or not api_private_key:
            raise CustodyNotConfiguredError("API key pair is not configured")
        self._public_key = api_public_key.strip().lower()
        self._private_key = load_private_key(api_private_key)

        derived = compressed_public_key(self._private_key)
        if derived != self._public_key:
            raise CustodyNotConfiguredError(
                "API public key does not match the configured private key"
            )

    @property
    def public_key(self) -> str:
        return self._public_key

    def stamp(self, payload: Union[str, bytes]) -> Stamp:
        body = payload.encode("utf-8") if isinstance(payload, str) else payload
        signature = self._private_key.sign(body, ec.ECDSA(hashes.SHA256()))
        stamp = {
            "publicKey": self._public_key,
            "scheme": SIGNATURE_SCHEME,
            "signature": signature.hex(),
        }
        encoded = _b64url(json.dumps(stamp, separators=(",", ":")).encode("utf-8"))
        return Stamp(header_name=STAMP_HEADER_NAME, header_value=encoded)
