"""
Presentation helpers for custodial wallets and their accounts.

The custodial API reports accounts with raw enum strings
(``ADDRESS_FORMAT_ETHEREUM``, ``CURVE_SECP256K1``); the dashboard wants
friendly names and one uniform wallet shape across the list routes.
"""

from typing import Any, Dict, List, Optional


ADDRESS_FORMAT_BLOCKCHAINS: Dict[str, str] = {
    "ADDRESS_FORMAT_ETHEREUM": "Ethereum",
    "ADDRESS_FORMAT_BITCOIN": "Bitcoin",
    "ADDRESS_FORMAT_SOLANA": "Solana",
}

CURVE_NAMES: Dict[str, str] = {
    "CURVE_SECP256K1": "secp256k1",
    "CURVE_ED25519": "ed25519",
}

# Single EVM account; every EVM chain shares the same address
DEFAULT_ETHEREUM_ACCOUNT: Dict[str, str] = {
    "curve": "CURVE_SECP256K1",
    "pathFormat": "PATH_FORMAT_BIP32",
    "path": "m/44'/60'/0'/0/0",
    "addressFormat": "ADDRESS_FORMAT_ETHEREUM",
}


def blockchain_for_format(address_format: Optional[str]) -> str:
    if not address_format:
        return "Unknown"
    return ADDRESS_FORMAT_BLOCKCHAINS.get(address_format, address_format)


def curve_name(curve: Optional[str]) -> str:
    if not curve:
        return "Unknown"
    return CURVE_NAMES.get(curve, curve)


def enrich_account(account: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a raw account with ``blockchain`` and ``curveType`` added."""
    return {
        "address": account.get("address"),
        "addressFormat": account.get("addressFormat"),
        "curve": account.get("curve"),
        "path": account.get("path"),
        "pathFormat": account.get("pathFormat"),
        "publicKey": account.get("publicKey"),
        "blockchain": blockchain_for_format(account.get("addressFormat")),
        "curveType": curve_name(account.get("curve")),
    }


def summarize_wallet(
    wallet: Dict[str, Any],
    accounts: Optional[List[Dict[str, Any]]] = None,
    *,
    unclaimed: bool = False,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    """Uniform wallet shape returned by the list routes."""
    enriched = [enrich_account(a) for a in accounts or []]
    summary: Dict[str, Any] = {
        "id": wallet.get("walletId"),
        "name": wallet.get("walletName"),
        "createdAt": wallet.get("createdAt"),
        "updatedAt": wallet.get("updatedAt"),
        "exported": bool(wallet.get("exported", False)),
        "imported": bool(wallet.get("imported", False)),
        "accounts": enriched,
        "primaryBlockchain": enriched[0]["blockchain"] if enriched else "Unknown",
        "unclaimed": unclaimed,
    }
    if error:
        summary["error"] = error
    return summary


def find_wallet_by_name(wallets: List[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
    """Case-insensitive lookup on ``walletName``; first match wins."""
    target = name.strip().lower()
    for wallet in wallets:
        if (wallet.get("walletName") or "").lower() == target:
            return wallet
    return None
