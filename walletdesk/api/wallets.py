"""
Wallets API

Passthrough endpoints for custodial wallets, plus the ownership bookkeeping
that the custodial API cannot do for us:
- Create a wallet and register it to the caller
- List organization wallets / the caller's wallets
- Claim an existing wallet by id or by name
- Diagnostic dump of the ownership index
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..config import settings
from ..core.policy import resolve_blockchain
from ..core.wallet import (
    DEFAULT_ETHEREUM_ACCOUNT,
    OwnershipIndex,
    find_wallet_by_name,
    summarize_wallet,
)
from ..errors import ConflictError, CustodyRejectedError, ResourceNotFoundError
from ..providers.turnkey import TurnkeyProvider
from .deps import get_ownership_index, get_turnkey_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Wallets"])

# Upstream statuses that mean "no such wallet" rather than a service failure
_NOT_FOUND_STATUSES = {400, 404}


# ============================================================================
# Request Models
# ============================================================================


class CreateWalletRequest(BaseModel):
    walletName: str = Field(..., min_length=1, description="Display name for the new wallet")
    chains: List[str] = Field(default_factory=list, description="Chain slugs the wallet is intended for")


class WalletIdRequest(BaseModel):
    walletId: str = Field(..., min_length=1, description="Custodial wallet id")


class ClaimByNameRequest(BaseModel):
    walletName: str = Field(..., min_length=1, description="Wallet name, matched case-insensitively")


# ============================================================================
# Helpers
# ============================================================================


async def _summaries(
    provider: TurnkeyProvider,
    wallets: List[Dict[str, Any]],
    *,
    unclaimed: bool = False,
) -> List[Dict[str, Any]]:
    results = await provider.list_wallet_accounts_many([w.get("walletId", "") for w in wallets])
    summaries = []
    for wallet, accounts in zip(wallets, results):
        if isinstance(accounts, Exception):
            logger.warning("Could not load accounts for wallet %s: %s", wallet.get("walletId"), accounts)
            summaries.append(
                summarize_wallet(wallet, unclaimed=unclaimed, error=f"Failed to load details: {accounts}")
            )
        else:
            summaries.append(summarize_wallet(wallet, accounts, unclaimed=unclaimed))
    return summaries


def _claim(index: OwnershipIndex, wallet_id: str, user_id: str) -> bool:
    """Register the wallet for ``user_id``; returns False if they already held it."""
    if index.register(wallet_id, user_id):
        return True
    owner = index.owner_of(wallet_id)
    if owner != user_id:
        raise ConflictError(f"Wallet {wallet_id} is already registered to another user")
    return False


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/create-wallet")
async def create_wallet(
    request: CreateWalletRequest,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
    index: OwnershipIndex = Depends(get_ownership_index),
) -> Dict[str, Any]:
    """Create an EVM wallet and register it to the API key's user."""
    chains = [c.lower() for c in request.chains]
    for chain in chains:
        resolve_blockchain(chain)

    user_id = await provider.current_user_id()
    activity = await provider.create_wallet(request.walletName, [dict(DEFAULT_ETHEREUM_ACCOUNT)])

    result = (activity.get("result") or {}).get("createWalletResult") or {}
    wallet_id: Optional[str] = result.get("walletId")
    addresses = result.get("addresses") or []

    if wallet_id:
        index.register(wallet_id, user_id, chains=chains)
    else:
        logger.warning(
            "Wallet creation activity %s finished with status %s and no wallet id",
            activity.get("id"), activity.get("status"),
        )

    return {
        "success": True,
        "activity": activity,
        "wallet": {
            "walletId": wallet_id,
            "name": request.walletName,
            "address": addresses[0] if addresses else None,
            "chains": chains,
        },
    }


@router.post("/list-wallets")
async def list_wallets(
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    """Every wallet in the organization, with enriched account details."""
    user_id = await provider.current_user_id()
    wallets = await provider.list_wallets()
    summaries = await _summaries(provider, wallets)

    return {
        "success": True,
        "currentUserId": user_id,
        "wallets": summaries,
        "count": len(summaries),
    }


@router.post("/list-user-wallets")
async def list_user_wallets(
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
    index: OwnershipIndex = Depends(get_ownership_index),
) -> Dict[str, Any]:
    """
    Wallets registered to the caller, in registration order.

    A caller with no wallets is offered a few organization wallets nobody
    has registered yet, flagged ``unclaimed``.
    """
    user_id = await provider.current_user_id()
    owned_ids = index.list_wallets_for_user(user_id)
    wallets = await provider.list_wallets()
    by_id = {w.get("walletId"): w for w in wallets}

    owned = [by_id[wallet_id] for wallet_id in owned_ids if wallet_id in by_id]
    missing = [wallet_id for wallet_id in owned_ids if wallet_id not in by_id]
    if missing:
        logger.warning("User %s owns wallets unknown upstream: %s", user_id, missing)

    summaries = await _summaries(provider, owned)
    if not owned_ids:
        candidates = [w for w in wallets if w.get("walletId") not in index]
        preview = candidates[: settings.unclaimed_preview_limit]
        summaries += await _summaries(provider, preview, unclaimed=True)

    logger.info("User %s owns %d wallet(s)", user_id, len(owned_ids))
    return {
        "success": True,
        "currentUserId": user_id,
        "wallets": summaries,
        "count": len(summaries),
    }


@router.post("/get-wallet")
async def get_wallet(
    request: WalletIdRequest,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    wallet = await provider.get_wallet(request.walletId)
    return {"success": True, "wallet": wallet}


@router.post("/get-wallet-accounts")
async def get_wallet_accounts(
    request: WalletIdRequest,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    accounts = await provider.list_wallet_accounts(request.walletId)
    return {"success": True, "accounts": accounts}


@router.post("/claim-wallet")
async def claim_wallet(
    request: WalletIdRequest,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
    index: OwnershipIndex = Depends(get_ownership_index),
) -> Dict[str, Any]:
    """Register an existing wallet, looked up by id, to the caller."""
    user_id = await provider.current_user_id()

    try:
        wallet = await provider.get_wallet(request.walletId)
    except CustodyRejectedError as exc:
        if exc.upstream_status in _NOT_FOUND_STATUSES:
            raise ResourceNotFoundError(f"Wallet {request.walletId} not found") from exc
        raise
    if not wallet:
        raise ResourceNotFoundError(f"Wallet {request.walletId} not found")

    newly_claimed = _claim(index, request.walletId, user_id)
    return {
        "success": True,
        "message": f"Wallet {request.walletId} has been claimed by user {user_id}",
        "alreadyOwned": not newly_claimed,
        "wallet": wallet,
    }


@router.post("/claim-my-wallet")
async def claim_wallet_by_name(
    request: ClaimByNameRequest,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
    index: OwnershipIndex = Depends(get_ownership_index),
) -> Dict[str, Any]:
    """Register an existing wallet, looked up by name, to the caller."""
    user_id = await provider.current_user_id()
    wallet = find_wallet_by_name(await provider.list_wallets(), request.walletName)
    if wallet is None:
        raise ResourceNotFoundError(f'Wallet "{request.walletName}" not found')

    newly_claimed = _claim(index, wallet["walletId"], user_id)
    return {
        "success": True,
        "message": f'Successfully claimed wallet "{wallet.get("walletName")}"',
        "alreadyOwned": not newly_claimed,
        "wallet": {"id": wallet["walletId"], "name": wallet.get("walletName")},
    }


@router.get("/ownerships")
async def list_ownerships(
    index: OwnershipIndex = Depends(get_ownership_index),
) -> Dict[str, Any]:
    """Diagnostic dump of every ownership record."""
    records = index.list_all()
    return {
        "success": True,
        "count": len(records),
        "ownerships": [r.to_dict() for r in records],
    }


@router.get("/ownerships/{user_id}")
async def list_ownerships_for_user(
    user_id: str,
    index: OwnershipIndex = Depends(get_ownership_index),
) -> Dict[str, Any]:
    wallet_ids = index.list_wallets_for_user(user_id)
    return {"success": True, "userId": user_id, "walletIds": wallet_ids, "count": len(wallet_ids)}
