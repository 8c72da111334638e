"""
Organization API

Read-only views of the custodial organization: its data, the caller's
identity within it, and its private keys.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..providers.turnkey import TurnkeyProvider
from .deps import get_turnkey_provider

router = APIRouter(prefix="/api", tags=["Organization"])


@router.get("/organization")
async def get_organization(
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    organization = await provider.get_organization()
    whoami = await provider.get_whoami()
    data = organization.get("organizationData") or {}
    return {
        "success": True,
        "organization": {
            "id": data.get("organizationId") or provider.organization_id,
            "name": data.get("name"),
            "data": data,
        },
        "user": {
            "id": whoami.get("userId"),
            "username": whoami.get("username"),
            "organizationId": whoami.get("organizationId"),
        },
    }


@router.get("/get-private-keys")
async def get_private_keys(
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    private_keys = await provider.list_private_keys()
    return {"success": True, "privateKeys": private_keys, "count": len(private_keys)}
