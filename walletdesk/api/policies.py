"""
Policies API

List the organization's policies and create new ones from the dashboard's
policy templates (spending limit, gas limit, address allowlist, time window).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..core.policy import build_policy
from ..providers.turnkey import TurnkeyProvider
from .deps import get_turnkey_provider

router = APIRouter(prefix="/api", tags=["Policies"])


class CreatePolicyRequest(BaseModel):
    policyName: str = Field(..., min_length=1)
    policyType: str = Field(..., description="spending_limit, gas_limit, address_allowlist, time_based")
    conditions: Dict[str, Any] = Field(..., description="Template-specific settings")
    chain: Optional[str] = Field(default=None, description="Chain slug, or 'all'")


@router.get("/get-policies")
async def get_policies(
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    policies = await provider.list_policies()
    return {"success": True, "policies": policies, "count": len(policies)}


@router.post("/create-policy")
async def create_policy(
    request: CreatePolicyRequest,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    draft = build_policy(request.policyType, request.conditions, request.chain)
    activity = await provider.create_policy(draft.to_parameters(request.policyName))

    result = (activity.get("result") or {}).get("createPolicyResult") or {}
    return {
        "success": True,
        "policy": {
            "id": result.get("policyId") or activity.get("id"),
            "activityId": activity.get("id"),
            "name": request.policyName,
            "type": request.policyType,
            "chain": request.chain or "all",
            "effect": draft.effect.value,
            "condition": draft.condition,
            "status": activity.get("status"),
            "createdAt": datetime.now(timezone.utc).isoformat(),
        },
        "message": f'Policy "{request.policyName}" created successfully!',
    }
