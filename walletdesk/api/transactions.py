"""
Signing API

Dashboard actions that submit signing activities to the custodial API:
- ``POST /api/sign-message``: sign a UTF-8 message with a wallet account
- ``POST /api/execute-with-policy``: sign a transfer, letting the
  organization's policies accept or reject it
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..core.wallet import (
    build_unsigned_transaction,
    find_account_by_address,
    join_signature,
    message_to_hex,
)
from ..errors import ActivityFailedError, CustodyRejectedError, InvalidInputError, ResourceNotFoundError
from ..providers.turnkey import TurnkeyProvider
from ..providers.turnkey.client import STATUS_COMPLETED
from .deps import get_turnkey_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Signing"])

SUPPORTED_TRANSACTION_TYPES = ("eth_transfer",)
CONSENSUS_NEEDED = "ACTIVITY_STATUS_CONSENSUS_NEEDED"


class SignMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, description="UTF-8 message to sign")
    address: str = Field(..., min_length=1, description="Wallet account address to sign with")
    walletId: str = Field(..., min_length=1, description="Wallet that owns the account")


class ExecuteWithPolicyRequest(BaseModel):
    walletId: str = Field(..., min_length=1, description="Wallet (or account) to sign with")
    transactionType: str = Field(..., description="Only eth_transfer is supported")
    transactionParams: Dict[str, Any] = Field(..., description="to, value, and optional gas/nonce/chain fields")
    policyId: Optional[str] = Field(default=None, description="Policy the caller expects to be evaluated")


def _activity_failure(activity: Dict[str, Any], policy_id: Optional[str] = None) -> ActivityFailedError:
    status = activity.get("status")
    message = (activity.get("failure") or {}).get("message") or f"Activity ended with status {status}"
    return ActivityFailedError(
        message,
        activity_id=activity.get("id"),
        activity_status=status,
        policy_violation=status == CONSENSUS_NEEDED or "policy" in message.lower(),
        policy_id=policy_id,
    )


@router.post("/sign-message")
async def sign_message(
    request: SignMessageRequest,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    accounts = await provider.list_wallet_accounts(request.walletId)
    account = find_account_by_address(accounts, request.address)
    if account is None:
        raise ResourceNotFoundError(
            f"No account found for address {request.address} in wallet {request.walletId}"
        )

    activity = await provider.sign_raw_payload(account["address"], message_to_hex(request.message))
    activity = await provider.wait_for_activity(activity)
    if activity.get("status") != STATUS_COMPLETED:
        raise _activity_failure(activity)

    signature = join_signature((activity.get("result") or {}).get("signRawPayloadResult"))
    if signature is None:
        raise CustodyRejectedError(
            "Completed sign activity did not include r, s and v",
            upstream_status=200,
            upstream_body=activity,
        )

    return {
        "success": True,
        "signature": signature,
        "address": account["address"],
        "activityId": activity.get("id"),
    }


@router.post("/execute-with-policy")
async def execute_with_policy(
    request: ExecuteWithPolicyRequest,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    if request.transactionType not in SUPPORTED_TRANSACTION_TYPES:
        raise InvalidInputError(
            f"Unsupported transaction type '{request.transactionType}' "
            f"(expected one of: {', '.join(SUPPORTED_TRANSACTION_TYPES)})"
        )
    unsigned = build_unsigned_transaction(request.transactionParams)

    activity = await provider.sign_transaction(request.walletId, unsigned)
    activity = await provider.wait_for_activity(activity)
    if activity.get("status") != STATUS_COMPLETED:
        logger.info("Transaction activity %s settled as %s", activity.get("id"), activity.get("status"))
        raise _activity_failure(activity, request.policyId)

    result = (activity.get("result") or {}).get("signTransactionResult") or {}
    return {
        "success": True,
        "message": "Transaction executed successfully with policy enforcement",
        "transaction": {
            "id": activity.get("id"),
            "status": activity.get("status"),
            "signature": result.get("signedTransaction"),
            "evaluatedPolicies": [request.policyId] if request.policyId else [],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }
