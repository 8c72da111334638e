from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..config import settings
from ..providers.turnkey import TurnkeyProvider
from .deps import get_turnkey_provider

router = APIRouter()


def _masked(value: str, keep: int = 8) -> str:
    if not value:
        return "missing"
    return f"{value[:keep]}..."


@router.get("/healthz")
async def health_check(
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, Any]:
    """Health check endpoint that verifies the custodial API is reachable"""
    provider_status = {provider.name: await provider.health_check()}

    healthy = sum(1 for status in provider_status.values() if status["status"] == "healthy")

    return {
        "status": "healthy" if healthy == len(provider_status) else "degraded",
        "providers": provider_status,
        "available_providers": healthy,
        "total_providers": len(provider_status),
    }


@router.get("/api/test-env")
async def test_env() -> Dict[str, Any]:
    """Which credentials are configured, without revealing them"""
    return {
        "hasOrgId": settings.has_organization,
        "hasPublicKey": bool(settings.turnkey_api_public_key),
        "hasPrivateKey": bool(settings.turnkey_api_private_key),
        "hasBaseUrl": bool(settings.turnkey_base_url),
        "orgId": _masked(settings.turnkey_organization_id),
        "publicKeyStart": _masked(settings.turnkey_api_public_key),
        "baseUrl": settings.turnkey_base_url or "missing",
        "configured": settings.is_configured,
    }
