"""
Browser SDK support

- ``POST /api/sign``: server-side signer the browser SDK posts request
  payloads to; the body is stamped verbatim with the organization API key.
- ``GET /api/provider-config``: everything the browser SDK provider needs
  to be mounted (API base URL, organization, signer path, auth iframe).
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from ..config import settings
from ..errors import InvalidInputError
from ..providers.turnkey import TurnkeyProvider
from .deps import get_turnkey_provider

router = APIRouter(prefix="/api", tags=["Signing"])


@router.post("/sign")
async def sign_payload(
    request: Request,
    provider: TurnkeyProvider = Depends(get_turnkey_provider),
) -> Dict[str, str]:
    body = await request.body()
    if not body.strip():
        raise InvalidInputError("Request body to stamp is empty")
    return provider.stamp(body).to_dict()


@router.get("/provider-config")
async def provider_config() -> Dict[str, Any]:
    return {
        "apiBaseUrl": settings.turnkey_base_url,
        "defaultOrganizationId": settings.turnkey_organization_id,
        "serverSignUrl": settings.server_sign_path,
        "iframeUrl": settings.auth_iframe_url,
    }
