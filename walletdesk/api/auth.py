"""
OAuth demo endpoints

The identity provider integration is a stub: the callback only checks that
a code arrived and bounces the browser back to the dashboard.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from ..auth import DEMO_USER, OAuthConfig, OAuthUser, callback_redirect, get_oauth_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/oauth-config", response_model=OAuthConfig, response_model_by_alias=True)
async def oauth_config() -> OAuthConfig:
    return get_oauth_config()


@router.get("/demo-user", response_model=OAuthUser)
async def demo_user() -> OAuthUser:
    return DEMO_USER


@router.api_route("/callback", methods=["GET", "POST"])
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    provider: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
) -> RedirectResponse:
    """Identity provider redirect target; some providers POST instead of GET."""
    if error:
        logger.warning("OAuth error from %s: %s (%s)", provider or "provider", error, error_description)
    elif code:
        logger.info("OAuth callback received: provider=%s state=%s code_length=%d", provider, state, len(code))

    target = callback_redirect(code, error)
    return RedirectResponse(url=str(request.base_url).rstrip("/") + target, status_code=303)
