"""
Demo OAuth identity provider configuration.

There is no real token exchange here: the callback only validates that the
identity provider sent a code and forwards the browser to the dashboard.
Replacing ``DEMO_CLIENT_ID`` with a real client id (GOOGLE_CLIENT_ID) and
implementing the code exchange is what a production integration needs.
"""

from urllib.parse import quote

from walletdesk.config import settings

from .models import OAuthConfig, OAuthUser


DEMO_CLIENT_ID = "DEMO_CLIENT_ID_123456789"
OAUTH_SCOPES = ["openid", "profile", "email"]
CALLBACK_PATH = "/auth/callback"

DEMO_USER = OAuthUser(
    id="google_demo_user_123",
    email="demo@gmail.com",
    name="Demo User",
    picture="https://via.placeholder.com/96x96/4285F4/ffffff?text=GU",
    verified_email=True,
)


def get_oauth_config() -> OAuthConfig:
    return OAuthConfig(
        clientId=settings.google_client_id,
        scopes=list(OAUTH_SCOPES),
        redirectUri=f"{settings.app_url.rstrip('/')}{CALLBACK_PATH}",
        isDemo=settings.google_client_id == DEMO_CLIENT_ID,
    )


def callback_redirect(code: str | None, error: str | None) -> str:
    """Dashboard path the OAuth callback should redirect the browser to."""
    if error:
        return f"/?auth_error={quote(error, safe='')}"
    if not code:
        return "/?auth_error=missing_code"
    return "/dashboard?auth=success"
