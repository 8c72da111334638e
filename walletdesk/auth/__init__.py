from .models import OAuthConfig, OAuthUser
from .oauth import DEMO_USER, callback_redirect, get_oauth_config

__all__ = [
    "OAuthConfig",
    "OAuthUser",
    "DEMO_USER",
    "callback_redirect",
    "get_oauth_config",
]
