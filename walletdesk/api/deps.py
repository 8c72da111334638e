"""
FastAPI dependencies for the shared per-app objects.

Both live on ``app.state`` (created in ``create_app``) rather than at module
level, so each app instance, and each test, gets its own.
"""

from fastapi import Request

from ..core.wallet import OwnershipIndex
from ..providers.turnkey import TurnkeyProvider


def get_ownership_index(request: Request) -> OwnershipIndex:
    return request.app.state.ownership_index


def get_turnkey_provider(request: Request) -> TurnkeyProvider:
    return request.app.state.turnkey
