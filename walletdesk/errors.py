"""
Error taxonomy for the custody gateway.

Routes never build error payloads by hand: they raise one of the exceptions
below (or let the custody provider raise them) and the handlers registered
in ``register_exception_handlers`` turn them into the uniform
``{"success": false, "error": ..., "details": ...}`` response.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class WalletDeskError(Exception):
    """Base error for everything surfaced to HTTP clients."""

    status_code: int = 500
    error: str = "Operation failed"

    def __init__(self, message: str, *, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error:
            self.error = error

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.error, "details": self.message}


class InvalidInputError(WalletDeskError):
    """Request content is well-formed JSON but semantically unusable."""

    status_code = 400
    error = "Invalid input"


class ResourceNotFoundError(WalletDeskError):
    """A wallet (by id or name) does not exist in the organization."""

    status_code = 404
    error = "Not found"


class ConflictError(WalletDeskError):
    """A wallet is already registered to a different user."""

    status_code = 409
    error = "Already claimed"


class CustodyError(WalletDeskError):
    """Base error for failures talking to the custodial API."""

    status_code = 502
    error = "Custody operation failed"


class CustodyNotConfiguredError(CustodyError):
    """API key pair or organization id is missing."""

    status_code = 503
    error = "Custody service not configured"


class CustodyUnavailableError(CustodyError):
    """The custodial API could not be reached (connect error, timeout)."""

    status_code = 503
    error = "Custody service unavailable"


class CustodyRejectedError(CustodyError):
    """The custodial API answered with a non-2xx status."""

    status_code = 502
    error = "Custody service rejected the request"

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int,
        upstream_body: Any = None,
        error: Optional[str] = None,
    ):
        super().__init__(message, error=error)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["upstreamStatus"] = self.upstream_status
        if self.upstream_body is not None:
            payload["upstreamBody"] = self.upstream_body
        return payload


class ActivityFailedError(WalletDeskError):
    """A submitted activity settled without completing (failed, rejected, needs consensus)."""

    status_code = 400
    error = "Activity did not complete"

    def __init__(
        self,
        message: str,
        *,
        activity_id: Optional[str],
        activity_status: Optional[str],
        policy_violation: bool = False,
        policy_id: Optional[str] = None,
        error: Optional[str] = None,
    ):
        super().__init__(message, error=error)
        self.activity_id = activity_id
        self.activity_status = activity_status
        self.policy_violation = policy_violation
        self.policy_id = policy_id

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["policyViolation"] = self.policy_violation
        payload["activity"] = {
            "id": self.activity_id,
            "status": self.activity_status,
            "policyId": self.policy_id,
        }
        return payload


async def _handle_walletdesk_error(request: Request, exc: WalletDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WalletDeskError, _handle_walletdesk_error)
