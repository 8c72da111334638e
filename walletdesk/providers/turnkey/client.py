"""
Custodial wallet API provider.

Thin async client for the custodial service's public API. Every call is a
stamped ``POST /public/v1/{query|submit}/<operation>`` with a JSON body;
responses are returned as plain dicts so routes can pass them through.

Features:
- Read queries: whoami, organization, wallets, wallet accounts, private keys, policies
- Activities: create wallet, create policy, sign raw payload, sign transaction
- Polling a submitted activity until it settles
- Stamping arbitrary payloads for the browser SDK's server-side signer
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from ..base import Provider
from ...config import settings
from ...errors import (
    CustodyError,
    CustodyNotConfiguredError,
    CustodyRejectedError,
    CustodyUnavailableError,
)
from .stamper import ApiKeyStamper, Stamp

logger = logging.getLogger(__name__)

API_PREFIX = "/public/v1"

ACTIVITY_CREATE_WALLET = "ACTIVITY_TYPE_CREATE_WALLET"
ACTIVITY_CREATE_POLICY = "ACTIVITY_TYPE_CREATE_POLICY_V3"
ACTIVITY_SIGN_RAW_PAYLOAD = "ACTIVITY_TYPE_SIGN_RAW_PAYLOAD_V2"
ACTIVITY_SIGN_TRANSACTION = "ACTIVITY_TYPE_SIGN_TRANSACTION_V2"

PAYLOAD_ENCODING_HEX = "PAYLOAD_ENCODING_HEXADECIMAL"
HASH_FUNCTION_KECCAK256 = "HASH_FUNCTION_KECCAK256"
TRANSACTION_TYPE_ETHEREUM = "TRANSACTION_TYPE_ETHEREUM"

STATUS_COMPLETED = "ACTIVITY_STATUS_COMPLETED"
# Statuses an activity can still move on from
UNSETTLED_STATUSES = frozenset({"ACTIVITY_STATUS_CREATED", "ACTIVITY_STATUS_PENDING"})


@dataclass
class TurnkeyConfig:
    base_url: str
    organization_id: str
    api_public_key: str
    api_private_key: str

    @classmethod
    def from_settings(cls) -> "TurnkeyConfig":
        return cls(
            base_url=settings.turnkey_base_url,
            organization_id=settings.turnkey_organization_id,
            api_public_key=settings.turnkey_api_public_key,
            api_private_key=settings.turnkey_api_private_key,
        )


class TurnkeyProvider(Provider):
    """
    Provider for the custodial wallet API.

    Usage:
        provider = TurnkeyProvider()

        whoami = await provider.get_whoami()
        activity = await provider.create_wallet("Trading", [DEFAULT_ETHEREUM_ACCOUNT])
        wallet_id = activity["result"]["createWalletResult"]["walletId"]
    """

    name = "turnkey"

    def __init__(
        self,
        config: Optional[TurnkeyConfig] = None,
        *,
        timeout_s: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or TurnkeyConfig.from_settings()
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._stamper: Optional[ApiKeyStamper] = None

    @property
    def organization_id(self) -> str:
        return self._config.organization_id

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    async def ready(self) -> bool:
        config = self._config
        return bool(
            config.base_url
            and config.organization_id
            and config.api_public_key
            and config.api_private_key
        )

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "unavailable", "reason": "Custodial API credentials not configured"}

        try:
            whoami = await self.get_whoami()
            return {
                "status": "healthy",
                "organizationId": whoami.get("organizationId"),
                "userId": whoami.get("userId"),
            }
        except CustodyError as exc:
            return {"status": "error", "reason": exc.message}

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_whoami(self) -> Dict[str, Any]:
        """Identity of the API key's user within the organization."""
        return await self._query("whoami", {})

    async def current_user_id(self) -> str:
        whoami = await self.get_whoami()
        user_id = whoami.get("userId")
        if not user_id:
            raise CustodyRejectedError(
                "whoami response did not include a userId",
                upstream_status=200,
                upstream_body=whoami,
            )
        return user_id

    async def get_organization(self) -> Dict[str, Any]:
        return await self._query("get_organization", {})

    async def list_wallets(self) -> List[Dict[str, Any]]:
        result = await self._query("list_wallets", {})
        return result.get("wallets") or []

    async def get_wallet(self, wallet_id: str) -> Dict[str, Any]:
        result = await self._query("get_wallet", {"walletId": wallet_id})
        return result.get("wallet") or {}

    async def list_wallet_accounts(self, wallet_id: str) -> List[Dict[str, Any]]:
        result = await self._query("list_wallet_accounts", {"walletId": wallet_id})
        return result.get("accounts") or []

    async def list_wallet_accounts_many(
        self, wallet_ids: List[str]
    ) -> List[Union[List[Dict[str, Any]], CustodyError]]:
        """Accounts for several wallets concurrently; failures come back in place."""
        results = await asyncio.gather(
            *(self.list_wallet_accounts(wallet_id) for wallet_id in wallet_ids),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, CustodyError):
                raise result
        return list(results)

    async def list_private_keys(self) -> List[Dict[str, Any]]:
        result = await self._query("list_private_keys", {})
        return result.get("privateKeys") or []

    async def list_policies(self) -> List[Dict[str, Any]]:
        result = await self._query("list_policies", {})
        return result.get("policies") or []

    async def get_activity(self, activity_id: str) -> Dict[str, Any]:
        result = await self._query("get_activity", {"activityId": activity_id})
        return result.get("activity") or {}

    # =========================================================================
    # Activities
    # =========================================================================

    async def create_wallet(
        self,
        wallet_name: str,
        accounts: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Submit a create-wallet activity.

        Returns:
            The activity dict; ``result.createWalletResult`` carries
            ``walletId`` and ``addresses`` once completed.
        """
        logger.info("Creating wallet %r with %d account(s)", wallet_name, len(accounts))
        return await self._submit(
            "create_wallet",
            ACTIVITY_CREATE_WALLET,
            {"walletName": wallet_name, "accounts": accounts},
        )

    async def create_policy(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Creating policy %r", parameters.get("policyName"))
        return await self._submit("create_policy", ACTIVITY_CREATE_POLICY, parameters)

    async def sign_raw_payload(
        self,
        sign_with: str,
        payload_hex: str,
        *,
        encoding: str = PAYLOAD_ENCODING_HEX,
        hash_function: str = HASH_FUNCTION_KECCAK256,
    ) -> Dict[str, Any]:
        """
        Submit a sign-raw-payload activity for a wallet account.

        Args:
            sign_with: Wallet account address (or private key id)
            payload_hex: Payload as hex, without ``0x``

        Returns:
            The activity dict; ``result.signRawPayloadResult`` carries
            ``r``, ``s`` and ``v`` once completed.
        """
        logger.info("Signing %d-byte payload with %s", len(payload_hex) // 2, sign_with)
        return await self._submit(
            "sign_raw_payload",
            ACTIVITY_SIGN_RAW_PAYLOAD,
            {
                "signWith": sign_with,
                "payload": payload_hex,
                "encoding": encoding,
                "hashFunction": hash_function,
            },
        )

    async def sign_transaction(
        self,
        sign_with: str,
        unsigned_transaction: str,
        *,
        transaction_type: str = TRANSACTION_TYPE_ETHEREUM,
    ) -> Dict[str, Any]:
        """Submit a sign-transaction activity; organization policies are evaluated on it."""
        logger.info("Signing %s transaction with %s", transaction_type, sign_with)
        return await self._submit(
            "sign_transaction",
            ACTIVITY_SIGN_TRANSACTION,
            {
                "signWith": sign_with,
                "type": transaction_type,
                "unsignedTransaction": unsigned_transaction,
            },
        )

    async def wait_for_activity(
        self,
        activity: Dict[str, Any],
        timeout_s: Optional[float] = None,
        poll_interval_s: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Poll a submitted activity until it leaves the created/pending states.

        Completed, failed, rejected and consensus-needed activities are all
        returned as-is; callers decide what each status means to them.

        Raises:
            CustodyRejectedError: activity has no id to poll
            CustodyUnavailableError: activity still pending after ``timeout_s``
        """
        if timeout_s is None:
            timeout_s = settings.activity_poll_timeout_seconds
        if poll_interval_s is None:
            poll_interval_s = settings.activity_poll_interval_seconds

        start_time = time.monotonic()

        while activity.get("status") in UNSETTLED_STATUSES:
            activity_id = activity.get("id")
            if not activity_id:
                raise CustodyRejectedError(
                    "Pending activity has no id to poll",
                    upstream_status=200,
                    upstream_body=activity,
                )

            if time.monotonic() - start_time >= timeout_s:
                raise CustodyUnavailableError(
                    f"Activity {activity_id} still {activity.get('status')} after {timeout_s}s"
                )

            await asyncio.sleep(poll_interval_s)
            logger.debug("Polling activity %s", activity_id)
            activity = await self.get_activity(activity_id)

        return activity

    # =========================================================================
    # Stamping
    # =========================================================================

    def stamp(self, payload: Union[str, bytes]) -> Stamp:
        """Stamp an arbitrary payload with the organization's API key."""
        return self._get_stamper().stamp(payload)

    # =========================================================================
    # HTTP Client
    # =========================================================================

    def _get_stamper(self) -> ApiKeyStamper:
        if self._stamper is None:
            self._stamper = ApiKeyStamper(
                self._config.api_public_key,
                self._config.api_private_key,
            )
        return self._stamper

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport)
        return self._client

    async def _query(self, operation: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            f"{API_PREFIX}/query/{operation}",
            {"organizationId": self.organization_id, **body},
        )

    async def _submit(
        self,
        operation: str,
        activity_type: str,
        parameters: Dict[str, Any],
    ) -> Dict[str, Any]:
        result = await self._request(
            f"{API_PREFIX}/submit/{operation}",
            {
                "type": activity_type,
                "timestampMs": str(int(time.time() * 1000)),
                "organizationId": self.organization_id,
                "parameters": parameters,
            },
        )
        return result.get("activity") or {}

    async def _request(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if not await self.ready():
            raise CustodyNotConfiguredError(
                "Custodial API credentials are not configured "
                "(organization id and API key pair are required)"
            )

        # The stamp covers these exact bytes, so serialize once
        payload = json.dumps(body, separators=(",", ":"))
        stamp = self.stamp(payload)

        url = f"{self.base_url}{path}"
        logger.debug("POST %s", path)
        try:
            response = await self._get_client().post(
                url,
                content=payload,
                headers={
                    "Content-Type": "application/json",
                    stamp.header_name: stamp.header_value,
                },
            )
        except httpx.TimeoutException as exc:
            raise CustodyUnavailableError(f"Timed out calling {path} after {self.timeout_s}s") from exc
        except httpx.RequestError as exc:
            raise CustodyUnavailableError(f"Could not reach custodial API at {self.base_url}: {exc}") from exc

        if response.is_error:
            raise CustodyRejectedError(
                f"{path} returned HTTP {response.status_code}",
                upstream_status=response.status_code,
                upstream_body=_body(response),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise CustodyRejectedError(
                f"{path} returned a non-JSON body",
                upstream_status=response.status_code,
                upstream_body=response.text,
            ) from exc
        if not isinstance(data, dict):
            raise CustodyRejectedError(
                f"{path} returned an unexpected payload",
                upstream_status=response.status_code,
                upstream_body=data,
            )
        return data


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or response.reason_phrase
