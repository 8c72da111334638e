"""
Shared fixtures: a fresh API key pair, an in-memory stand-in for the
custodial API served through ``httpx.MockTransport``, and a TestClient
wired to both.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from walletdesk.core.wallet import OwnershipIndex
from walletdesk.main import create_app
from walletdesk.providers.turnkey import TurnkeyConfig, TurnkeyProvider
from walletdesk.providers.turnkey.stamper import compressed_public_key


ORG_ID = "org-1234567890"
API_USER_ID = "user-api-1"
BASE_URL = "https://custody.test"


@pytest.fixture
def key_pair() -> Dict[str, str]:
    private_key = ec.generate_private_key(ec.SECP256R1())
    return {
        "public": compressed_public_key(private_key),
        "private": format(private_key.private_numbers().private_value, "064x"),
    }


class FakeCustody:
    """Minimal custodial API: records every call, serves canned wallets."""

    def __init__(self) -> None:
        self.user_id = API_USER_ID
        self.wallets: List[Dict[str, Any]] = []
        self.accounts: Dict[str, List[Dict[str, Any]]] = {}
        self.policies: List[Dict[str, Any]] = []
        self.private_keys: List[Dict[str, Any]] = [{"privateKeyId": "pk-1", "privateKeyName": "legacy"}]
        self.calls: List[Dict[str, Any]] = []
        self.fail_with: Dict[str, int] = {}
        self.activities: Dict[str, Dict[str, Any]] = {}
        # get_activity polls answered with PENDING before the stored activity
        self.pending_polls = 0
        self.transaction_failure: Optional[str] = None
        self.transaction_status: Optional[str] = None

    def add_wallet(self, wallet_id: str, name: str, address: str = "0xabc") -> None:
        self.wallets.append({
            "walletId": wallet_id,
            "walletName": name,
            "createdAt": {"seconds": "1700000000"},
            "updatedAt": {"seconds": "1700000000"},
            "exported": False,
            "imported": False,
        })
        self.accounts[wallet_id] = [{
            "address": address,
            "addressFormat": "ADDRESS_FORMAT_ETHEREUM",
            "curve": "CURVE_SECP256K1",
            "path": "m/44'/60'/0'/0/0",
            "pathFormat": "PATH_FORMAT_BIP32",
            "publicKey": "02aa",
        }]

    def handler(self, request: httpx.Request) -> httpx.Response:
        operation = request.url.path.rsplit("/", 1)[-1]
        body = json.loads(request.content)
        self.calls.append({"operation": operation, "body": body, "headers": dict(request.headers)})

        if operation in self.fail_with:
            return httpx.Response(self.fail_with[operation], json={"message": f"{operation} failed"})

        if operation == "whoami":
            return httpx.Response(200, json={
                "organizationId": ORG_ID,
                "organizationName": "Demo Org",
                "userId": self.user_id,
                "username": "api-user",
            })
        if operation == "get_organization":
            return httpx.Response(200, json={"organizationData": {"organizationId": ORG_ID, "name": "Demo Org"}})
        if operation == "list_wallets":
            return httpx.Response(200, json={"wallets": self.wallets})
        if operation == "get_wallet":
            wallet = next((w for w in self.wallets if w["walletId"] == body["walletId"]), None)
            if wallet is None:
                return httpx.Response(404, json={"message": "wallet not found"})
            return httpx.Response(200, json={"wallet": wallet})
        if operation == "list_wallet_accounts":
            return httpx.Response(200, json={"accounts": self.accounts.get(body["walletId"], [])})
        if operation == "list_private_keys":
            return httpx.Response(200, json={"privateKeys": self.private_keys})
        if operation == "list_policies":
            return httpx.Response(200, json={"policies": self.policies})
        if operation == "create_wallet":
            wallet_id = f"wallet-{len(self.wallets) + 1}"
            address = f"0x{len(self.wallets) + 1:040x}"
            self.add_wallet(wallet_id, body["parameters"]["walletName"], address)
            return httpx.Response(200, json={"activity": {
                "id": f"act-{wallet_id}",
                "status": "ACTIVITY_STATUS_COMPLETED",
                "result": {"createWalletResult": {"walletId": wallet_id, "addresses": [address]}},
            }})
        if operation == "create_policy":
            policy_id = f"policy-{len(self.policies) + 1}"
            self.policies.append({"policyId": policy_id, **body["parameters"]})
            return httpx.Response(200, json={"activity": {
                "id": f"act-{policy_id}",
                "status": "ACTIVITY_STATUS_COMPLETED",
                "result": {"createPolicyResult": {"policyId": policy_id}},
            }})
        if operation == "sign_raw_payload":
            params = body["parameters"]
            return self._activity(operation, {
                "result": {"signRawPayloadResult": {"r": "a" * 64, "s": "b" * 64, "v": "01"}},
                "signWith": params["signWith"],
            })
        if operation == "sign_transaction":
            if self.transaction_failure:
                return self._activity(operation, {"failure": {"message": self.transaction_failure}},
                                      status="ACTIVITY_STATUS_FAILED")
            if self.transaction_status:
                return self._activity(operation, {}, status=self.transaction_status)
            return self._activity(operation, {
                "result": {"signTransactionResult": {"signedTransaction": "0xf86c-signed"}},
            })
        if operation == "get_activity":
            activity_id = body["activityId"]
            if activity_id not in self.activities:
                return httpx.Response(404, json={"message": "activity not found"})
            if self.pending_polls > 0:
                self.pending_polls -= 1
                return httpx.Response(200, json={"activity": {"id": activity_id, "status": "ACTIVITY_STATUS_PENDING"}})
            return httpx.Response(200, json={"activity": self.activities[activity_id]})
        return httpx.Response(404, json={"message": f"unknown operation {operation}"})

    def _activity(self, operation: str, extra: Dict[str, Any], status: str = "ACTIVITY_STATUS_COMPLETED") -> httpx.Response:
        activity_id = f"act-{operation}-{len(self.activities) + 1}"
        activity = {"id": activity_id, "status": status, **extra}
        self.activities[activity_id] = activity
        if self.pending_polls > 0:
            return httpx.Response(200, json={"activity": {"id": activity_id, "status": "ACTIVITY_STATUS_PENDING"}})
        return httpx.Response(200, json={"activity": activity})

    def operations(self) -> List[str]:
        return [c["operation"] for c in self.calls]


@pytest.fixture
def custody() -> FakeCustody:
    return FakeCustody()


@pytest.fixture
def turnkey_config(key_pair) -> TurnkeyConfig:
    return TurnkeyConfig(
        base_url=BASE_URL,
        organization_id=ORG_ID,
        api_public_key=key_pair["public"],
        api_private_key=key_pair["private"],
    )


@pytest.fixture
def provider(turnkey_config, custody) -> TurnkeyProvider:
    return TurnkeyProvider(turnkey_config, transport=httpx.MockTransport(custody.handler))


@pytest.fixture
def ownership_index() -> OwnershipIndex:
    return OwnershipIndex()


@pytest.fixture
def client(provider, ownership_index) -> TestClient:
    app = create_app(turnkey=provider, ownership_index=ownership_index)
    return TestClient(app)


@pytest.fixture(autouse=True)
def fast_activity_polling(monkeypatch):
    from walletdesk.config import settings

    monkeypatch.setattr(settings, "activity_poll_interval_seconds", 0)
