"""
Tests for the custodial API provider against an in-memory MockTransport.
"""

import json

import httpx
import pytest

from walletdesk.core.wallet import DEFAULT_ETHEREUM_ACCOUNT
from walletdesk.errors import (
    CustodyNotConfiguredError,
    CustodyRejectedError,
    CustodyUnavailableError,
)
from walletdesk.providers.turnkey import TurnkeyConfig, TurnkeyProvider



@pytest.mark.asyncio
async def test_queries_are_stamped_and_scoped_to_organization(provider, custody, turnkey_config):
    whoami = await provider.get_whoami()

    assert whoami["userId"] == custody.user_id
    call = custody.calls[0]
    assert call["operation"] == "whoami"
    assert call["body"] == {"organizationId": turnkey_config.organization_id}
    assert "x-stamp" in call["headers"]
    assert call["headers"]["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_create_wallet_submits_activity(provider, custody, turnkey_config):
    activity = await provider.create_wallet("Main", [DEFAULT_ETHEREUM_ACCOUNT])

    assert activity["result"]["createWalletResult"]["walletId"] == "wallet-1"
    body = custody.calls[-1]["body"]
    assert body["type"] == "ACTIVITY_TYPE_CREATE_WALLET"
    assert body["organizationId"] == turnkey_config.organization_id
    assert body["timestampMs"].isdigit()
    assert body["parameters"] == {"walletName": "Main", "accounts": [DEFAULT_ETHEREUM_ACCOUNT]}


@pytest.mark.asyncio
async def test_list_helpers_unwrap_collections(provider, custody):
    custody.add_wallet("w1", "Main")

    assert [w["walletId"] for w in await provider.list_wallets()] == ["w1"]
    assert (await provider.list_wallet_accounts("w1"))[0]["address"] == "0xabc"
    assert await provider.list_policies() == []
    assert (await provider.list_private_keys())[0]["privateKeyId"] == "pk-1"
    assert (await provider.get_wallet("w1"))["walletName"] == "Main"


@pytest.mark.asyncio
async def test_non_2xx_raises_rejected_with_upstream_details(provider, custody):
    custody.fail_with["list_policies"] = 403

    with pytest.raises(CustodyRejectedError) as excinfo:
        await provider.list_policies()

    assert excinfo.value.upstream_status == 403
    assert excinfo.value.upstream_body == {"message": "list_policies failed"}


@pytest.mark.asyncio
async def test_transport_failure_raises_unavailable(turnkey_config):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = TurnkeyProvider(turnkey_config, transport=httpx.MockTransport(refuse))

    with pytest.raises(CustodyUnavailableError):
        await provider.get_whoami()


@pytest.mark.asyncio
async def test_timeout_raises_unavailable(turnkey_config):
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    provider = TurnkeyProvider(turnkey_config, transport=httpx.MockTransport(slow))

    with pytest.raises(CustodyUnavailableError, match="Timed out"):
        await provider.list_wallets()


@pytest.mark.asyncio
async def test_non_json_body_is_rejected(turnkey_config):
    provider = TurnkeyProvider(
        turnkey_config,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")),
    )

    with pytest.raises(CustodyRejectedError, match="non-JSON"):
        await provider.get_whoami()


@pytest.mark.asyncio
async def test_unconfigured_provider_does_not_call_out(custody):
    provider = TurnkeyProvider(
        TurnkeyConfig(base_url="https://custody.test", organization_id="", api_public_key="", api_private_key=""),
        transport=httpx.MockTransport(custody.handler),
    )

    assert await provider.ready() is False
    with pytest.raises(CustodyNotConfiguredError):
        await provider.list_wallets()
    assert custody.calls == []

    health = await provider.health_check()
    assert health["status"] == "unavailable"


@pytest.mark.asyncio
async def test_health_check(provider, custody, turnkey_config):
    health = await provider.health_check()
    assert health == {"status": "healthy", "organizationId": turnkey_config.organization_id, "userId": custody.user_id}

    custody.fail_with["whoami"] = 500
    health = await provider.health_check()
    assert health["status"] == "error"


@pytest.mark.asyncio
async def test_list_wallet_accounts_many_keeps_failures_in_place(turnkey_config, custody):
    custody.add_wallet("w1", "One")
    custody.add_wallet("w2", "Two")

    def handler(request: httpx.Request) -> httpx.Response:
        if json.loads(request.content).get("walletId") == "w2":
            return httpx.Response(500, json={"message": "boom"})
        return custody.handler(request)

    provider = TurnkeyProvider(turnkey_config, transport=httpx.MockTransport(handler))
    results = await provider.list_wallet_accounts_many(["w1", "w2"])

    assert results[0][0]["address"] == "0xabc"
    assert isinstance(results[1], CustodyRejectedError)


@pytest.mark.asyncio
async def test_aclose_allows_reuse(provider, custody):
    await provider.get_whoami()
    await provider.aclose()
    await provider.get_whoami()

    assert custody.operations() == ["whoami", "whoami"]


@pytest.mark.asyncio
async def test_sign_raw_payload_submits_hex_keccak_activity(provider, custody):
    activity = await provider.sign_raw_payload("0xabc", "68656c6c6f")

    assert activity["status"] == "ACTIVITY_STATUS_COMPLETED"
    assert activity["result"]["signRawPayloadResult"]["v"] == "01"
    body = custody.calls[-1]["body"]
    assert custody.calls[-1]["operation"] == "sign_raw_payload"
    assert body["type"] == "ACTIVITY_TYPE_SIGN_RAW_PAYLOAD_V2"
    assert body["parameters"] == {
        "signWith": "0xabc",
        "payload": "68656c6c6f",
        "encoding": "PAYLOAD_ENCODING_HEXADECIMAL",
        "hashFunction": "HASH_FUNCTION_KECCAK256",
    }


@pytest.mark.asyncio
async def test_sign_transaction_submits_ethereum_activity(provider, custody):
    activity = await provider.sign_transaction("w1", "02ef")

    assert activity["result"]["signTransactionResult"]["signedTransaction"] == "0xf86c-signed"
    body = custody.calls[-1]["body"]
    assert body["type"] == "ACTIVITY_TYPE_SIGN_TRANSACTION_V2"
    assert body["parameters"] == {
        "signWith": "w1",
        "type": "TRANSACTION_TYPE_ETHEREUM",
        "unsignedTransaction": "02ef",
    }


class TestWaitForActivity:

    @pytest.mark.asyncio
    async def test_settled_activity_is_returned_without_polling(self, provider, custody):
        activity = {"id": "act-1", "status": "ACTIVITY_STATUS_FAILED"}

        assert await provider.wait_for_activity(activity) is activity
        assert custody.calls == []

    @pytest.mark.asyncio
    async def test_pending_activity_is_polled_until_settled(self, provider, custody):
        custody.pending_polls = 2

        submitted = await provider.sign_transaction("w1", "02ef")
        settled = await provider.wait_for_activity(submitted, poll_interval_s=0)

        assert submitted["status"] == "ACTIVITY_STATUS_PENDING"
        assert settled["status"] == "ACTIVITY_STATUS_COMPLETED"
        assert settled["id"] == submitted["id"]
        assert custody.operations().count("get_activity") == 3

    @pytest.mark.asyncio
    async def test_still_pending_after_timeout_raises_unavailable(self, provider, custody):
        custody.pending_polls = 100
        submitted = await provider.sign_transaction("w1", "02ef")

        with pytest.raises(CustodyUnavailableError, match="still ACTIVITY_STATUS_PENDING"):
            await provider.wait_for_activity(submitted, timeout_s=0, poll_interval_s=0)

    @pytest.mark.asyncio
    async def test_pending_activity_without_id_is_rejected(self, provider):
        with pytest.raises(CustodyRejectedError):
            await provider.wait_for_activity({"status": "ACTIVITY_STATUS_CREATED"})
