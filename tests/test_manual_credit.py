"""POST /api/manual-karma-credit: fixed award, no tx-hash dedupe."""

import asyncio

import pytest
import pytest_asyncio

from karma_api.models.user import User
from karma_api.services import users as users_service

pytestmark = pytest.mark.asyncio

VALID = {"txHash": "0x123456789abcdef", "userEmail": "test@example.com"}


@pytest_asyncio.fixture
async def holder(db):
    return await users_service.create_user(
        "test@example.com",
        "hash",
        wallet_address="0x742d35Cc6644c002532c692aF58B11306b2ea524",
        credits=50,
    )


async def test_credits_fixed_amount(client, holder):
    r = await client.post("/api/manual-karma-credit", json=VALID)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Karma credited successfully"
    assert body["data"] == {"oldBalance": 50, "newBalance": 60, "karmaAdded": 10, "txHash": VALID["txHash"]}
    assert (await User.get(holder.id)).credits == 60


@pytest.mark.parametrize(
    "payload",
    [
        {"userEmail": "test@example.com"},
        {"txHash": "0x123456789abcdef"},
        {},
        {"txHash": "", "userEmail": "test@example.com"},
        {"txHash": "0x1", "userEmail": "   "},
        {"txHash": 123, "userEmail": "test@example.com"},
    ],
)
async def test_missing_fields(client, holder, payload):
    r = await client.post("/api/manual-karma-credit", json=payload)
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Missing txHash or userEmail"}


async def test_malformed_body(client, holder):
    r = await client.post(
        "/api/manual-karma-credit",
        content=b'{"invalid": json}',
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


async def test_unknown_user(client, holder):
    r = await client.post(
        "/api/manual-karma-credit",
        json={"txHash": "0x1", "userEmail": "nonexistent@example.com"},
    )
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "User not found"}
    assert "nonexistent@example.com" not in r.text


async def test_injection_like_email_is_just_unknown(client, holder):
    r = await client.post(
        "/api/manual-karma-credit",
        json={"txHash": "0x1", "userEmail": "test@example.com' OR '1'='1"},
    )
    assert r.status_code == 404


async def test_user_without_wallet(client, db):
    await users_service.create_user("nowallet@example.com", "hash")
    r = await client.post(
        "/api/manual-karma-credit",
        json={"txHash": "0x1", "userEmail": "nowallet@example.com"},
    )
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "User has no wallet address"}


@pytest.mark.parametrize("email", ["TEST@EXAMPLE.COM", "  test@example.com  "])
async def test_email_lookup_is_normalized(client, holder, email):
    r = await client.post("/api/manual-karma-credit", json={"txHash": "0x1", "userEmail": email})
    assert r.status_code == 200
    assert r.json()["success"] is True


@pytest.mark.parametrize("tx_hash", ["0x" + "a" * 64, "0x123", "not-a-hash", '<script>alert("xss")</script>'])
async def test_tx_hash_is_not_validated(client, holder, tx_hash):
    r = await client.post("/api/manual-karma-credit", json={"txHash": tx_hash, "userEmail": "test@example.com"})
    assert r.status_code == 200
    assert r.json()["data"]["txHash"] == tx_hash


async def test_same_hash_credits_every_time(client, holder):
    await client.post("/api/manual-karma-credit", json=VALID)
    r = await client.post("/api/manual-karma-credit", json=VALID)
    assert r.json()["data"]["oldBalance"] == 60
    assert r.json()["data"]["newBalance"] == 70


async def test_concurrent_requests(client, holder):
    responses = await asyncio.gather(
        *[
            client.post(
                "/api/manual-karma-credit",
                json={"txHash": f"0x{str(i) * 16}", "userEmail": "test@example.com"},
            )
            for i in range(5)
        ]
    )
    assert all(r.status_code == 200 and r.json()["success"] for r in responses)
    assert (await User.get(holder.id)).credits == 100
    assert sorted(r.json()["data"]["newBalance"] for r in responses) == [60, 70, 80, 90, 100]


async def test_database_fault_is_500(client, holder, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("connection closed")

    monkeypatch.setattr(users_service, "find_by_email", boom)
    r = await client.post("/api/manual-karma-credit", json=VALID)
    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Internal server error"}
