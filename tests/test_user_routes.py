import pytest
import pytest_asyncio
from itsdangerous import URLSafeTimedSerializer

from karma_api.core.security import create_session_token
from karma_api.models.user import User
from karma_api.services import users as users_service

pytestmark = pytest.mark.asyncio

WALLET = "0x742d35Cc6644c002532c692aF58B11306b2ea524"


@pytest_asyncio.fixture
async def user(db):
    return await users_service.create_user("test@example.com", "hash", credits=100)


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_session_token(str(user.id))}"}


async def test_credits(client, user):
    r = await client.get("/api/user/credits", headers=auth(user))
    assert r.status_code == 200
    assert r.json() == {"credits": 100}


async def test_credits_without_token(client, user):
    r = await client.get("/api/user/credits")
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "No token provided"


@pytest.mark.parametrize("header", ["Bearer invalid-token", "Token abc", "Bearer "])
async def test_credits_bad_token(client, user, header):
    r = await client.get("/api/user/credits", headers={"Authorization": header})
    assert r.status_code == 401


async def test_token_signed_with_other_key(client, user):
    forged = URLSafeTimedSerializer("another-secret", salt="karma-session").dumps({"user_id": str(user.id)})
    r = await client.get("/api/user/credits", headers={"Authorization": f"Bearer {forged}"})
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Invalid token"


async def test_token_for_unknown_user(client, db):
    token = create_session_token("64b7f0c2a1b2c3d4e5f60718")
    r = await client.get("/api/user/credits", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


async def test_link_wallet(client, user):
    r = await client.post("/api/user/wallet", headers=auth(user), json={"walletAddress": WALLET})
    assert r.status_code == 200
    assert r.json() == {"walletAddress": WALLET.lower()}
    assert (await User.get(user.id)).wallet_address == WALLET.lower()


async def test_relink_wallet(client, user):
    second = "0x8ba1f109551bD432803012645aac136c5020B9BD"
    await client.post("/api/user/wallet", headers=auth(user), json={"walletAddress": WALLET})
    r = await client.post("/api/user/wallet", headers=auth(user), json={"walletAddress": second})
    assert r.json() == {"walletAddress": second.lower()}


async def test_missing_wallet_clears(client, user):
    r = await client.post("/api/user/wallet", headers=auth(user), json={})
    assert r.status_code == 200
    assert r.json() == {"walletAddress": None}


async def test_invalid_wallet_format(client, user):
    r = await client.post("/api/user/wallet", headers=auth(user), json={"walletAddress": "invalid-address"})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Invalid wallet address format"


async def test_wallet_held_by_other_user(client, user):
    await users_service.create_user("other@example.com", "hash", wallet_address=WALLET)
    r = await client.post("/api/user/wallet", headers=auth(user), json={"walletAddress": WALLET})
    assert r.status_code == 409


async def test_wallet_without_token(client, user):
    r = await client.post("/api/user/wallet", json={"walletAddress": WALLET})
    assert r.status_code == 401
