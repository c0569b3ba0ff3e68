import os
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

# Settings are read once at import of karma_api.main; set env first.
RECEIVING_WALLET = "0xFBA15121BA790D33386bFE937EF527995e87cb1f"
os.environ.setdefault("MONGODB_DB_NAME", "karma_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ["RECEIVING_WALLET"] = RECEIVING_WALLET
os.environ["SUPPORTED_NETWORK"] = "ETH_SEPOLIA"
os.environ["SUPPORTED_ASSET"] = "ETH"


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database per test."""
    from karma_api.db.init import init_db
    database = AsyncMongoMockClient()["karma_test"]
    await init_db(database)
    yield database


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    from karma_api.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
