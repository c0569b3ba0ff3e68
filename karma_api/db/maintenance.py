"""
Wallet index repair. Usage: python -m karma_api.db.maintenance

Lowercases stored wallet addresses, unsets the address on every duplicate holder except
the oldest account, then recreates the unique sparse wallet index. Works on the raw
collection since init_beanie cannot build the unique index while duplicates exist.
"""

import asyncio
from datetime import datetime

from pymongo import ASCENDING
from pymongo.errors import OperationFailure

from karma_api.core.config import get_settings
from karma_api.core.logging import configure_logging, get_logger
from karma_api.db.init import get_client
from karma_api.models.user import User

log = get_logger(__name__)

WALLET_INDEX_NAME = "wallet_address_1"


async def dedupe_wallet_addresses(collection) -> list[dict]:
    """Return one entry per address that had more than one holder: kept user and cleared users."""
    holders: dict[str, list[dict]] = {}
    cursor = collection.find({"wallet_address": {"$exists": True, "$ne": None}}).sort("created_at", ASCENDING)
    async for doc in cursor:
        address = str(doc["wallet_address"]).strip().lower()
        holders.setdefault(address, []).append(doc)

    report = []
    now = datetime.utcnow()
    for address, docs in holders.items():
        keeper, *duplicates = docs
        for doc in duplicates:
            await collection.update_one(
                {"_id": doc["_id"]},
                {"$unset": {"wallet_address": ""}, "$set": {"updated_at": now}},
            )
            log.info("wallet_unset_duplicate", address=address, user_id=str(doc["_id"]))
        if keeper["wallet_address"] != address:
            await collection.update_one(
                {"_id": keeper["_id"]},
                {"$set": {"wallet_address": address, "updated_at": now}},
            )
        if duplicates:
            report.append(
                {
                    "address": address,
                    "kept": str(keeper["_id"]),
                    "cleared": [str(d["_id"]) for d in duplicates],
                }
            )
    # stored nulls would collide under a sparse unique index
    await collection.update_many({"wallet_address": None}, {"$unset": {"wallet_address": ""}})
    return report


async def rebuild_wallet_index(collection) -> None:
    try:
        await collection.drop_index(WALLET_INDEX_NAME)
    except OperationFailure:
        log.info("wallet_index_missing", index=WALLET_INDEX_NAME)
    await collection.create_index(
        [("wallet_address", ASCENDING)],
        name=WALLET_INDEX_NAME,
        unique=True,
        sparse=True,
    )


async def main() -> None:
    settings = get_settings()
    configure_logging(debug=settings.debug)
    client = get_client(settings.mongodb_uri)
    collection = client[settings.mongodb_db_name][User.Settings.name]
    try:
        report = await dedupe_wallet_addresses(collection)
        log.info("wallet_dedupe_done", duplicates=len(report))
        await rebuild_wallet_index(collection)
        log.info("wallet_index_rebuilt", index=WALLET_INDEX_NAME)
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(main())
