"""User ledger store: lookups, wallet linking and atomic karma increments."""

import re
from datetime import datetime

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import Inc, Set, Unset
from pymongo.errors import DuplicateKeyError

from karma_api.core.exceptions import BadRequestError, ConflictError
from karma_api.core.logging import get_logger
from karma_api.models.user import User

log = get_logger(__name__)

WALLET_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def normalize_address(address: str | None) -> str:
    return (address or "").strip().lower()


async def create_user(
    email: str,
    password_hash: str,
    wallet_address: str | None = None,
    credits: int = 0,
) -> User:
    """Insert a user. Email and (non-empty) wallet must not already be registered."""
    email = normalize_email(email)
    if not email:
        raise BadRequestError("Email is required")
    if await find_by_email(email):
        raise ConflictError("Email already registered")
    wallet = normalize_address(wallet_address) or None
    if wallet and await find_by_wallet(wallet):
        raise ConflictError("Wallet address already linked to another account")
    user = User(email=email, password_hash=password_hash, wallet_address=wallet, credits=credits)
    try:
        await user.insert()
    except DuplicateKeyError as e:
        raise ConflictError("Email or wallet address already registered") from e
    log.info("user_created", user_id=str(user.id), has_wallet=wallet is not None)
    return user


async def find_by_email(email: str | None) -> User | None:
    email = normalize_email(email)
    if not email:
        return None
    return await User.find_one(User.email == email)


async def find_by_wallet(address: str | None) -> User | None:
    address = normalize_address(address)
    if not address:
        return None
    return await User.find_one(User.wallet_address == address)


async def link_wallet(user: User, address: str | None) -> User:
    """
    Set or clear the user's wallet. An address held by another user is rejected;
    re-linking the user's own address is a no-op.
    """
    wallet = normalize_address(address) or None
    if wallet is not None:
        if not WALLET_RE.match(wallet):
            raise BadRequestError("Invalid wallet address format")
        holder = await find_by_wallet(wallet)
        if holder and holder.id != user.id:
            raise ConflictError("Wallet address already linked to another account")

    now = datetime.utcnow()
    if wallet is None:
        update = [Unset({User.wallet_address: ""}), Set({User.updated_at: now})]
    else:
        update = [Set({User.wallet_address: wallet, User.updated_at: now})]
    try:
        updated = await User.find_one(User.id == user.id).update(
            *update,
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
    except DuplicateKeyError as e:
        raise ConflictError("Wallet address already linked to another account") from e
    log.info("wallet_linked", user_id=str(user.id), wallet=wallet)
    return updated or user


async def increment_credits(user_id: PydanticObjectId, amount: int) -> User | None:
    """
    Atomically add `amount` to the user's karma and return the updated document.
    Concurrent increments on the same user never lose updates. Returns None if the user does not exist.
    """
    return await User.find_one(User.id == user_id).update(
        Inc({User.credits: amount}),
        Set({User.updated_at: datetime.utcnow()}),
        response_type=UpdateResponse.NEW_DOCUMENT,
    )
