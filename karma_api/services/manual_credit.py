"""Operator fallback: fixed karma credit for a user whose webhook credit did not arrive."""

from dataclasses import dataclass

from karma_api.core.audit import log_credit
from karma_api.core.logging import get_logger
from karma_api.services import users as users_service

log = get_logger(__name__)


class ManualCreditError(Exception):
    def __init__(self, message: str, status_code: int):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class ManualCredit:
    old_balance: int
    new_balance: int
    karma_added: int
    tx_hash: str


async def credit_manually(tx_hash: str | None, user_email: str | None, amount: int) -> ManualCredit:
    """
    Add `amount` karma to the user with `user_email`, who must have a linked wallet.
    tx_hash is not verified on-chain and not deduplicated; every call credits again.
    """
    if not tx_hash or not (user_email or "").strip():
        raise ManualCreditError("Missing txHash or userEmail", 400)
    user = await users_service.find_by_email(user_email)
    if not user:
        raise ManualCreditError("User not found", 404)
    if not user.wallet_address:
        raise ManualCreditError("User has no wallet address", 400)

    updated = await users_service.increment_credits(user.id, amount)
    if updated is None:
        raise ManualCreditError("User not found", 404)
    # balance immediately before this increment
    old_balance = updated.credits - amount
    await log_credit(str(user.id), "manual", tx_hash, amount, updated.credits)
    log.info(
        "manual_karma_credit",
        user_id=str(user.id),
        tx_hash=tx_hash,
        karma=amount,
        old_balance=old_balance,
        new_balance=updated.credits,
    )
    return ManualCredit(old_balance, updated.credits, amount, tx_hash)
