from fastapi import APIRouter, Depends
from pydantic import BaseModel

from karma_api.core.audit import log_event
from karma_api.deps import get_current_user
from karma_api.models.user import User
from karma_api.services import users as users_service

router = APIRouter()


class WalletRequest(BaseModel):
    walletAddress: str | None = None


@router.get("/credits")
async def user_credits(user: User = Depends(get_current_user)):
    """Return current karma balance."""
    return {"credits": user.credits}


@router.post("/wallet")
async def user_wallet(body: WalletRequest, user: User = Depends(get_current_user)):
    """Link (or, with no address, unlink) the wallet that webhook credits are matched on."""
    updated = await users_service.link_wallet(user, body.walletAddress)
    event = "wallet_linked" if updated.wallet_address else "wallet_unset"
    await log_event(str(user.id), event, "user", str(user.id), {"wallet_address": updated.wallet_address})
    return {"walletAddress": updated.wallet_address}
