from typing import Any

import orjson
from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse

from karma_api.core.config import get_settings
from karma_api.core.logging import get_logger
from karma_api.services.manual_credit import ManualCreditError, credit_manually

router = APIRouter()
log = get_logger(__name__)


def _str_field(body: Any, key: str) -> str | None:
    v = body.get(key) if isinstance(body, dict) else None
    return v if isinstance(v, str) else None


@router.post("/manual-karma-credit")
async def manual_karma_credit(request: Request):
    """Fallback when a webhook credit did not arrive: fixed karma for {txHash, userEmail}."""
    raw = await request.body()
    try:
        body = orjson.loads(raw) if raw else {}
    except orjson.JSONDecodeError:
        body = {}
    try:
        credit = await credit_manually(
            _str_field(body, "txHash"),
            _str_field(body, "userEmail"),
            get_settings().manual_credit_amount,
        )
    except ManualCreditError as e:
        return ORJSONResponse(status_code=e.status_code, content={"success": False, "error": e.message})
    except Exception:
        log.exception("manual_karma_credit_failed")
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Internal server error"},
        )
    return {
        "success": True,
        "message": "Karma credited successfully",
        "data": {
            "oldBalance": credit.old_balance,
            "newBalance": credit.new_balance,
            "karmaAdded": credit.karma_added,
            "txHash": credit.tx_hash,
        },
    }
