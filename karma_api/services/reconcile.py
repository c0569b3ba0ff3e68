"""
Webhook credit reconciliation.

Each delivery runs a fixed chain of guards; the first failing guard ends the run as a
benign skip (acknowledged, nothing credited). Only failures while looking up the sender
or applying the credit are errors, raised as ReconcileError so the provider retries.

Deliveries are not deduplicated on tx hash: the same payment delivered twice is credited twice.
"""

import enum
import math
from dataclasses import dataclass
from typing import Any

from beanie import PydanticObjectId

from karma_api.core.audit import log_credit
from karma_api.core.config import ReconcileConfig
from karma_api.core.exceptions import ReconcileError
from karma_api.core.logging import get_logger
from karma_api.services import users as users_service
from karma_api.services.tiers import resolve_karma
from karma_api.services.webhook_payload import NotifierShape, RpcShape, parse_payload

log = get_logger(__name__)


class Outcome(str, enum.Enum):
    SKIPPED = "skipped"
    CREDITED = "credited"


@dataclass(frozen=True)
class ReconcileResult:
    outcome: Outcome
    reason: str
    user_id: PydanticObjectId | None = None
    karma: int = 0
    new_balance: int | None = None


class WebhookReconciler:
    def __init__(self, config: ReconcileConfig):
        self.config = config

    def _skip(self, reason: str, **fields: Any) -> ReconcileResult:
        log.info("webhook_skipped", reason=reason, **fields)
        return ReconcileResult(Outcome.SKIPPED, reason)

    async def reconcile(self, payload: Any) -> ReconcileResult:
        parsed = parse_payload(payload)
        if isinstance(parsed, RpcShape):
            return self._skip("rpc_format")
        if not isinstance(parsed, NotifierShape):
            return self._skip(parsed.reason)
        p = parsed.payment

        if p.network != self.config.network:
            return self._skip("wrong_network", network=p.network)
        if not p.from_address or not p.to_address or not p.tx_hash or not self.config.receiving_wallet:
            return self._skip("missing_fields", tx_hash=p.tx_hash or None)
        if p.to_address != self.config.receiving_wallet:
            return self._skip("wrong_recipient", expected=self.config.receiving_wallet, received=p.to_address)
        if not math.isfinite(p.value) or p.value <= 0:
            return self._skip("invalid_value", value=repr(p.value))
        if p.asset != self.config.asset:
            return self._skip("wrong_asset", asset=p.asset)

        try:
            user = await users_service.find_by_wallet(p.from_address)
            if not user:
                return self._skip("unregistered_sender", from_address=p.from_address)
            karma = resolve_karma(p.value)
            if karma == 0:
                return self._skip("below_minimum", value=p.value, user_id=str(user.id))
            updated = await users_service.increment_credits(user.id, karma)
            if updated is None:
                raise ReconcileError(f"User {user.id} disappeared before credit")
            await log_credit(str(user.id), "webhook", p.tx_hash, karma, updated.credits)
        except ReconcileError:
            raise
        except Exception as e:
            raise ReconcileError(str(e)) from e

        log.info(
            "webhook_credited",
            user_id=str(user.id),
            tx_hash=p.tx_hash,
            value=p.value,
            karma=karma,
            new_balance=updated.credits,
        )
        return ReconcileResult(Outcome.CREDITED, "credited", user.id, karma, updated.credits)
