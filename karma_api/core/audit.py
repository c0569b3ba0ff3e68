"""Audit trail for balance and wallet changes."""

from typing import Any

from karma_api.models.audit_log import AuditLog


async def log_event(
    user_id: str | None,
    event_type: str,
    entity_type: str,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditLog:
    """Append to audit_logs collection."""
    entry = AuditLog(
        user_id=user_id,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata or {},
    )
    await entry.insert()
    return entry


async def log_credit(user_id: str, source: str, tx_hash: str, karma: int, balance_after: int) -> AuditLog:
    """Record one karma credit. tx_hash is informational only; credits are not deduplicated on it."""
    return await log_event(
        user_id,
        "karma_credited",
        "transaction",
        tx_hash,
        {"source": source, "karma": karma, "balance_after": balance_after},
    )
