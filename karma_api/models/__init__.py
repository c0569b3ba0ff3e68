from karma_api.models.user import User
from karma_api.models.audit_log import AuditLog

__all__ = [
    "User",
    "AuditLog",
]
