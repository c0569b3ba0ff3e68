"""Shared FastAPI dependencies."""

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import Request

from karma_api.core.exceptions import UnauthorizedError
from karma_api.core.security import load_session_token
from karma_api.models.user import User
from karma_api.services.reconcile import WebhookReconciler


async def get_current_user(request: Request) -> User:
    """Dependency: resolve the Bearer session token to a User."""
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("No token provided")
    payload = load_session_token(token.strip())
    if not payload or not payload.get("user_id"):
        raise UnauthorizedError("Invalid token")
    try:
        user_id = PydanticObjectId(payload["user_id"])
    except (InvalidId, TypeError):
        raise UnauthorizedError("Invalid token")
    user = await User.get(user_id)
    if not user:
        raise UnauthorizedError("User not found")
    return user


def get_reconciler(request: Request) -> WebhookReconciler:
    """Dependency: the process-wide reconciler built at startup."""
    return request.app.state.reconciler
