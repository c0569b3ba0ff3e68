import hashlib
from typing import Any

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from karma_api.core.config import get_settings

SESSION_MAX_AGE = 7 * 24 * 3600  # 7 days


def get_session_serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(
        settings.secret_key,
        salt="karma-session",
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


def create_session_token(user_id: str) -> str:
    return get_session_serializer().dumps({"user_id": user_id})


def load_session_token(token: str, max_age_seconds: int = SESSION_MAX_AGE) -> dict[str, Any] | None:
    """Return the signed payload, or None if the token is forged, expired or garbled."""
    serializer = get_session_serializer()
    try:
        payload = serializer.loads(token, max_age=max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None
    return payload if isinstance(payload, dict) else None
