import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from karma_api.core.config import get_settings
from karma_api.models.audit_log import AuditLog
from karma_api.models.user import User

DOCUMENT_MODELS = [
    User,
    AuditLog,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def get_client(uri: str) -> AsyncIOMotorClient:
    # Atlas in Docker: tlsCAFile + tlsDisableOCSPEndpointCheck avoid TLSV1_ALERT_INTERNAL_ERROR
    kwargs = {}
    if _use_tls(uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    return AsyncIOMotorClient(uri, **kwargs)


async def init_db(database=None) -> None:
    """Bind document models to `database`, or to the configured MongoDB when none is given."""
    if database is None:
        settings = get_settings()
        database = get_client(settings.mongodb_uri)[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
