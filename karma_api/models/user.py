from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field, field_validator


class User(Document):
    email: Indexed(str, unique=True)
    password_hash: str
    wallet_address: Indexed(str, unique=True, sparse=True) | None = None
    credits: int = 0  # karma balance; signed, no floor
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("wallet_address")
    @classmethod
    def _normalize_wallet(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip().lower() or None

    class Settings:
        name = "users"
        # unset wallets are omitted from the stored document so the sparse index skips them
        keep_nulls = False
