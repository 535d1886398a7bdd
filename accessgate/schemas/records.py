"""
Records persisted in the key-value store (JSON via pydantic).
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntitlementSource(str, Enum):
    WEBHOOK = "webhook"
    ADMIN_SEED = "admin_seed"


class Entitlement(BaseModel):
    """Whether an e-mail currently has rights to the product. Never expires."""

    active: bool
    updated_at: datetime = Field(default_factory=utcnow)
    source: EntitlementSource = EntitlementSource.WEBHOOK
    # Free-form provenance (event name, admin note, ...)
    meta: dict[str, Any] = Field(default_factory=dict)


class AccessToken(BaseModel):
    email: str
    created_at: datetime = Field(default_factory=utcnow)
    consumed: bool = False


class RecoverToken(BaseModel):
    email: str
    created_at: datetime = Field(default_factory=utcnow)


class Session(BaseModel):
    # Provenance: the access token that produced the session, or RECOVER_PROVENANCE
    token: str
    email: str
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


RECOVER_PROVENANCE = "recover"
