"""
Entitlement store: durable, TTL-less "does this e-mail have rights" flag.
Written only by the webhook and admin paths; records are never deleted.
"""
import logging
from typing import Any

import redis

from accessgate.core.config import settings
from accessgate.schemas.records import Entitlement, EntitlementSource, utcnow
from accessgate.utils.emails import normalize_email

logger = logging.getLogger(__name__)


class EntitlementStore:
    def __init__(self, client: redis.Redis | None = None) -> None:
        self.client = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self.key_prefix = "ent:"

    def _key(self, email: str) -> str:
        return f"{self.key_prefix}{normalize_email(email)}"

    def _write(
        self,
        email: str,
        active: bool,
        source: EntitlementSource,
        meta: dict[str, Any] | None,
    ) -> None:
        record = Entitlement(
            active=active,
            updated_at=utcnow(),
            source=source,
            meta=dict(meta or {}),
        )
        # No TTL: entitlements outlive every token and session
        self.client.set(self._key(email), record.model_dump_json())

    def set_active(
        self,
        email: str,
        source: EntitlementSource = EntitlementSource.WEBHOOK,
        meta: dict[str, Any] | None = None,
    ) -> None:
        self._write(email, True, source, meta)
        logger.info(
            "entitlement_activated",
            extra={"email": normalize_email(email), "source": source.value},
        )

    def revoke(
        self,
        email: str,
        source: EntitlementSource = EntitlementSource.WEBHOOK,
        meta: dict[str, Any] | None = None,
    ) -> None:
        self._write(email, False, source, meta)
        logger.info(
            "entitlement_revoked",
            extra={"email": normalize_email(email), "source": source.value},
        )

    def get(self, email: str) -> Entitlement | None:
        raw = self.client.get(self._key(email))
        if not raw:
            return None
        return Entitlement.model_validate_json(raw)

    def is_active(self, email: str) -> bool:
        """True only for an existing record with active=True."""
        if not normalize_email(email):
            return False
        record = self.get(email)
        return record is not None and record.active is True
