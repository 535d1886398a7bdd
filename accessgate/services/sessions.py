"""
Session store. Sessions carry their own expires_at; a read past it behaves
as not-found and removes the record (lazy expiry, the Redis TTL is a backstop).
"""
import logging
from datetime import datetime, timedelta, timezone

import redis

from accessgate.core.config import settings
from accessgate.core.logging import token_prefix
from accessgate.schemas.records import Session
from accessgate.utils.emails import normalize_email
from accessgate.utils.ttl import resolve_ttl_ms, ttl_seconds

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    def __init__(self, client: redis.Redis | None = None) -> None:
        self.client = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self.key_prefix = "sess:"
        self.default_ttl_ms = settings.session_ttl_ms

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    def create(self, session_id: str, token: str, email: str, ttl_ms: int | None = None) -> Session:
        ttl_ms = resolve_ttl_ms(ttl_ms, self.default_ttl_ms)
        now = _now()
        session = Session(
            token=token,
            email=normalize_email(email),
            created_at=now,
            expires_at=now + timedelta(milliseconds=ttl_ms),
        )
        self.client.set(self._key(session_id), session.model_dump_json(), ex=ttl_seconds(ttl_ms))
        return session

    def get(self, session_id: str) -> Session | None:
        if not session_id:
            return None
        raw = self.client.get(self._key(session_id))
        if not raw:
            return None
        session = Session.model_validate_json(raw)
        if session.is_expired(_now()):
            self.delete(session_id)
            logger.info("session_expired", extra={"session_prefix": token_prefix(session_id)})
            return None
        return session

    def delete(self, session_id: str) -> None:
        """Idempotent."""
        self.client.delete(self._key(session_id))
