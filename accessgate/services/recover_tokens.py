"""
Recovery token store: short-lived magic-link tokens.

There is deliberately no non-destructive read: consume_and_get is the
redemption, and expired, used and unknown tokens all look the same.
"""
import redis

from accessgate.core.config import settings
from accessgate.schemas.records import RecoverToken
from accessgate.utils.emails import normalize_email
from accessgate.utils.ttl import resolve_ttl_ms, ttl_seconds


class RecoverTokenStore:
    def __init__(self, client: redis.Redis | None = None) -> None:
        self.client = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self.key_prefix = "recover:"
        self.default_ttl_ms = settings.recover_token_ttl_ms

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def create(self, token: str, email: str, ttl_ms: int | None = None) -> None:
        ttl_ms = resolve_ttl_ms(ttl_ms, self.default_ttl_ms)
        record = RecoverToken(email=normalize_email(email))
        self.client.set(self._key(token), record.model_dump_json(), ex=ttl_seconds(ttl_ms))

    def consume_and_get(self, token: str) -> RecoverToken | None:
        """Atomic GETDEL: returns the record at most once."""
        raw = self.client.getdel(self._key(token))
        if not raw:
            return None
        return RecoverToken.model_validate_json(raw)
