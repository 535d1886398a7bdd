"""
Access token store: single-use links minted on purchase confirmation.

Lifecycle: absent -> pending -> consumed (terminal, keeps expiring) -> absent.
A consumed token is never deleted; it runs out its original TTL so reuse is
still rejected as "already used" for the rest of the window.
"""
import logging

import redis

from accessgate.core.config import settings
from accessgate.core.logging import token_prefix
from accessgate.schemas.records import AccessToken
from accessgate.utils.emails import normalize_email
from accessgate.utils.ttl import resolve_ttl_ms, ttl_seconds

logger = logging.getLogger(__name__)


class AccessTokenStore:
    def __init__(self, client: redis.Redis | None = None) -> None:
        self.client = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self.key_prefix = "token:"
        self.default_ttl_ms = settings.access_token_ttl_ms

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def create(self, token: str, email: str, ttl_ms: int | None = None) -> None:
        """Store a pending token. Missing or non-positive ttl_ms falls back to the default."""
        ttl_ms = resolve_ttl_ms(ttl_ms, self.default_ttl_ms)
        record = AccessToken(email=normalize_email(email))
        self.client.set(self._key(token), record.model_dump_json(), ex=ttl_seconds(ttl_ms))

    def get(self, token: str) -> AccessToken | None:
        raw = self.client.get(self._key(token))
        if not raw:
            return None
        return AccessToken.model_validate_json(raw)

    def consume(self, token: str) -> bool:
        """
        Atomic check-and-set of consumed=True.

        Returns False when the token is absent, already consumed, expired
        mid-call, or changed by another request between our read and write
        (optimistic WATCH). The rewrite keeps the remaining TTL so consumption
        never renews a token; only a key that never had a TTL is rewritten
        without one.
        """
        key = self._key(token)
        with self.client.pipeline() as pipe:
            try:
                pipe.watch(key)
                raw = pipe.get(key)
                if not raw:
                    return False
                record = AccessToken.model_validate_json(raw)
                if record.consumed:
                    return False
                # Millisecond precision: TTL (seconds) may round up
                remaining_ms = pipe.pttl(key)
                if remaining_ms != -1 and remaining_ms <= 0:
                    # Expired between GET and PTTL (-2): never write it back
                    return False
                payload = record.model_copy(update={"consumed": True}).model_dump_json()
                pipe.multi()
                if remaining_ms == -1:
                    pipe.set(key, payload)
                else:
                    pipe.set(key, payload, px=remaining_ms)
                pipe.execute()
            except redis.WatchError:
                logger.warning(
                    "access_token_consume_conflict",
                    extra={"token_prefix": token_prefix(token)},
                )
                return False
        logger.info(
            "access_token_consumed",
            extra={"token_prefix": token_prefix(token), "email": record.email},
        )
        return True
