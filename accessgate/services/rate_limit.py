"""
Rate limiter for recovery requests (mail bombing / enumeration throttling).
The limit applies per client IP, never per e-mail, so a 429 reveals nothing
about whether an address is registered.
"""
import logging

import redis
from starlette.requests import Request

from accessgate.core.config import settings

logger = logging.getLogger("rate_limit")


def get_client_ip(request: Request) -> str:
    """Client IP (supports X-Forwarded-For from proxy)."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and settings.app_env == "production":
        trusted = settings.trusted_proxy_ips_set
        if trusted and request.client and request.client.host in trusted:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "127.0.0.1"


def check_recover_rate_limit(client: redis.Redis, client_ip: str) -> bool:
    """
    Check if a recovery request is allowed. Returns True if allowed, False if rate limited.
    Increments counter on each call.
    """
    try:
        key = f"recover_attempts:{client_ip}"
        current = client.incr(key)
        if current == 1:
            client.expire(key, settings.recover_rate_limit_window_seconds)
        if current > settings.recover_rate_limit_attempts:
            logger.warning("recover_rate_limited", extra={"ip": client_ip, "attempts": current})
            return False
        return True
    except redis.RedisError as e:
        logger.warning("recover_rate_limit_redis_error", extra={"error": str(e)})
        return True  # Fail open - the flow itself is anti-enumeration safe
