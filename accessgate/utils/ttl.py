import math


def ttl_seconds(ttl_ms: int) -> int:
    """Convert a millisecond duration to store seconds, rounding up.

    A TTL is never shorter than requested; anything positive maps to >= 1s.
    """
    if ttl_ms <= 0:
        raise ValueError("ttl_ms must be positive")
    return max(1, math.ceil(ttl_ms / 1000))


def resolve_ttl_ms(ttl_ms: int | None, default_ms: int) -> int:
    """Caller-supplied TTL, or the default when missing or non-positive."""
    if ttl_ms is None or ttl_ms <= 0:
        return default_ms
    return ttl_ms
