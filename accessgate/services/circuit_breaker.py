"""
Circuit breaker implementation using pybreaker library.
Provides Redis-backed state storage so every worker sees the same breaker.
"""
import logging
from datetime import datetime

import pybreaker
import redis

from accessgate.core.config import settings
from accessgate.utils.metrics import circuit_breaker_state


logger = logging.getLogger("circuit_breaker")


class RedisCircuitBreakerStorage(pybreaker.CircuitBreakerStorage):
    """Redis-backed storage for circuit breaker state (distributed-friendly)."""

    def __init__(self, name: str, client: redis.Redis | None = None) -> None:
        super().__init__(name)
        self._name = name
        self.client = client or redis.Redis.from_url(settings.redis_url, decode_responses=True)
        self._state_key = f"cb:{name}:state"
        self._counter_key = f"cb:{name}:counter"
        self._success_key = f"cb:{name}:success"
        self._opened_at_key = f"cb:{name}:opened_at"

    @property
    def state(self) -> str:
        state = self.client.get(self._state_key)
        return state or pybreaker.STATE_CLOSED

    @state.setter
    def state(self, value: str) -> None:
        self.client.set(self._state_key, value, ex=settings.cb_open_seconds * 2)
        circuit_breaker_state.labels(name=self._name).set(
            1 if value == pybreaker.STATE_OPEN else 0
        )

    @property
    def counter(self) -> int:
        count = self.client.get(self._counter_key)
        return int(count) if count else 0

    def increment_counter(self) -> None:
        self.client.incr(self._counter_key)
        self.client.expire(self._counter_key, settings.cb_open_seconds)

    def reset_counter(self) -> None:
        self.client.delete(self._counter_key)

    @property
    def success_counter(self) -> int:
        count = self.client.get(self._success_key)
        return int(count) if count else 0

    def increment_success_counter(self) -> None:
        self.client.incr(self._success_key)
        self.client.expire(self._success_key, settings.cb_open_seconds)

    def reset_success_counter(self) -> None:
        self.client.delete(self._success_key)

    @property
    def opened_at(self) -> datetime | None:
        raw = self.client.get(self._opened_at_key)
        return datetime.fromisoformat(raw) if raw else None

    @opened_at.setter
    def opened_at(self, value: datetime) -> None:
        self.client.set(self._opened_at_key, value.isoformat(), ex=settings.cb_open_seconds * 2)


class CircuitBreakerListener(pybreaker.CircuitBreakerListener):
    """Listener for circuit breaker events (logging/metrics)."""

    def __init__(self, name: str) -> None:
        self.name = name

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state, new_state) -> None:
        logger.warning(
            "circuit_breaker_state_change",
            extra={
                "breaker_name": self.name,
                "old_state": getattr(old_state, "name", old_state),
                "new_state": getattr(new_state, "name", new_state),
            },
        )

    def failure(self, cb: pybreaker.CircuitBreaker, exc: BaseException) -> None:
        logger.warning(
            "circuit_breaker_failure",
            extra={
                "breaker_name": self.name,
                "error": type(exc).__name__,
            },
        )


def build_circuit_breaker(name: str, client: redis.Redis | None = None) -> pybreaker.CircuitBreaker:
    return pybreaker.CircuitBreaker(
        fail_max=settings.cb_failure_threshold,
        reset_timeout=settings.cb_open_seconds,
        state_storage=RedisCircuitBreakerStorage(name, client),
        listeners=[CircuitBreakerListener(name)],
        name=name,
    )


_breakers: dict[str, pybreaker.CircuitBreaker] = {}


def get_circuit_breaker(name: str) -> pybreaker.CircuitBreaker:
    """Get or create a process-wide circuit breaker by name."""
    if name not in _breakers:
        _breakers[name] = build_circuit_breaker(name)
    return _breakers[name]
