"""
Shared fixtures. Required settings are set before the app package is imported.
Redis is replaced by an in-memory double with a controllable clock.
"""
import math
import os
from unittest.mock import MagicMock

os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789")
os.environ.setdefault("WEBHOOK_SECRET", "whsec-test")
os.environ.setdefault("ADMIN_API_TOKEN", "admin-test-token")
os.environ.setdefault("API_PUBLIC_BASE_URL", "https://api.example.com")
os.environ.setdefault("APP_PUBLIC_BASE_URL", "https://www.example.com")
os.environ.setdefault("CONTENT_OBJECT_KEYS", "material.pdf,bonus/checklist.pdf")

import pytest
import redis
from fastapi.testclient import TestClient


class InMemoryPipeline:
    """WATCH / MULTI / EXEC subset used by the stores."""

    def __init__(self, store: "InMemoryRedis") -> None:
        self._store = store
        self._watched: dict[str, int] = {}
        self._buffered: list[tuple[str, tuple, dict]] | None = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.reset()
        return False

    def reset(self) -> None:
        self._watched = {}
        self._buffered = None

    def watch(self, *names: str) -> None:
        for name in names:
            self._watched[name] = self._store._versions.get(name, 0)

    def multi(self) -> None:
        self._buffered = []

    def __getattr__(self, item):
        target = getattr(self._store, item)
        if self._buffered is None:
            return target

        def buffered(*args, **kwargs):
            self._buffered.append((item, args, kwargs))
            return self

        return buffered

    def execute(self) -> list:
        if self._store.before_execute is not None:
            hook, self._store.before_execute = self._store.before_execute, None
            hook()
        for name, version in self._watched.items():
            if self._store._versions.get(name, 0) != version:
                self.reset()
                raise redis.WatchError("Watched variable changed.")
        results = [getattr(self._store, cmd)(*args, **kwargs) for cmd, args, kwargs in self._buffered or []]
        self.reset()
        return results


class InMemoryRedis:
    """Minimal str-valued Redis double (decode_responses=True semantics)."""

    def __init__(self) -> None:
        self.now = 1_700_000_000.0
        self._data: dict[str, tuple[str, float | None]] = {}
        self._versions: dict[str, int] = {}
        self.before_execute = None
        self.before_pttl = None
        self.fail = False

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _check(self) -> None:
        if self.fail:
            raise redis.ConnectionError("redis down")

    def _bump(self, name: str) -> None:
        self._versions[name] = self._versions.get(name, 0) + 1

    def _alive(self, name: str) -> tuple[str, float | None] | None:
        entry = self._data.get(name)
        if entry is None:
            return None
        if entry[1] is not None and entry[1] <= self.now:
            del self._data[name]
            self._bump(name)
            return None
        return entry

    def ping(self) -> bool:
        self._check()
        return True

    def get(self, name: str) -> str | None:
        self._check()
        entry = self._alive(name)
        return entry[0] if entry else None

    def set(self, name, value, ex=None, px=None, nx=False, keepttl=False):
        self._check()
        entry = self._alive(name)
        if nx and entry is not None:
            return None
        expire_at = None
        if ex is not None:
            expire_at = self.now + ex
        elif px is not None:
            expire_at = self.now + px / 1000
        elif keepttl and entry is not None:
            expire_at = entry[1]
        self._data[name] = (str(value), expire_at)
        self._bump(name)
        return True

    def setex(self, name, time, value):
        return self.set(name, value, ex=time)

    def delete(self, *names: str) -> int:
        self._check()
        removed = 0
        for name in names:
            if self._alive(name) is not None:
                del self._data[name]
                self._bump(name)
                removed += 1
        return removed

    def getdel(self, name: str) -> str | None:
        self._check()
        entry = self._alive(name)
        if entry is None:
            return None
        del self._data[name]
        self._bump(name)
        return entry[0]

    def pttl(self, name: str) -> int:
        self._check()
        if self.before_pttl is not None:
            hook, self.before_pttl = self.before_pttl, None
            hook()
        entry = self._alive(name)
        if entry is None:
            return -2
        if entry[1] is None:
            return -1
        return int((entry[1] - self.now) * 1000)

    def ttl(self, name: str) -> int:
        ms = self.pttl(name)
        if ms < 0:
            return ms
        return math.ceil(ms / 1000)

    def incr(self, name: str, amount: int = 1) -> int:
        self._check()
        entry = self._alive(name)
        value = int(entry[0]) + amount if entry else amount
        self._data[name] = (str(value), entry[1] if entry else None)
        self._bump(name)
        return value

    def expire(self, name: str, time: int) -> bool:
        self._check()
        entry = self._alive(name)
        if entry is None:
            return False
        self._data[name] = (entry[0], self.now + time)
        return True

    def pipeline(self, transaction: bool = True) -> InMemoryPipeline:
        return InMemoryPipeline(self)


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def mailer():
    from accessgate.services.mailer.client import MailOutcome

    m = MagicMock()
    m.send_recover_email.return_value = MailOutcome(ok=True, message_id="msg_1")
    return m


@pytest.fixture
def signed_urls():
    issuer = MagicMock()
    issuer.generate_signed_url.return_value = "https://files.example.com/material.pdf?sig=abc"
    return issuer


@pytest.fixture
def client(fake_redis, mailer, signed_urls):
    from accessgate.api.deps import get_mailer, get_redis, get_signed_url_issuer
    from accessgate.main import app

    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_signed_url_issuer] = lambda: signed_urls
    yield TestClient(app)
    app.dependency_overrides.clear()
