"""Tests for AccessService: access link to session exchange."""
import pytest

from accessgate.core.errors import AlreadyConsumed, NotFound, Unauthorized
from accessgate.services.access.service import AccessService
from accessgate.services.access_tokens import AccessTokenStore
from accessgate.services.sessions import SessionStore


@pytest.fixture
def service(fake_redis):
    tokens = AccessTokenStore(fake_redis)
    tokens.create("tok", "buyer@example.com")
    return AccessService(tokens, SessionStore(fake_redis))


def test_inspect_unknown(service):
    with pytest.raises(NotFound):
        service.inspect("missing")


def test_exchange_creates_session(service):
    session_id, session = service.exchange("tok", " BUYER@example.com")

    assert session.email == "buyer@example.com"
    assert session.token == "tok"
    assert service.sessions.get(session_id) is not None
    assert service.access_tokens.get("tok").consumed is True


def test_second_exchange_is_already_consumed(service):
    service.exchange("tok", "buyer@example.com")
    with pytest.raises(AlreadyConsumed):
        service.exchange("tok", "buyer@example.com")
    with pytest.raises(AlreadyConsumed):
        service.inspect("tok")


def test_email_mismatch_does_not_consume(service):
    with pytest.raises(Unauthorized):
        service.exchange("tok", "someone@example.com")
    with pytest.raises(Unauthorized):
        service.exchange("tok", "")
    assert service.access_tokens.get("tok").consumed is False


def test_lost_race_creates_no_session(service, fake_redis):
    def concurrent_consume():
        fake_redis.set("token:tok", fake_redis.get("token:tok").replace('"consumed":false', '"consumed":true'))

    fake_redis.before_execute = concurrent_consume
    with pytest.raises(AlreadyConsumed):
        service.exchange("tok", "buyer@example.com")
    assert not any(key.startswith("sess:") for key in fake_redis._data)
