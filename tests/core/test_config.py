"""Tests for Settings validation."""
import pytest
from pydantic import ValidationError

from accessgate.core.config import Settings

BASE = {"redis_url": "redis://localhost:6379/15", "session_secret": "test-session-secret-0123456789"}


class TestTtlSettings:
    @pytest.mark.parametrize("field", ["access_token_ttl_ms", "recover_token_ttl_ms", "session_ttl_ms"])
    @pytest.mark.parametrize("value", [0, -1000])
    def test_non_positive_ttl_rejected(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**BASE, **{field: value})

    def test_defaults_are_positive(self):
        s = Settings(**BASE)
        assert s.access_token_ttl_ms == 86_400_000
        assert s.recover_token_ttl_ms == 900_000
        assert s.session_ttl_ms == 2_592_000_000


class TestOtherValidators:
    def test_weak_session_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(redis_url="redis://localhost:6379/15", session_secret="short")

    def test_revoked_session_policy_normalized(self):
        assert Settings(**BASE, revoked_session_policy=" Enforce ").revoked_session_policy == "enforce"
        with pytest.raises(ValidationError):
            Settings(**BASE, revoked_session_policy="sometimes")

    def test_public_urls_lose_trailing_slash(self):
        s = Settings(**BASE, api_public_base_url="https://api.example.com/")
        assert s.api_public_base_url == "https://api.example.com"
