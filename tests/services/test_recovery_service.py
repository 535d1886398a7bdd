"""Tests for RecoveryService: anti-enumeration request and redemption."""
from unittest.mock import MagicMock

import pytest

from accessgate.schemas.records import RECOVER_PROVENANCE
from accessgate.services.entitlements import EntitlementStore
from accessgate.services.mailer.client import MailOutcome
from accessgate.services.recover_tokens import RecoverTokenStore
from accessgate.services.recovery.service import (
    GENERIC_RECOVER_MESSAGE,
    RecoverDelivery,
    RecoveryService,
    RedeemStatus,
)
from accessgate.services.sessions import SessionStore


@pytest.fixture
def service(fake_redis, mailer):
    return RecoveryService(
        EntitlementStore(fake_redis),
        RecoverTokenStore(fake_redis),
        SessionStore(fake_redis),
        mailer,
    )


def _recover_keys(fake_redis):
    return [key for key in fake_redis._data if key.startswith("recover:")]


class TestRequest:
    @pytest.mark.parametrize("email", ["", None, "   ", "not-an-email", 42])
    def test_malformed_short_circuits(self, service, fake_redis, mailer, email):
        fake_redis.fail = True  # any store access would raise
        assert service.request(email) == GENERIC_RECOVER_MESSAGE
        mailer.send_recover_email.assert_not_called()

    def test_inactive_email_creates_nothing(self, service, fake_redis, mailer):
        assert service.request("stranger@example.com") == GENERIC_RECOVER_MESSAGE
        assert _recover_keys(fake_redis) == []
        mailer.send_recover_email.assert_not_called()

    def test_revoked_email_creates_nothing(self, service, fake_redis, mailer):
        service.entitlements.set_active("buyer@example.com")
        service.entitlements.revoke("buyer@example.com")
        assert service.request("buyer@example.com") == GENERIC_RECOVER_MESSAGE
        assert _recover_keys(fake_redis) == []

    def test_active_email_mints_token_and_sends_link(self, service, fake_redis, mailer):
        service.entitlements.set_active("buyer@example.com")

        assert service.request(" Buyer@Example.com") == GENERIC_RECOVER_MESSAGE

        keys = _recover_keys(fake_redis)
        assert len(keys) == 1
        token = keys[0].split(":", 1)[1]
        assert fake_redis.ttl(keys[0]) == 15 * 60
        mailer.send_recover_email.assert_called_once()
        to, link = mailer.send_recover_email.call_args.args
        assert to == "buyer@example.com"
        assert link == f"https://api.example.com/access/recover/{token}"

    def test_mail_failure_keeps_generic_answer(self, service, mailer):
        service.entitlements.set_active("buyer@example.com")
        mailer.send_recover_email.return_value = MailOutcome(ok=False, error="rejected")
        assert service.request("buyer@example.com") == GENERIC_RECOVER_MESSAGE

        mailer.send_recover_email.side_effect = RuntimeError("boom")
        assert service.request("buyer@example.com") == GENERIC_RECOVER_MESSAGE

    def test_store_failure_keeps_generic_answer(self, service, fake_redis, mailer):
        fake_redis.fail = True
        assert service.request("buyer@example.com") == GENERIC_RECOVER_MESSAGE
        mailer.send_recover_email.assert_not_called()

    def test_concurrent_requests_yield_independent_tokens(self, service, fake_redis):
        service.entitlements.set_active("buyer@example.com")
        service.request("buyer@example.com")
        service.request("buyer@example.com")
        assert len(_recover_keys(fake_redis)) == 2


class TestPrepareAndDeliver:
    def test_prepare_mints_without_mailing(self, service, fake_redis, mailer):
        service.entitlements.set_active("buyer@example.com")

        delivery = service.prepare("Buyer@Example.com ")

        assert delivery.email == "buyer@example.com"
        assert delivery.link == f"https://api.example.com/access/recover/{delivery.token}"
        assert _recover_keys(fake_redis) == [f"recover:{delivery.token}"]
        mailer.send_recover_email.assert_not_called()

    @pytest.mark.parametrize("email", ["garbage", "stranger@example.com"])
    def test_prepare_returns_nothing_to_send(self, service, email):
        assert service.prepare(email) is None

    def test_prepare_store_failure_returns_nothing(self, service, fake_redis):
        fake_redis.fail = True
        assert service.prepare("buyer@example.com") is None

    def test_deliver_sends_the_prepared_link(self, service, mailer):
        service.entitlements.set_active("buyer@example.com")
        delivery = service.prepare("buyer@example.com")

        service.deliver(delivery)

        mailer.send_recover_email.assert_called_once_with("buyer@example.com", delivery.link)

    def test_deliver_never_raises(self, service, mailer):
        mailer.send_recover_email.side_effect = RuntimeError("boom")
        service.deliver(RecoverDelivery(email="buyer@example.com", link="https://x/y", token="t"))


class TestRedeem:
    def test_unknown_token_expired(self, service):
        assert service.redeem("nope").status is RedeemStatus.EXPIRED

    def test_success_creates_recover_session(self, service):
        service.entitlements.set_active("buyer@example.com")
        service.recover_tokens.create("r1", "buyer@example.com")

        outcome = service.redeem("r1")

        assert outcome.status is RedeemStatus.OK
        assert outcome.session.email == "buyer@example.com"
        assert outcome.session.token == RECOVER_PROVENANCE
        assert service.sessions.get(outcome.session_id) is not None

    def test_token_is_single_use(self, service):
        service.entitlements.set_active("buyer@example.com")
        service.recover_tokens.create("r1", "buyer@example.com")
        assert service.redeem("r1").status is RedeemStatus.OK
        assert service.redeem("r1").status is RedeemStatus.EXPIRED

    def test_revoked_between_mint_and_redeem_is_denied(self, service, fake_redis):
        service.entitlements.set_active("buyer@example.com")
        service.recover_tokens.create("r1", "buyer@example.com")
        service.entitlements.revoke("buyer@example.com")

        outcome = service.redeem("r1")

        assert outcome.status is RedeemStatus.DENIED
        assert outcome.session_id is None
        assert not any(key.startswith("sess:") for key in fake_redis._data)
        # Consumed even when denied
        assert service.redeem("r1").status is RedeemStatus.EXPIRED

    def test_store_failure_is_error(self, service, fake_redis):
        fake_redis.fail = True
        assert service.redeem("r1").status is RedeemStatus.ERROR

    def test_unexpected_failure_is_error(self, service):
        service.recover_tokens = MagicMock()
        service.recover_tokens.consume_and_get.side_effect = ValueError("corrupt record")
        assert service.redeem("r1").status is RedeemStatus.ERROR
