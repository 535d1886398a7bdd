"""
Recovery flow: "e-mail -> entitlement check -> recovery token -> e-mail" and
"recovery token -> entitlement re-check -> session".

request() answers the same generic message for every input. Internal outcomes
only show up in logs and metrics. The HTTP route splits it into prepare() and
deliver() so the e-mail goes out as a background task after the response.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import redis

from accessgate.core.logging import token_prefix
from accessgate.schemas.records import RECOVER_PROVENANCE, Session
from accessgate.services.entitlements import EntitlementStore
from accessgate.services.mailer.client import ResendMailer
from accessgate.services.recover_tokens import RecoverTokenStore
from accessgate.services.sessions import SessionStore
from accessgate.utils.emails import looks_like_email, normalize_email
from accessgate.utils.metrics import (
    recover_redemptions_total,
    recover_requests_total,
    sessions_created_total,
)
from accessgate.utils.tokens import build_recover_link, new_session_id, new_token

logger = logging.getLogger(__name__)

GENERIC_RECOVER_MESSAGE = (
    "If this e-mail has a purchase, you will receive an access link in a few minutes."
)


class RedeemStatus(str, Enum):
    OK = "ok"
    EXPIRED = "expired"
    DENIED = "denied"
    ERROR = "error"


@dataclass
class RedeemOutcome:
    status: RedeemStatus
    session_id: str | None = None
    session: Session | None = None


@dataclass
class RecoverDelivery:
    """A minted recovery link waiting to be mailed."""

    email: str
    link: str
    token: str


class RecoveryService:
    def __init__(
        self,
        entitlements: EntitlementStore,
        recover_tokens: RecoverTokenStore,
        sessions: SessionStore,
        mailer: ResendMailer,
    ) -> None:
        self.entitlements = entitlements
        self.recover_tokens = recover_tokens
        self.sessions = sessions
        self.mailer = mailer

    def request(self, email: object) -> str:
        """Mint and deliver in one call. Always returns GENERIC_RECOVER_MESSAGE."""
        delivery = self.prepare(email)
        if delivery is not None:
            self.deliver(delivery)
        return GENERIC_RECOVER_MESSAGE

    def prepare(self, email: object) -> RecoverDelivery | None:
        """
        Entitlement check and recovery token minting. Returns what still has to
        be mailed, or None when nothing should be sent. Never raises on store errors.
        """
        email = normalize_email(email)
        if not looks_like_email(email):
            recover_requests_total.labels(outcome="malformed").inc()
            return None

        try:
            if not self.entitlements.is_active(email):
                recover_requests_total.labels(outcome="inactive").inc()
                logger.info("recover_request_inactive", extra={"email": email})
                return None

            token = new_token()
            self.recover_tokens.create(token, email)
        except redis.RedisError as e:
            recover_requests_total.labels(outcome="failed").inc()
            logger.error("recover_request_store_error", extra={"email": email, "error": str(e)})
            return None

        return RecoverDelivery(email=email, link=build_recover_link(token), token=token)

    def deliver(self, delivery: RecoverDelivery) -> None:
        """Send the recovery e-mail and log the outcome. Runs after the response."""
        try:
            outcome = self.mailer.send_recover_email(delivery.email, delivery.link)
        except Exception as e:
            recover_requests_total.labels(outcome="failed").inc()
            logger.exception("recover_email_unexpected_error", extra={"email": delivery.email, "error": str(e)})
            return

        if outcome.ok:
            recover_requests_total.labels(outcome="sent").inc()
            logger.info(
                "recover_email_sent",
                extra={"email": delivery.email, "token_prefix": token_prefix(delivery.token)},
            )
        else:
            recover_requests_total.labels(outcome="failed").inc()
            logger.warning("recover_email_not_delivered", extra={"email": delivery.email, "error": outcome.error})

    def redeem(self, token: str) -> RedeemOutcome:
        """Trade a recovery token for a session, re-checking the entitlement."""
        try:
            record = self.recover_tokens.consume_and_get(token)
            if record is None:
                recover_redemptions_total.labels(outcome="expired").inc()
                return RedeemOutcome(RedeemStatus.EXPIRED)

            # Revocation may have happened since the link was mailed
            if not self.entitlements.is_active(record.email):
                recover_redemptions_total.labels(outcome="denied").inc()
                logger.info("recover_redeem_denied", extra={"email": record.email})
                return RedeemOutcome(RedeemStatus.DENIED)

            session_id = new_session_id()
            session = self.sessions.create(session_id, RECOVER_PROVENANCE, record.email)
        except Exception as e:
            recover_redemptions_total.labels(outcome="error").inc()
            logger.exception("recover_redeem_error", extra={"error": str(e)})
            return RedeemOutcome(RedeemStatus.ERROR)

        recover_redemptions_total.labels(outcome="ok").inc()
        sessions_created_total.labels(origin="recover").inc()
        logger.info(
            "session_created",
            extra={"email": record.email, "source": "recover", "session_prefix": token_prefix(session_id)},
        )
        return RedeemOutcome(RedeemStatus.OK, session_id=session_id, session=session)
