"""
Access link exchange: the buyer opens /access/<token>, confirms the purchase
e-mail, and the token is traded once for a session.
"""
import logging

from accessgate.core.errors import AlreadyConsumed, NotFound, Unauthorized
from accessgate.core.logging import token_prefix
from accessgate.schemas.records import AccessToken, Session
from accessgate.services.access_tokens import AccessTokenStore
from accessgate.services.sessions import SessionStore
from accessgate.utils.emails import normalize_email
from accessgate.utils.metrics import access_tokens_exchanged_total, sessions_created_total
from accessgate.utils.tokens import new_session_id

logger = logging.getLogger(__name__)


class AccessService:
    def __init__(self, access_tokens: AccessTokenStore, sessions: SessionStore) -> None:
        self.access_tokens = access_tokens
        self.sessions = sessions

    def inspect(self, token: str) -> AccessToken:
        """Non-destructive lookup; raises NotFound or AlreadyConsumed."""
        record = self.access_tokens.get(token)
        if record is None:
            access_tokens_exchanged_total.labels(outcome="not_found").inc()
            raise NotFound("Invalid or expired link.")
        if record.consumed:
            access_tokens_exchanged_total.labels(outcome="already_consumed").inc()
            raise AlreadyConsumed("This link has already been used.")
        return record

    def exchange(self, token: str, email: str) -> tuple[str, Session]:
        """Consume the token and open a session for its e-mail."""
        record = self.inspect(token)

        email = normalize_email(email)
        if not email or email != record.email:
            access_tokens_exchanged_total.labels(outcome="email_mismatch").inc()
            logger.info("access_email_mismatch", extra={"token_prefix": token_prefix(token)})
            raise Unauthorized("E-mail does not match the purchase.")

        if not self.access_tokens.consume(token):
            # Lost a race against another exchange of the same link
            access_tokens_exchanged_total.labels(outcome="already_consumed").inc()
            raise AlreadyConsumed("This link has already been used.")

        session_id = new_session_id()
        session = self.sessions.create(session_id, token, record.email)
        access_tokens_exchanged_total.labels(outcome="ok").inc()
        sessions_created_total.labels(origin="access").inc()
        logger.info(
            "session_created",
            extra={"email": record.email, "source": "access", "session_prefix": token_prefix(session_id)},
        )
        return session_id, session
