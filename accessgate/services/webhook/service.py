"""
Purchase webhook ingestion.

Trust boundary: the shared secret header is the only authentication. An empty
configured secret rejects every call (fail closed). Unknown events are
acknowledged with ignored=true so the provider stops retrying.
"""
import logging
import secrets
from typing import Any

from accessgate.core.config import settings
from accessgate.core.errors import Unauthorized
from accessgate.core.logging import token_prefix
from accessgate.schemas.records import EntitlementSource
from accessgate.services.access_tokens import AccessTokenStore
from accessgate.services.entitlements import EntitlementStore
from accessgate.utils.emails import extract_email_from_payload, extract_event_name, normalize_email
from accessgate.utils.metrics import access_tokens_minted_total, webhook_events_total
from accessgate.utils.tokens import build_access_url, new_token

logger = logging.getLogger(__name__)


class WebhookService:
    def __init__(self, entitlements: EntitlementStore, access_tokens: AccessTokenStore) -> None:
        self.entitlements = entitlements
        self.access_tokens = access_tokens

    def verify_secret(self, incoming: str | None) -> None:
        expected = settings.webhook_secret
        if not expected or incoming is None:
            webhook_events_total.labels(outcome="unauthorized").inc()
            raise Unauthorized()
        if not secrets.compare_digest(incoming.encode("utf-8"), expected.encode("utf-8")):
            webhook_events_total.labels(outcome="unauthorized").inc()
            raise Unauthorized()

    def handle(self, incoming_secret: str | None, payload: Any) -> dict[str, Any]:
        """Authenticate, then dispatch on the event name. Returns the response body."""
        self.verify_secret(incoming_secret)
        return self.process(payload)

    def process(self, payload: Any) -> dict[str, Any]:
        """Dispatch an already authenticated payload."""
        event = extract_event_name(payload)
        event_key = (event or "").strip().lower()

        if event_key == settings.webhook_purchase_event.lower():
            return self._purchase_approved(payload, event_key)
        if event_key and event_key in settings.webhook_revoke_events_set:
            return self._revoke(payload, event_key)

        webhook_events_total.labels(outcome="ignored").inc()
        logger.info("webhook_event_ignored", extra={"event": event})
        return {"ok": True, "ignored": True, "event": event}

    def _purchase_approved(self, payload: Any, event: str) -> dict[str, Any]:
        email = normalize_email(extract_email_from_payload(payload))
        if not email:
            webhook_events_total.labels(outcome="missing_email").inc()
            logger.warning("webhook_purchase_missing_email", extra={"event": event, "payload": payload})
            return {"ok": True, "warning": "missing_email"}

        self.entitlements.set_active(
            email,
            source=EntitlementSource.WEBHOOK,
            meta={"event": settings.webhook_purchase_event},
        )
        token = new_token()
        self.access_tokens.create(token, email)
        access_tokens_minted_total.labels(source=EntitlementSource.WEBHOOK.value).inc()
        webhook_events_total.labels(outcome="purchase").inc()

        access_url = build_access_url(token)
        logger.info(
            "webhook_purchase_approved",
            extra={"email": email, "token_prefix": token_prefix(token)},
        )
        return {"ok": True, "access_url": access_url}

    def _revoke(self, payload: Any, event: str) -> dict[str, Any]:
        email = normalize_email(extract_email_from_payload(payload))
        if not email:
            webhook_events_total.labels(outcome="missing_email").inc()
            logger.warning("webhook_revoke_missing_email", extra={"event": event, "payload": payload})
            return {"ok": True, "warning": "missing_email"}

        self.entitlements.revoke(email, source=EntitlementSource.WEBHOOK, meta={"event": event})
        webhook_events_total.labels(outcome="revoke").inc()
        return {"ok": True, "revoked": True}
