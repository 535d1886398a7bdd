"""
Recovery e-mail delivery through the Resend HTTP API (httpx sync client).

Best effort: send_recover_email never raises. Failures are logged and reported
in the returned MailOutcome so the recovery flow can keep its generic answer.
Without RESEND_API_KEY the link is logged instead (dev mode). A Redis outage
that takes the breaker state down is reported as breaker_unavailable.
"""
import logging
import time
from dataclasses import dataclass

import httpx
import pybreaker
import redis

from accessgate.core.config import settings
from accessgate.services.circuit_breaker import get_circuit_breaker
from accessgate.utils.emails import normalize_email
from accessgate.utils.metrics import email_request_duration_seconds, email_requests_total

logger = logging.getLogger(__name__)

RECOVER_SUBJECT = "Your access link"

RECOVER_TEXT = """Here is your access link (valid for a few minutes):
{link}

If you did not request this, you can ignore this e-mail."""

RECOVER_HTML = """
<div style="font-family:Arial,sans-serif;line-height:1.4">
  <h2>Access link</h2>
  <p>Use the button below to sign in. This link expires in a few minutes.</p>
  <p>
    <a href="{link}" style="display:inline-block;background:#111;color:#fff;padding:12px 16px;border-radius:10px;text-decoration:none">
      Open content
    </a>
  </p>
  <p style="color:#666;font-size:12px">If you did not request this, you can ignore this e-mail.</p>
</div>""".strip()


@dataclass
class MailOutcome:
    ok: bool
    dev: bool = False
    message_id: str | None = None
    status_code: int | None = None
    error: str | None = None


class MailDeliveryError(Exception):
    def __init__(self, status_code: int, body: object) -> None:
        super().__init__(f"{status_code}: {body}")
        self.status_code = status_code
        self.body = body


class ResendMailer:
    def __init__(
        self,
        api_key: str | None = None,
        breaker: pybreaker.CircuitBreaker | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = settings.resend_api_key if api_key is None else api_key
        self._url = settings.resend_api_url
        self._breaker = breaker
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Lazy initialization of httpx client."""
        if self._client is None:
            self._client = httpx.Client(timeout=settings.mail_timeout, transport=self._transport)
        return self._client

    @property
    def breaker(self) -> pybreaker.CircuitBreaker:
        if self._breaker is None:
            self._breaker = get_circuit_breaker("email")
        return self._breaker

    def _post(self, payload: dict) -> dict:
        resp = self.client.post(
            self._url,
            json=payload,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code >= 400:
            raise MailDeliveryError(resp.status_code, data)
        return data

    def send_recover_email(self, to: str, link: str) -> MailOutcome:
        to = normalize_email(to)
        if not self._api_key:
            logger.info("recover_email_dev", extra={"email": to, "payload": {"link": link}})
            email_requests_total.labels(status="dev").inc()
            return MailOutcome(ok=True, dev=True)

        payload = {
            "from": settings.mail_from,
            "to": [to],
            "subject": RECOVER_SUBJECT,
            "text": RECOVER_TEXT.format(link=link),
            "html": RECOVER_HTML.format(link=link),
        }
        if settings.mail_reply_to:
            payload["reply_to"] = settings.mail_reply_to

        start = time.time()
        try:
            data = self.breaker.call(self._post, payload)
        except pybreaker.CircuitBreakerError:
            email_requests_total.labels(status="circuit_open").inc()
            logger.warning("recover_email_circuit_open", extra={"email": to})
            return MailOutcome(ok=False, error="circuit_open")
        except redis.RedisError as e:
            # Breaker state lives in Redis
            email_requests_total.labels(status="breaker_unavailable").inc()
            logger.error("recover_email_breaker_unavailable", extra={"email": to, "error": str(e)})
            return MailOutcome(ok=False, error="breaker_unavailable")
        except MailDeliveryError as e:
            email_requests_total.labels(status="error").inc()
            logger.error(
                "recover_email_failed",
                extra={"email": to, "status_code": e.status_code, "error": str(e.body)},
            )
            return MailOutcome(ok=False, status_code=e.status_code, error="rejected")
        except httpx.HTTPError as e:
            email_requests_total.labels(status="error").inc()
            logger.error("recover_email_error", extra={"email": to, "error": str(e)})
            return MailOutcome(ok=False, error=type(e).__name__)
        finally:
            email_request_duration_seconds.observe(time.time() - start)

        email_requests_total.labels(status="success").inc()
        return MailOutcome(ok=True, message_id=data.get("id"))
