"""
FastAPI dependencies: store/service wiring, the session guard and the admin guard.
"""
import logging
import secrets
from functools import lru_cache

import redis
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from accessgate.api.session_cookie import decode_session_cookie
from accessgate.core.config import settings
from accessgate.core.errors import Unauthorized
from accessgate.core.logging import token_prefix
from accessgate.services.access.service import AccessService
from accessgate.services.access_tokens import AccessTokenStore
from accessgate.services.entitlements import EntitlementStore
from accessgate.services.mailer.client import ResendMailer
from accessgate.services.recover_tokens import RecoverTokenStore
from accessgate.services.recovery.service import RecoveryService
from accessgate.services.sessions import SessionStore
from accessgate.services.webhook.service import WebhookService
from accessgate.storage.signed_urls import S3SignedUrlIssuer, SignedUrlIssuer
from accessgate.utils.metrics import sessions_rejected_total

logger = logging.getLogger(__name__)


@lru_cache
def get_redis() -> redis.Redis:
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)


def get_entitlement_store(client: redis.Redis = Depends(get_redis)) -> EntitlementStore:
    return EntitlementStore(client)


def get_access_token_store(client: redis.Redis = Depends(get_redis)) -> AccessTokenStore:
    return AccessTokenStore(client)


def get_recover_token_store(client: redis.Redis = Depends(get_redis)) -> RecoverTokenStore:
    return RecoverTokenStore(client)


def get_session_store(client: redis.Redis = Depends(get_redis)) -> SessionStore:
    return SessionStore(client)


@lru_cache
def get_mailer() -> ResendMailer:
    return ResendMailer()


@lru_cache
def get_signed_url_issuer() -> SignedUrlIssuer:
    return S3SignedUrlIssuer()


def get_webhook_service(
    entitlements: EntitlementStore = Depends(get_entitlement_store),
    access_tokens: AccessTokenStore = Depends(get_access_token_store),
) -> WebhookService:
    return WebhookService(entitlements, access_tokens)


def get_access_service(
    access_tokens: AccessTokenStore = Depends(get_access_token_store),
    sessions: SessionStore = Depends(get_session_store),
) -> AccessService:
    return AccessService(access_tokens, sessions)


def get_recovery_service(
    entitlements: EntitlementStore = Depends(get_entitlement_store),
    recover_tokens: RecoverTokenStore = Depends(get_recover_token_store),
    sessions: SessionStore = Depends(get_session_store),
    mailer: ResendMailer = Depends(get_mailer),
) -> RecoveryService:
    return RecoveryService(entitlements, recover_tokens, sessions, mailer)


class SessionContext(BaseModel):
    session_id: str
    email: str


def require_session(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
    entitlements: EntitlementStore = Depends(get_entitlement_store),
) -> SessionContext:
    """
    Guard for protected endpoints. Missing cookie, bad signature and unknown or
    expired session all fail the same way.
    """
    raw_cookie = request.cookies.get(settings.session_cookie_name)
    if not raw_cookie:
        sessions_rejected_total.labels(reason="missing").inc()
        raise Unauthorized("unauthenticated")

    session_id = decode_session_cookie(raw_cookie)
    if not session_id:
        sessions_rejected_total.labels(reason="bad_signature").inc()
        raise Unauthorized("unauthenticated")

    session = sessions.get(session_id)
    if session is None:
        sessions_rejected_total.labels(reason="not_found").inc()
        raise Unauthorized("unauthenticated")

    if settings.revoked_session_policy == "enforce" and not entitlements.is_active(session.email):
        sessions.delete(session_id)
        sessions_rejected_total.labels(reason="revoked").inc()
        logger.info(
            "session_revoked_by_policy",
            extra={"email": session.email, "session_prefix": token_prefix(session_id)},
        )
        raise Unauthorized("unauthenticated")

    return SessionContext(session_id=session_id, email=session.email)


_bearer = HTTPBearer(auto_error=False)


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    """Bearer token guard for admin endpoints. No configured token = no access."""
    expected = settings.admin_api_token
    if not expected or credentials is None:
        raise Unauthorized()
    if not secrets.compare_digest(credentials.credentials.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("admin_token_rejected")
        raise Unauthorized()
