"""
Session cookie handling. The cookie holds the session id signed with
itsdangerous, so a forged or truncated value is rejected before any store
lookup. Session ids never travel in URLs.
"""
from fastapi import Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from accessgate.core.config import settings
from accessgate.utils.ttl import ttl_seconds

_serializer = URLSafeTimedSerializer(settings.session_secret, salt="session-cookie")


def encode_session_cookie(session_id: str) -> str:
    return _serializer.dumps(session_id)


def decode_session_cookie(value: str | None) -> str | None:
    """Session id from a cookie value, or None if missing or tampered with."""
    if not value:
        return None
    try:
        session_id = _serializer.loads(value, max_age=ttl_seconds(settings.session_ttl_ms))
    except (BadSignature, SignatureExpired):
        return None
    return session_id if isinstance(session_id, str) else None


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=encode_session_cookie(session_id),
        max_age=ttl_seconds(settings.session_ttl_ms),
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, path="/")
