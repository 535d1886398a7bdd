import secrets

from accessgate.core.config import settings


def new_token() -> str:
    """Unguessable URL-safe token (256 bits)."""
    return secrets.token_urlsafe(32)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def build_access_url(token: str) -> str:
    return f"{settings.api_public_base_url}/access/{token}"


def build_recover_link(token: str) -> str:
    return f"{settings.api_public_base_url}/access/recover/{token}"
