"""
E-mail helpers shared by every entry point.
Keys and comparisons always use the normalized form.
"""
from typing import Any


def normalize_email(email: Any) -> str:
    """Trim and lower-case; anything that is not a string becomes ''."""
    if not isinstance(email, str):
        return ""
    return email.strip().lower()


def looks_like_email(email: str) -> bool:
    return bool(email) and "@" in email


# Upstream payloads differ between providers and event versions
_EMAIL_PATHS = (
    ("customer", "email"),
    ("buyer", "email"),
    ("data", "customer", "email"),
    ("data", "buyer", "email"),
    ("data", "email"),
    ("email",),
)

# Provider payloads use different keys for the event name (Portuguese "nome_evento" included)
_EVENT_FIELDS = ("event", "type", "nome_evento", "event_name", "action")


def _dig(payload: Any, path: tuple[str, ...]) -> Any:
    node = payload
    for part in path:
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def extract_email_from_payload(payload: Any) -> str | None:
    """First candidate field holding a string with '@', or None."""
    for path in _EMAIL_PATHS:
        candidate = _dig(payload, path)
        if isinstance(candidate, str) and "@" in candidate:
            return candidate
    return None


def extract_event_name(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for field in _EVENT_FIELDS:
        value = payload.get(field)
        if value:
            return str(value)
    return None
