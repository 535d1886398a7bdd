"""
Admin entitlement management (bearer token). Used to reconcile purchases made
before the webhook was wired or missed by it.
"""
import logging

from fastapi import APIRouter, Depends

from accessgate.api.deps import (
    get_access_token_store,
    get_entitlement_store,
    require_admin,
)
from accessgate.core.errors import Malformed, NotFound
from accessgate.schemas.api import EntitlementOut, EntitlementRevokeRequest, EntitlementSeedRequest
from accessgate.schemas.records import Entitlement, EntitlementSource
from accessgate.services.access_tokens import AccessTokenStore
from accessgate.services.entitlements import EntitlementStore
from accessgate.utils.emails import looks_like_email, normalize_email
from accessgate.utils.metrics import access_tokens_minted_total
from accessgate.utils.tokens import build_access_url, new_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _out(email: str, record: Entitlement, access_url: str | None = None) -> EntitlementOut:
    return EntitlementOut(
        email=email,
        active=record.active,
        source=record.source.value,
        updated_at=record.updated_at.isoformat(),
        meta=record.meta,
        access_url=access_url,
    )


def _valid_email(raw: str) -> str:
    email = normalize_email(raw)
    if not looks_like_email(email):
        raise Malformed("Invalid e-mail")
    return email


@router.post("/entitlements", response_model=EntitlementOut)
def seed_entitlement(
    payload: EntitlementSeedRequest,
    entitlements: EntitlementStore = Depends(get_entitlement_store),
    access_tokens: AccessTokenStore = Depends(get_access_token_store),
):
    email = _valid_email(payload.email)
    meta = {"note": payload.note} if payload.note else {}
    entitlements.set_active(email, source=EntitlementSource.ADMIN_SEED, meta=meta)

    access_url = None
    if payload.issue_access_link:
        token = new_token()
        access_tokens.create(token, email)
        access_tokens_minted_total.labels(source=EntitlementSource.ADMIN_SEED.value).inc()
        access_url = build_access_url(token)

    return _out(email, entitlements.get(email), access_url)


@router.post("/entitlements/revoke", response_model=EntitlementOut)
def revoke_entitlement(
    payload: EntitlementRevokeRequest,
    entitlements: EntitlementStore = Depends(get_entitlement_store),
):
    email = _valid_email(payload.email)
    meta = {"note": payload.note} if payload.note else {}
    entitlements.revoke(email, source=EntitlementSource.ADMIN_SEED, meta=meta)
    return _out(email, entitlements.get(email))


@router.get("/entitlements/{email}", response_model=EntitlementOut)
def get_entitlement(email: str, entitlements: EntitlementStore = Depends(get_entitlement_store)):
    email = normalize_email(email)
    record = entitlements.get(email)
    if record is None:
        raise NotFound("No entitlement for this e-mail")
    return _out(email, record)
