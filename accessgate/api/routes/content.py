"""
Protected content. Every endpoint here sits behind the session guard.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from accessgate.api.deps import SessionContext, get_session_store, get_signed_url_issuer, require_session
from accessgate.api.session_cookie import clear_session_cookie, decode_session_cookie
from accessgate.core.config import settings
from accessgate.core.errors import NotFound
from accessgate.schemas.api import ContentOut
from accessgate.services.sessions import SessionStore
from accessgate.storage.signed_urls import SignedUrlIssuer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["content"])


@router.get("/content", response_model=ContentOut)
def content(ctx: SessionContext = Depends(require_session)):
    return ContentOut(email=ctx.email, downloads=settings.content_object_keys_list)


@router.get("/download/{object_key:path}")
def download(
    object_key: str,
    ctx: SessionContext = Depends(require_session),
    issuer: SignedUrlIssuer = Depends(get_signed_url_issuer),
):
    if object_key not in settings.content_object_keys_list:
        raise NotFound("Unknown download")
    url = issuer.generate_signed_url(object_key, settings.signed_url_ttl_seconds)
    logger.info("download_signed", extra={"email": ctx.email, "path": object_key})
    return RedirectResponse(url, status_code=302)


@router.post("/logout")
def logout(request: Request, sessions: SessionStore = Depends(get_session_store)):
    session_id = decode_session_cookie(request.cookies.get(settings.session_cookie_name))
    if session_id:
        sessions.delete(session_id)
    response = RedirectResponse(settings.app_public_base_url, status_code=303)
    clear_session_cookie(response)
    return response
