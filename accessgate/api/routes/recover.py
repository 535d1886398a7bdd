"""
Magic-link recovery endpoints.

POST /access/recover always answers with the same message (anti-enumeration).
The recovery e-mail is sent as a background task after the response.
GET /access/recover/{token} redirects to the landing page with a status marker
or, on success, to the protected content with a fresh session cookie.
"""
import asyncio

import redis
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from accessgate.api.deps import get_redis, get_recovery_service
from accessgate.api.session_cookie import set_session_cookie
from accessgate.core.config import settings
from accessgate.schemas.api import RecoverResponse
from accessgate.services.rate_limit import check_recover_rate_limit, get_client_ip
from accessgate.services.recovery.service import GENERIC_RECOVER_MESSAGE, RecoveryService, RedeemStatus
from accessgate.utils.metrics import recover_requests_total

router = APIRouter(prefix="/access/recover", tags=["recover"])


async def _read_email(request: Request) -> object:
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith("application/json"):
            body = await request.json()
            return body.get("email") if isinstance(body, dict) else None
        form = await request.form()
        return form.get("email")
    except ValueError:
        return None


@router.post("", response_model=RecoverResponse)
async def recover_request(
    request: Request,
    background_tasks: BackgroundTasks,
    client: redis.Redis = Depends(get_redis),
    service: RecoveryService = Depends(get_recovery_service),
):
    allowed = await asyncio.to_thread(check_recover_rate_limit, client, get_client_ip(request))
    if not allowed:
        recover_requests_total.labels(outcome="rate_limited").inc()
        return JSONResponse(
            status_code=429,
            content={"ok": False, "error": "Too many requests. Try again later."},
        )
    email = await _read_email(request)
    delivery = await asyncio.to_thread(service.prepare, email)
    if delivery is not None:
        background_tasks.add_task(service.deliver, delivery)
    return RecoverResponse(message=GENERIC_RECOVER_MESSAGE)


@router.get("/{token}")
def recover_redeem(token: str, service: RecoveryService = Depends(get_recovery_service)):
    outcome = service.redeem(token)
    if outcome.status is RedeemStatus.OK:
        response = RedirectResponse("/content", status_code=302)
        set_session_cookie(response, outcome.session_id)
        return response
    return RedirectResponse(
        f"{settings.app_public_base_url}/recover?status={outcome.status.value}",
        status_code=302,
    )
