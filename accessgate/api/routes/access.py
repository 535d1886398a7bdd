"""
Access link pages: confirm the purchase e-mail, then trade the link for a session.
These endpoints may tell invalid, expired and used links apart: the token is
the secret here, not the e-mail.
"""
import html

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from accessgate.api.deps import get_access_service
from accessgate.api.session_cookie import set_session_cookie
from accessgate.core.errors import AccessGateError
from accessgate.services.access.service import AccessService

router = APIRouter(prefix="/access", tags=["access"])

CONFIRM_PAGE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>Access</title>
</head>
<body>
  <h2>Confirm your e-mail</h2>
  <p>Enter the e-mail used for the purchase to unlock access.</p>
  <form method="POST" action="/access/{token}">
    <input type="email" name="email" placeholder="you@example.com" required />
    <button type="submit">Unlock access</button>
  </form>
</body>
</html>"""


@router.get("/{token}", response_class=HTMLResponse)
def access_page(token: str, service: AccessService = Depends(get_access_service)):
    try:
        service.inspect(token)
    except AccessGateError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    return HTMLResponse(CONFIRM_PAGE.format(token=html.escape(token, quote=True)))


@router.post("/{token}")
def access_exchange(
    token: str,
    email: str = Form(""),
    service: AccessService = Depends(get_access_service),
):
    try:
        session_id, _ = service.exchange(token, email)
    except AccessGateError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    response = RedirectResponse("/content", status_code=303)
    set_session_cookie(response, session_id)
    return response
