"""
Purchase webhook endpoint. Authentication happens before the body is parsed.
"""
import asyncio

from fastapi import APIRouter, Depends, Request

from accessgate.api.deps import get_webhook_service
from accessgate.core.config import settings
from accessgate.core.errors import Malformed
from accessgate.schemas.api import WebhookResponse
from accessgate.services.webhook.service import WebhookService

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("/purchase", response_model=WebhookResponse, response_model_exclude_none=True)
async def purchase_webhook(
    request: Request,
    service: WebhookService = Depends(get_webhook_service),
):
    service.verify_secret(request.headers.get(settings.webhook_secret_header))
    try:
        payload = await request.json()
    except ValueError:
        raise Malformed("Body must be JSON")
    # Store writes are blocking redis-py calls; keep them off the event loop.
    return await asyncio.to_thread(service.process, payload)
