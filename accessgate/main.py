"""
Main FastAPI application for access-gate.
Serves purchase webhook, access and recovery links, protected content, admin and metrics.
"""
import logging

import redis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from accessgate.api.routes import access, admin, content, health, recover, webhook
from accessgate.core.config import settings
from accessgate.core.errors import AccessGateError, UpstreamFailure
from accessgate.core.logging import configure_logging
from accessgate.utils.metrics import router as metrics_router

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Access Gate API",
    description="Purchase-gated access links, recovery links and sessions",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccessGateError)
async def access_gate_error_handler(request: Request, exc: AccessGateError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.code, "detail": exc.message},
    )


@app.exception_handler(redis.RedisError)
async def store_error_handler(request: Request, exc: redis.RedisError) -> JSONResponse:
    logger.error("store_unavailable", extra={"path": request.url.path, "error": str(exc)})
    return await access_gate_error_handler(request, UpstreamFailure("Service temporarily unavailable"))


# Routers (recover before access: /access/recover must not match /access/{token})
app.include_router(health.router, tags=["health"])
app.include_router(webhook.router)
app.include_router(recover.router)
app.include_router(access.router)
app.include_router(content.router)
app.include_router(admin.router)
app.include_router(metrics_router)
