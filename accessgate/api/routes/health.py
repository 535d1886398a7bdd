from fastapi import APIRouter, Depends, Response
import redis

from accessgate.api.deps import get_redis


router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness probe - always returns 200 if app is running."""
    return {"status": "ok"}


@router.get("/ready")
def readiness(response: Response, client: redis.Redis = Depends(get_redis)) -> dict:
    """Readiness probe - returns 503 if Redis is unavailable."""
    try:
        client.ping()
        return {"status": "ready"}
    except redis.RedisError as e:
        response.status_code = 503
        return {"status": "not_ready", "error": str(e)}
