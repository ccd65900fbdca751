"""
Rate limit middleware: Redis sliding window keyed by X-Truck-ID or X-API-Key.
Default 60 req/min per truck. Without REDIS_URL it is a no-op; a Redis outage lets requests through.
"""
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from truck_social.config import get_settings
from truck_social.logging_config import get_logger

logger = get_logger(__name__)

REDIS_KEY_PREFIX = "rl:"
WINDOW_SECONDS = 60


def rate_limit_key(request: Request) -> Optional[str]:
    """Bucket for the request: truck id, else a truncated api key, else None (not limited)."""
    truck = request.headers.get("X-Truck-ID", "").strip()
    if truck:
        return f"truck:{truck}"
    api_key = request.headers.get("X-API-Key", "").strip()
    if api_key:
        return f"key:{api_key[:32]}"
    return None


async def check_sliding_window(client: Redis, key: str, limit: int, now: Optional[float] = None) -> bool:
    """
    ZADD now, drop entries older than the window, ZCARD.
    True when the request is within limit.
    """
    now = time.time() if now is None else now
    rkey = REDIS_KEY_PREFIX + key
    pipe = client.pipeline()
    pipe.zadd(rkey, {str(uuid.uuid4()): now})
    pipe.zremrangebyscore(rkey, "-inf", now - WINDOW_SECONDS)
    pipe.zcard(rkey)
    pipe.expire(rkey, WINDOW_SECONDS + 10)
    results = await pipe.execute()
    count = results[2] if len(results) > 2 else 0
    return count <= limit


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-truck (or per api key) request limit over a 60s sliding window."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        if not settings.redis_url:
            return await call_next(request)
        key = rate_limit_key(request)
        if not key:
            return await call_next(request)
        limit = settings.rate_limit_per_min
        client = Redis.from_url(settings.redis_url, decode_responses=True)
        try:
            allowed = await check_sliding_window(client, key, limit)
        except (RedisError, OSError) as e:
            logger.warning("rate_limit.redis_error", key=key, error=str(e))
            allowed = True
        finally:
            await client.aclose()
        if not allowed:
            logger.info("rate_limit.exceeded", key=key, limit=limit)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded (per truck/key).", "code": "rate_limited"},
            )
        return await call_next(request)
