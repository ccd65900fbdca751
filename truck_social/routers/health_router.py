# Health: /health (load balancer), /api/healthz (liveness), /api/readyz (readiness: DB + Redis when configured).
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from truck_social.config import get_settings
from truck_social.db import get_db
from truck_social.logging_config import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health")
def health() -> dict[str, str]:
    """Load balancer / Docker probe, no DB round-trip."""
    return {"status": "ok"}


@router.get("/api/healthz")
def healthz() -> dict[str, str]:
    """Liveness: process is up. Always 200."""
    return {"status": "ok"}


@router.get("/api/readyz")
async def readyz(db: AsyncSession = Depends(get_db)):
    """Readiness: DB and Redis (if configured) reachable. 200 OK, 503 otherwise."""
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("readyz.db_fail", error=str(e))
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "db": "fail"},
        )

    settings = get_settings()
    redis_state = "skipped"
    if settings.redis_url:
        client = Redis.from_url(settings.redis_url, decode_responses=True)
        try:
            await client.ping()
            redis_state = "ok"
        except (RedisError, OSError) as e:
            logger.warning("readyz.redis_fail", error=str(e))
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "redis": "fail"},
            )
        finally:
            await client.aclose()

    return {"status": "ok", "db": "ok", "redis": redis_state}
