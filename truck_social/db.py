"""Async database engine, session factory and request-scoped session dependency."""
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from truck_social.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool options per backend; SQLite (tests, local dev) has no server to ping."""
    options: Dict[str, Any] = {"echo": settings.app_env == "local", "future": True}
    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
    return options


# Same URL as Alembic (postgresql+asyncpg://...)
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for all models."""

    pass


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.
    Naive values are treated as UTC (SQLite returns naive timestamps).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an async session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
