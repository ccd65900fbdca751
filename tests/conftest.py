"""
Shared fixtures: per-test in-memory SQLite (aiosqlite) with the schema created from metadata,
and an httpx client against the app with get_db bound to that database.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["APP_ENV"] = "test"
os.environ.pop("REDIS_URL", None)

from datetime import datetime, timezone  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from truck_social.db import Base, get_db  # noqa: E402
from truck_social.main import app  # noqa: E402
from truck_social.services import campaign_service, post_service  # noqa: E402

TRUCK_ID = "truck-1"
OWNER_ID = "owner-1"


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def make_campaign(db):
    """Insert a campaign; keyword overrides replace the defaults."""

    async def _make(**overrides):
        fields = {
            "truck_id": TRUCK_ID,
            "owner_id": OWNER_ID,
            "name": "Summer Tacos",
            "type": "promotion",
            "start_date": utc(2024, 6, 1),
            "end_date": utc(2024, 6, 11),
        }
        fields.update(overrides)
        return await campaign_service.create_campaign(db, fields)

    return _make


@pytest_asyncio.fixture
async def make_post(db):
    """Insert a post targeting instagram + facebook unless overridden."""

    async def _make(**overrides):
        fields = {
            "truck_id": TRUCK_ID,
            "owner_id": OWNER_ID,
            "text": "Fresh birria tacos today!",
            "platforms": ["instagram", "facebook"],
        }
        fields.update(overrides)
        return await post_service.create_post(db, fields)

    return _make
