import sys
import os
from pathlib import Path

# Ensure project root is on sys.path so `import guestbook` works
ROOT = str(Path(__file__).resolve().parents[2])
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import pytest
import pytest_asyncio
from unittest.mock import patch
from datetime import datetime, timedelta, timezone
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool, NullPool
from sqlalchemy import text
from httpx import AsyncClient, ASGITransport
from guestbook.core.database import Base, get_db
from guestbook.core.config import settings
from guestbook.core.enums import MediaBundle
from guestbook.app.main import app
from guestbook.models import GuestbookEntry, MediaFile


# 1. Test DB URL
#  - TEST_DATABASE_URL (postgres) runs against an isolated schema
#  - otherwise in-memory SQLite
RAW_DB_URL = os.getenv("TEST_DATABASE_URL")

is_postgres = False

if RAW_DB_URL:
    url = RAW_DB_URL
    if url.startswith("postgresql://") or url.startswith("postgres://"):
        is_postgres = True
        url = url.replace("postgres://", "postgresql://")
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        # Container hostname -> localhost when running tests from the host
        url = url.replace("@postgres:", "@localhost:")
    SQLALCHEMY_DATABASE_URL = url
else:
    SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

if SQLALCHEMY_DATABASE_URL.startswith("sqlite+aiosqlite"):
    engine = create_async_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
else:
    engine = create_async_engine(
        SQLALCHEMY_DATABASE_URL,
        poolclass=NullPool,
        connect_args={
            "server_settings": {"search_path": "test_schema"}
        } if is_postgres else {}
    )

TestingSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False
)

VALID_FIELDS = {
    "name": "Matthew",
    "email": "matthew@example.com",
    "phone": "9123456789",
    "message": "Lovely place, will come back.",
    "review": "Five stars for the coffee.",
}

# 2. DB Fixture (Async)
@pytest_asyncio.fixture(scope="function")
async def db_session():
    async with engine.begin() as conn:
        if is_postgres:
            await conn.execute(text("CREATE SCHEMA IF NOT EXISTS test_schema"))
            await conn.execute(text("SET search_path TO test_schema"))
        await conn.run_sync(Base.metadata.create_all)

    async with TestingSessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        if is_postgres:
            await conn.execute(text("DROP SCHEMA IF EXISTS test_schema CASCADE"))
        else:
            await conn.run_sync(Base.metadata.drop_all)

@pytest.fixture(scope="function")
def valid_fields():
    return dict(VALID_FIELDS)

@pytest.fixture(autouse=True)
def media_root(tmp_path):
    """Uploaded files land in a per-test directory."""
    root = tmp_path / "media"
    with patch.object(settings, "MEDIA_ROOT", str(root)):
        yield root

@pytest.fixture(autouse=True)
def ntfy_disabled():
    with patch.object(settings, "NTFY_ENABLED", False):
        yield

# 3. Test data fixtures
@pytest_asyncio.fixture(scope="function")
async def seed_entries(db_session: AsyncSession):
    """
    Factory that inserts `count` entries with strictly increasing created_at.
    Returns the ids in insertion order (oldest first).
    """
    async def _seed(count: int):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entries = []
        for i in range(count):
            entry = GuestbookEntry(
                name=f"Visitor {i}",
                email=f"visitor{i}@example.com",
                phone=f"7{i:09d}",
                message=f"Message {i}",
                review=f"Review {i}",
                created_at=base + timedelta(minutes=i),
            )
            db_session.add(entry)
            entries.append(entry)
        await db_session.commit()
        return [e.id for e in entries]
    return _seed

@pytest_asyncio.fixture(scope="function")
async def media_factory(db_session: AsyncSession):
    async def _create(bundle: MediaBundle = MediaBundle.AVATAR, filename: str = "me.jpg", size: int = 1024):
        media = MediaFile(
            bundle=bundle,
            filename=filename,
            content_type="image/jpeg",
            size=size,
            path=f"{bundle.value}/{filename}",
        )
        db_session.add(media)
        await db_session.commit()
        await db_session.refresh(media)
        return media
    return _create

# 4. Client Fixture (AsyncClient)
@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession):
    """
    httpx.AsyncClient against the ASGI app, sharing the test session
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
