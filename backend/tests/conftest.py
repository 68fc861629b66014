"""
Shared test fixtures.

Every test gets its own in-memory SQLite database behind the
document store, so writes never leak between tests.
"""

from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from routedrafts.db.session import get_async_db
from routedrafts.features.media.client import MediaRef
from routedrafts.main import app
from routedrafts.models.base import Base
from routedrafts.store import SQLDocumentStore
from routedrafts.store import models  # noqa: F401


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session on a fresh in-memory database with the documents table."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def store(db_session: AsyncSession) -> SQLDocumentStore:
    return SQLDocumentStore(db_session)


@pytest.fixture
def media_client() -> AsyncMock:
    """
    Media client whose uploads always succeed.

    upload() returns media/<filename>; upload_remote() returns a thumbnail ref.
    """
    client = AsyncMock()
    client.configured = True

    async def upload(asset, folder=None):
        return MediaRef(public_ref=f"media/{asset.filename}", url=f"https://cdn.test/{asset.filename}")

    client.upload.side_effect = upload
    client.upload_remote.return_value = MediaRef(
        public_ref="thumbs/route", url="https://cdn.test/thumbs/route.png"
    )
    return client


@pytest.fixture
async def api_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, bound to the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_async_db] = override_get_db

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
