"""
Integration Test Fixtures

Provides fixtures for integration tests that exercise the real SQLAlchemy
models, repository and FastAPI app.

The durable store is an in-memory SQLite database (aiosqlite) created fresh
for every test, so no external services are needed. The async_test_client
fixture overrides get_db, the clock and the active-session store, so the
process-wide engine and the user's home directory are never touched.
"""

from pathlib import Path
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from studytrack.db.base import Base
from studytrack.services.study.repository import StudyRepository

pytestmark = pytest.mark.integration

TEST_USER_ID = "user-test"
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a database session on a fresh in-memory schema.

    StaticPool keeps a single connection so every session in the test sees
    the same in-memory database.
    """
    test_engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    test_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with test_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()

    await test_engine.dispose()


@pytest.fixture
def repository(db_session: AsyncSession) -> StudyRepository:
    """Repository scoped to the test user."""
    return StudyRepository(db_session, TEST_USER_ID)


@pytest.fixture
def other_repository(db_session: AsyncSession) -> StudyRepository:
    """Repository scoped to a second user, for isolation checks."""
    return StudyRepository(db_session, "user-other")


@pytest_asyncio.fixture
async def async_test_client(
    db_session: AsyncSession, clock, tmp_path: Path
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Create an async HTTP client wired to the test database.

    Overrides:
    - get_db: the per-test SQLite session
    - get_clock: the pinned FakeClock (advance it to move time)
    - get_active_store: a file store under tmp_path

    Note: As of httpx 0.28+, ASGITransport must be used instead of passing
    `app` directly to AsyncClient.
    """
    # Import here so the app is built after the test environment is set
    from studytrack.db.base import get_db
    from studytrack.db.local_store import FileActiveSessionStore
    from studytrack.dependencies import get_active_store, get_clock, get_user_id
    from studytrack.main import app

    async def get_test_db():
        """Yield the test database session instead of production."""
        yield db_session

    async def get_test_store(user_id: str = Depends(get_user_id)):
        return FileActiveSessionStore(user_id, directory=tmp_path / "active")

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_active_store] = get_test_store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": TEST_USER_ID},
    ) as client:
        yield client

    app.dependency_overrides.clear()

