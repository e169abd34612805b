"""
Database Base Configuration

Sets up the async SQLAlchemy engine and session management for the durable
store (PostgreSQL in production, any async SQLAlchemy URL via DATABASE_URL).

Usage:
    from studytrack.db.base import async_session_maker, Base

    async with async_session_maker() as session:
        result = await session.execute(...)
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from studytrack.config import settings, yaml_config


def engine_options(url: str) -> dict[str, Any]:
    """
    Build create_async_engine keyword arguments for a URL.

    Pool sizing comes from the yaml config and only applies to server
    databases; SQLite manages its own pool.
    """
    options: dict[str, Any] = {"echo": settings.DEBUG}
    if url.startswith("sqlite"):
        return options

    db_config: dict[str, Any] = yaml_config.get("database", {})
    options.update(
        pool_size=db_config.get("pool_size", 5),
        max_overflow=db_config.get("max_overflow", 10),
        pool_timeout=db_config.get("pool_timeout", 30),
    )
    return options


engine = create_async_engine(
    settings.DATABASE_URL_RESOLVED,
    **engine_options(settings.DATABASE_URL_RESOLVED),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# Import models AFTER Base is defined so they register with Base.metadata.
from studytrack.db import models  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions in FastAPI routes.

    The repository commits explicitly; this only guarantees rollback on
    error and that the session is closed.

    Usage:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Initialize database tables.

    Called on application startup to create tables that don't exist.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
