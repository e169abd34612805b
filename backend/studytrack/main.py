"""
Study Tracker API

FastAPI application exposing the session timer, derived statistics, subjects
and planner.

Run:
    uvicorn studytrack.main:app --app-dir backend --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studytrack import __version__
from studytrack.config import settings
from studytrack.db.base import init_db
from studytrack.enums.study import ActiveSessionBackend
from studytrack.middleware import setup_error_handling, setup_rate_limiting
from studytrack.routers import (
    health_router,
    planner_router,
    sessions_router,
    stats_router,
    subjects_router,
)

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    # Reduce noise from the SQL engine (unless DEBUG)
    if not debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and release the Redis pool on shutdown."""
    logger.info(f"Starting {settings.APP_NAME} v{__version__}")
    await init_db()
    yield
    if settings.ACTIVE_SESSION_BACKEND == ActiveSessionBackend.REDIS:
        from studytrack.db.redis import close_redis_pool

        await close_redis_pool()
    logger.info(f"{settings.APP_NAME} stopped")


def create_app() -> FastAPI:
    """
    Build the FastAPI application.

    Middleware order matters: CORS is added last so it wraps error responses
    too.
    """
    setup_logging(settings.DEBUG)

    app = FastAPI(title=settings.APP_NAME, version=__version__, lifespan=lifespan)

    setup_error_handling(app, debug=settings.DEBUG)
    setup_rate_limiting(app, enabled=settings.RATE_LIMIT_ENABLED)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router.router)
    app.include_router(sessions_router.router)
    app.include_router(stats_router.router)
    app.include_router(subjects_router.router)
    app.include_router(planner_router.router)

    return app


app = create_app()
