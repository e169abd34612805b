"""
Health Check Endpoints

Provides health check endpoints for monitoring and orchestration.

Endpoints:
- GET /api/health - Basic health check
- GET /api/health/detailed - Detailed health with dependency checks
"""

from pathlib import Path

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from studytrack import __version__
from studytrack.config import settings
from studytrack.db.base import get_db
from studytrack.enums.study import ActiveSessionBackend

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns a simple status response indicating the API is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__,
    }


@router.get("/detailed")
async def detailed_health_check(db: AsyncSession = Depends(get_db)):
    """
    Detailed health check with dependency status.

    Checks connectivity to:
    - The durable store
    - The active-session backend (Redis or the local directory)
    """
    health = {"status": "healthy", "service": settings.APP_NAME, "dependencies": {}}

    # Check durable store
    try:
        await db.execute(text("SELECT 1"))
        health["dependencies"]["database"] = {"status": "healthy"}
    except Exception as e:
        health["dependencies"]["database"] = {"status": "unhealthy", "error": str(e)}
        health["status"] = "degraded"

    # Check active-session backend
    if settings.ACTIVE_SESSION_BACKEND == ActiveSessionBackend.REDIS:
        from studytrack.db.redis import get_redis

        try:
            client = await get_redis()
            await client.ping()
            health["dependencies"]["redis"] = {"status": "healthy"}
        except Exception as e:
            health["dependencies"]["redis"] = {"status": "unhealthy", "error": str(e)}
            health["status"] = "degraded"
    else:
        directory = Path(settings.ACTIVE_SESSION_DIR).expanduser()
        if directory.exists() and not directory.is_dir():
            health["dependencies"]["active_session_dir"] = {
                "status": "unhealthy",
                "error": f"{directory} is not a directory",
            }
            health["status"] = "degraded"
        else:
            health["dependencies"]["active_session_dir"] = {
                "status": "healthy",
                "path": str(directory),
            }

    return health
