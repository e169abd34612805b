"""API Routers package."""

from studytrack.routers import health as health_router
from studytrack.routers import planner as planner_router
from studytrack.routers import sessions as sessions_router
from studytrack.routers import stats as stats_router
from studytrack.routers import subjects as subjects_router

__all__ = ["health_router", "planner_router", "sessions_router", "stats_router", "subjects_router"]
