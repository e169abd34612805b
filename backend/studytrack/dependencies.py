"""
FastAPI Dependencies

Common dependencies for user identity, the durable store, the active-session
slot and the session timer.

Authentication is handled upstream; requests carry the resolved user id in
the X-User-Id header.
"""

from datetime import date
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from studytrack.db.base import get_db
from studytrack.db.local_store import ActiveSessionStore, get_active_session_store
from studytrack.middleware.error_handling import AuthorizationError
from studytrack.services.study.clock import Clock, system_clock
from studytrack.services.study.periods import to_local_datetime
from studytrack.services.study.repository import StudyRepository
from studytrack.services.study.session_timer import SessionTimer


async def get_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """
    Resolve the calling user.

    Raises:
        AuthorizationError: 401 if the header is missing or blank.
    """
    if not x_user_id or not x_user_id.strip():
        raise AuthorizationError("Missing user identity. Provide X-User-Id header.")
    return x_user_id.strip()


def get_clock() -> Clock:
    """Wall clock used by timers and date calculations."""
    return system_clock


def get_today(clock: Clock = Depends(get_clock)) -> date:
    """Local calendar date of the clock's current instant."""
    return to_local_datetime(clock.now_ms()).date()


async def get_repository(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_user_id),
) -> StudyRepository:
    """Get the durable store scoped to the caller."""
    return StudyRepository(db, user_id)


async def get_active_store(
    user_id: str = Depends(get_user_id),
) -> ActiveSessionStore:
    """Get the caller's active-session slot."""
    return get_active_session_store(user_id)


async def get_session_timer(
    store: ActiveSessionStore = Depends(get_active_store),
    repository: StudyRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> SessionTimer:
    """Get a session timer bound to the caller's slot and store."""
    return SessionTimer(store, repository, clock=clock)
