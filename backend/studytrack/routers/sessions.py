"""
Session Timer API Router

Endpoints driving the active study session.

Endpoints:
- GET /api/session - Current timer snapshot
- POST /api/session/start - Start a session for a subject
- POST /api/session/pause - Pause the running session
- POST /api/session/resume - Resume the paused session
- POST /api/session/stop - Ask for stop confirmation
- POST /api/session/stop/confirm - Finish and commit the session
- POST /api/session/sync - Retry committing a pending session
- POST /api/session/foreground - Resynchronize after backgrounding

Session transitions are rate limited with the SESSION limit.
"""

import logging

from fastapi import APIRouter, Depends, Request

from studytrack.dependencies import get_repository, get_session_timer
from studytrack.middleware.error_handling import NotFoundError, handle_endpoint_errors
from studytrack.middleware.rate_limit import limit_session
from studytrack.models.study import (
    ConfirmStopRequest,
    FinalizeOutcome,
    StartSessionRequest,
    StopPrompt,
    TimerSnapshot,
)
from studytrack.services.study.repository import StudyRepository
from studytrack.services.study.session_timer import SessionTimer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/session", tags=["session"])


@router.get("", response_model=TimerSnapshot)
@handle_endpoint_errors("Get session")
async def get_session(
    timer: SessionTimer = Depends(get_session_timer),
) -> TimerSnapshot:
    """Current state, active session and elapsed time."""
    return await timer.recover()


@router.post("/start", response_model=TimerSnapshot)
@limit_session
@handle_endpoint_errors("Start session")
async def start_session(
    request: Request,
    body: StartSessionRequest,
    timer: SessionTimer = Depends(get_session_timer),
    repository: StudyRepository = Depends(get_repository),
) -> TimerSnapshot:
    """
    Start a session.

    A running or paused session is replaced; a session waiting to sync
    blocks the start.
    """
    if body.subject_id and await repository.get_subject(body.subject_id) is None:
        raise NotFoundError(f"Subject {body.subject_id} not found")
    return await timer.start(body.subject_id)


@router.post("/pause", response_model=TimerSnapshot)
@limit_session
@handle_endpoint_errors("Pause session")
async def pause_session(
    request: Request,
    timer: SessionTimer = Depends(get_session_timer),
) -> TimerSnapshot:
    return await timer.pause()


@router.post("/resume", response_model=TimerSnapshot)
@limit_session
@handle_endpoint_errors("Resume session")
async def resume_session(
    request: Request,
    timer: SessionTimer = Depends(get_session_timer),
) -> TimerSnapshot:
    return await timer.resume()


@router.post("/stop", response_model=StopPrompt)
@limit_session
@handle_endpoint_errors("Request stop")
async def request_stop(
    request: Request,
    timer: SessionTimer = Depends(get_session_timer),
) -> StopPrompt:
    """First step of stopping. Nothing is saved until /stop/confirm."""
    return await timer.request_stop()


@router.post("/stop/confirm", response_model=FinalizeOutcome)
@limit_session
@handle_endpoint_errors("Confirm stop")
async def confirm_stop(
    request: Request,
    body: ConfirmStopRequest,
    timer: SessionTimer = Depends(get_session_timer),
) -> FinalizeOutcome:
    """
    Finish the session and commit it.

    Returns status "committed", or "sync_pending" with the error when the
    durable store could not be reached; the session is then kept locally
    until /sync succeeds.
    """
    outcome = await timer.confirm_stop(body.session_id)
    if outcome.error:
        logger.warning(f"Session {outcome.session.id} pending sync: {outcome.error}")
    return outcome


@router.post("/sync", response_model=FinalizeOutcome)
@limit_session
@handle_endpoint_errors("Sync session")
async def sync_session(
    request: Request,
    timer: SessionTimer = Depends(get_session_timer),
) -> FinalizeOutcome:
    """Retry committing a finished session. Safe to call repeatedly."""
    return await timer.sync_pending()


@router.post("/foreground", response_model=TimerSnapshot)
@handle_endpoint_errors("Foreground session")
async def foreground(
    timer: SessionTimer = Depends(get_session_timer),
) -> TimerSnapshot:
    """Reload the active session after the client returns to the foreground."""
    return await timer.on_foreground()
