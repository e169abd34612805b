"""
Session Timer

State machine for the single active study session of a user.

States:
    IDLE -> RUNNING <-> PAUSED -> (confirm stop) -> IDLE
                                       |
                                       v  durable commit failed
                                  SYNC_PENDING -> (sync) -> IDLE

Elapsed time is always recomputed from wall-clock timestamps, never from tick
counts, so it survives the process being suspended or restarted. Every
transition writes the active record to local storage; only finalize touches
the durable store.

Finalize writes the completed session to the active slot first, then commits
it to the durable store with retries. The slot is cleared only after the
commit is confirmed, so a finished session is never lost.

Usage:
    from studytrack.services.study.session_timer import SessionTimer

    timer = SessionTimer(store, repository)
    await timer.recover()
    await timer.start("subject-id")
    prompt = await timer.request_stop()
    outcome = await timer.confirm_stop(prompt.session_id)
"""

import asyncio
import logging
import uuid
from datetime import tzinfo
from typing import Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from studytrack.config import settings
from studytrack.db.local_store import ActiveSessionStore
from studytrack.enums.study import FinalizeStatus, SessionState
from studytrack.middleware.error_handling import (
    PersistenceError,
    RecordDecodeError,
    ValidationError,
)
from studytrack.models.study import FinalizeOutcome, StopPrompt, StudySession, TimerSnapshot
from studytrack.services.study.clock import Clock, system_clock
from studytrack.services.study.periods import local_date_key
from studytrack.services.study.repository import StudyRepository
from studytrack.services.study.time_format import format_time, format_time_detailed

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (PersistenceError, asyncio.TimeoutError)


def compute_elapsed_seconds(start_time: int, total_paused_ms: int, now: int) -> int:
    """
    Whole seconds of study time between start_time and now.

    Clamped at zero so a clock that moved backwards never yields a negative
    value.
    """
    return max(0, (now - start_time - total_paused_ms) // 1000)


def elapsed_for(session: StudySession, now: int) -> int:
    """
    Elapsed study time of a session at instant now.

    Finished sessions report their frozen duration; paused sessions are
    measured up to paused_at.
    """
    if session.is_completed:
        return session.duration
    reference = session.paused_at if session.is_paused and session.paused_at is not None else now
    return compute_elapsed_seconds(session.start_time, session.total_paused_ms, reference)


def session_state(session: Optional[StudySession]) -> SessionState:
    """State of the timer holding this active record."""
    if session is None:
        return SessionState.IDLE
    if session.is_completed:
        return SessionState.SYNC_PENDING
    if session.is_paused:
        return SessionState.PAUSED
    return SessionState.RUNNING


class SessionTimer:
    """
    Drives the active session through start, pause, resume and finalize.

    The in-memory session is a cache of the active slot. Every operation
    re-reads the slot first, so the timer can be rebuilt per request or after
    the app returns from the background.
    """

    def __init__(
        self,
        store: ActiveSessionStore,
        repository: StudyRepository,
        clock: Clock = system_clock,
        tz: Optional[tzinfo] = None,
        max_attempts: Optional[int] = None,
        wait: Optional[wait_base] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the timer.

        Args:
            store: Local active-session slot.
            repository: Durable store used on finalize.
            clock: Wall-clock source.
            tz: Timezone that decides the DailyStat date (default configured).
            max_attempts: Durable commit attempts (default FINALIZE_MAX_ATTEMPTS).
            wait: Tenacity wait strategy between attempts (default exponential).
            timeout: Per-attempt timeout in seconds (default STORE_TIMEOUT_SECONDS).
        """
        self.store = store
        self.repository = repository
        self.clock = clock
        self.tz = tz
        self.max_attempts = max_attempts or settings.FINALIZE_MAX_ATTEMPTS
        self.wait = wait or wait_exponential(
            multiplier=settings.FINALIZE_BACKOFF_MIN_SECONDS,
            min=settings.FINALIZE_BACKOFF_MIN_SECONDS,
            max=settings.FINALIZE_BACKOFF_MAX_SECONDS,
        )
        self.timeout = timeout or settings.STORE_TIMEOUT_SECONDS
        self.session: Optional[StudySession] = None

    @property
    def state(self) -> SessionState:
        return session_state(self.session)

    # =========================================================================
    # Recovery
    # =========================================================================

    async def load(self) -> Optional[StudySession]:
        """
        Re-read the active record from local storage.

        An undecodable record is logged and cleared, leaving the timer idle.
        """
        try:
            self.session = await self.store.get()
        except RecordDecodeError as e:
            logger.error(f"Discarding unreadable active session: {e.message}")
            await self.store.clear()
            self.session = None
        return self.session

    async def recover(self) -> TimerSnapshot:
        """
        Restore timer state after a restart.

        Returns:
            Snapshot of whatever the active slot holds.
        """
        session = await self.load()
        if session is not None:
            logger.info(
                f"Recovered {self.state.value} session {session.id} "
                f"({elapsed_for(session, self.clock.now_ms())}s elapsed)"
            )
        return self.snapshot()

    async def on_foreground(self) -> TimerSnapshot:
        """Resynchronize when the app returns to the foreground."""
        logger.debug("Foreground event: reloading active session")
        return await self.recover()

    # =========================================================================
    # Reading
    # =========================================================================

    def elapsed_seconds(self, now: Optional[int] = None) -> int:
        """Elapsed study time of the cached session (0 when idle)."""
        if self.session is None:
            return 0
        return elapsed_for(self.session, now if now is not None else self.clock.now_ms())

    def snapshot(self, now: Optional[int] = None) -> TimerSnapshot:
        """State, session and elapsed time for rendering a tick."""
        elapsed = self.elapsed_seconds(now)
        return TimerSnapshot(
            state=self.state,
            session=self.session,
            elapsed_seconds=elapsed,
            elapsed_formatted=format_time_detailed(elapsed),
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    async def start(self, subject_id: Optional[str]) -> TimerSnapshot:
        """
        Start a new session for a subject.

        A running or paused session is replaced. A finished session waiting
        to sync is never replaced.

        Raises:
            ValidationError: If subject_id is empty or a session awaits sync.
        """
        if not subject_id or not subject_id.strip():
            raise ValidationError("A subject is required to start a session")

        current = await self.load()
        state = session_state(current)
        if state == SessionState.SYNC_PENDING:
            raise ValidationError(
                "A finished session is waiting to be saved; sync it before starting a new one",
                details={"session_id": current.id},
            )
        if state in (SessionState.RUNNING, SessionState.PAUSED):
            logger.warning(
                f"Starting a new session discards {state.value} session {current.id} "
                f"for subject {current.subject_id}"
            )

        now = self.clock.now_ms()
        session = StudySession(
            id=uuid.uuid4().hex,
            subject_id=subject_id,
            start_time=now,
        )
        await self.store.set(session)
        self.session = session
        logger.info(f"Started session {session.id} for subject {subject_id}")
        return self.snapshot(now)

    async def pause(self) -> TimerSnapshot:
        """
        Freeze the elapsed time.

        Raises:
            ValidationError: If no session is running.
        """
        current = await self.load()
        if session_state(current) != SessionState.RUNNING:
            raise ValidationError(f"Cannot pause while {self.state.value}")

        now = self.clock.now_ms()
        session = current.model_copy(update={"is_paused": True, "paused_at": now})
        await self.store.set(session)
        self.session = session
        logger.info(f"Paused session {session.id} at {elapsed_for(session, now)}s")
        return self.snapshot(now)

    async def resume(self) -> TimerSnapshot:
        """
        Continue a paused session, excluding the pause from elapsed time.

        Raises:
            ValidationError: If the session is not paused.
        """
        current = await self.load()
        if session_state(current) != SessionState.PAUSED:
            raise ValidationError(f"Cannot resume while {self.state.value}")

        now = self.clock.now_ms()
        paused_at = current.paused_at if current.paused_at is not None else now
        session = current.model_copy(
            update={
                "is_paused": False,
                "paused_at": None,
                "total_paused_ms": current.total_paused_ms + max(0, now - paused_at),
            }
        )
        await self.store.set(session)
        self.session = session
        logger.info(f"Resumed session {session.id} after {max(0, now - paused_at)}ms paused")
        return self.snapshot(now)

    async def request_stop(self) -> StopPrompt:
        """
        First step of stopping: describe what would be saved.

        Changes nothing; the elapsed time keeps running until confirm_stop.

        Raises:
            ValidationError: If there is no running or paused session.
        """
        current = await self.load()
        if session_state(current) not in (SessionState.RUNNING, SessionState.PAUSED):
            raise ValidationError(f"No active session to stop (state: {self.state.value})")

        elapsed = elapsed_for(current, self.clock.now_ms())
        return StopPrompt(
            session_id=current.id,
            elapsed_seconds=elapsed,
            message=f"Stop this session and save {format_time(elapsed)} of study time?",
        )

    async def confirm_stop(self, session_id: str) -> FinalizeOutcome:
        """
        Second step of stopping: finish the session and commit it.

        duration is the elapsed time at the moment of confirmation. A pause in
        progress is folded into total_paused_ms.

        Args:
            session_id: Id from the StopPrompt; must match the active session.

        Raises:
            ValidationError: If there is no active session or the id differs.
        """
        current = await self.load()
        if session_state(current) not in (SessionState.RUNNING, SessionState.PAUSED):
            raise ValidationError(f"No active session to stop (state: {self.state.value})")
        if current.id != session_id:
            raise ValidationError(
                "Stop confirmation does not match the active session",
                details={"active_session_id": current.id, "session_id": session_id},
            )

        now = self.clock.now_ms()
        total_paused_ms = current.total_paused_ms
        if current.is_paused and current.paused_at is not None:
            total_paused_ms += max(0, now - current.paused_at)

        completed = current.model_copy(
            update={
                "end_time": now,
                "duration": elapsed_for(current, now),
                "is_paused": False,
                "paused_at": None,
                "total_paused_ms": total_paused_ms,
            }
        )

        # Frozen before the durable write so a crash cannot lose it.
        await self.store.set(completed)
        self.session = completed
        return await self._commit(completed)

    async def sync_pending(self) -> FinalizeOutcome:
        """
        Retry the durable commit of a finished session.

        Raises:
            ValidationError: If no session is waiting to sync.
        """
        current = await self.load()
        if session_state(current) != SessionState.SYNC_PENDING:
            raise ValidationError(f"No session is waiting to sync (state: {self.state.value})")
        logger.info(f"Retrying sync of session {current.id}")
        return await self._commit(current)

    # =========================================================================
    # Durable commit
    # =========================================================================

    async def _commit(self, completed: StudySession) -> FinalizeOutcome:
        day_key = local_date_key(completed.end_time, self.tz)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=self.wait,
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    written = await asyncio.wait_for(
                        self.repository.commit_finalized_session(completed, day_key),
                        timeout=self.timeout,
                    )
        except asyncio.TimeoutError:
            error = f"Durable store did not respond within {self.timeout}s"
            logger.error(f"Session {completed.id} left pending sync: {error}")
            return FinalizeOutcome(
                status=FinalizeStatus.SYNC_PENDING, session=completed, error=error
            )
        except PersistenceError as e:
            logger.error(f"Session {completed.id} left pending sync: {e.message}")
            return FinalizeOutcome(
                status=FinalizeStatus.SYNC_PENDING, session=completed, error=e.message
            )

        await self.store.clear()
        self.session = None
        if written:
            logger.info(
                f"Finalized session {completed.id}: {completed.duration}s on {day_key}"
            )
        else:
            logger.info(f"Session {completed.id} was already stored; cleared active slot")
        return FinalizeOutcome(status=FinalizeStatus.COMMITTED, session=completed)
