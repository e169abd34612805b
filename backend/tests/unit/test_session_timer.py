"""
Unit tests for the SessionTimer state machine.

Tests the active-session lifecycle, focusing on:
- Elapsed time reconstructed from wall-clock timestamps
- Pause/resume accounting
- Transition guards
- Two-step stop and the durable commit
- Retried finalize and the sync-pending fallback
- Recovery from local storage

Test Organization:
    - TestElapsedComputation: Pure elapsed-time function
    - TestStart: Starting and replacing sessions
    - TestPauseResume: Pause accounting and guards
    - TestStopFlow: Two-step stop and successful finalize
    - TestFinalizeFailure: Retries, timeouts and sync-pending
    - TestRecovery: Reloading from the active slot
    - TestCorruptActiveRecord: Unreadable slots are discarded
"""

import asyncio
import logging
from datetime import timezone
from unittest.mock import AsyncMock

import pytest
from tenacity import wait_none

from studytrack.db.local_store import FileActiveSessionStore
from studytrack.enums.study import FinalizeStatus, SessionState
from studytrack.middleware.error_handling import (
    PersistenceError,
    RecordDecodeError,
    ValidationError,
)
from studytrack.models.study import StudySession
from studytrack.services.study.session_timer import (
    SessionTimer,
    compute_elapsed_seconds,
    elapsed_for,
    session_state,
)


@pytest.fixture
def timer(active_store, mock_repository, clock) -> SessionTimer:
    """Timer with an in-memory slot, mock store and pinned clock; no backoff."""
    return SessionTimer(
        active_store,
        mock_repository,
        clock=clock,
        tz=timezone.utc,
        max_attempts=3,
        wait=wait_none(),
        timeout=1.0,
    )


class TestElapsedComputation:
    """Tests for compute_elapsed_seconds and elapsed_for."""

    @pytest.mark.parametrize(
        "start,paused,now,expected",
        [
            (0, 0, 0, 0),
            (0, 0, 999, 0),
            (0, 0, 1000, 1),
            (1000, 500, 12_499, 10),
            (0, 60_000, 1_260_000, 1200),
        ],
    )
    def test_formula(self, start: int, paused: int, now: int, expected: int) -> None:
        assert compute_elapsed_seconds(start, paused, now) == expected

    def test_never_negative(self) -> None:
        """A clock that moved backwards clamps to zero."""
        assert compute_elapsed_seconds(10_000, 0, 5_000) == 0

    def test_paused_session_frozen_at_paused_at(self) -> None:
        session = StudySession(
            id="s", subject_id="m", start_time=0, is_paused=True, paused_at=30_000
        )

        assert elapsed_for(session, 90_000) == 30

    def test_finished_session_reports_duration(self) -> None:
        session = StudySession(id="s", subject_id="m", start_time=0, end_time=5000, duration=4)

        assert elapsed_for(session, 999_999) == 4

    def test_session_state(self) -> None:
        running = StudySession(id="s", subject_id="m", start_time=0)

        assert session_state(None) == SessionState.IDLE
        assert session_state(running) == SessionState.RUNNING
        assert session_state(running.model_copy(update={"is_paused": True})) == SessionState.PAUSED
        assert (
            session_state(running.model_copy(update={"end_time": 1}))
            == SessionState.SYNC_PENDING
        )


class TestStart:
    """Tests for starting sessions."""

    @pytest.mark.asyncio
    async def test_start_persists_new_session(self, timer, active_store, clock) -> None:
        snapshot = await timer.start("math")

        assert snapshot.state == SessionState.RUNNING
        assert snapshot.elapsed_seconds == 0
        assert snapshot.elapsed_formatted == "00:00:00"
        stored = active_store.session
        assert stored.subject_id == "math"
        assert stored.start_time == clock.now
        assert stored.duration == 0
        assert stored.total_paused_ms == 0
        assert stored.is_paused is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("subject_id", [None, "", "   "])
    async def test_start_requires_subject(self, timer, active_store, subject_id) -> None:
        with pytest.raises(ValidationError):
            await timer.start(subject_id)

        assert active_store.writes == []

    @pytest.mark.asyncio
    async def test_start_replaces_running_session(self, timer, active_store, clock) -> None:
        first = await timer.start("math")
        clock.advance(seconds=30)

        second = await timer.start("physics")

        assert second.session.id != first.session.id
        assert active_store.session.subject_id == "physics"

    @pytest.mark.asyncio
    async def test_start_refused_while_sync_pending(
        self, timer, active_store, mock_repository
    ) -> None:
        """A finished session that has not been saved is never overwritten."""
        await timer.start("math")
        mock_repository.commit_finalized_session.side_effect = PersistenceError("down")
        prompt = await timer.request_stop()
        await timer.confirm_stop(prompt.session_id)

        with pytest.raises(ValidationError):
            await timer.start("physics")

        assert active_store.session.subject_id == "math"
        assert active_store.session.end_time is not None


class TestPauseResume:
    """Tests for pause and resume."""

    @pytest.mark.asyncio
    async def test_pause_resume_excludes_paused_time(self, timer, clock) -> None:
        """Start T, pause T+600s, resume T+660s, read at T+1260s gives 1200s."""
        await timer.start("math")
        clock.advance(ms=600_000)
        await timer.pause()
        clock.advance(ms=60_000)
        await timer.resume()
        clock.advance(ms=600_000)

        assert timer.elapsed_seconds() == 1200
        assert timer.session.total_paused_ms == 60_000

    @pytest.mark.asyncio
    async def test_elapsed_frozen_while_paused(self, timer, clock) -> None:
        await timer.start("math")
        clock.advance(seconds=45)
        await timer.pause()
        clock.advance(seconds=3600)

        snapshot = timer.snapshot()

        assert snapshot.state == SessionState.PAUSED
        assert snapshot.elapsed_seconds == 45

    @pytest.mark.asyncio
    async def test_immediate_resume_adds_nothing(self, timer) -> None:
        await timer.start("math")
        await timer.pause()
        await timer.resume()

        assert timer.session.total_paused_ms == 0
        assert timer.session.paused_at is None
        assert timer.state == SessionState.RUNNING

    @pytest.mark.asyncio
    async def test_every_transition_is_persisted(self, timer, active_store) -> None:
        await timer.start("math")
        await timer.pause()
        await timer.resume()

        assert [w.is_paused for w in active_store.writes] == [False, True, False]

    @pytest.mark.asyncio
    async def test_pause_requires_running(self, timer) -> None:
        with pytest.raises(ValidationError):
            await timer.pause()

    @pytest.mark.asyncio
    async def test_pause_twice_rejected(self, timer) -> None:
        await timer.start("math")
        await timer.pause()

        with pytest.raises(ValidationError):
            await timer.pause()

    @pytest.mark.asyncio
    async def test_resume_requires_paused(self, timer) -> None:
        await timer.start("math")

        with pytest.raises(ValidationError):
            await timer.resume()


class TestStopFlow:
    """Tests for the two-step stop and a successful commit."""

    @pytest.mark.asyncio
    async def test_request_stop_changes_nothing(self, timer, active_store, clock) -> None:
        await timer.start("math")
        clock.advance(seconds=125)
        writes_before = len(active_store.writes)

        prompt = await timer.request_stop()

        assert prompt.session_id == active_store.session.id
        assert prompt.elapsed_seconds == 125
        assert "2m 5s" in prompt.message
        assert len(active_store.writes) == writes_before
        assert timer.state == SessionState.RUNNING

    @pytest.mark.asyncio
    async def test_request_stop_when_idle(self, timer) -> None:
        with pytest.raises(ValidationError):
            await timer.request_stop()

    @pytest.mark.asyncio
    async def test_confirm_commits_and_clears(
        self, timer, active_store, mock_repository, clock
    ) -> None:
        await timer.start("math")
        clock.advance(ms=600_000)
        await timer.pause()
        clock.advance(ms=60_000)
        await timer.resume()
        clock.advance(ms=600_000)
        prompt = await timer.request_stop()

        outcome = await timer.confirm_stop(prompt.session_id)

        assert outcome.status == FinalizeStatus.COMMITTED
        assert outcome.error is None
        assert outcome.session.duration == 1200
        assert outcome.session.end_time == clock.now
        assert active_store.session is None
        assert timer.state == SessionState.IDLE
        committed, day_key = mock_repository.commit_finalized_session.await_args.args
        assert committed.duration == 1200
        assert day_key == "2026-10-18"

    @pytest.mark.asyncio
    async def test_duration_measured_at_confirmation(self, timer, clock) -> None:
        """Time spent on the confirmation prompt is included."""
        await timer.start("math")
        clock.advance(seconds=100)
        prompt = await timer.request_stop()
        clock.advance(seconds=20)

        outcome = await timer.confirm_stop(prompt.session_id)

        assert outcome.session.duration == 120

    @pytest.mark.asyncio
    async def test_confirm_while_paused_folds_pause(self, timer, clock) -> None:
        await timer.start("math")
        clock.advance(seconds=50)
        await timer.pause()
        clock.advance(seconds=10)

        outcome = await timer.confirm_stop(timer.session.id)

        assert outcome.session.duration == 50
        assert outcome.session.is_paused is False
        assert outcome.session.total_paused_ms == 10_000

    @pytest.mark.asyncio
    async def test_confirm_with_wrong_id(self, timer, mock_repository) -> None:
        await timer.start("math")

        with pytest.raises(ValidationError):
            await timer.confirm_stop("someone-else")

        mock_repository.commit_finalized_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_slot_holds_finished_session_during_commit(
        self, timer, active_store, mock_repository
    ) -> None:
        """The finished session is in the slot before the durable write starts."""
        seen = {}

        async def commit(session, day_key):
            seen["slot"] = active_store.session
            return True

        mock_repository.commit_finalized_session.side_effect = commit
        await timer.start("math")

        await timer.confirm_stop(timer.session.id)

        assert seen["slot"].end_time is not None


class TestFinalizeFailure:
    """Tests for retries and the sync-pending fallback."""

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, timer, active_store, mock_repository) -> None:
        mock_repository.commit_finalized_session.side_effect = [
            PersistenceError("blip"),
            True,
        ]
        await timer.start("math")

        outcome = await timer.confirm_stop(timer.session.id)

        assert outcome.status == FinalizeStatus.COMMITTED
        assert mock_repository.commit_finalized_session.await_count == 2
        assert active_store.session is None

    @pytest.mark.asyncio
    async def test_exhausted_retries_leave_sync_pending(
        self, timer, active_store, mock_repository, clock
    ) -> None:
        mock_repository.commit_finalized_session.side_effect = PersistenceError("store down")
        await timer.start("math")
        clock.advance(seconds=300)

        outcome = await timer.confirm_stop(timer.session.id)

        assert outcome.status == FinalizeStatus.SYNC_PENDING
        assert outcome.error == "store down"
        assert mock_repository.commit_finalized_session.await_count == 3
        assert active_store.session.end_time == clock.now
        assert active_store.session.duration == 300
        assert timer.state == SessionState.SYNC_PENDING

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, timer, mock_repository) -> None:
        async def hang(session, day_key):
            await asyncio.sleep(10)

        mock_repository.commit_finalized_session.side_effect = hang
        timer.timeout = 0.01
        timer.max_attempts = 1
        await timer.start("math")

        outcome = await timer.confirm_stop(timer.session.id)

        assert outcome.status == FinalizeStatus.SYNC_PENDING
        assert "did not respond" in outcome.error

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates(self, timer, mock_repository) -> None:
        mock_repository.commit_finalized_session.side_effect = RecordDecodeError("bad row")
        await timer.start("math")

        with pytest.raises(RecordDecodeError):
            await timer.confirm_stop(timer.session.id)

        assert mock_repository.commit_finalized_session.await_count == 1

    @pytest.mark.asyncio
    async def test_sync_keeps_frozen_duration(
        self, timer, active_store, mock_repository, clock
    ) -> None:
        """A later sync commits the duration from stop time, not sync time."""
        mock_repository.commit_finalized_session.side_effect = PersistenceError("down")
        await timer.start("math")
        clock.advance(seconds=60)
        await timer.confirm_stop(timer.session.id)

        clock.advance(seconds=3600)
        mock_repository.commit_finalized_session.side_effect = None
        mock_repository.commit_finalized_session.return_value = True
        outcome = await timer.sync_pending()

        assert outcome.status == FinalizeStatus.COMMITTED
        assert outcome.session.duration == 60
        assert active_store.session is None

    @pytest.mark.asyncio
    async def test_sync_when_already_committed(self, timer, active_store, mock_repository) -> None:
        """An id already in the store counts as committed and clears the slot."""
        finished = StudySession(
            id="done", subject_id="math", start_time=0, end_time=60_000, duration=60
        )
        active_store.session = finished
        mock_repository.commit_finalized_session = AsyncMock(return_value=False)

        outcome = await timer.sync_pending()

        assert outcome.status == FinalizeStatus.COMMITTED
        assert active_store.session is None

    @pytest.mark.asyncio
    async def test_sync_without_pending_session(self, timer) -> None:
        await timer.start("math")

        with pytest.raises(ValidationError):
            await timer.sync_pending()


class TestRecovery:
    """Tests for reloading state from the active slot."""

    @pytest.mark.asyncio
    async def test_recover_running_session(self, timer, active_store, clock) -> None:
        active_store.session = StudySession(
            id="s", subject_id="math", start_time=clock.now - 90_000
        )

        snapshot = await timer.recover()

        assert snapshot.state == SessionState.RUNNING
        assert snapshot.elapsed_seconds == 90
        assert snapshot.elapsed_formatted == "00:01:30"

    @pytest.mark.asyncio
    async def test_foreground_ignores_stale_memory(self, timer, active_store) -> None:
        """In-memory state is replaced by whatever the slot holds."""
        await timer.start("math")
        active_store.session = None

        snapshot = await timer.on_foreground()

        assert snapshot.state == SessionState.IDLE
        assert snapshot.session is None

    @pytest.mark.asyncio
    async def test_backgrounded_time_counts(self, timer, clock) -> None:
        """Elapsed time keeps growing while no ticks happen."""
        await timer.start("math")
        clock.advance(seconds=4 * 3600)

        snapshot = await timer.on_foreground()

        assert snapshot.elapsed_seconds == 4 * 3600

    @pytest.mark.asyncio
    async def test_recover_idle(self, timer) -> None:
        snapshot = await timer.recover()

        assert snapshot.state == SessionState.IDLE
        assert snapshot.elapsed_seconds == 0


class TestCorruptActiveRecord:
    """An unreadable slot is discarded instead of blocking the timer."""

    @pytest.fixture
    def corrupt_store(self, tmp_path) -> FileActiveSessionStore:
        store = FileActiveSessionStore("user-1", directory=tmp_path)
        store.path.write_text("{not json", encoding="utf-8")
        return store

    @pytest.fixture
    def file_timer(self, corrupt_store, mock_repository, clock) -> SessionTimer:
        return SessionTimer(
            corrupt_store,
            mock_repository,
            clock=clock,
            tz=timezone.utc,
            max_attempts=1,
            wait=wait_none(),
            timeout=1.0,
        )

    @pytest.mark.asyncio
    async def test_recover_reports_idle(self, file_timer, corrupt_store) -> None:
        snapshot = await file_timer.recover()

        assert snapshot.state == SessionState.IDLE
        assert not corrupt_store.path.exists()

    @pytest.mark.asyncio
    async def test_start_over_corrupt_record(self, file_timer, corrupt_store, clock) -> None:
        snapshot = await file_timer.start("math")

        assert snapshot.state == SessionState.RUNNING
        stored = await corrupt_store.get()
        assert stored.subject_id == "math"
        assert stored.start_time == clock.now

    @pytest.mark.asyncio
    async def test_discard_is_logged(self, file_timer, caplog) -> None:
        with caplog.at_level(logging.ERROR):
            await file_timer.on_foreground()

        assert "Discarding unreadable active session" in caplog.text
