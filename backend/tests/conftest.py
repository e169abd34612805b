"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests.
"""

import os
import sys
import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# ============================================================================
# Environment Configuration
# ============================================================================

# Settings are read when studytrack is first imported, so the test
# environment is forced here rather than in a fixture.
os.environ.update(
    {
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "ACTIVE_SESSION_BACKEND": "file",
        "ACTIVE_SESSION_DIR": tempfile.mkdtemp(prefix="studytrack-active-"),
        "REDIS_URL": "redis://localhost:6379/1",
        "LOCAL_TIMEZONE": "UTC",
        "RATE_LIMIT_ENABLED": "false",
        "DEBUG": "false",
    }
)

from studytrack.models.study import DailyStat, StudySession  # noqa: E402

# 2026-10-18 10:00:00 UTC, a Sunday
FIXED_NOW = datetime(2026, 10, 18, 10, 0, 0, tzinfo=timezone.utc)
FIXED_NOW_MS = int(FIXED_NOW.timestamp() * 1000)
FIXED_TODAY = FIXED_NOW.date()


# ============================================================================
# Clock and Store Doubles
# ============================================================================


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now_ms: int = FIXED_NOW_MS):
        self.now = now_ms

    def now_ms(self) -> int:
        return self.now

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        self.now += int(seconds * 1000) + ms


class InMemoryActiveSessionStore:
    """Active-session slot held in memory; records every write."""

    def __init__(self, session: Optional[StudySession] = None):
        self.session = session
        self.writes: list[StudySession] = []
        self.clears = 0

    async def get(self) -> Optional[StudySession]:
        return self.session

    async def set(self, session: StudySession) -> None:
        self.session = session
        self.writes.append(session)

    async def clear(self) -> None:
        self.session = None
        self.clears += 1


@pytest.fixture
def clock() -> FakeClock:
    """Clock pinned to FIXED_NOW."""
    return FakeClock()


@pytest.fixture
def today() -> date:
    """Calendar date of FIXED_NOW in UTC."""
    return FIXED_TODAY


@pytest.fixture
def active_store() -> InMemoryActiveSessionStore:
    """Empty in-memory active-session slot."""
    return InMemoryActiveSessionStore()


@pytest.fixture
def mock_repository() -> MagicMock:
    """
    Durable store double whose commits succeed.

    Set commit_finalized_session.side_effect to simulate failures.
    """
    mock = MagicMock()
    mock.commit_finalized_session = AsyncMock(return_value=True)
    mock.get_subject = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_redis() -> MagicMock:
    """
    Create a mock Redis client for unit testing.

    This allows testing Redis-dependent code without a real Redis server.
    """
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=True)
    mock.setex = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.ping = AsyncMock(return_value=True)
    return mock


# ============================================================================
# Sample Data Factories
# ============================================================================


@pytest.fixture
def make_session() -> Callable[..., StudySession]:
    """
    Factory for completed sessions.

    start is a UTC datetime; duration is in seconds and also sets end_time.
    """

    def _make(
        subject_id: str = "math",
        start: datetime = FIXED_NOW,
        duration: int = 1800,
        session_id: Optional[str] = None,
        completed: bool = True,
    ) -> StudySession:
        start_ms = int(start.timestamp() * 1000)
        return StudySession(
            id=session_id or f"s-{subject_id}-{start_ms}",
            subject_id=subject_id,
            start_time=start_ms,
            end_time=start_ms + duration * 1000 if completed else None,
            duration=duration if completed else 0,
        )

    return _make


@pytest.fixture
def make_daily_stats() -> Callable[..., list[DailyStat]]:
    """
    Factory for ledgers keyed by day offset from a reference date.

    make_daily_stats({0: 100, -1: 0, -2: 100}) gives today 100s, yesterday
    0s and the day before 100s.
    """

    def _make(seconds_by_offset: dict[int, int], reference: date = FIXED_TODAY) -> list[DailyStat]:
        return [
            DailyStat(
                date=(reference + timedelta(days=offset)).isoformat(),
                total_study_time=seconds,
                sessions_count=1 if seconds > 0 else 0,
            )
            for offset, seconds in sorted(seconds_by_offset.items())
        ]

    return _make
