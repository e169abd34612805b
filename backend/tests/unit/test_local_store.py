"""
Unit tests for the file-backed active-session slot.

These tests verify:
- Round trip of a session through the JSON file
- Missing file reads as no session
- Corrupt records raise RecordDecodeError instead of being defaulted
- Clearing is idempotent
- Per-user isolation
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from studytrack.db.local_store import (
    FileActiveSessionStore,
    get_active_session_store,
    session_payload,
)
from studytrack.enums.study import ActiveSessionBackend
from studytrack.middleware.error_handling import PersistenceError, RecordDecodeError
from studytrack.models.study import StudySession


@pytest.fixture
def session() -> StudySession:
    return StudySession(
        id="abc",
        subject_id="math",
        start_time=1_700_000_000_000,
        is_paused=True,
        paused_at=1_700_000_600_000,
        total_paused_ms=5_000,
    )


@pytest.fixture
def store(tmp_path: Path) -> FileActiveSessionStore:
    return FileActiveSessionStore("user-1", directory=tmp_path)


class TestFileActiveSessionStore:
    """Test suite for FileActiveSessionStore."""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store) -> None:
        assert await store.get() is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, store, session) -> None:
        await store.set(session)

        assert await store.get() == session

    @pytest.mark.asyncio
    async def test_set_overwrites(self, store, session) -> None:
        await store.set(session)
        await store.set(session.model_copy(update={"is_paused": False, "paused_at": None}))

        loaded = await store.get()

        assert loaded.is_paused is False
        assert loaded.paused_at is None

    @pytest.mark.asyncio
    async def test_set_creates_directory(self, tmp_path: Path, session) -> None:
        store = FileActiveSessionStore("user-1", directory=tmp_path / "nested" / "dir")

        await store.set(session)

        assert store.path.exists()
        assert not store.path.with_suffix(store.path.suffix + ".tmp").exists()

    @pytest.mark.asyncio
    async def test_clear(self, store, session) -> None:
        await store.set(session)

        await store.clear()
        await store.clear()

        assert await store.get() is None

    @pytest.mark.asyncio
    async def test_corrupt_record_raises(self, store) -> None:
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text(json.dumps({"id": "abc", "start_time": "not-a-time"}))

        with pytest.raises(RecordDecodeError):
            await store.get()

    @pytest.mark.asyncio
    async def test_record_missing_field_raises(self, store) -> None:
        """Missing required fields are not filled with defaults."""
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text(json.dumps({"id": "abc", "start_time": 0}))

        with pytest.raises(RecordDecodeError):
            await store.get()

    @pytest.mark.asyncio
    async def test_users_are_isolated(self, tmp_path: Path, session) -> None:
        alice = FileActiveSessionStore("alice", directory=tmp_path)
        bob = FileActiveSessionStore("bob", directory=tmp_path)

        await alice.set(session)

        assert alice.path != bob.path
        assert await bob.get() is None

    @pytest.mark.asyncio
    async def test_write_failure_raises_persistence_error(self, tmp_path: Path, session) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = FileActiveSessionStore("user-1", directory=blocker)

        with pytest.raises(PersistenceError):
            await store.set(session)


class TestSessionPayload:
    """Tests for the shared serialization."""

    def test_payload_is_sorted_json(self, session) -> None:
        payload = json.loads(session_payload(session))

        assert payload["id"] == "abc"
        assert payload["total_paused_ms"] == 5_000
        assert list(payload) == sorted(payload)


class TestGetActiveSessionStore:
    """Tests for backend selection."""

    def test_file_backend(self) -> None:
        with patch("studytrack.db.local_store.settings") as mock_settings:
            mock_settings.ACTIVE_SESSION_BACKEND = ActiveSessionBackend.FILE
            mock_settings.ACTIVE_SESSION_DIR = "/tmp/studytrack-test"

            store = get_active_session_store("user-1")

        assert isinstance(store, FileActiveSessionStore)

    def test_redis_backend(self) -> None:
        from studytrack.db.redis import RedisActiveSessionStore

        with patch("studytrack.db.local_store.settings") as mock_settings:
            mock_settings.ACTIVE_SESSION_BACKEND = ActiveSessionBackend.REDIS

            store = get_active_session_store("user-1")

        assert isinstance(store, RedisActiveSessionStore)
        assert store.key.endswith(":user-1")
