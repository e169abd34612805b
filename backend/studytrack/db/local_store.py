"""
Local Active-Session Storage

Holds the single in-progress study session for a user outside the durable
store. Every timer transition writes the record here so a process restart
before finalize does not lose the session.

Implementations:
- FileActiveSessionStore: one JSON file per user (default)
- RedisActiveSessionStore: one Redis key per user (studytrack/db/redis.py)

Usage:
    from studytrack.db.local_store import get_active_session_store

    store = get_active_session_store(user_id)
    session = await store.get()
    await store.set(session)
    await store.clear()
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Optional, Protocol

import aiofiles
import aiofiles.os
from pydantic import ValidationError as PydanticValidationError

from studytrack.config import settings, yaml_config
from studytrack.enums.study import ActiveSessionBackend
from studytrack.middleware.error_handling import PersistenceError, RecordDecodeError
from studytrack.models.study import StudySession

logger = logging.getLogger(__name__)

local_store_config = yaml_config.get("local_store", {})
FILE_SUFFIX: str = local_store_config.get("file_suffix", ".json")


class ActiveSessionStore(Protocol):
    """Get/set/clear for exactly one serialized active-session record."""

    async def get(self) -> Optional[StudySession]: ...

    async def set(self, session: StudySession) -> None: ...

    async def clear(self) -> None: ...


def decode_active_session(raw: str | bytes, source: str) -> StudySession:
    """
    Validate a serialized active-session record.

    Raises:
        RecordDecodeError: If the payload is not a valid StudySession.
    """
    try:
        return StudySession.model_validate_json(raw)
    except PydanticValidationError as e:
        logger.error(f"Corrupt active session record in {source}: {e}")
        raise RecordDecodeError(
            "Stored active session could not be decoded",
            details={"source": source},
        ) from e


class FileActiveSessionStore:
    """
    Active-session slot backed by a JSON file.

    Writes go to a temporary file that replaces the record in one step, so a
    crash mid-write leaves the previous record intact.
    """

    def __init__(self, user_id: str, directory: str | Path | None = None):
        """
        Initialize the store.

        Args:
            user_id: User whose slot this is.
            directory: Folder holding the records (default ACTIVE_SESSION_DIR).
        """
        self.user_id = user_id
        self.directory = Path(directory or settings.ACTIVE_SESSION_DIR).expanduser()
        digest = hashlib.sha256(user_id.encode()).hexdigest()[:32]
        self.path = self.directory / f"{digest}{FILE_SUFFIX}"

    async def get(self) -> Optional[StudySession]:
        if not await aiofiles.os.path.exists(self.path):
            return None
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except OSError as e:
            raise PersistenceError(f"Failed to read active session: {e}") from e
        return decode_active_session(raw, str(self.path))

    async def set(self, session: StudySession) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(session_payload(session))
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to save active session: {e}") from e

    async def clear(self) -> None:
        try:
            await aiofiles.os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise PersistenceError(f"Failed to clear active session: {e}") from e


def get_active_session_store(user_id: str) -> ActiveSessionStore:
    """
    Build the configured active-session store for a user.

    Args:
        user_id: User whose slot to open.

    Returns:
        Store for ACTIVE_SESSION_BACKEND.
    """
    if settings.ACTIVE_SESSION_BACKEND == ActiveSessionBackend.REDIS:
        from studytrack.db.redis import RedisActiveSessionStore

        return RedisActiveSessionStore(user_id)
    return FileActiveSessionStore(user_id)


def session_payload(session: StudySession) -> str:
    """Serialize a session the way every store writes it."""
    return json.dumps(session.model_dump(mode="json"), sort_keys=True)


__all__ = [
    "ActiveSessionStore",
    "FileActiveSessionStore",
    "decode_active_session",
    "get_active_session_store",
    "session_payload",
]
