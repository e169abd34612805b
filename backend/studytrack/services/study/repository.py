"""
Durable Study Store

CRUD over subjects, sessions, the daily ledger and planner items, scoped to
one user. Every row crosses the boundary through Pydantic validation; a row
that fails validation raises RecordDecodeError rather than being patched with
defaults. Missing rows are reported as None, never as errors.

Responsibilities:
- Map SQLAlchemy records to domain models and back
- Commit a finalized session atomically (session row, subject total, ledger)
- Translate store failures into PersistenceError

Usage:
    from studytrack.services.study.repository import StudyRepository

    repo = StudyRepository(db, user_id)
    subjects = await repo.list_subjects()
    committed = await repo.commit_finalized_session(session, "2026-10-18")
"""

import asyncio
import logging
import uuid
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studytrack.db.models import (
    DailyStatRecord,
    ExamDeadlineRecord,
    GoalRecord,
    StudySessionRecord,
    StudyTaskRecord,
    StudyTodoRecord,
    SubjectRecord,
    UserPreferencesRecord,
)
from studytrack.enums.study import PlannerPeriod
from studytrack.middleware.error_handling import PersistenceError, RecordDecodeError
from studytrack.models.study import (
    DailyStat,
    ExamDeadline,
    ExamDeadlineCreate,
    ExamDeadlineUpdate,
    Goal,
    GoalCreate,
    StudySession,
    StudyTask,
    StudyTaskCreate,
    StudyTaskUpdate,
    StudyTodo,
    Subject,
    SubjectCreate,
    SubjectUpdate,
    UserPreferences,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


def new_id() -> str:
    """Identifier for newly created rows."""
    return uuid.uuid4().hex


def decode_row(model_cls: type[M], row: Any) -> M:
    """
    Validate a store row into a domain model.

    Raises:
        RecordDecodeError: If the row does not satisfy the model.
    """
    try:
        return model_cls.model_validate(row)
    except PydanticValidationError as e:
        table = getattr(row, "__tablename__", type(row).__name__)
        logger.error(f"Failed to decode {table} row as {model_cls.__name__}: {e}")
        raise RecordDecodeError(
            f"Stored {table} row is invalid",
            details={"model": model_cls.__name__, "errors": e.errors(include_url=False)},
        ) from e


def store_operation(
    operation: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for repository methods.

    Rolls the session back on failure or cancellation and converts
    SQLAlchemy errors into PersistenceError.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(self: "StudyRepository", *args: Any, **kwargs: Any) -> T:
            try:
                return await func(self, *args, **kwargs)
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Store operation '{operation}' failed for user {self.user_id}: {e}")
                raise PersistenceError(f"Failed to {operation}") from e
            except asyncio.CancelledError:
                await self.db.rollback()
                raise

        return wrapper

    return decorator


class StudyRepository:
    """
    Durable store for one user's study data.

    Reads return domain models; writes commit immediately except where noted.
    """

    def __init__(self, db: AsyncSession, user_id: str):
        """
        Initialize the repository.

        Args:
            db: SQLAlchemy async database session.
            user_id: Identity every query is scoped to.
        """
        self.db = db
        self.user_id = user_id

    # =========================================================================
    # Generic helpers
    # =========================================================================

    async def _get_record(self, record_cls: type, record_id: str) -> Optional[Any]:
        result = await self.db.execute(
            select(record_cls).where(
                record_cls.id == record_id,
                record_cls.user_id == self.user_id,
            )
        )
        return result.scalar_one_or_none()

    async def _list_records(self, query) -> list[Any]:
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _update_record(
        self, record_cls: type, record_id: str, values: dict[str, Any]
    ) -> Optional[Any]:
        record = await self._get_record(record_cls, record_id)
        if record is None:
            return None
        for key, value in values.items():
            setattr(record, key, value)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def _delete_record(self, record_cls: type, record_id: str) -> bool:
        result = await self.db.execute(
            delete(record_cls).where(
                record_cls.id == record_id,
                record_cls.user_id == self.user_id,
            )
        )
        await self.db.commit()
        return result.rowcount > 0

    # =========================================================================
    # Subjects
    # =========================================================================

    @store_operation("list subjects")
    async def list_subjects(self) -> list[Subject]:
        records = await self._list_records(
            select(SubjectRecord)
            .where(SubjectRecord.user_id == self.user_id)
            .order_by(SubjectRecord.created_at)
        )
        return [decode_row(Subject, r) for r in records]

    @store_operation("get subject")
    async def get_subject(self, subject_id: str) -> Optional[Subject]:
        record = await self._get_record(SubjectRecord, subject_id)
        return decode_row(Subject, record) if record else None

    @store_operation("create subject")
    async def create_subject(self, data: SubjectCreate, now_ms: int) -> Subject:
        record = SubjectRecord(
            id=new_id(),
            user_id=self.user_id,
            name=data.name,
            color=data.color,
            icon=data.icon,
            created_at=now_ms,
            total_study_time=0,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return decode_row(Subject, record)

    @store_operation("update subject")
    async def update_subject(self, subject_id: str, data: SubjectUpdate) -> Optional[Subject]:
        record = await self._update_record(
            SubjectRecord, subject_id, data.model_dump(exclude_unset=True)
        )
        return decode_row(Subject, record) if record else None

    @store_operation("delete subject")
    async def delete_subject(self, subject_id: str) -> bool:
        return await self._delete_record(SubjectRecord, subject_id)

    # =========================================================================
    # Sessions and daily ledger
    # =========================================================================

    @store_operation("list sessions")
    async def list_sessions(self) -> list[StudySession]:
        records = await self._list_records(
            select(StudySessionRecord)
            .where(StudySessionRecord.user_id == self.user_id)
            .order_by(StudySessionRecord.start_time)
        )
        return [decode_row(StudySession, r) for r in records]

    @store_operation("get session")
    async def get_session(self, session_id: str) -> Optional[StudySession]:
        record = await self._get_record(StudySessionRecord, session_id)
        return decode_row(StudySession, record) if record else None

    @store_operation("list daily stats")
    async def list_daily_stats(self) -> list[DailyStat]:
        records = await self._list_records(
            select(DailyStatRecord)
            .where(DailyStatRecord.user_id == self.user_id)
            .order_by(DailyStatRecord.date)
        )
        return [decode_row(DailyStat, r) for r in records]

    @store_operation("get daily stat")
    async def get_daily_stat(self, day_key: str) -> Optional[DailyStat]:
        record = await self.db.get(DailyStatRecord, (self.user_id, day_key))
        return decode_row(DailyStat, record) if record else None

    @store_operation("commit finalized session")
    async def commit_finalized_session(self, session: StudySession, day_key: str) -> bool:
        """
        Write a finished session and its aggregates in one transaction.

        Inserts the session, adds its duration to the subject total and folds
        it into the DailyStat for day_key (created if absent). Nothing is
        written if the session id is already stored, which makes retries safe.

        Args:
            session: Session with end_time and duration set.
            day_key: Local YYYY-MM-DD the session is booked under.

        Returns:
            True if written now, False if it was already committed.
        """
        if not session.is_completed:
            raise ValueError("Only finished sessions can be committed")

        existing = await self._get_record(StudySessionRecord, session.id)
        if existing is not None:
            logger.info(f"Session {session.id} already committed; skipping write")
            return False

        self.db.add(
            StudySessionRecord(
                user_id=self.user_id,
                **session.model_dump(mode="json"),
            )
        )

        result = await self.db.execute(
            update(SubjectRecord)
            .where(
                SubjectRecord.id == session.subject_id,
                SubjectRecord.user_id == self.user_id,
            )
            .values(total_study_time=SubjectRecord.total_study_time + session.duration)
        )
        if result.rowcount == 0:
            logger.warning(
                f"Subject {session.subject_id} not found; session {session.id} "
                "recorded without updating a subject total"
            )

        stat_result = await self.db.execute(
            select(DailyStatRecord)
            .where(
                DailyStatRecord.user_id == self.user_id,
                DailyStatRecord.date == day_key,
            )
            .with_for_update()
        )
        stat = stat_result.scalar_one_or_none()
        if stat is None:
            self.db.add(
                DailyStatRecord(
                    user_id=self.user_id,
                    date=day_key,
                    total_study_time=session.duration,
                    sessions_count=1,
                    subjects_studied=[session.subject_id],
                )
            )
        else:
            stat.total_study_time += session.duration
            stat.sessions_count += 1
            subjects = list(stat.subjects_studied or [])
            if session.subject_id not in subjects:
                subjects.append(session.subject_id)
            # Reassign so the JSON column is flagged dirty.
            stat.subjects_studied = subjects

        await self.db.commit()
        logger.info(
            f"Committed session {session.id} ({session.duration}s) for user "
            f"{self.user_id} on {day_key}"
        )
        return True

    # =========================================================================
    # Tasks
    # =========================================================================

    @store_operation("list tasks")
    async def list_tasks(self, day_key: Optional[str] = None) -> list[StudyTask]:
        query = select(StudyTaskRecord).where(StudyTaskRecord.user_id == self.user_id)
        if day_key is not None:
            query = query.where(StudyTaskRecord.date == day_key)
        records = await self._list_records(query.order_by(StudyTaskRecord.created_at))
        return [decode_row(StudyTask, r) for r in records]

    @store_operation("create task")
    async def create_task(self, data: StudyTaskCreate, now_ms: int) -> StudyTask:
        record = StudyTaskRecord(
            id=new_id(),
            user_id=self.user_id,
            is_completed=False,
            created_at=now_ms,
            **data.model_dump(mode="json"),
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return decode_row(StudyTask, record)

    @store_operation("update task")
    async def update_task(self, task_id: str, data: StudyTaskUpdate) -> Optional[StudyTask]:
        record = await self._update_record(
            StudyTaskRecord, task_id, data.model_dump(mode="json", exclude_unset=True)
        )
        return decode_row(StudyTask, record) if record else None

    @store_operation("delete task")
    async def delete_task(self, task_id: str) -> bool:
        return await self._delete_record(StudyTaskRecord, task_id)

    # =========================================================================
    # Todos
    # =========================================================================

    @store_operation("list todos")
    async def list_todos(self, period: PlannerPeriod, period_id: str) -> list[StudyTodo]:
        records = await self._list_records(
            select(StudyTodoRecord)
            .where(
                StudyTodoRecord.user_id == self.user_id,
                StudyTodoRecord.period == period.value,
                StudyTodoRecord.date == period_id,
            )
            .order_by(StudyTodoRecord.created_at)
        )
        return [decode_row(StudyTodo, r) for r in records]

    @store_operation("create todo")
    async def create_todo(
        self, text: str, period: PlannerPeriod, period_id: str, now_ms: int
    ) -> StudyTodo:
        record = StudyTodoRecord(
            id=new_id(),
            user_id=self.user_id,
            text=text,
            is_completed=False,
            date=period_id,
            period=period.value,
            created_at=now_ms,
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return decode_row(StudyTodo, record)

    @store_operation("update todo")
    async def set_todo_completed(self, todo_id: str, is_completed: bool) -> Optional[StudyTodo]:
        record = await self._update_record(
            StudyTodoRecord, todo_id, {"is_completed": is_completed}
        )
        return decode_row(StudyTodo, record) if record else None

    @store_operation("delete todo")
    async def delete_todo(self, todo_id: str) -> bool:
        return await self._delete_record(StudyTodoRecord, todo_id)

    # =========================================================================
    # Exam deadlines
    # =========================================================================

    @store_operation("list deadlines")
    async def list_deadlines(self) -> list[ExamDeadline]:
        records = await self._list_records(
            select(ExamDeadlineRecord)
            .where(ExamDeadlineRecord.user_id == self.user_id)
            .order_by(ExamDeadlineRecord.date)
        )
        return [decode_row(ExamDeadline, r) for r in records]

    @store_operation("create deadline")
    async def create_deadline(self, data: ExamDeadlineCreate, now_ms: int) -> ExamDeadline:
        record = ExamDeadlineRecord(
            id=new_id(),
            user_id=self.user_id,
            created_at=now_ms,
            **data.model_dump(),
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return decode_row(ExamDeadline, record)

    @store_operation("update deadline")
    async def update_deadline(
        self, deadline_id: str, data: ExamDeadlineUpdate
    ) -> Optional[ExamDeadline]:
        record = await self._update_record(
            ExamDeadlineRecord, deadline_id, data.model_dump(exclude_unset=True)
        )
        return decode_row(ExamDeadline, record) if record else None

    @store_operation("delete deadline")
    async def delete_deadline(self, deadline_id: str) -> bool:
        return await self._delete_record(ExamDeadlineRecord, deadline_id)

    # =========================================================================
    # Goals
    # =========================================================================

    @store_operation("list goals")
    async def list_goals(self) -> list[Goal]:
        records = await self._list_records(
            select(GoalRecord)
            .where(GoalRecord.user_id == self.user_id)
            .order_by(GoalRecord.created_at)
        )
        return [decode_row(Goal, r) for r in records]

    @store_operation("create goal")
    async def create_goal(self, data: GoalCreate, now_ms: int) -> Goal:
        record = GoalRecord(
            id=new_id(),
            user_id=self.user_id,
            created_at=now_ms,
            **data.model_dump(mode="json"),
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return decode_row(Goal, record)

    @store_operation("delete goal")
    async def delete_goal(self, goal_id: str) -> bool:
        return await self._delete_record(GoalRecord, goal_id)

    # =========================================================================
    # Preferences
    # =========================================================================

    @store_operation("get preferences")
    async def get_preferences(self) -> Optional[UserPreferences]:
        record = await self.db.get(UserPreferencesRecord, self.user_id)
        return decode_row(UserPreferences, record) if record else None

    @store_operation("save preferences")
    async def save_preferences(self, prefs: UserPreferences) -> UserPreferences:
        record = await self.db.get(UserPreferencesRecord, self.user_id)
        values = prefs.model_dump(mode="json")
        if record is None:
            record = UserPreferencesRecord(user_id=self.user_id, **values)
            self.db.add(record)
        else:
            for key, value in values.items():
                setattr(record, key, value)
        await self.db.commit()
        await self.db.refresh(record)
        return decode_row(UserPreferences, record)
