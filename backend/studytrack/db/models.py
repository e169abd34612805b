"""
SQLAlchemy Database Models for the Study Tracker

Every durable row is scoped by user_id; the service layer never sees these
records directly but validates them into the Pydantic models in
studytrack/models/study.py.

Tables:
- subjects: Subjects with their cumulative study time
- study_sessions: Finalized study sessions
- daily_stats: Per-date study ledger, one row per (user, date)
- study_tasks: Scheduled tasks
- study_todos: Period-scoped checklist items
- exam_deadlines: Exam dates with preparation level
- goals: Daily/weekly study-time targets
- user_preferences: One row per user

ARCHITECTURE NOTE:
    Data flows: Service Layer → Pydantic → SQLAlchemy → Database

    The active (unfinished) session is NOT stored here. It lives in local
    storage (studytrack/db/local_store.py or studytrack/db/redis.py) until
    finalized.
"""

from typing import Optional

from sqlalchemy import JSON, BigInteger, Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from studytrack.db.base import Base


class SubjectRecord(Base):
    """
    Subject owned by a user.

    Attributes:
        id: Client-visible identifier.
        user_id: Owning user.
        name: Display name.
        color: Accent color (hex string).
        icon: Optional icon name.
        created_at: Epoch ms.
        total_study_time: Cumulative seconds, incremented on finalize.
    """

    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    name: Mapped[str] = mapped_column(String(100))
    color: Mapped[str] = mapped_column(String(32))
    icon: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[int] = mapped_column(BigInteger)
    total_study_time: Mapped[int] = mapped_column(Integer, default=0)


class StudySessionRecord(Base):
    """
    Finalized study session.

    Only completed sessions reach this table, so end_time is always set in
    practice; it stays nullable to mirror the domain model.
    """

    __tablename__ = "study_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    subject_id: Mapped[str] = mapped_column(String(64), index=True)
    start_time: Mapped[int] = mapped_column(BigInteger)
    end_time: Mapped[Optional[int]] = mapped_column(BigInteger)
    duration: Mapped[int] = mapped_column(Integer, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False)
    paused_at: Mapped[Optional[int]] = mapped_column(BigInteger)
    total_paused_ms: Mapped[int] = mapped_column(BigInteger, default=0)


class DailyStatRecord(Base):
    """
    Per-date study ledger.

    Attributes:
        user_id: Owning user (part of primary key).
        date: Local calendar date, YYYY-MM-DD (part of primary key).
        total_study_time: Seconds studied that day. Never decreases.
        sessions_count: Number of sessions finalized that day.
        subjects_studied: JSON list of subject ids, no duplicates.
    """

    __tablename__ = "daily_stats"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    date: Mapped[str] = mapped_column(String(10), primary_key=True)
    total_study_time: Mapped[int] = mapped_column(Integer, default=0)
    sessions_count: Mapped[int] = mapped_column(Integer, default=0)
    subjects_studied: Mapped[list] = mapped_column(JSON, default=list)


class StudyTaskRecord(Base):
    """Scheduled study task for a date."""

    __tablename__ = "study_tasks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    subject_id: Mapped[str] = mapped_column(String(64))
    topic: Mapped[str] = mapped_column(String(200))
    planned_duration: Mapped[int] = mapped_column(Integer)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    date: Mapped[str] = mapped_column(String(10), index=True)
    priority: Mapped[str] = mapped_column(String(10), default="medium")
    created_at: Mapped[int] = mapped_column(BigInteger)


class StudyTodoRecord(Base):
    """Checklist item keyed by planner period and period identifier."""

    __tablename__ = "study_todos"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    text: Mapped[str] = mapped_column(Text)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    date: Mapped[str] = mapped_column(String(10), index=True)
    period: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[int] = mapped_column(BigInteger)


class ExamDeadlineRecord(Base):
    """Exam deadline with preparation level (0-100)."""

    __tablename__ = "exam_deadlines"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    name: Mapped[str] = mapped_column(String(200))
    date: Mapped[str] = mapped_column(String(10))
    preparation_level: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[int] = mapped_column(BigInteger)


class GoalRecord(Base):
    """Daily or weekly study-time target."""

    __tablename__ = "goals"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    type: Mapped[str] = mapped_column(String(10))
    target_minutes: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[int] = mapped_column(BigInteger)


class UserPreferencesRecord(Base):
    """Per-user preferences, one row per user."""

    __tablename__ = "user_preferences"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    onboarding_complete: Mapped[bool] = mapped_column(Boolean, default=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(200))
    username: Mapped[Optional[str]] = mapped_column(String(100))
    academic_level: Mapped[Optional[str]] = mapped_column(String(100))
    daily_goal_minutes: Mapped[int] = mapped_column(Integer, default=60)
    accent_color: Mapped[Optional[str]] = mapped_column(String(32))
    selected_subject_ids: Mapped[list] = mapped_column(JSON, default=list)
    active_theme_id: Mapped[Optional[str]] = mapped_column(String(64))
    is_pro: Mapped[bool] = mapped_column(Boolean, default=False)
