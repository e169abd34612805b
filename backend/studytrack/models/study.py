"""
Study Tracking Models (Pydantic)

Domain objects and request/response schemas for the study tracker:
- Subjects, study sessions and the per-day ledger
- Planner items (tasks, todos, exam deadlines, goals)
- Derived statistics, streaks and achievements
- Session timer snapshots and finalize outcomes

ARCHITECTURE NOTE:
    This file contains PYDANTIC models. The SQLAlchemy records live in
    studytrack/db/models.py and are converted with model_validate(row).

    Data flows: Store Row → Pydantic → Service → API Response

Timestamps are epoch milliseconds. Durations are seconds, except
StudySession.total_paused_ms which accumulates milliseconds so it can be
subtracted from the millisecond timestamps directly.
"""

from typing import Optional

from pydantic import Field

from studytrack.config import settings
from studytrack.enums.study import (
    BadgeId,
    FinalizeStatus,
    GoalType,
    PlannerPeriod,
    SessionState,
    TaskPriority,
)
from studytrack.models.base import StrictRequest, StrictResponse

DATE_KEY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


# ===========================================
# Subjects
# ===========================================


class Subject(StrictResponse):
    """A subject the user studies. total_study_time grows as sessions finalize."""

    id: str
    name: str
    color: str
    icon: Optional[str] = None
    created_at: int
    total_study_time: int = Field(0, ge=0)  # Seconds


class SubjectCreate(StrictRequest):
    """Request to create a subject."""

    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(..., min_length=1, max_length=32)
    icon: Optional[str] = Field(None, max_length=64)


class SubjectUpdate(StrictRequest):
    """Partial subject update. The study-time total is not client-writable."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, min_length=1, max_length=32)
    icon: Optional[str] = Field(None, max_length=64)


# ===========================================
# Study Sessions
# ===========================================


class StudySession(StrictResponse):
    """
    A study session.

    While active (end_time is None) the session lives only in local storage
    and duration stays 0. duration becomes authoritative once end_time is set.

    Attributes:
        id: Unique identifier.
        subject_id: Owning subject.
        start_time: Epoch ms when the session started.
        end_time: Epoch ms when the session was finalized.
        duration: Final study time in seconds.
        notes: Optional free-text notes.
        is_paused: Whether the timer is currently paused.
        paused_at: Epoch ms of the current pause, if paused.
        total_paused_ms: Accumulated paused time in milliseconds.
    """

    id: str
    subject_id: str
    start_time: int
    end_time: Optional[int] = None
    duration: int = Field(0, ge=0)
    notes: Optional[str] = None
    is_paused: bool = False
    paused_at: Optional[int] = None
    total_paused_ms: int = Field(0, ge=0)

    @property
    def is_completed(self) -> bool:
        return self.end_time is not None


class DailyStat(StrictResponse):
    """Per-calendar-date aggregate of finalized study time."""

    date: str = Field(..., pattern=DATE_KEY_PATTERN)
    total_study_time: int = Field(0, ge=0)  # Seconds
    sessions_count: int = Field(0, ge=0)
    subjects_studied: list[str] = Field(default_factory=list)


# ===========================================
# Planner
# ===========================================


class StudyTask(StrictResponse):
    """A scheduled unit of work on a specific date."""

    id: str
    subject_id: str
    topic: str
    planned_duration: int  # Minutes
    is_completed: bool = False
    date: str = Field(..., pattern=DATE_KEY_PATTERN)
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: int


class StudyTaskCreate(StrictRequest):
    """Request to schedule a task."""

    subject_id: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1, max_length=200)
    planned_duration: int = Field(45, ge=1, le=24 * 60)
    date: str = Field(..., pattern=DATE_KEY_PATTERN)
    priority: TaskPriority = TaskPriority.MEDIUM


class StudyTaskUpdate(StrictRequest):
    """Partial task update."""

    topic: Optional[str] = Field(None, min_length=1, max_length=200)
    planned_duration: Optional[int] = Field(None, ge=1, le=24 * 60)
    is_completed: Optional[bool] = None
    date: Optional[str] = Field(None, pattern=DATE_KEY_PATTERN)
    priority: Optional[TaskPriority] = None


class StudyTodo(StrictResponse):
    """
    Checklist item scoped to a planner period.

    date holds the period identifier: YYYY-MM-DD for daily, YYYY-Www for
    weekly, YYYY-MM for monthly.
    """

    id: str
    text: str
    is_completed: bool = False
    date: str
    period: PlannerPeriod
    created_at: int


class StudyTodoCreate(StrictRequest):
    """Request to add a todo for the period containing selected_date."""

    text: str = Field(..., min_length=1, max_length=500)
    period: PlannerPeriod = PlannerPeriod.DAILY
    selected_date: str = Field(..., pattern=DATE_KEY_PATTERN)


class StudyTodoUpdate(StrictRequest):
    """Check or uncheck a todo."""

    is_completed: bool


class ExamDeadline(StrictResponse):
    """An exam or deadline with the user's preparation level."""

    id: str
    name: str
    date: str = Field(..., pattern=DATE_KEY_PATTERN)
    preparation_level: int = Field(0, ge=0, le=100)  # Percent
    created_at: int


class ExamDeadlineCreate(StrictRequest):
    """Request to add an exam deadline."""

    name: str = Field(..., min_length=1, max_length=200)
    date: str = Field(..., pattern=DATE_KEY_PATTERN)
    preparation_level: int = Field(0, ge=0, le=100)


class ExamDeadlineUpdate(StrictRequest):
    """Partial deadline update."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    date: Optional[str] = Field(None, pattern=DATE_KEY_PATTERN)
    preparation_level: Optional[int] = Field(None, ge=0, le=100)


class DeadlineCountdown(StrictResponse):
    """An exam deadline with its countdown."""

    deadline: ExamDeadline
    days_remaining: int
    is_urgent: bool


class Goal(StrictResponse):
    """A daily or weekly study-time target."""

    id: str
    type: GoalType
    target_minutes: int = Field(..., ge=1)
    created_at: int


class GoalCreate(StrictRequest):
    """Request to add a goal."""

    type: GoalType = GoalType.DAILY
    target_minutes: int = Field(..., ge=1, le=24 * 60 * 7)


class GoalProgress(StrictResponse):
    """Progress towards a goal from the daily ledger."""

    goal: Goal
    current_minutes: int
    percentage: float


class UserPreferences(StrictResponse):
    """Per-user preferences. Missing preferences are reported as None, not an error."""

    onboarding_complete: bool = False
    full_name: Optional[str] = None
    username: Optional[str] = None
    academic_level: Optional[str] = None
    daily_goal_minutes: int = Field(
        default_factory=lambda: settings.DEFAULT_DAILY_GOAL_MINUTES, ge=1
    )
    accent_color: Optional[str] = None
    selected_subject_ids: list[str] = Field(default_factory=list)
    active_theme_id: Optional[str] = None
    is_pro: bool = False


# ===========================================
# Derived Statistics
# ===========================================


class StreakResult(StrictResponse):
    """Current and longest consecutive-day streaks."""

    current: int = 0
    longest: int = 0


class StreakData(StrictResponse):
    """
    Streak information with milestone tracking.

    Gamification element: milestones_reached lists every configured milestone
    the longest streak has met; next_milestone is the first one above the
    current streak.
    """

    current_streak: int
    longest_streak: int
    is_active_today: bool
    milestones_reached: list[int] = Field(default_factory=list)
    next_milestone: Optional[int] = None


class Statistics(StrictResponse):
    """Summary statistics over completed sessions and the daily ledger."""

    total_study_time: int  # Seconds
    current_streak: int
    longest_streak: int
    total_sessions: int
    average_session_duration: float  # Seconds
    daily_stats: list[DailyStat] = Field(default_factory=list)


class StudyTimeSummary(StrictResponse):
    """Study time today and over the trailing week."""

    today_seconds: int
    week_seconds: int
    today_formatted: str
    week_formatted: str


class AchievementBadge(StrictResponse):
    """A fixed badge definition with its unlock state."""

    id: BadgeId
    title: str
    description: str
    icon: str
    unlocked: bool


class AuraStatus(StrictResponse):
    """Unlock state of a theme aura."""

    aura_id: str
    unlocked: bool


# ===========================================
# Session Timer
# ===========================================


class StartSessionRequest(StrictRequest):
    """Request to start a session. subject_id is required by the timer."""

    subject_id: Optional[str] = None


class ConfirmStopRequest(StrictRequest):
    """Second step of the stop flow: commit the prompted session."""

    session_id: str = Field(..., min_length=1)


class TimerSnapshot(StrictResponse):
    """What the UI renders on each tick."""

    state: SessionState
    session: Optional[StudySession] = None
    elapsed_seconds: int = 0
    elapsed_formatted: str = "00:00:00"


class StopPrompt(StrictResponse):
    """Confirmation prompt returned by the first step of the stop flow."""

    session_id: str
    elapsed_seconds: int
    message: str


class FinalizeOutcome(StrictResponse):
    """
    Result of committing a finished session.

    status is COMMITTED once the durable write is confirmed and the active slot
    cleared. SYNC_PENDING means the finished session is held in the active slot
    and error describes the last failure.
    """

    status: FinalizeStatus
    session: StudySession
    error: Optional[str] = None
