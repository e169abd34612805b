"""
Study Tracking Enums

Defines enums for the session state machine, reporting periods, planner
items and achievements.
"""

from enum import Enum


class SessionState(str, Enum):
    """
    States of the active study session.

    State transitions:
    - IDLE → RUNNING (start)
    - RUNNING → PAUSED (pause) and PAUSED → RUNNING (resume)
    - RUNNING/PAUSED → IDLE (finalize, durable write confirmed)
    - RUNNING/PAUSED → SYNC_PENDING (finalize, durable write failed)
    - SYNC_PENDING → IDLE (sync retry succeeds)
    """

    IDLE = "idle"  # No active session
    RUNNING = "running"  # Timer counting
    PAUSED = "paused"  # Elapsed time frozen
    SYNC_PENDING = "sync_pending"  # Finalized locally, durable write outstanding


class FinalizeStatus(str, Enum):
    """Outcome of committing a finished session to the durable store."""

    COMMITTED = "committed"
    SYNC_PENDING = "sync_pending"


class ReportPeriod(str, Enum):
    """
    Reporting buckets for session filtering.

    WEEK is a trailing 7-day window ending at the reference date, not an
    ISO calendar week.
    """

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class PlannerPeriod(str, Enum):
    """
    Planner todo scopes.

    Todos are keyed by a period identifier:
    - DAILY: YYYY-MM-DD
    - WEEKLY: ISO week, YYYY-Www
    - MONTHLY: YYYY-MM
    """

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TaskPriority(str, Enum):
    """Priority of a scheduled study task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalType(str, Enum):
    """Study-time goal horizon."""

    DAILY = "daily"
    WEEKLY = "weekly"


class BadgeId(str, Enum):
    """Fixed achievement badge identifiers."""

    EARLY_BIRD = "early_bird"
    NIGHT_OWL = "night_owl"
    MARATHON = "marathon"
    STREAK_3 = "streak_3"
    SUBJECT_MASTER = "subject_master"


class AuraId(str, Enum):
    """Unlockable theme auras."""

    DEFAULT = "default"
    GOLDEN = "golden"
    EMERALD = "emerald"
    RUBY = "ruby"
    MIDNIGHT = "midnight"
    CYBERPUNK = "cyberpunk"
    SAKURA = "sakura"
    OCEANIC = "oceanic"


class ActiveSessionBackend(str, Enum):
    """Where the single active-session record is kept."""

    FILE = "file"  # JSON file per user on local disk
    REDIS = "redis"  # Redis key per user
