"""
Study Tracking Services

Session timing, derived statistics and the durable study store.

Modules:
- session_timer: Active-session state machine with retried finalize
- repository: Durable store for subjects, sessions, ledger and planner
- streaks: Current and longest study streaks
- statistics: Summary statistics and weekly totals
- periods: Day/week/month filters and planner identifiers
- achievements: Badge and aura unlock rules
- planner: Deadline countdowns and goal progress
- time_format: Human-readable durations
- clock: Wall-clock seam

Usage:
    from studytrack.services.study import (
        SessionTimer,
        StudyRepository,
        calculate_streak,
        calculate_statistics,
    )
"""

from studytrack.services.study.achievements import check_aura_unlock, get_achievements
from studytrack.services.study.clock import Clock, SystemClock, system_clock
from studytrack.services.study.periods import (
    filter_sessions_by_period,
    planner_period_id,
    week_identifier,
)
from studytrack.services.study.planner import deadline_countdown, goal_progress
from studytrack.services.study.repository import StudyRepository
from studytrack.services.study.session_timer import (
    SessionTimer,
    compute_elapsed_seconds,
    session_state,
)
from studytrack.services.study.statistics import (
    calculate_statistics,
    last_7_days_stats,
    today_study_time,
    week_study_time,
)
from studytrack.services.study.streaks import build_streak_data, calculate_streak
from studytrack.services.study.time_format import format_time, format_time_detailed

__all__ = [
    # Timer
    "SessionTimer",
    "compute_elapsed_seconds",
    "session_state",
    "Clock",
    "SystemClock",
    "system_clock",
    # Store
    "StudyRepository",
    # Derived
    "calculate_streak",
    "build_streak_data",
    "calculate_statistics",
    "today_study_time",
    "week_study_time",
    "last_7_days_stats",
    "filter_sessions_by_period",
    "planner_period_id",
    "week_identifier",
    "get_achievements",
    "check_aura_unlock",
    "deadline_countdown",
    "goal_progress",
    "format_time",
    "format_time_detailed",
]
