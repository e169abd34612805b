"""Pydantic models package."""

from studytrack.models.base import StrictRequest, StrictResponse, SuccessResponse
from studytrack.models.study import (
    AchievementBadge,
    DailyStat,
    ExamDeadline,
    FinalizeOutcome,
    Goal,
    Statistics,
    StopPrompt,
    StreakData,
    StreakResult,
    StudySession,
    StudyTask,
    StudyTodo,
    Subject,
    TimerSnapshot,
    UserPreferences,
)

__all__ = [
    "AchievementBadge",
    "DailyStat",
    "ExamDeadline",
    "FinalizeOutcome",
    "Goal",
    "Statistics",
    "StopPrompt",
    "StreakData",
    "StreakResult",
    "StrictRequest",
    "StrictResponse",
    "StudySession",
    "StudyTask",
    "StudyTodo",
    "Subject",
    "SuccessResponse",
    "TimerSnapshot",
    "UserPreferences",
]
