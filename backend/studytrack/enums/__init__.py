"""
Centralized enum definitions for the application.

All enums are organized by domain:
- study.py: Session states, reporting periods, planner items, badges
- api.py: Rate limit categories

Usage:
    from studytrack.enums import SessionState, ReportPeriod

    # Or import from specific module
    from studytrack.enums.study import PlannerPeriod
"""

from studytrack.enums.api import RateLimitType
from studytrack.enums.study import (
    ActiveSessionBackend,
    AuraId,
    BadgeId,
    FinalizeStatus,
    GoalType,
    PlannerPeriod,
    ReportPeriod,
    SessionState,
    TaskPriority,
)

__all__ = [
    "ActiveSessionBackend",
    "AuraId",
    "BadgeId",
    "FinalizeStatus",
    "GoalType",
    "PlannerPeriod",
    "RateLimitType",
    "ReportPeriod",
    "SessionState",
    "TaskPriority",
]
