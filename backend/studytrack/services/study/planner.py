"""
Planner Helpers

Countdown and progress calculations for exam deadlines and study goals.

Usage:
    from studytrack.services.study.planner import deadline_countdown

    countdown = deadline_countdown(deadline, clock.now_ms())
"""

import math
from datetime import date, datetime, time, tzinfo
from typing import Iterable, Optional

from studytrack.config import settings
from studytrack.enums.study import GoalType
from studytrack.models.study import DailyStat, DeadlineCountdown, ExamDeadline, Goal, GoalProgress
from studytrack.services.study.periods import parse_date_key, resolve_tz, to_local_datetime
from studytrack.services.study.statistics import today_study_time, week_study_time

SECONDS_PER_DAY = 24 * 60 * 60


def days_remaining(deadline_key: str, now_ms: int, tz: Optional[tzinfo] = None) -> int:
    """
    Days left until local midnight at the start of the deadline date.

    Partial days round up: at any time today, a deadline dated tomorrow
    reads 1. Past deadlines are zero or negative.
    """
    tz = resolve_tz(tz)
    deadline_start = datetime.combine(parse_date_key(deadline_key), time.min, tzinfo=tz)
    now = to_local_datetime(now_ms, tz)
    return math.ceil((deadline_start - now).total_seconds() / SECONDS_PER_DAY)


def is_urgent(days_left: int) -> bool:
    """Deadlines within DEADLINE_URGENT_DAYS are urgent."""
    return days_left < settings.DEADLINE_URGENT_DAYS


def deadline_countdown(
    deadline: ExamDeadline, now_ms: int, tz: Optional[tzinfo] = None
) -> DeadlineCountdown:
    """Wrap a deadline with its countdown."""
    days_left = days_remaining(deadline.date, now_ms, tz)
    return DeadlineCountdown(
        deadline=deadline,
        days_remaining=days_left,
        is_urgent=is_urgent(days_left),
    )


def goal_percentage(current_minutes: int, target_minutes: int) -> float:
    """Progress towards a target in percent, capped at 100."""
    if target_minutes <= 0:
        return 0.0
    return min(current_minutes / target_minutes * 100, 100.0)


def goal_progress(
    goal: Goal,
    daily_stats: Iterable[DailyStat],
    today: Optional[date] = None,
) -> GoalProgress:
    """
    Progress of a daily or weekly goal from the ledger.

    Daily goals count today's study time; weekly goals count the trailing
    7 days.
    """
    stats = list(daily_stats or [])
    if goal.type == GoalType.WEEKLY:
        seconds = week_study_time(stats, today)
    else:
        seconds = today_study_time(stats, today)

    current_minutes = seconds // 60
    return GoalProgress(
        goal=goal,
        current_minutes=current_minutes,
        percentage=goal_percentage(current_minutes, goal.target_minutes),
    )

