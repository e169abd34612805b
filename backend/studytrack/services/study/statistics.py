"""
Statistics Aggregation

Combines completed sessions and the daily ledger into summary statistics.
All functions are pure: identical inputs always give identical output.

Usage:
    from studytrack.services.study.statistics import calculate_statistics

    stats = calculate_statistics(sessions, daily_stats)
"""

from datetime import date
from typing import Iterable, Optional

from studytrack.models.study import DailyStat, Statistics, StudySession
from studytrack.services.study.periods import date_key, local_today, week_date_keys
from studytrack.services.study.streaks import calculate_streak


def completed_sessions(sessions: Iterable[StudySession]) -> list[StudySession]:
    """Sessions that have been finalized (end_time set)."""
    return [s for s in (sessions or []) if s.is_completed]


def calculate_statistics(
    sessions: Iterable[StudySession],
    daily_stats: Iterable[DailyStat],
    today: Optional[date] = None,
) -> Statistics:
    """
    Summary statistics over the session history.

    Args:
        sessions: Session history; sessions without end_time are ignored.
        daily_stats: Daily ledger for streak fields.
        today: Reference date for the current streak (default local today).

    Returns:
        Statistics. average_session_duration is 0 when nothing is completed.
    """
    completed = completed_sessions(sessions)
    stats = list(daily_stats or [])

    total_study_time = sum(s.duration for s in completed)
    average = total_study_time / len(completed) if completed else 0
    streak = calculate_streak(stats, today)

    return Statistics(
        total_study_time=total_study_time,
        current_streak=streak.current,
        longest_streak=streak.longest,
        total_sessions=len(completed),
        average_session_duration=average,
        daily_stats=stats,
    )


def today_study_time(
    daily_stats: Iterable[DailyStat],
    today: Optional[date] = None,
) -> int:
    """Seconds studied today according to the ledger."""
    key = date_key(today or local_today())
    return next(
        (s.total_study_time for s in (daily_stats or []) if s.date == key),
        0,
    )


def week_study_time(
    daily_stats: Iterable[DailyStat],
    today: Optional[date] = None,
) -> int:
    """Seconds studied over the trailing 7 days, today included."""
    keys = set(week_date_keys(today))
    return sum(s.total_study_time for s in (daily_stats or []) if s.date in keys)


def last_7_days_stats(
    daily_stats: Iterable[DailyStat],
    today: Optional[date] = None,
) -> list[DailyStat]:
    """
    Ledger entries for the trailing 7 days, oldest first.

    Days without an entry are filled with zero records so charts always show
    the actual recent week.
    """
    by_date = {s.date: s for s in (daily_stats or [])}
    return [
        by_date.get(key) or DailyStat(date=key)
        for key in week_date_keys(today)
    ]
