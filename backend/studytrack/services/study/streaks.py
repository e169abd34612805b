"""
Streak Calculation

Derives current and longest consecutive-day streaks from the daily ledger.

Responsibilities:
- Count the current streak of consecutive study days ending today
- Find the longest run of consecutive study days ever
- Report streak milestones

A day counts only if its DailyStat exists and has total_study_time > 0. Date
keys are plain calendar dates; no timezone conversion happens here.

Usage:
    from studytrack.services.study.streaks import calculate_streak

    result = calculate_streak(daily_stats)
    print(result.current, result.longest)
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from studytrack.config import settings
from studytrack.models.study import DailyStat, StreakData, StreakResult
from studytrack.services.study.periods import local_today, parse_date_key


def active_dates(daily_stats: Iterable[DailyStat]) -> set[date]:
    """Dates with recorded study time."""
    return {
        parse_date_key(stat.date) for stat in daily_stats if stat.total_study_time > 0
    }


def calculate_current_streak(active: set[date], today: date) -> int:
    """
    Count consecutive study days walking back from today.

    If today has no study time yet the walk starts at yesterday, so a streak
    stays alive until the day is over. The walk stops at the first day
    without study time.

    Args:
        active: Dates with study time.
        today: Reference date.

    Returns:
        Length of the current streak in days.
    """
    check = today if today in active else today - timedelta(days=1)

    streak = 0
    while check in active:
        streak += 1
        check -= timedelta(days=1)
    return streak


def calculate_longest_streak(active: set[date]) -> int:
    """
    Length of the longest run of calendar-adjacent study days.

    Args:
        active: Dates with study time.

    Returns:
        Longest streak in days (0 for no activity).
    """
    if not active:
        return 0

    sorted_dates = sorted(active)
    longest = 1
    current = 1

    for i in range(1, len(sorted_dates)):
        if sorted_dates[i] == sorted_dates[i - 1] + timedelta(days=1):
            current += 1
            longest = max(longest, current)
        else:
            current = 1

    return longest


def calculate_streak(
    daily_stats: Iterable[DailyStat],
    today: Optional[date] = None,
) -> StreakResult:
    """
    Current and longest streak from the daily ledger.

    Args:
        daily_stats: DailyStat records in any order.
        today: Reference date (default local today).

    Returns:
        StreakResult; (0, 0) for an empty ledger.
    """
    active = active_dates(daily_stats or [])
    if not active:
        return StreakResult(current=0, longest=0)

    today = today or local_today()
    return StreakResult(
        current=calculate_current_streak(active, today),
        longest=calculate_longest_streak(active),
    )


def build_streak_data(
    daily_stats: Iterable[DailyStat],
    today: Optional[date] = None,
    milestones: Optional[list[int]] = None,
) -> StreakData:
    """
    Streak result enriched with milestones.

    Args:
        daily_stats: DailyStat records.
        today: Reference date (default local today).
        milestones: Milestone day counts (default STREAK_MILESTONES).
    """
    stats = list(daily_stats or [])
    today = today or local_today()
    milestones = sorted(milestones if milestones is not None else settings.STREAK_MILESTONES)
    result = calculate_streak(stats, today)

    return StreakData(
        current_streak=result.current,
        longest_streak=result.longest,
        is_active_today=today in active_dates(stats),
        milestones_reached=[m for m in milestones if result.longest >= m],
        next_milestone=next((m for m in milestones if m > result.current), None),
    )
