"""
Achievement Evaluation

Stateless predicates over the session history and daily ledger. Re-evaluated
on demand; the badge set is fixed and always returned in full.

Badges:
- Early Bird: a completed session started before 08:00 local time
- Night Owl: a completed session started at or after 22:00 local time
- Focus Marathon: a completed session longer than 2 hours
- Consistency King: longest streak of at least 3 days
- Deep Diver: described as 5+ hours on one subject, but no rule evaluates
  it; it is always locked

Usage:
    from studytrack.services.study.achievements import get_achievements

    badges = get_achievements(sessions, daily_stats)
"""

from datetime import date, tzinfo
from typing import Iterable, Optional

from studytrack.config import settings
from studytrack.enums.study import AuraId, BadgeId
from studytrack.models.study import AchievementBadge, DailyStat, Statistics, StudySession
from studytrack.services.study.periods import to_local_datetime
from studytrack.services.study.statistics import completed_sessions
from studytrack.services.study.streaks import calculate_streak


def get_achievements(
    sessions: Iterable[StudySession],
    daily_stats: Iterable[DailyStat],
    tz: Optional[tzinfo] = None,
    today: Optional[date] = None,
) -> list[AchievementBadge]:
    """
    Evaluate every badge.

    Args:
        sessions: Session history; only completed sessions count.
        daily_stats: Daily ledger for the streak badge.
        tz: Timezone for session start hours (default configured local).
        today: Reference date for streak evaluation.

    Returns:
        The five badges in fixed order with their unlock state.
    """
    completed = completed_sessions(sessions)
    start_hours = [to_local_datetime(s.start_time, tz).hour for s in completed]
    longest_streak = calculate_streak(daily_stats or [], today).longest

    return [
        AchievementBadge(
            id=BadgeId.EARLY_BIRD,
            title="Early Bird",
            description="Study before 8:00 AM",
            icon="🌅",
            unlocked=any(h < settings.EARLY_BIRD_BEFORE_HOUR for h in start_hours),
        ),
        AchievementBadge(
            id=BadgeId.NIGHT_OWL,
            title="Night Owl",
            description="Study after 10:00 PM",
            icon="🦉",
            unlocked=any(h >= settings.NIGHT_OWL_FROM_HOUR for h in start_hours),
        ),
        AchievementBadge(
            id=BadgeId.MARATHON,
            title="Focus Marathon",
            description="Study for more than 2 hours in one session",
            icon="🏃",
            unlocked=any(s.duration > settings.MARATHON_MIN_SECONDS for s in completed),
        ),
        AchievementBadge(
            id=BadgeId.STREAK_3,
            title="Consistency King",
            description="Hold a 3-day study streak",
            icon="👑",
            unlocked=longest_streak >= settings.CONSISTENCY_STREAK_DAYS,
        ),
        # Known discrepancy: the description promises a per-subject threshold
        # that is never evaluated. Kept locked to match shipped behavior.
        AchievementBadge(
            id=BadgeId.SUBJECT_MASTER,
            title="Deep Diver",
            description="Spend 5+ hours on a single subject",
            icon="🤿",
            unlocked=False,
        ),
    ]


def check_aura_unlock(aura_id: str, stats: Statistics) -> bool:
    """
    Whether a theme aura is unlocked for the given statistics.

    Pro-only auras are unlocked here; entitlement checks happen elsewhere.
    Unknown aura ids are locked.
    """
    try:
        aura = AuraId(aura_id)
    except ValueError:
        return False

    if aura in (AuraId.DEFAULT, AuraId.CYBERPUNK, AuraId.SAKURA, AuraId.OCEANIC):
        return True
    if aura == AuraId.GOLDEN:
        return stats.current_streak >= 7 or stats.longest_streak >= 7
    if aura == AuraId.EMERALD:
        return stats.total_study_time / 3600 >= 50
    if aura == AuraId.RUBY:
        return stats.total_sessions >= 100
    if aura == AuraId.MIDNIGHT:
        return stats.current_streak >= 14 or stats.longest_streak >= 14
    return False
