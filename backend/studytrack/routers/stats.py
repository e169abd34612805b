"""
Statistics API Router

Derived statistics computed from the session history and daily ledger.

Endpoints:
- GET /api/stats - Summary statistics
- GET /api/stats/streak - Streak with milestones
- GET /api/stats/achievements - Badge unlock states
- GET /api/stats/sessions - Completed sessions in a day/week/month
- GET /api/stats/last-7-days - Ledger for the trailing week, zero-filled
- GET /api/stats/summary - Study time today and this week
- GET /api/stats/auras/{aura_id} - Aura unlock state
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from studytrack.dependencies import get_repository, get_today
from studytrack.enums.study import ReportPeriod
from studytrack.middleware.error_handling import ValidationError, handle_endpoint_errors
from studytrack.models.study import (
    DATE_KEY_PATTERN,
    AchievementBadge,
    AuraStatus,
    DailyStat,
    Statistics,
    StreakData,
    StudySession,
    StudyTimeSummary,
)
from studytrack.services.study.achievements import check_aura_unlock, get_achievements
from studytrack.services.study.periods import filter_sessions_by_period, parse_date_key
from studytrack.services.study.repository import StudyRepository
from studytrack.services.study.statistics import (
    calculate_statistics,
    last_7_days_stats,
    today_study_time,
    week_study_time,
)
from studytrack.services.study.streaks import build_streak_data
from studytrack.services.study.time_format import format_time

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=Statistics)
@handle_endpoint_errors("Get statistics")
async def get_statistics(
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> Statistics:
    sessions = await repository.list_sessions()
    daily_stats = await repository.list_daily_stats()
    return calculate_statistics(sessions, daily_stats, today)


@router.get("/streak", response_model=StreakData)
@handle_endpoint_errors("Get streak")
async def get_streak(
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> StreakData:
    """Current and longest streak plus milestones reached and next."""
    return build_streak_data(await repository.list_daily_stats(), today)


@router.get("/achievements", response_model=list[AchievementBadge])
@handle_endpoint_errors("Get achievements")
async def list_achievements(
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> list[AchievementBadge]:
    sessions = await repository.list_sessions()
    daily_stats = await repository.list_daily_stats()
    return get_achievements(sessions, daily_stats, today=today)


@router.get("/sessions", response_model=list[StudySession])
@handle_endpoint_errors("Get sessions by period")
async def list_sessions_by_period(
    period: ReportPeriod = Query(ReportPeriod.DAY),
    reference: Optional[str] = Query(
        None, alias="date", pattern=DATE_KEY_PATTERN, description="Reference date"
    ),
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> list[StudySession]:
    """
    Completed sessions in a reporting period.

    week is the trailing 7 days ending at the reference date.
    """
    try:
        reference_date = parse_date_key(reference) if reference else today
    except ValueError as e:
        raise ValidationError(f"Invalid date: {reference}") from e
    sessions = await repository.list_sessions()
    return filter_sessions_by_period(sessions, period, reference_date)


@router.get("/last-7-days", response_model=list[DailyStat])
@handle_endpoint_errors("Get last 7 days")
async def get_last_7_days(
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> list[DailyStat]:
    return last_7_days_stats(await repository.list_daily_stats(), today)


@router.get("/summary", response_model=StudyTimeSummary)
@handle_endpoint_errors("Get study time summary")
async def get_summary(
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> StudyTimeSummary:
    daily_stats = await repository.list_daily_stats()
    today_seconds = today_study_time(daily_stats, today)
    week_seconds = week_study_time(daily_stats, today)
    return StudyTimeSummary(
        today_seconds=today_seconds,
        week_seconds=week_seconds,
        today_formatted=format_time(today_seconds),
        week_formatted=format_time(week_seconds),
    )


@router.get("/auras/{aura_id}", response_model=AuraStatus)
@handle_endpoint_errors("Check aura")
async def get_aura_status(
    aura_id: str,
    repository: StudyRepository = Depends(get_repository),
    today: date = Depends(get_today),
) -> AuraStatus:
    """Whether a theme aura is unlocked. Unknown ids report locked."""
    stats = calculate_statistics(
        await repository.list_sessions(),
        await repository.list_daily_stats(),
        today,
    )
    return AuraStatus(aura_id=aura_id, unlocked=check_aura_unlock(aura_id, stats))
