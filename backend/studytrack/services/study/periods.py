"""
Period Filter and Calendar Keys

Classifies sessions and date keys into day/week/month buckets and builds the
identifiers used by the planner.

Two week definitions coexist and must not be unified:
- Reporting (ReportPeriod.WEEK): the trailing 7 calendar days ending at the
  reference date, inclusive.
- Planner (PlannerPeriod.WEEKLY): ISO 8601 week identifier YYYY-Www
  (Monday start, the week containing January 4 is week 1).

Calendar dates are local. A session's date is derived from its start time in
the configured timezone (LOCAL_TIMEZONE, host timezone when unset).

Usage:
    from studytrack.services.study.periods import filter_sessions_by_period

    this_week = filter_sessions_by_period(sessions, ReportPeriod.WEEK)
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Optional

from studytrack.config import settings
from studytrack.enums.study import PlannerPeriod, ReportPeriod
from studytrack.models.study import StudySession

WEEK_WINDOW_DAYS = 7


def resolve_tz(tz: Optional[tzinfo] = None) -> Optional[tzinfo]:
    """Return tz, falling back to the configured local timezone."""
    return tz if tz is not None else settings.local_tz


def to_local_datetime(epoch_ms: int, tz: Optional[tzinfo] = None) -> datetime:
    """Convert epoch milliseconds to a local datetime."""
    return datetime.fromtimestamp(epoch_ms / 1000, resolve_tz(tz))


def local_today(tz: Optional[tzinfo] = None) -> date:
    """Today's local calendar date."""
    return datetime.now(resolve_tz(tz)).date()


def date_key(d: date) -> str:
    """YYYY-MM-DD key for a calendar date."""
    return d.strftime("%Y-%m-%d")


def parse_date_key(key: str) -> date:
    """Parse a YYYY-MM-DD key."""
    return datetime.strptime(key, "%Y-%m-%d").date()


def local_date_key(epoch_ms: int, tz: Optional[tzinfo] = None) -> str:
    """Local YYYY-MM-DD key of an epoch-ms timestamp."""
    return date_key(to_local_datetime(epoch_ms, tz).date())


def week_date_keys(reference: Optional[date] = None) -> list[str]:
    """
    Date keys of the trailing 7-day window, oldest first.

    Args:
        reference: Last day of the window (default today).
    """
    reference = reference or local_today()
    return [
        date_key(reference - timedelta(days=offset))
        for offset in range(WEEK_WINDOW_DAYS - 1, -1, -1)
    ]


def week_identifier(d: Optional[date] = None) -> str:
    """ISO 8601 week identifier, e.g. 2026-W42."""
    d = d or local_today()
    iso_year, iso_week, _ = d.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_identifier(d: Optional[date] = None) -> str:
    """Calendar month identifier, e.g. 2026-10."""
    d = d or local_today()
    return f"{d.year}-{d.month:02d}"


def planner_period_id(period: PlannerPeriod, d: date) -> str:
    """
    Identifier a planner todo is filed under.

    Args:
        period: Planner scope.
        d: Any date inside the period.
    """
    if period == PlannerPeriod.WEEKLY:
        return week_identifier(d)
    if period == PlannerPeriod.MONTHLY:
        return month_identifier(d)
    return date_key(d)


def is_within_period(
    key: str,
    period: ReportPeriod,
    reference: Optional[date] = None,
) -> bool:
    """
    Check whether a YYYY-MM-DD key falls in a reporting period.

    Args:
        key: Date key to classify.
        period: DAY (same date), WEEK (trailing 7 days ending at reference,
            inclusive) or MONTH (same YYYY-MM).
        reference: Reference date (default today).
    """
    reference = reference or local_today()
    d = parse_date_key(key)

    if period == ReportPeriod.DAY:
        return d == reference
    if period == ReportPeriod.WEEK:
        window_start = reference - timedelta(days=WEEK_WINDOW_DAYS - 1)
        return window_start <= d <= reference
    if period == ReportPeriod.MONTH:
        return month_identifier(d) == month_identifier(reference)
    return False


def filter_sessions_by_period(
    sessions: Iterable[StudySession],
    period: ReportPeriod,
    reference: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> list[StudySession]:
    """
    Completed sessions whose local start date falls in the period.

    Active sessions (no end_time) are excluded. Order is preserved.

    Args:
        sessions: Session history.
        period: Reporting period.
        reference: Reference date (default today in tz).
        tz: Timezone for deriving session dates.
    """
    reference = reference or local_today(tz)
    return [
        s
        for s in sessions
        if s.is_completed
        and is_within_period(local_date_key(s.start_time, tz), period, reference)
    ]
