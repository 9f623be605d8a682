"""Reporting period windows with DST awareness.

Resolve a reporting period (day, week, month, year) and a reference instant
into the current window and the comparable previous window. Boundaries are
computed on local wall-clock time and localized in the reference instant's
timezone, so a local "day" that spans a DST change still starts and ends at
local midnight.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from ..core.time import get_current_time, localize

__all__ = [
    "PeriodWindow",
    "ReportingPeriod",
    "add_months",
    "get_week_start",
    "resolve_period_window",
    "rolling_window",
]

# Windows are closed intervals; ``end`` is the last representable instant
# before the next window starts.
_LAST_INSTANT = timedelta(microseconds=1)

SUNDAY = 6


class ReportingPeriod(str, Enum):
    """Bucket granularity and comparison window of a dashboard."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def parse(cls, value: ReportingPeriod | str) -> ReportingPeriod:
        """Parse a period name.

        Raises
        ------
        ValueError
            If the value is not a known period
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown reporting period: {value}") from None


@dataclass(frozen=True)
class PeriodWindow:
    """Current and previous comparison windows.

    Attributes
    ----------
    period : ReportingPeriod | None
        Period the window was resolved for (None for rolling windows)
    start : datetime
        First instant of the current window
    end : datetime
        Last instant of the current window (inclusive)
    previous_start : datetime
        First instant of the previous window
    previous_end : datetime
        Last instant of the previous window (inclusive)
    """

    period: ReportingPeriod | None
    start: datetime
    end: datetime
    previous_start: datetime
    previous_end: datetime

    def contains(self, dt: datetime) -> bool:
        """Check if ``dt`` falls in the current window."""
        return self.start <= dt <= self.end

    def contains_previous(self, dt: datetime) -> bool:
        """Check if ``dt`` falls in the previous window."""
        return self.previous_start <= dt <= self.previous_end

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO-8601 boundaries."""
        return {
            "period": self.period.value if self.period else None,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "previous_start": self.previous_start.isoformat(),
            "previous_end": self.previous_end.isoformat(),
        }


def get_week_start(dt: datetime, start_on: int = SUNDAY) -> datetime:
    """Get start of week for a datetime.

    Parameters
    ----------
    dt
        Datetime to get week start for
    start_on
        Day of week to start on (0=Monday, 6=Sunday)

    Returns
    -------
    datetime
        Start of week (same time as input)
    """
    days_since_start = (dt.weekday() - start_on) % 7
    return dt - timedelta(days=days_since_start)


def add_months(dt: datetime, months: int) -> datetime:
    """Shift the first day of ``dt``'s month by a number of calendar months.

    The result is always the 1st of the target month at midnight.
    """
    index = dt.year * 12 + (dt.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def _midnight(dt: datetime) -> datetime:
    return datetime(dt.year, dt.month, dt.day)


def _wall_boundaries(period: ReportingPeriod, wall: datetime) -> tuple[datetime, datetime, datetime]:
    """Return (previous_start, start, next_start) on naive wall-clock time."""
    if period is ReportingPeriod.DAY:
        start = _midnight(wall)
        return start - timedelta(days=1), start, start + timedelta(days=1)

    if period is ReportingPeriod.WEEK:
        start = _midnight(get_week_start(wall, start_on=SUNDAY))
        return start - timedelta(days=7), start, start + timedelta(days=7)

    if period is ReportingPeriod.MONTH:
        start = datetime(wall.year, wall.month, 1)
        return add_months(start, -1), start, add_months(start, 1)

    # Year
    start = datetime(wall.year, 1, 1)
    return datetime(wall.year - 1, 1, 1), start, datetime(wall.year + 1, 1, 1)


def resolve_period_window(
    period: ReportingPeriod | str,
    now: datetime | None = None,
) -> PeriodWindow:
    """Resolve the current and previous windows for a reporting period.

    - day: today 00:00 to 23:59:59, previous is yesterday
    - week: Sunday 00:00 to Saturday 23:59:59, previous is the 7 days before
    - month: calendar month, previous is the prior calendar month
    - year: calendar year, previous is the prior calendar year

    Parameters
    ----------
    period
        Reporting period
    now
        Reference instant (default: current time in the default timezone).
        Aware instants produce boundaries localized in the same timezone.

    Returns
    -------
    PeriodWindow
        Resolved windows

    Examples
    --------
    >>> window = resolve_period_window("month", datetime(2024, 1, 10))
    >>> window.previous_start, window.start
    (datetime.datetime(2023, 12, 1, 0, 0), datetime.datetime(2024, 1, 1, 0, 0))
    """
    period = ReportingPeriod.parse(period)
    if now is None:
        now = get_current_time()

    tz = now.tzinfo
    wall = now.replace(tzinfo=None)
    previous_start, start, next_start = _wall_boundaries(period, wall)

    return PeriodWindow(
        period=period,
        start=localize(start, tz),
        end=localize(next_start - _LAST_INSTANT, tz),
        previous_start=localize(previous_start, tz),
        previous_end=localize(start - _LAST_INSTANT, tz),
    )


def rolling_window(days: int, now: datetime | None = None) -> PeriodWindow:
    """Trailing window of ``days`` ending at ``now`` and the equal span before it.

    Raises
    ------
    ValueError
        If ``days`` is not positive
    """
    if days <= 0:
        raise ValueError(f"Rolling window needs a positive number of days, got {days}")
    if now is None:
        now = get_current_time()

    span = timedelta(days=days)
    start = now - span
    return PeriodWindow(
        period=None,
        start=start,
        end=now,
        previous_start=start - span,
        previous_end=start - _LAST_INSTANT,
    )
