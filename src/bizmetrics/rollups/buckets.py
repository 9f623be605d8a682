"""Bucketed time series for dashboard charts.

Partition records into the fixed set of sub-intervals of a reporting period
and sum amounts and counts per bucket:

- day: 24 hourly buckets of the current day
- week: 7 daily buckets of the current week, Sunday first
- month: 4 trailing 7-day buckets ending with today
- year: 12 calendar-month buckets of the current year

Buckets are half-open ``[start, end)`` intervals on local wall-clock time.
Records outside every bucket are dropped; empty buckets are kept with zero
totals so chart axes stay aligned.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from ..core.records import MetricRecord
from ..core.time import get_current_time, localize, parse_timestamp, to_wall_clock
from ..observability.loguru_config import get_logger
from .labels import DEFAULT_LOCALE, hour_label, month_label, week_label, weekday_label
from .time_windows import ReportingPeriod, SUNDAY, add_months, get_week_start

__all__ = [
    "BUCKET_COUNTS",
    "Bucket",
    "BucketPoint",
    "bucket_layout",
    "build_bucketed_series",
    "build_monthly_series",
    "series_span",
]

logger = get_logger("rollups")

BUCKET_COUNTS = {
    ReportingPeriod.DAY: 24,
    ReportingPeriod.WEEK: 7,
    ReportingPeriod.MONTH: 4,
    ReportingPeriod.YEAR: 12,
}

TRAILING_WEEKS = 4


@dataclass(frozen=True)
class Bucket:
    """One sub-interval of a series on naive wall-clock time."""

    label: str
    start: datetime
    end: datetime


@dataclass
class BucketPoint:
    """Aggregated values of one bucket."""

    label: str
    total: Decimal = Decimal(0)
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"label": self.label, "total": float(self.total), "count": self.count}


def _midnight(dt: datetime) -> datetime:
    return datetime(dt.year, dt.month, dt.day)


def bucket_layout(
    period: ReportingPeriod | str,
    now: datetime,
    *,
    locale: str = DEFAULT_LOCALE,
) -> list[Bucket]:
    """Return the contiguous, chronologically ordered buckets of a period.

    ``now`` is read as wall-clock time in its own timezone.
    """
    period = ReportingPeriod.parse(period)
    wall = now.replace(tzinfo=None)
    today = _midnight(wall)

    if period is ReportingPeriod.DAY:
        return [
            Bucket(hour_label(h), today + timedelta(hours=h), today + timedelta(hours=h + 1))
            for h in range(24)
        ]

    if period is ReportingPeriod.WEEK:
        sunday = _midnight(get_week_start(wall, start_on=SUNDAY))
        return [
            Bucket(weekday_label(d, locale), sunday + timedelta(days=d), sunday + timedelta(days=d + 1))
            for d in range(7)
        ]

    if period is ReportingPeriod.MONTH:
        anchor = today + timedelta(days=1)
        buckets = []
        for k in range(1, TRAILING_WEEKS + 1):
            start = anchor - timedelta(weeks=TRAILING_WEEKS + 1 - k)
            buckets.append(Bucket(week_label(k, locale), start, start + timedelta(weeks=1)))
        return buckets

    # Year
    first = datetime(wall.year, 1, 1)
    return [
        Bucket(month_label(m + 1, locale), add_months(first, m), add_months(first, m + 1))
        for m in range(12)
    ]


def series_span(period: ReportingPeriod | str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return the ``[start, end)`` span charted for a period, localized like ``now``."""
    if now is None:
        now = get_current_time()
    layout = bucket_layout(period, now)
    return localize(layout[0].start, now.tzinfo), localize(layout[-1].end, now.tzinfo)


def _fill(records: Iterable[MetricRecord], layout: list[Bucket], tz: Any) -> list[BucketPoint]:
    points = [BucketPoint(label=b.label) for b in layout]
    starts = [b.start for b in layout]
    first, last = layout[0].start, layout[-1].end
    malformed = 0

    for record in records:
        try:
            ts = to_wall_clock(parse_timestamp(record.occurred_at), tz)
        except (TypeError, ValueError):
            malformed += 1
            continue

        if ts < first or ts >= last:
            continue

        point = points[bisect_right(starts, ts) - 1]
        point.total += record.amount
        point.count += 1

    if malformed:
        logger.debug("Excluded records with malformed timestamps", excluded=malformed)

    return points


def build_bucketed_series(
    records: Iterable[MetricRecord],
    period: ReportingPeriod | str,
    now: datetime | None = None,
    *,
    locale: str = DEFAULT_LOCALE,
) -> list[BucketPoint]:
    """Build the chart series of a reporting period.

    Parameters
    ----------
    records
        Records in any order; never mutated
    period
        Reporting period selecting the bucket layout
    now
        Reference instant (default: current time in the default timezone)
    locale
        Locale for weekday, month and week labels

    Returns
    -------
    list[BucketPoint]
        Exactly 24, 7, 4 or 12 points, oldest first

    Examples
    --------
    >>> series = build_bucketed_series([], "week", datetime(2024, 6, 15))
    >>> [p.label for p in series]
    ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
    """
    if now is None:
        now = get_current_time()
    layout = bucket_layout(period, now, locale=locale)
    return _fill(records, layout, now.tzinfo)


def build_monthly_series(
    records: Iterable[MetricRecord],
    now: datetime | None = None,
    *,
    months: int = 6,
    locale: str = DEFAULT_LOCALE,
) -> list[BucketPoint]:
    """Build a series of the trailing ``months`` calendar months, current month last.

    Raises
    ------
    ValueError
        If ``months`` is not positive
    """
    if months <= 0:
        raise ValueError(f"Monthly series needs a positive number of months, got {months}")
    if now is None:
        now = get_current_time()

    wall = now.replace(tzinfo=None)
    current = datetime(wall.year, wall.month, 1)
    layout = []
    for offset in range(months - 1, -1, -1):
        start = add_months(current, -offset)
        layout.append(Bucket(month_label(start.month, locale), start, add_months(start, 1)))

    return _fill(records, layout, now.tzinfo)
