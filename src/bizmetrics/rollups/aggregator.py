"""Period metric aggregation.

Combine window resolution, bucketing and deltas into the view-models a
dashboard renders: totals of the current and previous windows, their
change, and the chart series.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..core.records import MetricRecord, coerce_amount, resolve_field
from ..core.time import get_current_time, parse_timestamp, to_wall_clock
from .buckets import BucketPoint, build_bucketed_series
from .deltas import DeltaMetric, compute_delta
from .labels import DEFAULT_LOCALE
from .time_windows import PeriodWindow, ReportingPeriod, resolve_period_window, rolling_window

__all__ = [
    "PeriodMetrics",
    "StatusBreakdown",
    "StatusTotals",
    "WindowTotals",
    "compute_period_metrics",
    "compute_rolling_growth",
    "summarize_by_status",
    "totals_between",
]


@dataclass(frozen=True)
class WindowTotals:
    """Sum of amounts and number of records inside one window."""

    total: Decimal = Decimal(0)
    count: int = 0


@dataclass
class PeriodMetrics:
    """Dashboard metrics of one record source for one reporting period.

    Attributes
    ----------
    window : PeriodWindow
        Current and previous windows
    current : WindowTotals
        Totals of the current window
    previous : WindowTotals
        Totals of the previous window
    revenue : DeltaMetric
        Change of summed amounts
    volume : DeltaMetric
        Change of record counts
    series : list[BucketPoint]
        Chart series of the period
    """

    window: PeriodWindow
    current: WindowTotals
    previous: WindowTotals
    revenue: DeltaMetric
    volume: DeltaMetric
    series: list[BucketPoint]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "window": self.window.to_dict(),
            "current": {"total": float(self.current.total), "count": self.current.count},
            "previous": {"total": float(self.previous.total), "count": self.previous.count},
            "revenue": self.revenue.to_dict(),
            "volume": self.volume.to_dict(),
            "series": [point.to_dict() for point in self.series],
        }


def totals_between(
    records: Iterable[MetricRecord],
    start: datetime,
    end: datetime,
) -> WindowTotals:
    """Sum records whose timestamp lies in the closed interval ``[start, end]``.

    Comparison happens on wall-clock time in ``start``'s timezone; records
    with malformed timestamps are skipped.
    """
    tz = start.tzinfo
    lo = to_wall_clock(start, tz)
    hi = to_wall_clock(end, tz)

    total = Decimal(0)
    count = 0
    for record in records:
        try:
            ts = to_wall_clock(parse_timestamp(record.occurred_at), tz)
        except (TypeError, ValueError):
            continue
        if lo <= ts <= hi:
            total += record.amount
            count += 1

    return WindowTotals(total=total, count=count)


def compute_period_metrics(
    records: Sequence[MetricRecord],
    period: ReportingPeriod | str,
    now: datetime | None = None,
    *,
    locale: str = DEFAULT_LOCALE,
) -> PeriodMetrics:
    """Compute the metrics of a reporting period.

    Parameters
    ----------
    records
        Records of one source; never mutated
    period
        Reporting period
    now
        Reference instant (default: current time in the default timezone)
    locale
        Locale for series labels

    Returns
    -------
    PeriodMetrics
        Window totals, deltas and series; all zeros for empty input
    """
    if now is None:
        now = get_current_time()

    window = resolve_period_window(period, now)
    current = totals_between(records, window.start, window.end)
    previous = totals_between(records, window.previous_start, window.previous_end)

    return PeriodMetrics(
        window=window,
        current=current,
        previous=previous,
        revenue=compute_delta(current.total, previous.total),
        volume=compute_delta(current.count, previous.count),
        series=build_bucketed_series(records, window.period, now, locale=locale),
    )


def compute_rolling_growth(
    records: Sequence[MetricRecord],
    days: int = 30,
    now: datetime | None = None,
) -> DeltaMetric:
    """Revenue change of the trailing ``days`` against the ``days`` before."""
    window = rolling_window(days, now)
    current = totals_between(records, window.start, window.end)
    previous = totals_between(records, window.previous_start, window.previous_end)
    return compute_delta(current.total, previous.total)


@dataclass
class StatusTotals:
    """Count and summed amount of rows in one status."""

    count: int = 0
    total: Decimal = Decimal(0)


@dataclass
class StatusBreakdown:
    """Per-status totals, known statuses first and in their declared order."""

    statuses: dict[str, StatusTotals] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return sum(s.count for s in self.statuses.values())

    @property
    def total(self) -> Decimal:
        return sum((s.total for s in self.statuses.values()), Decimal(0))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "statuses": {
                name: {"count": s.count, "total": float(s.total)} for name, s in self.statuses.items()
            },
            "count": self.count,
            "total": float(self.total),
        }


def summarize_by_status(
    rows: Iterable[Mapping[str, Any]],
    *,
    statuses: Sequence[str],
    status_field: str = "status",
    amount_fields: Sequence[str] = (),
) -> StatusBreakdown:
    """Count rows and sum amounts per status.

    Every status in ``statuses`` is present even with no rows. Unknown
    statuses follow in first-seen order; rows without a status are ignored.
    """
    breakdown = StatusBreakdown(statuses={name: StatusTotals() for name in statuses})

    for row in rows:
        status = resolve_field(row, status_field)
        if status is None:
            continue
        bucket = breakdown.statuses.setdefault(str(status), StatusTotals())
        bucket.count += 1
        for name in amount_fields:
            bucket.total += coerce_amount(resolve_field(row, name))

    return breakdown
