"""Period-bucketed metric aggregation for dashboards."""

from .aggregator import (
    PeriodMetrics,
    StatusBreakdown,
    StatusTotals,
    WindowTotals,
    compute_period_metrics,
    compute_rolling_growth,
    summarize_by_status,
    totals_between,
)
from .buckets import BUCKET_COUNTS, BucketPoint, build_bucketed_series, build_monthly_series, series_span
from .deltas import DeltaMetric, Direction, compute_delta
from .rankings import DEFAULT_TOP_N, UNKNOWN_ENTITY_LABEL, RankedEntry, rank_top_n
from .time_windows import PeriodWindow, ReportingPeriod, get_week_start, resolve_period_window, rolling_window

__all__ = [
    # Time windows
    "PeriodWindow",
    "ReportingPeriod",
    "get_week_start",
    "resolve_period_window",
    "rolling_window",
    # Series
    "BUCKET_COUNTS",
    "BucketPoint",
    "build_bucketed_series",
    "build_monthly_series",
    "series_span",
    # Deltas
    "DeltaMetric",
    "Direction",
    "compute_delta",
    # Rankings
    "DEFAULT_TOP_N",
    "UNKNOWN_ENTITY_LABEL",
    "RankedEntry",
    "rank_top_n",
    # Aggregation
    "PeriodMetrics",
    "StatusBreakdown",
    "StatusTotals",
    "WindowTotals",
    "compute_period_metrics",
    "compute_rolling_growth",
    "summarize_by_status",
    "totals_between",
]
