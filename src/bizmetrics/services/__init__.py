"""Dashboard services over the record store."""

from .dashboard import DashboardOverview, DashboardService, DashboardSnapshot, build_overview, count_low_stock
from .sources import (
    INVOICE_STATUSES,
    METRIC_SOURCES,
    RANKING_SOURCES,
    SERVICE_STATUSES,
    MetricSource,
    RankingSource,
    get_metric_source,
    get_ranking_source,
)

__all__ = [
    "INVOICE_STATUSES",
    "METRIC_SOURCES",
    "RANKING_SOURCES",
    "SERVICE_STATUSES",
    "DashboardOverview",
    "DashboardService",
    "DashboardSnapshot",
    "MetricSource",
    "RankingSource",
    "build_overview",
    "count_low_stock",
    "get_metric_source",
    "get_ranking_source",
]
