"""Dashboard service: fetch rows from the record store and aggregate them.

The service is constructed with an explicit store at application startup;
there is no module-level client. Each fetch is independent: a fetch that
fails is logged and replaced by an empty collection, so a dashboard with
missing data renders zeros instead of an error.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytz

from ..core.records import coerce_amount
from ..core.time import get_current_time
from ..observability.loguru_config import get_logger, timing_context
from ..rollups.aggregator import (
    PeriodMetrics,
    StatusBreakdown,
    compute_period_metrics,
    compute_rolling_growth,
    summarize_by_status,
)
from ..rollups.buckets import BucketPoint, build_monthly_series
from ..rollups.deltas import DeltaMetric
from ..rollups.labels import DEFAULT_LOCALE
from ..rollups.rankings import DEFAULT_TOP_N, RankedEntry, rank_top_n
from ..rollups.time_windows import ReportingPeriod
from ..storage.store import Filter, RecordStore, StorageError
from .sources import (
    INVOICE_STATUSES,
    METRIC_SOURCES,
    RANKING_SOURCES,
    SERVICE_STATUSES,
    get_metric_source,
    get_ranking_source,
)

if TYPE_CHECKING:
    from ..config.settings import Settings

__all__ = [
    "DashboardOverview",
    "DashboardService",
    "DashboardSnapshot",
    "build_overview",
    "count_low_stock",
]

logger = get_logger("dashboard")

GROWTH_WINDOW_DAYS = 30
CHART_MONTHS = 6

# One select per collection covering every use in a full dashboard load
_SERVICES_SELECT = (
    "id,status,service_type,completed_date,labor_cost,materials_cost,technician:user_profiles(full_name)"
)
_INVOICES_SELECT = "id,status,total,paid_date"
_PRODUCTS_SELECT = "id,stock,min_stock"
_PENDING_APPOINTMENTS = (Filter("status", "eq", "scheduled"),)


@dataclass
class DashboardOverview:
    """Headline numbers of the analytics dashboard.

    ``sales_growth`` compares the last 30 days with the 30 before them using
    the ``compute_delta`` rules: an unsigned percentage plus a direction, and
    100% up when the earlier 30 days had no sales. It is not a signed growth
    rate, and it is not 0 for a shop with no earlier sales.
    """

    total_sales: int
    total_revenue: Decimal
    average_order_value: Decimal
    total_customers: int
    total_products: int
    low_stock_products: int
    pending_appointments: int
    sales_growth: DeltaMetric

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_sales": self.total_sales,
            "total_revenue": float(self.total_revenue),
            "average_order_value": float(self.average_order_value),
            "total_customers": self.total_customers,
            "total_products": self.total_products,
            "low_stock_products": self.low_stock_products,
            "pending_appointments": self.pending_appointments,
            "sales_growth": self.sales_growth.to_dict(),
        }


@dataclass
class DashboardSnapshot:
    """Everything one dashboard load produces."""

    period: ReportingPeriod
    overview: DashboardOverview
    metrics: dict[str, PeriodMetrics]
    monthly_revenue: list[BucketPoint]
    top_products: list[RankedEntry]
    top_technicians: list[RankedEntry]
    invoice_status: StatusBreakdown
    service_status: StatusBreakdown

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "period": self.period.value,
            "overview": self.overview.to_dict(),
            "metrics": {name: m.to_dict() for name, m in self.metrics.items()},
            "monthly_revenue": [p.to_dict() for p in self.monthly_revenue],
            "top_products": [e.to_dict() for e in self.top_products],
            "top_technicians": [e.to_dict() for e in self.top_technicians],
            "invoice_status": self.invoice_status.to_dict(),
            "service_status": self.service_status.to_dict(),
        }


def count_low_stock(products: Iterable[Mapping[str, Any]]) -> int:
    """Count products whose stock is at or below their minimum.

    Products missing either value are not counted.
    """
    low = 0
    for product in products:
        stock, minimum = product.get("stock"), product.get("min_stock")
        if stock is None or minimum is None:
            continue
        if coerce_amount(stock) <= coerce_amount(minimum):
            low += 1
    return low


def build_overview(
    sales_rows: Sequence[Mapping[str, Any]],
    product_rows: Sequence[Mapping[str, Any]],
    *,
    customer_count: int,
    pending_appointments: int,
    now: datetime,
) -> DashboardOverview:
    """Compute the headline numbers from already-fetched rows."""
    sales = METRIC_SOURCES["sales"]
    total_revenue = sum((coerce_amount(row.get("total_amount")) for row in sales_rows), Decimal(0))
    total_sales = len(sales_rows)
    average = total_revenue / total_sales if total_sales else Decimal(0)

    return DashboardOverview(
        total_sales=total_sales,
        total_revenue=total_revenue,
        average_order_value=average,
        total_customers=customer_count,
        total_products=len(product_rows),
        low_stock_products=count_low_stock(product_rows),
        pending_appointments=pending_appointments,
        sales_growth=compute_rolling_growth(sales.to_records(sales_rows), GROWTH_WINDOW_DAYS, now),
    )


class DashboardService:
    """Dashboard view-models over an injected record store.

    Example
    -------
    >>> with SupabaseRecordStore(url, key) as store:
    ...     service = DashboardService(store, timezone="America/Mexico_City")
    ...     metrics = service.period_metrics("sales", "month")
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        timezone: str | tzinfo = "UTC",
        locale: str = DEFAULT_LOCALE,
        top_n: int = DEFAULT_TOP_N,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the service.

        Parameters
        ----------
        store
            Record store to read from
        timezone
            Timezone (name or tzinfo) used when no reference instant is given
        locale
            Locale for chart labels
        top_n
            Default ranking size
        clock
            Optional replacement for the system clock
        """
        self.store = store
        self.tz = pytz.timezone(timezone) if isinstance(timezone, str) else timezone
        self.locale = locale
        self.top_n = top_n
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, store: RecordStore) -> DashboardService:
        """Create a service using the configured timezone, locale and ranking size."""
        return cls(store, timezone=settings.timezone, locale=settings.locale, top_n=settings.top_n)

    def now(self) -> datetime:
        """Current instant in the service timezone."""
        if self._clock is not None:
            return self._clock()
        return get_current_time(self.tz)

    def _fetch(
        self,
        collection: str,
        *,
        select: str = "*",
        filters: Sequence[Filter] = (),
    ) -> list[dict[str, Any]]:
        try:
            return self.store.fetch(collection, select=select, filters=filters)
        except StorageError as exc:
            logger.warning("Fetch failed, using empty collection", collection=collection, error=str(exc))
            return []

    def _count(self, collection: str, *, filters: Sequence[Filter] = ()) -> int:
        try:
            return self.store.count(collection, filters=filters)
        except StorageError as exc:
            logger.warning("Count failed, using 0", collection=collection, error=str(exc))
            return 0

    def period_metrics(
        self,
        source: str,
        period: ReportingPeriod | str,
        now: datetime | None = None,
    ) -> PeriodMetrics:
        """Current vs previous totals and chart series of one source.

        Raises
        ------
        ValueError
            If the source or period is unknown
        """
        metric_source = get_metric_source(source)
        period = ReportingPeriod.parse(period)
        rows = self._fetch(metric_source.collection, select=metric_source.select, filters=metric_source.filters)
        return compute_period_metrics(
            metric_source.to_records(rows),
            period,
            now or self.now(),
            locale=self.locale,
        )

    def monthly_revenue(self, months: int = CHART_MONTHS, now: datetime | None = None) -> list[BucketPoint]:
        """Sales revenue and count of the trailing calendar months."""
        sales = METRIC_SOURCES["sales"]
        rows = self._fetch(sales.collection, select=sales.select)
        return build_monthly_series(sales.to_records(rows), now or self.now(), months=months, locale=self.locale)

    def top(self, ranking: str, n: int | None = None) -> list[RankedEntry]:
        """Top-N entities of a ranking source by revenue.

        Raises
        ------
        ValueError
            If the ranking is unknown
        """
        source = get_ranking_source(ranking)
        rows = self._fetch(source.collection, select=source.select, filters=source.filters)
        return rank_top_n(source.to_line_items(rows), n or self.top_n)

    def top_products(self, n: int | None = None) -> list[RankedEntry]:
        return self.top("products", n)

    def top_technicians(self, n: int | None = None) -> list[RankedEntry]:
        return self.top("technicians", n)

    def invoice_status_totals(self) -> StatusBreakdown:
        """Invoice count and amount per status."""
        rows = self._fetch("invoices", select=_INVOICES_SELECT)
        return summarize_by_status(rows, statuses=INVOICE_STATUSES, amount_fields=("total",))

    def service_status_counts(self) -> StatusBreakdown:
        """Service count and billed value per status."""
        rows = self._fetch("services", select=_SERVICES_SELECT)
        return summarize_by_status(rows, statuses=SERVICE_STATUSES, amount_fields=("labor_cost", "materials_cost"))

    def overview(self, now: datetime | None = None) -> DashboardOverview:
        """Headline numbers of the analytics dashboard."""
        sales = METRIC_SOURCES["sales"]
        return build_overview(
            self._fetch(sales.collection, select=sales.select),
            self._fetch("products", select=_PRODUCTS_SELECT),
            customer_count=self._count("customers"),
            pending_appointments=self._count("appointments", filters=_PENDING_APPOINTMENTS),
            now=now or self.now(),
        )

    async def load_dashboard(
        self,
        period: ReportingPeriod | str,
        now: datetime | None = None,
        *,
        top_n: int | None = None,
    ) -> DashboardSnapshot:
        """Fetch every collection concurrently and build a full snapshot.

        Each collection is read once; the store calls run in worker threads
        and are awaited together.
        """
        period = ReportingPeriod.parse(period)
        now = now or self.now()
        n = top_n or self.top_n
        sales = METRIC_SOURCES["sales"]
        products_ranking = RANKING_SOURCES["products"]

        with timing_context("dashboard_load", component="dashboard", period=period.value) as ctx:
            (
                sales_rows,
                service_rows,
                invoice_rows,
                sale_item_rows,
                product_rows,
                customer_count,
                pending_appointments,
            ) = await asyncio.gather(
                asyncio.to_thread(self._fetch, sales.collection, select=sales.select),
                asyncio.to_thread(self._fetch, "services", select=_SERVICES_SELECT),
                asyncio.to_thread(self._fetch, "invoices", select=_INVOICES_SELECT),
                asyncio.to_thread(self._fetch, products_ranking.collection, select=products_ranking.select),
                asyncio.to_thread(self._fetch, "products", select=_PRODUCTS_SELECT),
                asyncio.to_thread(self._count, "customers"),
                asyncio.to_thread(self._count, "appointments", filters=_PENDING_APPOINTMENTS),
            )
            ctx["rows"] = len(sales_rows) + len(service_rows) + len(invoice_rows) + len(sale_item_rows)

        rows_by_source = {"sales": sales_rows, "services": service_rows, "invoices": invoice_rows}
        metrics = {
            name: compute_period_metrics(source.to_records(rows_by_source[name]), period, now, locale=self.locale)
            for name, source in METRIC_SOURCES.items()
        }

        return DashboardSnapshot(
            period=period,
            overview=build_overview(
                sales_rows,
                product_rows,
                customer_count=customer_count,
                pending_appointments=pending_appointments,
                now=now,
            ),
            metrics=metrics,
            monthly_revenue=build_monthly_series(
                sales.to_records(sales_rows), now, months=CHART_MONTHS, locale=self.locale
            ),
            top_products=rank_top_n(products_ranking.to_line_items(sale_item_rows), n),
            top_technicians=rank_top_n(RANKING_SOURCES["technicians"].to_line_items(service_rows), n),
            invoice_status=summarize_by_status(invoice_rows, statuses=INVOICE_STATUSES, amount_fields=("total",)),
            service_status=summarize_by_status(
                service_rows, statuses=SERVICE_STATUSES, amount_fields=("labor_cost", "materials_cost")
            ),
        )
