"""Where each dashboard metric comes from in the hosted tables."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..core.records import LineItem, MetricRecord, line_items_from_rows, metric_records_from_rows
from ..storage.store import Filter

__all__ = [
    "INVOICE_STATUSES",
    "METRIC_SOURCES",
    "RANKING_SOURCES",
    "SERVICE_STATUSES",
    "MetricSource",
    "RankingSource",
    "get_metric_source",
    "get_ranking_source",
]

INVOICE_STATUSES = ("draft", "sent", "paid", "cancelled")
SERVICE_STATUSES = ("pending", "assigned", "in_progress", "completed", "cancelled")


def _matching(rows: Iterable[Mapping[str, Any]], filters: tuple[Filter, ...]) -> list[Mapping[str, Any]]:
    return [row for row in rows if all(f.matches(row) for f in filters)]


@dataclass(frozen=True)
class MetricSource:
    """A collection of timestamped amounts (sales, completed services, paid invoices)."""

    name: str
    collection: str
    select: str
    timestamp_field: str
    amount_fields: tuple[str, ...]
    category_field: str | None = None
    filters: tuple[Filter, ...] = ()

    def to_records(self, rows: Iterable[Mapping[str, Any]]) -> list[MetricRecord]:
        """Convert rows to records, applying the source filters in memory too."""
        return metric_records_from_rows(
            _matching(rows, self.filters),
            timestamp_field=self.timestamp_field,
            amount_fields=self.amount_fields,
            category_field=self.category_field,
        )


@dataclass(frozen=True)
class RankingSource:
    """A collection of contributions keyed by a joined entity name."""

    name: str
    collection: str
    select: str
    key_field: str
    revenue_fields: tuple[str, ...]
    quantity_field: str | None = None
    filters: tuple[Filter, ...] = ()

    def to_line_items(self, rows: Iterable[Mapping[str, Any]]) -> list[LineItem]:
        return line_items_from_rows(
            _matching(rows, self.filters),
            key_field=self.key_field,
            revenue_fields=self.revenue_fields,
            quantity_field=self.quantity_field,
        )


METRIC_SOURCES = {
    "sales": MetricSource(
        name="sales",
        collection="sales",
        select="id,total_amount,sale_date",
        timestamp_field="sale_date",
        amount_fields=("total_amount",),
    ),
    "services": MetricSource(
        name="services",
        collection="services",
        select="id,status,service_type,completed_date,labor_cost,materials_cost",
        timestamp_field="completed_date",
        amount_fields=("labor_cost", "materials_cost"),
        category_field="service_type",
        filters=(Filter("status", "eq", "completed"),),
    ),
    "invoices": MetricSource(
        name="invoices",
        collection="invoices",
        select="id,status,total,paid_date",
        timestamp_field="paid_date",
        amount_fields=("total",),
        filters=(Filter("status", "eq", "paid"),),
    ),
}

RANKING_SOURCES = {
    "products": RankingSource(
        name="products",
        collection="sale_items",
        select="product_id,quantity,subtotal,product:products(name)",
        key_field="product.name",
        revenue_fields=("subtotal",),
        quantity_field="quantity",
    ),
    "technicians": RankingSource(
        name="technicians",
        collection="services",
        select="status,labor_cost,materials_cost,technician:user_profiles(full_name)",
        key_field="technician.full_name",
        revenue_fields=("labor_cost", "materials_cost"),
        filters=(Filter("status", "eq", "completed"),),
    ),
}


def get_metric_source(name: str) -> MetricSource:
    """Look up a metric source by name.

    Raises
    ------
    ValueError
        If the source is unknown
    """
    try:
        return METRIC_SOURCES[name]
    except KeyError:
        raise ValueError(f"Unknown metric source: {name} (expected one of {', '.join(METRIC_SOURCES)})") from None


def get_ranking_source(name: str) -> RankingSource:
    """Look up a ranking source by name.

    Raises
    ------
    ValueError
        If the source is unknown
    """
    try:
        return RANKING_SOURCES[name]
    except KeyError:
        raise ValueError(f"Unknown ranking: {name} (expected one of {', '.join(RANKING_SOURCES)})") from None
