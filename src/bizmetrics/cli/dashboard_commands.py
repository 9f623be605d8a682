#!/usr/bin/env python3
"""Dashboard commands: period metrics, overview, charts, rankings, statuses."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import click

from ..rollups.aggregator import PeriodMetrics, StatusBreakdown
from ..rollups.buckets import BucketPoint
from ..rollups.deltas import DeltaMetric, Direction
from ..rollups.rankings import RankedEntry
from ..rollups.time_windows import ReportingPeriod
from ..services.dashboard import CHART_MONTHS, DashboardOverview, DashboardSnapshot
from ..services.sources import METRIC_SOURCES, RANKING_SOURCES
from .cli_common import CLIContext, cli_command, handle_cli_error, handle_cli_success

__all__ = [
    "chart_command",
    "dashboard_command",
    "metrics_command",
    "overview_command",
    "status_command",
    "top_command",
]

PERIOD_CHOICE = click.Choice([p.value for p in ReportingPeriod], case_sensitive=False)


def _money(value) -> str:
    return f"${float(value):,.2f}"


def _delta(delta: DeltaMetric) -> str:
    arrow = "↑" if delta.direction is Direction.UP else "↓"
    return f"{arrow} {delta.percent_change:.1f}%"


def _series_lines(points: Iterable[BucketPoint]) -> list[str]:
    return [f"  {p.label:>10}  {_money(p.total):>14}  {p.count:>5}" for p in points]


def render_metrics(source: str, metrics: PeriodMetrics) -> str:
    window = metrics.window
    lines = [
        f"{source} ({window.period.value}): {window.start:%Y-%m-%d %H:%M} .. {window.end:%Y-%m-%d %H:%M}",
        f"  current:  {_money(metrics.current.total)} in {metrics.current.count} records",
        f"  previous: {_money(metrics.previous.total)} in {metrics.previous.count} records",
        f"  revenue {_delta(metrics.revenue)}, volume {_delta(metrics.volume)}",
        "",
        *_series_lines(metrics.series),
    ]
    return "\n".join(lines)


def render_overview(overview: DashboardOverview) -> str:
    return "\n".join(
        [
            f"Sales:                {overview.total_sales}",
            f"Revenue:              {_money(overview.total_revenue)}",
            f"Average order value:  {_money(overview.average_order_value)}",
            f"Customers:            {overview.total_customers}",
            f"Products:             {overview.total_products} ({overview.low_stock_products} low on stock)",
            f"Pending appointments: {overview.pending_appointments}",
            f"Sales growth (30d):   {_delta(overview.sales_growth)}",
        ]
    )


def render_ranking(entries: list[RankedEntry]) -> str:
    if not entries:
        return "No entries"
    return "\n".join(
        f"{i:>2}. {e.name:<30} {float(e.quantity):>8g}  {_money(e.revenue):>14}" for i, e in enumerate(entries, 1)
    )


def render_status(breakdown: StatusBreakdown) -> str:
    lines = [f"  {name:<12} {s.count:>5}  {_money(s.total):>14}" for name, s in breakdown.statuses.items()]
    lines.append(f"  {'total':<12} {breakdown.count:>5}  {_money(breakdown.total):>14}")
    return "\n".join(lines)


def render_snapshot(snapshot: DashboardSnapshot) -> str:
    sections = [render_overview(snapshot.overview)]
    for name, metrics in snapshot.metrics.items():
        sections.append(render_metrics(name, metrics))
    sections.append("Monthly revenue\n" + "\n".join(_series_lines(snapshot.monthly_revenue)))
    sections.append("Top products\n" + render_ranking(snapshot.top_products))
    sections.append("Top technicians\n" + render_ranking(snapshot.top_technicians))
    sections.append("Invoices\n" + render_status(snapshot.invoice_status))
    sections.append("Services\n" + render_status(snapshot.service_status))
    return "\n\n".join(sections)


@click.command("metrics")
@click.argument("source", type=click.Choice(list(METRIC_SOURCES)), default="sales")
@click.option("--period", "-p", type=PERIOD_CHOICE, default=ReportingPeriod.MONTH.value, show_default=True)
@cli_command
def metrics_command(ctx: CLIContext, source: str, period: str) -> int:
    """Current vs previous period totals and the chart series of a source."""
    cmd = "metrics"

    try:
        with ctx.open_service() as service:
            metrics = service.period_metrics(source, period, ctx.reference_time(service))
        return handle_cli_success(
            ctx,
            metrics.to_dict(),
            cmd,
            meta={"source": source, "period": period},
            text=render_metrics(source, metrics),
        )
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("overview")
@cli_command
def overview_command(ctx: CLIContext) -> int:
    """Headline numbers: sales, revenue, customers, stock, growth."""
    cmd = "overview"

    try:
        with ctx.open_service() as service:
            overview = service.overview(ctx.reference_time(service))
        return handle_cli_success(ctx, overview.to_dict(), cmd, text=render_overview(overview))
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("chart")
@click.option("--months", "-m", type=click.IntRange(min=1), default=CHART_MONTHS, show_default=True)
@cli_command
def chart_command(ctx: CLIContext, months: int) -> int:
    """Sales revenue of the trailing calendar months."""
    cmd = "chart"

    try:
        with ctx.open_service() as service:
            points = service.monthly_revenue(months, ctx.reference_time(service))
        return handle_cli_success(
            ctx,
            [p.to_dict() for p in points],
            cmd,
            meta={"months": months},
            text="\n".join(_series_lines(points)),
        )
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("top")
@click.argument("ranking", type=click.Choice(list(RANKING_SOURCES)), default="products")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Ranking size (default: configured top_n)")
@cli_command
def top_command(ctx: CLIContext, ranking: str, limit: int | None) -> int:
    """Top products or technicians by revenue."""
    cmd = "top"

    try:
        with ctx.open_service() as service:
            entries = service.top(ranking, limit)
        return handle_cli_success(
            ctx,
            [e.to_dict() for e in entries],
            cmd,
            meta={"ranking": ranking},
            text=render_ranking(entries),
        )
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("status")
@click.argument("collection", type=click.Choice(["invoices", "services"]), default="invoices")
@cli_command
def status_command(ctx: CLIContext, collection: str) -> int:
    """Counts and amounts per invoice or service status."""
    cmd = "status"

    try:
        with ctx.open_service() as service:
            if collection == "invoices":
                breakdown = service.invoice_status_totals()
            else:
                breakdown = service.service_status_counts()
        return handle_cli_success(
            ctx,
            breakdown.to_dict(),
            cmd,
            meta={"collection": collection},
            text=render_status(breakdown),
        )
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)


@click.command("dashboard")
@click.option("--period", "-p", type=PERIOD_CHOICE, default=ReportingPeriod.MONTH.value, show_default=True)
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Ranking size (default: configured top_n)")
@cli_command
def dashboard_command(ctx: CLIContext, period: str, limit: int | None) -> int:
    """Full dashboard, fetching every collection concurrently."""
    cmd = "dashboard"

    try:
        with ctx.open_service() as service:
            snapshot = asyncio.run(service.load_dashboard(period, ctx.reference_time(service), top_n=limit))
        return handle_cli_success(
            ctx,
            snapshot.to_dict(),
            cmd,
            meta={"period": period},
            text=render_snapshot(snapshot),
        )
    except Exception as exc:
        return handle_cli_error(ctx, exc, cmd)
