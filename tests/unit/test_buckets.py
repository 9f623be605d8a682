"""Tests for bucketed chart series."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytz

from bizmetrics.core.records import MetricRecord
from bizmetrics.rollups.buckets import (
    BUCKET_COUNTS,
    bucket_layout,
    build_bucketed_series,
    build_monthly_series,
    series_span,
)
from bizmetrics.rollups.labels import hour_label, month_label, week_label, weekday_label
from bizmetrics.rollups.time_windows import ReportingPeriod

NOW = datetime(2024, 6, 15, 14, 0)  # Saturday


def record(ts, amount):
    return MetricRecord(occurred_at=ts, amount=Decimal(str(amount)))


def test_day_series_scenario():
    """Sales at 09:00, 09:30 and 23:00 land in the 9:00 and 23:00 buckets."""
    records = [
        record(datetime(2024, 6, 15, 9, 0), 10),
        record(datetime(2024, 6, 15, 9, 30), 20),
        record(datetime(2024, 6, 15, 23, 0), 5),
    ]

    series = build_bucketed_series(records, "day", NOW)

    assert len(series) == 24
    assert series[9].label == "9:00"
    assert (series[9].total, series[9].count) == (Decimal(30), 2)
    assert series[23].label == "23:00"
    assert (series[23].total, series[23].count) == (Decimal(5), 1)
    others = [p for i, p in enumerate(series) if i not in (9, 23)]
    assert all(p.total == 0 and p.count == 0 for p in others)


@pytest.mark.parametrize("period", list(ReportingPeriod))
def test_empty_input_keeps_fixed_bucket_count(period):
    series = build_bucketed_series([], period, NOW)

    assert len(series) == BUCKET_COUNTS[period]
    assert all(p.total == 0 and p.count == 0 for p in series)


def test_week_labels_start_sunday():
    series = build_bucketed_series([], "week", NOW)

    assert [p.label for p in series] == ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def test_week_series_assigns_days():
    records = [
        record(datetime(2024, 6, 9, 0, 0), 1),  # Sunday midnight
        record(datetime(2024, 6, 12, 18, 0), 2),  # Wednesday
        record(datetime(2024, 6, 8, 23, 59), 100),  # Previous Saturday
    ]

    series = build_bucketed_series(records, "week", NOW)

    assert [p.total for p in series] == [Decimal(1), 0, 0, Decimal(2), 0, 0, 0]


def test_month_series_is_four_trailing_weeks():
    layout = bucket_layout("month", NOW)

    assert [b.label for b in layout] == ["Week 1", "Week 2", "Week 3", "Week 4"]
    assert layout[0].start == datetime(2024, 5, 19)
    assert layout[-1].start == datetime(2024, 6, 9)
    assert layout[-1].end == datetime(2024, 6, 16)
    for earlier, later in zip(layout, layout[1:]):
        assert earlier.end == later.start


def test_month_series_includes_today_in_last_week():
    records = [
        record(datetime(2024, 6, 15, 13, 0), 7),
        record(datetime(2024, 5, 19, 0, 0), 3),
        record(datetime(2024, 5, 18, 23, 59), 50),  # Before the charted span
    ]

    series = build_bucketed_series(records, "month", NOW)

    assert [p.total for p in series] == [Decimal(3), 0, 0, Decimal(7)]


def test_year_series_by_calendar_month():
    records = [
        record(datetime(2024, 1, 1), 10),
        record(datetime(2024, 12, 31, 23, 59), 20),
        record(datetime(2023, 12, 31, 23, 59), 99),
    ]

    series = build_bucketed_series(records, "year", NOW)

    assert series[0].label == "Jan"
    assert series[-1].label == "Dec"
    assert series[0].total == Decimal(10)
    assert series[-1].total == Decimal(20)
    assert sum(p.total for p in series) == Decimal(30)


def test_bucket_totals_match_records_inside_span():
    records = [record(datetime(2024, 6, d, h), d * h) for d in range(1, 30) for h in (0, 8, 23)]

    for period in ReportingPeriod:
        start, end = series_span(period, NOW)
        inside = sum(r.amount for r in records if start <= r.occurred_at < end)
        series = build_bucketed_series(records, period, NOW)
        assert sum(p.total for p in series) == inside


def test_malformed_timestamps_are_skipped():
    records = [
        MetricRecord(occurred_at="not a date", amount=Decimal(50)),
        MetricRecord(occurred_at=None, amount=Decimal(50)),
        record(datetime(2024, 6, 15, 9, 0), 10),
    ]

    series = build_bucketed_series(records, "day", NOW)

    assert sum(p.total for p in series) == Decimal(10)


def test_string_timestamps_are_parsed():
    records = [MetricRecord(occurred_at="2024-06-15T09:15:00", amount=Decimal(4))]

    series = build_bucketed_series(records, "day", NOW)

    assert series[9].total == Decimal(4)


def test_aware_records_are_bucketed_in_local_time():
    """A sale at 15:30 UTC is 09:30 in Mexico City."""
    tz = pytz.timezone("America/Mexico_City")
    now = tz.localize(NOW)
    records = [record(datetime(2024, 6, 15, 15, 30, tzinfo=timezone.utc), 12)]

    series = build_bucketed_series(records, "day", now)

    assert series[9].total == Decimal(12)


def test_records_are_not_mutated():
    records = [record(datetime(2024, 6, 15, 9, 0), 10)]
    snapshot = list(records)

    build_bucketed_series(records, "day", NOW)

    assert records == snapshot


def test_spanish_labels():
    week = build_bucketed_series([], "week", NOW, locale="es-MX")
    month = build_bucketed_series([], "month", NOW, locale="es")

    assert week[0].label == "dom"
    assert month[0].label == "Semana 1"


def test_label_helpers():
    assert hour_label(0) == "0:00"
    assert weekday_label(6) == "Sat"
    assert month_label(9, "es") == "sept"
    assert month_label(9, "fr") == "Sep"
    assert week_label(3) == "Week 3"


def test_series_span_localized():
    tz = pytz.timezone("Europe/Madrid")

    start, end = series_span("day", tz.localize(NOW))

    assert start == tz.localize(datetime(2024, 6, 15))
    assert end == tz.localize(datetime(2024, 6, 16))


def test_monthly_series():
    records = [
        record(datetime(2024, 1, 5), 10),
        record(datetime(2024, 6, 1), 20),
        record(datetime(2024, 6, 14), 5),
        record(datetime(2023, 12, 31), 1000),
    ]

    series = build_monthly_series(records, NOW)

    assert [p.label for p in series] == ["Jan", "Feb", "Mar", "Apr", "May", "Jun"]
    assert series[0].total == Decimal(10)
    assert (series[-1].total, series[-1].count) == (Decimal(25), 2)


def test_monthly_series_across_year_boundary():
    series = build_monthly_series([], datetime(2024, 2, 10), months=3)

    assert [p.label for p in series] == ["Dec", "Jan", "Feb"]


def test_monthly_series_requires_positive_months():
    with pytest.raises(ValueError):
        build_monthly_series([], NOW, months=0)


def test_bucket_point_to_dict():
    series = build_bucketed_series([record(datetime(2024, 6, 15, 9), "10.50")], "day", NOW)

    assert series[9].to_dict() == {"label": "9:00", "total": 10.5, "count": 1}
