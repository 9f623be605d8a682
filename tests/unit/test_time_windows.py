"""Tests for reporting-period window resolution."""

from datetime import datetime, timedelta

import pytest
import pytz

from bizmetrics.rollups.time_windows import (
    PeriodWindow,
    ReportingPeriod,
    add_months,
    get_week_start,
    resolve_period_window,
    rolling_window,
)

LAST = timedelta(microseconds=1)


def test_get_week_start_sunday():
    """Saturday June 15, 2024 belongs to the week starting Sunday June 9."""
    start = get_week_start(datetime(2024, 6, 15, 14, 0))

    assert start.weekday() == 6
    assert start.day == 9
    assert start.hour == 14  # Same time as input


def test_get_week_start_on_sunday_itself():
    assert get_week_start(datetime(2024, 6, 9, 8, 0)) == datetime(2024, 6, 9, 8, 0)


def test_get_week_start_monday():
    start = get_week_start(datetime(2024, 6, 15), start_on=0)

    assert start == datetime(2024, 6, 10)


@pytest.mark.parametrize(
    ("dt", "months", "expected"),
    [
        (datetime(2024, 1, 10), -1, datetime(2023, 12, 1)),
        (datetime(2024, 3, 31), -1, datetime(2024, 2, 1)),
        (datetime(2024, 12, 5), 1, datetime(2025, 1, 1)),
        (datetime(2024, 6, 15), -17, datetime(2023, 1, 1)),
        (datetime(2024, 6, 15), 0, datetime(2024, 6, 1)),
    ],
)
def test_add_months(dt, months, expected):
    assert add_months(dt, months) == expected


def test_reporting_period_parse():
    assert ReportingPeriod.parse("MONTH") is ReportingPeriod.MONTH
    assert ReportingPeriod.parse(ReportingPeriod.DAY) is ReportingPeriod.DAY

    with pytest.raises(ValueError, match="Unknown reporting period"):
        ReportingPeriod.parse("quarter")


def test_day_window():
    window = resolve_period_window("day", datetime(2024, 6, 15, 14, 0))

    assert window.period is ReportingPeriod.DAY
    assert window.start == datetime(2024, 6, 15)
    assert window.end == datetime(2024, 6, 15, 23, 59, 59, 999999)
    assert window.previous_start == datetime(2024, 6, 14)
    assert window.previous_end == datetime(2024, 6, 14, 23, 59, 59, 999999)


def test_week_window_starts_sunday():
    window = resolve_period_window("week", datetime(2024, 6, 15, 14, 0))

    assert window.start == datetime(2024, 6, 9)
    assert window.end == datetime(2024, 6, 15, 23, 59, 59, 999999)
    assert window.previous_start == datetime(2024, 6, 2)
    assert window.previous_end == datetime(2024, 6, 8, 23, 59, 59, 999999)


def test_month_window_crosses_year():
    """January 10 compares January against December of the prior year."""
    window = resolve_period_window("month", datetime(2024, 1, 10))

    assert window.start == datetime(2024, 1, 1)
    assert window.end == datetime(2024, 1, 31, 23, 59, 59, 999999)
    assert window.previous_start == datetime(2023, 12, 1)
    assert window.previous_end == datetime(2023, 12, 31, 23, 59, 59, 999999)


def test_month_window_leap_february():
    window = resolve_period_window("month", datetime(2024, 3, 5))

    assert window.previous_start == datetime(2024, 2, 1)
    assert window.previous_end == datetime(2024, 2, 29, 23, 59, 59, 999999)


def test_year_window():
    window = resolve_period_window(ReportingPeriod.YEAR, datetime(2024, 6, 15))

    assert window.start == datetime(2024, 1, 1)
    assert window.end == datetime(2024, 12, 31, 23, 59, 59, 999999)
    assert window.previous_start == datetime(2023, 1, 1)
    assert window.previous_end == datetime(2023, 12, 31, 23, 59, 59, 999999)


@pytest.mark.parametrize("period", list(ReportingPeriod))
@pytest.mark.parametrize(
    "now",
    [
        datetime(2024, 1, 1, 0, 0),
        datetime(2024, 2, 29, 23, 59, 59),
        datetime(2024, 6, 15, 14, 0),
        datetime(2024, 12, 31, 12, 0),
    ],
)
def test_window_invariants(period, now):
    """Windows are ordered, adjacent and contain the reference instant."""
    window = resolve_period_window(period, now)

    assert window.previous_start < window.previous_end < window.start <= now <= window.end
    assert window.start - window.previous_end == LAST
    assert window.contains(now)
    assert not window.contains_previous(now)


@pytest.mark.parametrize("period", [ReportingPeriod.DAY, ReportingPeriod.WEEK])
def test_previous_window_has_equal_duration(period):
    window = resolve_period_window(period, datetime(2024, 6, 15, 14, 0))

    assert window.end - window.start == window.previous_end - window.previous_start


def test_month_previous_duration_differs_by_at_most_three_days():
    window = resolve_period_window("month", datetime(2024, 3, 15))

    current = window.end - window.start
    previous = window.previous_end - window.previous_start
    assert abs(current - previous) <= timedelta(days=3)


def test_aware_now_produces_localized_boundaries():
    tz = pytz.timezone("America/Mexico_City")
    now = tz.localize(datetime(2024, 6, 15, 14, 0))

    window = resolve_period_window("day", now)

    assert window.start == tz.localize(datetime(2024, 6, 15))
    assert window.start.utcoffset() == timedelta(hours=-6)
    assert window.end == tz.localize(datetime(2024, 6, 15, 23, 59, 59, 999999))


def test_dst_week_boundaries_use_local_offsets():
    """The week of the US spring-forward change keeps midnight boundaries."""
    tz = pytz.timezone("America/New_York")
    now = tz.localize(datetime(2025, 3, 12, 10, 0))

    window = resolve_period_window("week", now)

    assert window.start.replace(tzinfo=None) == datetime(2025, 3, 9)
    assert window.start.utcoffset() == timedelta(hours=-5)
    assert window.end.utcoffset() == timedelta(hours=-4)
    # 7 local days minus the skipped hour
    assert window.end - window.start == timedelta(days=7, hours=-1) - LAST


def test_default_now_is_current_time():
    window = resolve_period_window("day")

    assert window.start.tzinfo is not None
    assert window.contains(datetime.now(window.start.tzinfo))


def test_rolling_window():
    now = datetime(2024, 6, 15, 14, 0)

    window = rolling_window(30, now)

    assert window.period is None
    assert window.start == datetime(2024, 5, 16, 14, 0)
    assert window.end == now
    assert window.previous_start == datetime(2024, 4, 16, 14, 0)
    assert window.previous_end == datetime(2024, 5, 16, 14, 0) - LAST


@pytest.mark.parametrize("days", [0, -1])
def test_rolling_window_requires_positive_days(days):
    with pytest.raises(ValueError, match="positive"):
        rolling_window(days, datetime(2024, 6, 15))


def test_window_to_dict():
    window = resolve_period_window("day", datetime(2024, 6, 15, 14, 0))

    data = window.to_dict()

    assert data == {
        "period": "day",
        "start": "2024-06-15T00:00:00",
        "end": "2024-06-15T23:59:59.999999",
        "previous_start": "2024-06-14T00:00:00",
        "previous_end": "2024-06-14T23:59:59.999999",
    }
    assert isinstance(window, PeriodWindow)
