"""Tests for timestamp parsing and timezone helpers."""

from datetime import date, datetime, timezone

import pytest
import pytz

from bizmetrics.core.time import (
    TimeConfig,
    get_current_time,
    get_default_timezone,
    localize,
    parse_timestamp,
    set_default_timezone,
    to_wall_clock,
)


@pytest.fixture(autouse=True)
def reset_default_timezone():
    original = TimeConfig.get_default_timezone_name()
    yield
    TimeConfig.set_default_timezone_name(original)


def test_parse_timestamp_zulu_suffix():
    """Trailing Z is read as UTC."""
    dt = parse_timestamp("2024-06-15T09:00:00Z")

    assert dt == datetime(2024, 6, 15, 9, 0, tzinfo=timezone.utc)


def test_parse_timestamp_with_offset():
    dt = parse_timestamp("2024-06-15T09:00:00-06:00")

    assert dt.utcoffset().total_seconds() == -6 * 3600
    assert dt.hour == 9


def test_parse_timestamp_naive_and_date_only():
    assert parse_timestamp("2024-06-15T09:30:00") == datetime(2024, 6, 15, 9, 30)
    assert parse_timestamp("2024-06-15") == datetime(2024, 6, 15)


def test_parse_timestamp_passes_datetimes_and_dates():
    dt = datetime(2024, 6, 15, 9, 0)

    assert parse_timestamp(dt) is dt
    assert parse_timestamp(date(2024, 6, 15)) == datetime(2024, 6, 15)


@pytest.mark.parametrize("value", ["", "   ", "yesterday", "2024-13-45", 12345, None])
def test_parse_timestamp_rejects_malformed(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


def test_to_wall_clock_converts_aware_to_target_zone():
    """09:00 UTC is 03:00 in Mexico City (UTC-6, no DST in 2024)."""
    tz = pytz.timezone("America/Mexico_City")
    dt = datetime(2024, 6, 15, 9, 0, tzinfo=timezone.utc)

    assert to_wall_clock(dt, tz) == datetime(2024, 6, 15, 3, 0)


def test_to_wall_clock_naive_unchanged():
    dt = datetime(2024, 6, 15, 9, 0)

    assert to_wall_clock(dt, pytz.timezone("Europe/Madrid")) == dt
    assert to_wall_clock(dt, None) == dt


def test_to_wall_clock_without_zone_uses_utc():
    tz = pytz.timezone("Europe/Madrid")
    dt = tz.localize(datetime(2024, 6, 15, 11, 0))

    assert to_wall_clock(dt, None) == datetime(2024, 6, 15, 9, 0)


def test_localize_picks_offset_for_date():
    """pytz localization uses the offset valid on that date."""
    tz = pytz.timezone("America/New_York")

    winter = localize(datetime(2024, 1, 15), tz)
    summer = localize(datetime(2024, 7, 15), tz)

    assert winter.utcoffset().total_seconds() == -5 * 3600
    assert summer.utcoffset().total_seconds() == -4 * 3600


def test_localize_without_zone_returns_naive():
    dt = datetime(2024, 6, 15)

    assert localize(dt, None) is dt


def test_localize_with_stdlib_timezone():
    dt = localize(datetime(2024, 6, 15), timezone.utc)

    assert dt.tzinfo is timezone.utc


def test_get_current_time_in_named_zone():
    now = get_current_time("Asia/Tokyo")

    assert now.tzinfo is not None
    assert now.utcoffset().total_seconds() == 9 * 3600


def test_set_default_timezone():
    set_default_timezone("Europe/Madrid")

    assert str(get_default_timezone()) == "Europe/Madrid"
    assert get_current_time().tzinfo is not None


def test_set_default_timezone_invalid():
    with pytest.raises(ValueError, match="Invalid timezone"):
        set_default_timezone("Mars/Olympus_Mons")
