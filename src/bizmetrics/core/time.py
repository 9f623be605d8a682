"""Time and timezone utilities for bizmetrics.

Provides consistent timestamp handling for dashboard aggregation:
- Tolerant parsing of storage timestamps (ISO-8601 strings, dates, datetimes)
- Current time in the configured timezone
- Conversion to local wall-clock time for calendar bucketing
- DST-correct localization of wall-clock boundaries
"""

from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo

import pytz

__all__ = [
    "TimeConfig",
    "get_current_time",
    "get_default_timezone",
    "localize",
    "parse_timestamp",
    "set_default_timezone",
    "to_wall_clock",
]


class TimeConfig:
    """Global time configuration."""

    _default_timezone = "UTC"

    @classmethod
    def get_default_timezone_name(cls) -> str:
        """Get default timezone name."""
        return cls._default_timezone

    @classmethod
    def set_default_timezone_name(cls, timezone_name: str) -> None:
        """Set default timezone.

        Parameters
        ----------
        timezone_name
            IANA timezone name (e.g., "America/Mexico_City")

        Raises
        ------
        ValueError
            If timezone is invalid
        """
        try:
            pytz.timezone(timezone_name)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Invalid timezone: {timezone_name}") from exc

        cls._default_timezone = timezone_name


def get_default_timezone() -> tzinfo:
    """Get default timezone object."""
    return pytz.timezone(TimeConfig.get_default_timezone_name())


def set_default_timezone(timezone_name: str) -> None:
    """Set default timezone for the process."""
    TimeConfig.set_default_timezone_name(timezone_name)


def get_current_time(tz: tzinfo | str | None = None) -> datetime:
    """Get current time in specified timezone.

    Parameters
    ----------
    tz
        Timezone (tzinfo, timezone name string, or None for default)

    Returns
    -------
    datetime
        Current time, timezone-aware
    """
    if tz is None:
        tz = get_default_timezone()
    elif isinstance(tz, str):
        tz = pytz.timezone(tz)

    return datetime.now(tz)


def parse_timestamp(value: datetime | date | str) -> datetime:
    """Parse a storage timestamp into a datetime.

    Accepts datetimes (returned unchanged), dates (midnight) and ISO-8601
    strings, including a trailing ``Z`` and date-only values.

    Raises
    ------
    ValueError
        If the value is empty, of an unsupported type, or not ISO-8601

    Example
    -------
    >>> parse_timestamp("2024-06-15T09:00:00Z").hour
    9
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    text = value.strip()
    if not text:
        raise ValueError("Empty timestamp")

    # Handle 'Z' suffix (Zulu time = UTC)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    return datetime.fromisoformat(text)


def to_wall_clock(dt: datetime, tz: tzinfo | None) -> datetime:
    """Convert ``dt`` to naive local wall-clock time in ``tz``.

    Aware datetimes are converted into ``tz``. With no ``tz``, aware values
    are expressed in UTC and naive values are taken as-is.
    """
    if dt.tzinfo is None:
        return dt
    if tz is None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.astimezone(tz).replace(tzinfo=None)


def localize(naive: datetime, tz: tzinfo | None) -> datetime:
    """Attach ``tz`` to a naive wall-clock datetime.

    pytz zones must go through ``localize`` to pick the right UTC offset
    for the date; other tzinfo implementations are attached directly.
    """
    if tz is None:
        return naive
    localize_fn = getattr(tz, "localize", None)
    if localize_fn is not None:
        return localize_fn(naive)
    return naive.replace(tzinfo=tz)
