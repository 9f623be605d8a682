"""Localized chart labels."""

from __future__ import annotations

__all__ = [
    "DEFAULT_LOCALE",
    "SUPPORTED_LOCALES",
    "hour_label",
    "month_label",
    "weekday_label",
    "week_label",
]

DEFAULT_LOCALE = "en"

# Weekdays are Sunday-first.
_WEEKDAYS = {
    "en": ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"),
    "es": ("dom", "lun", "mar", "mié", "jue", "vie", "sáb"),
}

_MONTHS = {
    "en": ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"),
    "es": ("ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sept", "oct", "nov", "dic"),
}

_WEEK_WORD = {
    "en": "Week",
    "es": "Semana",
}

SUPPORTED_LOCALES = tuple(_WEEKDAYS)


def _locale(locale: str) -> str:
    # "es-MX" and "es_MX" fall back to "es"; anything unknown to English
    base = locale.replace("_", "-").split("-")[0].lower()
    return base if base in _WEEKDAYS else DEFAULT_LOCALE


def hour_label(hour: int) -> str:
    """Label for an hourly bucket, e.g. ``"9:00"``."""
    return f"{hour}:00"


def weekday_label(sunday_index: int, locale: str = DEFAULT_LOCALE) -> str:
    """Abbreviated weekday name where 0 is Sunday."""
    return _WEEKDAYS[_locale(locale)][sunday_index]


def month_label(month: int, locale: str = DEFAULT_LOCALE) -> str:
    """Abbreviated month name for a 1-based month number."""
    return _MONTHS[_locale(locale)][month - 1]


def week_label(number: int, locale: str = DEFAULT_LOCALE) -> str:
    """Label for the n-th trailing week bucket, e.g. ``"Week 2"``."""
    return f"{_WEEK_WORD[_locale(locale)]} {number}"
