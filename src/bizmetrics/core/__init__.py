"""Core record types and time helpers."""

from .records import (
    LineItem,
    MetricRecord,
    ServiceType,
    coerce_amount,
    line_items_from_rows,
    metric_records_from_rows,
    resolve_field,
)
from .time import (
    TimeConfig,
    get_current_time,
    get_default_timezone,
    localize,
    parse_timestamp,
    set_default_timezone,
    to_wall_clock,
)

__all__ = [
    # Records
    "LineItem",
    "MetricRecord",
    "ServiceType",
    "coerce_amount",
    "line_items_from_rows",
    "metric_records_from_rows",
    "resolve_field",
    # Time
    "TimeConfig",
    "get_current_time",
    "get_default_timezone",
    "localize",
    "parse_timestamp",
    "set_default_timezone",
    "to_wall_clock",
]
