"""Typed records at the storage boundary.

Rows come back from the record store as plain dicts whose shape depends on
which joins resolved (``product`` may be a dict or ``None`` once the product
is deleted). Everything here resolves-or-defaults those fields so the
aggregation code only ever sees complete, typed values.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from ..observability.loguru_config import get_logger
from .time import parse_timestamp

__all__ = [
    "LineItem",
    "MetricRecord",
    "ServiceType",
    "coerce_amount",
    "line_items_from_rows",
    "metric_records_from_rows",
    "resolve_field",
]

logger = get_logger("records")


class ServiceType(str, Enum):
    """Kind of work order a service record belongs to."""

    INSTALLATION = "installation"
    REPAIR = "repair"
    MAINTENANCE = "maintenance"
    INSPECTION = "inspection"

    @classmethod
    def from_value(cls, value: Any) -> ServiceType | None:
        """Return the matching member, or None for missing/unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class MetricRecord:
    """A timestamped business event: a sale, a completed service or a paid invoice."""

    occurred_at: datetime
    amount: Decimal = Decimal(0)
    category: ServiceType | None = None


@dataclass(frozen=True)
class LineItem:
    """One contribution to a ranking.

    ``key`` is None when the referenced entity no longer exists.
    """

    key: str | None
    quantity: Decimal
    revenue: Decimal


def resolve_field(row: Mapping[str, Any], path: str) -> Any:
    """Look up a dotted path (``"product.name"``) in a row.

    Returns None as soon as any step is missing or not a mapping.
    """
    value: Any = row
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
        if value is None:
            return None
    return value


def coerce_amount(value: Any) -> Decimal:
    """Convert an upstream numeric value to Decimal, defaulting to 0.

    Example
    -------
    >>> coerce_amount("12.50")
    Decimal('12.50')
    >>> coerce_amount(None)
    Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning("Malformed amount coerced to 0", value=repr(value))
        return Decimal(0)
    if not amount.is_finite():
        logger.warning("Non-finite amount coerced to 0", value=repr(value))
        return Decimal(0)
    return amount


def _sum_fields(row: Mapping[str, Any], fields: Sequence[str]) -> Decimal:
    return sum((coerce_amount(resolve_field(row, f)) for f in fields), Decimal(0))


def metric_records_from_rows(
    rows: Iterable[Mapping[str, Any]],
    *,
    timestamp_field: str,
    amount_fields: Sequence[str],
    category_field: str | None = None,
) -> list[MetricRecord]:
    """Build MetricRecords from raw storage rows.

    Rows whose timestamp is missing or unparseable are dropped; the rest of
    the batch is still converted.

    Parameters
    ----------
    rows
        Raw rows from the record store
    timestamp_field
        Field holding the event time (e.g. ``"sale_date"``)
    amount_fields
        Fields summed into the record amount (e.g. labor and materials cost)
    category_field
        Optional field holding a service type

    Returns
    -------
    list[MetricRecord]
        Records in input order
    """
    records: list[MetricRecord] = []
    skipped = 0

    for row in rows:
        raw_ts = resolve_field(row, timestamp_field)
        if raw_ts is None:
            skipped += 1
            continue
        try:
            occurred_at = parse_timestamp(raw_ts)
        except ValueError:
            skipped += 1
            continue

        category = None
        if category_field:
            category = ServiceType.from_value(resolve_field(row, category_field))

        records.append(
            MetricRecord(
                occurred_at=occurred_at,
                amount=_sum_fields(row, amount_fields),
                category=category,
            )
        )

    if skipped:
        logger.debug(
            "Skipped rows without a valid timestamp",
            timestamp_field=timestamp_field,
            skipped=skipped,
        )

    return records


def line_items_from_rows(
    rows: Iterable[Mapping[str, Any]],
    *,
    key_field: str,
    revenue_fields: Sequence[str],
    quantity_field: str | None = None,
) -> list[LineItem]:
    """Build ranking contributions from raw rows.

    Without ``quantity_field`` every row counts as a quantity of one (one
    service per technician row, for instance).
    """
    items = []
    for row in rows:
        key = resolve_field(row, key_field)
        if quantity_field is None:
            quantity = Decimal(1)
        else:
            quantity = coerce_amount(resolve_field(row, quantity_field))
        items.append(
            LineItem(
                key=str(key) if key is not None else None,
                quantity=quantity,
                revenue=_sum_fields(row, revenue_fields),
            )
        )
    return items
