"""Top-N rankings over line items."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ..core.records import LineItem, coerce_amount

__all__ = [
    "DEFAULT_TOP_N",
    "UNKNOWN_ENTITY_LABEL",
    "RankedEntry",
    "rank_top_n",
]

DEFAULT_TOP_N = 5
UNKNOWN_ENTITY_LABEL = "deleted/unknown"


@dataclass
class RankedEntry:
    """Accumulated contributions of one entity."""

    name: str
    quantity: Decimal = Decimal(0)
    revenue: Decimal = Decimal(0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "quantity": float(self.quantity),
            "revenue": float(self.revenue),
        }


def rank_top_n(
    items: Iterable[LineItem | tuple[Any, Any, Any]],
    n: int = DEFAULT_TOP_N,
    *,
    unknown_label: str = UNKNOWN_ENTITY_LABEL,
) -> list[RankedEntry]:
    """Accumulate contributions per key and return the top ``n`` by revenue.

    Items with no key are attributed to ``unknown_label`` so revenue totals
    are preserved. Ties keep first-seen order.

    Parameters
    ----------
    items
        LineItems or ``(key, quantity, revenue)`` triples
    n
        Number of entries to return

    Returns
    -------
    list[RankedEntry]
        At most ``n`` entries, highest revenue first

    Examples
    --------
    >>> ranked = rank_top_n([("A", 1, 10), ("B", 2, 30), ("A", 1, 5)], 2)
    >>> [(e.name, e.quantity, e.revenue) for e in ranked]
    [('B', Decimal('2'), Decimal('30')), ('A', Decimal('2'), Decimal('15'))]
    """
    if n <= 0:
        return []

    totals: dict[str, RankedEntry] = {}
    for item in items:
        if isinstance(item, LineItem):
            key, quantity, revenue = item.key, item.quantity, item.revenue
        else:
            key, quantity, revenue = item

        name = unknown_label if key is None else str(key)
        entry = totals.get(name)
        if entry is None:
            entry = totals[name] = RankedEntry(name=name)
        entry.quantity += coerce_amount(quantity)
        entry.revenue += coerce_amount(revenue)

    # sorted() is stable, so equal revenue keeps insertion order
    ranked = sorted(totals.values(), key=lambda e: e.revenue, reverse=True)
    return ranked[:n]
