"""Record-storage interface and in-memory implementation.

The hosted backend is reached only through ``RecordStore``: fetch all rows
of a collection, optionally filtered by field predicates and limited to a
count. No ordering is guaranteed unless requested.
"""

from __future__ import annotations

import operator
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

__all__ = [
    "FILTER_OPERATORS",
    "Filter",
    "InMemoryRecordStore",
    "RecordStore",
    "StorageError",
]

FILTER_OPERATORS = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


class StorageError(Exception):
    """Raised when the record store cannot serve a request."""


@dataclass(frozen=True)
class Filter:
    """Field predicate: exact match or comparison.

    Example
    -------
    >>> Filter("status", "eq", "paid")
    >>> Filter("sale_date", "gte", "2024-06-01")
    """

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")

    def format_value(self) -> str:
        """Render the value the way the table API expects it."""
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, (datetime, date)):
            return self.value.isoformat()
        if self.value is None:
            return "null"
        return str(self.value)

    def matches(self, row: Mapping[str, Any]) -> bool:
        """Evaluate the predicate against a row."""
        value = row.get(self.field)
        expected = self.value
        if isinstance(expected, (datetime, date)):
            expected = expected.isoformat()
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        if value is None or expected is None:
            if self.op == "eq":
                return value is None and expected is None
            if self.op == "neq":
                return (value is None) != (expected is None)
            return False
        try:
            return bool(FILTER_OPERATORS[self.op](value, expected))
        except TypeError:
            return False


@runtime_checkable
class RecordStore(Protocol):
    """Read access to the hosted tables."""

    def fetch(
        self,
        collection: str,
        *,
        select: str = "*",
        filters: Sequence[Filter] = (),
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return rows of ``collection`` matching every filter."""
        ...

    def count(self, collection: str, *, filters: Sequence[Filter] = ()) -> int:
        """Return the number of rows of ``collection`` matching every filter."""
        ...

    def close(self) -> None:
        """Release resources held by the store."""
        ...


class InMemoryRecordStore:
    """RecordStore over plain dict rows.

    Joined entities are expected to be embedded in the rows already (for
    instance ``{"product": {"name": "Pump"}}``), so ``select`` is ignored.
    """

    def __init__(self, collections: Mapping[str, Sequence[Mapping[str, Any]]] | None = None) -> None:
        self._collections: dict[str, list[dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (collections or {}).items()
        }

    @classmethod
    def from_yaml(cls, path: Path | str) -> InMemoryRecordStore:
        """Load collections from a YAML file mapping collection names to row lists.

        Raises
        ------
        StorageError
            If the file cannot be read or does not hold a mapping of lists
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise StorageError(f"Cannot load fixtures from {path}: {exc}") from exc

        if not isinstance(data, dict) or not all(isinstance(rows, list) for rows in data.values()):
            raise StorageError(f"Fixtures file {path} must map collection names to lists of rows")

        return cls(data)

    def add(self, collection: str, *rows: Mapping[str, Any]) -> None:
        """Append rows to a collection."""
        self._collections.setdefault(collection, []).extend(dict(row) for row in rows)

    def _matching(self, collection: str, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        rows = self._collections.get(collection, [])
        return [dict(row) for row in rows if all(f.matches(row) for f in filters)]

    def fetch(
        self,
        collection: str,
        *,
        select: str = "*",
        filters: Sequence[Filter] = (),
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        rows = self._matching(collection, filters)

        if order:
            field_name, _, direction = order.partition(".")
            present = [r for r in rows if r.get(field_name) is not None]
            missing = [r for r in rows if r.get(field_name) is None]
            present.sort(key=lambda r: r[field_name], reverse=direction == "desc")
            rows = present + missing

        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, collection: str, *, filters: Sequence[Filter] = ()) -> int:
        return len(self._matching(collection, filters))

    def close(self) -> None:
        return None
