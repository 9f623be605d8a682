"""Current-vs-previous period change indicators."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Union

__all__ = [
    "DeltaMetric",
    "Direction",
    "compute_delta",
]

Number = Union[int, float, Decimal]


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class DeltaMetric:
    """Change between two period aggregates.

    Attributes
    ----------
    current_value
        Aggregate of the current period
    previous_value
        Aggregate of the previous period
    percent_change : float
        Magnitude of the change in percent (never negative)
    direction : Direction
        ``up`` when the current value did not decline
    """

    current_value: Number
    previous_value: Number
    percent_change: float
    direction: Direction

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "current_value": float(self.current_value),
            "previous_value": float(self.previous_value),
            "percent_change": self.percent_change,
            "direction": self.direction.value,
        }


def compute_delta(current: Number, previous: Number) -> DeltaMetric:
    """Compare a current aggregate against the previous one.

    A previous value of zero reports 100% when there is any current
    activity and 0% otherwise, so the result is always finite.

    Examples
    --------
    >>> compute_delta(50, 100).percent_change
    50.0
    >>> compute_delta(50, 0).percent_change
    100.0
    """
    if previous > 0:
        percent = float(abs(current - previous)) / float(previous) * 100
    elif current > 0:
        percent = 100.0
    else:
        percent = 0.0

    direction = Direction.UP if current >= previous else Direction.DOWN
    return DeltaMetric(
        current_value=current,
        previous_value=previous,
        percent_change=percent,
        direction=direction,
    )
