"""Points arithmetic: tables, tie splits and multipliers."""

from __future__ import annotations

import math
from typing import Callable, Iterable, Sequence

from golfscore.game.models import PointsTableEntry
from golfscore.scoring.ranking import RankedItem


def _value(entry) -> float:
    return entry["value"] if isinstance(entry, dict) else entry.value


def points_from_table(rank: int, tie_count: int, table: Iterable[PointsTableEntry]) -> float:
    """Exact lookup on ``(rank, tie_count)``. Missing entries score 0."""
    for entry in table:
        if entry.rank == rank and entry.tie_count == tie_count:
            return entry.points
    return 0


def calculate_total_multiplier(multipliers: Iterable) -> float:
    return math.prod(_value(m) for m in multipliers)


def calculate_points(base_points: float, junk: Iterable, multipliers: Iterable) -> float:
    """``(base + sum(junk)) * product(multipliers)``; no multipliers means x1."""
    return (base_points + sum(_value(j) for j in junk)) * calculate_total_multiplier(multipliers)


def split_points(points_to_split: Sequence[float]) -> float:
    if not points_to_split:
        return 0
    return sum(points_to_split) / len(points_to_split)


def calculate_position_points(
    rank: int, tie_count: int, points_per_rank: Callable[[int], float]
) -> float:
    """Average the prizes for the ``tie_count`` positions starting at ``rank``.

    Two players tied for first in a 3/2 scheme each get 2.5.
    """
    count = max(tie_count, 1)
    return split_points([points_per_rank(rank + i) for i in range(count)])


def position_lookup(position_points: Sequence[float]) -> Callable[[int], float]:
    """1-based position -> points, 0 past the end of the list."""

    def lookup(position: int) -> float:
        if 1 <= position <= len(position_points):
            return position_points[position - 1]
        return 0

    return lookup


def distribute_position_points(
    ranked: list[RankedItem], position_points: Sequence[float]
) -> list[float]:
    """Points per ranked item.

    Whatever the tie pattern, the result sums to the first ``len(ranked)``
    entries of ``position_points``.
    """
    lookup = position_lookup(position_points)
    return [calculate_position_points(r.rank, r.tie_count, lookup) for r in ranked]
