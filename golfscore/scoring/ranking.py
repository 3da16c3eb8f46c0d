"""Ranking with ties for players and teams."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

from golfscore.utils.constants import HIGHER, LOWER

T = TypeVar("T")


@dataclass(frozen=True)
class RankedItem(Generic[T]):
    item: T
    score: float
    rank: int
    tie_count: int


def rank_with_ties(
    items: Iterable[T],
    score_getter: Callable[[T], float],
    direction: str = LOWER,
) -> list[RankedItem[T]]:
    """Rank items by score, sharing ranks on ties.

    ``lower`` ranks the smallest score first (strokes), ``higher`` the largest
    (points). After a tie the next rank skips by the size of the tie, so
    ``[3, 3, 4, 5]`` ranks ``[1, 1, 3, 4]``. The sort is stable.
    """
    if direction not in (LOWER, HIGHER):
        raise ValueError(f"Unknown rank direction: {direction}")
    scored = [(item, score_getter(item)) for item in items]
    scored.sort(key=lambda pair: pair[1], reverse=direction == HIGHER)

    counts: dict[Any, int] = {}
    for _, score in scored:
        counts[score] = counts.get(score, 0) + 1

    ranked: list[RankedItem[T]] = []
    rank = 1
    previous = None
    for position, (item, score) in enumerate(scored, start=1):
        if position == 1 or score != previous:
            rank = position
            previous = score
        ranked.append(RankedItem(item=item, score=score, rank=rank, tie_count=counts[score]))
    return ranked


def get_winners(ranked: list[RankedItem[T]]) -> list[T]:
    return get_at_rank(ranked, 1)


def get_at_rank(ranked: list[RankedItem[T]], rank: int) -> list[T]:
    return [r.item for r in ranked if r.rank == rank]


def has_tie_at_rank(ranked: list[RankedItem[T]], rank: int) -> bool:
    return len(get_at_rank(ranked, rank)) > 1


def matches_rank_condition(ranked_item: RankedItem, rank: int, tie_count: int) -> bool:
    return ranked_item.rank == rank and ranked_item.tie_count == tie_count


def create_rank_lookup(
    ranked: list[RankedItem[T]], key: Callable[[T], str]
) -> dict[str, RankedItem[T]]:
    return {key(r.item): r for r in ranked}
