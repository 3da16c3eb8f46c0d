"""Handicap strokes ("pops") for golfscore."""

from __future__ import annotations

import math

from golfscore.game.models import Round
from golfscore.utils.constants import HOLES_PER_ROUND, SLOPE_STANDARD


def course_handicap(
    index: float, slope: int, rating: float | None = None, par: int | None = None
) -> int:
    """Course handicap from an index, rounded half up.

    ``index * slope / 113`` plus ``rating - par`` when both are known.
    """
    value = index * slope / SLOPE_STANDARD
    if rating is not None and par is not None:
        value += rating - par
    return math.floor(value + 0.5)


def effective_handicap(round_: Round) -> int:
    """Agreed game handicap first, then course handicap, else derived from the index."""
    if round_.game_handicap is not None:
        return round_.game_handicap
    if round_.course_handicap is not None:
        return round_.course_handicap
    tee = round_.tee
    if round_.handicap_index is not None and tee is not None and tee.slope:
        return course_handicap(round_.handicap_index, tee.slope, tee.rating, tee.par or None)
    return 0


def pops_for_hole(handicap: int, allocation: int) -> int:
    """Strokes received on a hole with the given stroke allocation.

    Plus handicaps give strokes back on the easiest holes.
    """
    if handicap == 0 or allocation <= 0:
        return 0
    strokes = abs(handicap)
    full, remainder = divmod(strokes, HOLES_PER_ROUND)
    if handicap > 0:
        return full + (1 if allocation <= remainder else 0)
    return -(full + (1 if allocation > HOLES_PER_ROUND - remainder else 0))


def adjust_handicaps_to_low(handicaps: dict[str, int]) -> dict[str, int]:
    """Play off the lowest handicap in the field."""
    if not handicaps:
        return {}
    low = min(handicaps.values())
    return {player_id: h - low for player_id, h in handicaps.items()}
