"""Tee flips: who tees off first when the match is level."""

from __future__ import annotations

from golfscore.game.models import Game
from golfscore.scoring.results import Scoreboard
from golfscore.utils.constants import TEE_FLIP_DECLINED, TEE_FLIP_WINNER


def get_tee_flip_winner(game: Game, hole: str) -> str | None:
    game_hole = game.get_hole(hole)
    for team in (game_hole.teams or []) if game_hole else []:
        if team.team_options(TEE_FLIP_WINNER):
            return team.team
    return None


def get_tee_flip_declined(game: Game, hole: str) -> bool:
    game_hole = game.get_hole(hole)
    return any(
        team.team_options(TEE_FLIP_DECLINED)
        for team in ((game_hole.teams or []) if game_hole else [])
    )


def teams_tied_before(scoreboard: Scoreboard, hole: str) -> bool:
    """Level on running totals going into ``hole``. The first hole is always level."""
    previous = scoreboard.previous_hole(hole)
    if previous is None:
        return True
    totals = {t.running_total for t in previous.teams.values()}
    return len(totals) <= 1


def is_tee_flip_required(game: Game, scoreboard: Scoreboard, hole: str) -> bool:
    """Two or more teams, level going in, and no flip recorded yet."""
    hole_result = scoreboard.hole(hole)
    if hole_result is None or len(hole_result.teams) < 2:
        return False
    if get_tee_flip_winner(game, hole) or get_tee_flip_declined(game, hole):
        return False
    return teams_tied_before(scoreboard, hole)


def is_earliest_unflipped_hole(game: Game, scoreboard: Scoreboard, hole: str) -> bool:
    for candidate in scoreboard.meta.hole_order:
        if is_tee_flip_required(game, scoreboard, candidate):
            return candidate == hole
    return False
