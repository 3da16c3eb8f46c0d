"""Junk (bonus point) evaluation.

Each junk option is checked in a fixed order: a user toggle, then a
``score_to_par`` condition, then a ``logic`` expression. Team junk first
computes a team score with its ``calculation`` method. Errors in logic
expressions propagate.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Iterable

from golfscore.game.models import JunkOption, TeamOption
from golfscore.scoring.logic import evaluate_bool
from golfscore.scoring.options import get_junk_options_for_hole
from golfscore.scoring.results import AwardedJunk, HoleResult, PlayerHoleResult, TeamHoleResult
from golfscore.scoring.team_scoring import calculate_team_score, team_scores_for
from golfscore.utils.constants import (
    BASED_ON_GROSS,
    BASED_ON_NET,
    BASED_ON_USER,
    CALCULATION_LOGIC,
    HIGHER,
    LIMIT_ONE_PER_GROUP,
    LOWER,
    PAR_AT_LEAST,
    PAR_AT_MOST,
    PAR_EXACTLY,
    SCOPE_TEAM,
    TEAM_METHODS,
    TRUE_VALUE,
)

if TYPE_CHECKING:
    from golfscore.scoring.context import ScoringContext


@functools.lru_cache(maxsize=256)
def parse_score_to_par(condition: str) -> tuple[str, int]:
    """``"exactly -1"`` -> ``("exactly", -1)``."""
    parts = condition.split()
    if len(parts) != 2 or parts[0] not in (PAR_EXACTLY, PAR_AT_MOST, PAR_AT_LEAST):
        raise ValueError(f"Invalid score_to_par condition: {condition!r}")
    try:
        return parts[0], int(parts[1])
    except ValueError as e:
        raise ValueError(f"Invalid score_to_par condition: {condition!r}") from e


def matches_score_to_par(condition: str, to_par: float) -> bool:
    operator, target = parse_score_to_par(condition)
    if operator == PAR_EXACTLY:
        return to_par == target
    if operator == PAR_AT_MOST:
        return to_par <= target
    return to_par >= target


def possible_points(
    junk_options: Iterable[JunkOption], earned: Iterable[AwardedJunk] = ()
) -> float:
    """Points a single team could win on the hole.

    Team junk and one-per-group junk are on offer to every team; other player
    junk only counts once somebody has ``earned`` it.
    """
    offered = [
        j for j in junk_options
        if j.scope == SCOPE_TEAM or j.limit == LIMIT_ONE_PER_GROUP
    ]
    shared = {j.name for j in offered}
    return sum(j.value for j in offered) + sum(a.value for a in earned if a.name not in shared)


def get_user_junk_options(junk_options: Iterable[JunkOption]) -> list[JunkOption]:
    return [j for j in junk_options if j.based_on == BASED_ON_USER]


def has_player_junk(options: Iterable[TeamOption], player_id: str, junk_name: str) -> bool:
    return any(
        opt.option_name == junk_name and opt.player_id == player_id and opt.value == TRUE_VALUE
        for opt in options
    )


def _award(target: PlayerHoleResult | TeamHoleResult, option: JunkOption, player_id: str | None) -> None:
    target.junk.append(AwardedJunk(name=option.name, value=option.value, player_id=player_id))


def _player_earns(
    ctx: ScoringContext,
    hole_result: HoleResult,
    option: JunkOption,
    player: PlayerHoleResult,
    possible: float,
) -> bool:
    if option.based_on == BASED_ON_USER:
        return has_player_junk(ctx.player_options(hole_result.hole, player.player_id), player.player_id, option.name)
    if option.score_to_par:
        if not player.has_score:
            return False
        to_par = player.net_to_par if option.based_on == BASED_ON_NET else player.score_to_par
        return matches_score_to_par(option.score_to_par, to_par)
    if option.logic:
        team = next(
            (t for t in hole_result.sorted_teams() if player.player_id in t.player_ids), None
        )
        logic_ctx = ctx.logic_context(hole_result.hole, team=team, player=player, option=option, possible=possible)
        return evaluate_bool(option.logic, logic_ctx)
    return False


def _team_winners_by_score(
    option: JunkOption, scores: dict[str, float | None]
) -> list[str]:
    valid = {team_id: s for team_id, s in scores.items() if s is not None}
    if not valid:
        return []
    better = option.better or LOWER
    best = max(valid.values()) if better == HIGHER else min(valid.values())
    return [team_id for team_id, s in valid.items() if s == best]


def _evaluate_team_junk(
    ctx: ScoringContext, hole_result: HoleResult, option: JunkOption, possible: float
) -> None:
    teams = hole_result.sorted_teams()
    if option.based_on == BASED_ON_USER:
        for team in teams:
            selected = [
                o for o in ctx.team_options(hole_result.hole, team.team_id)
                if o.option_name == option.name and not o.player_id and o.value == TRUE_VALUE
            ]
            if selected:
                _award(team, option, None)
        return

    calculation = option.calculation
    if not calculation:
        raise ValueError(f"Team junk {option.name!r} has no calculation")

    if calculation == CALCULATION_LOGIC:
        if not option.logic:
            raise ValueError(f"Team junk {option.name!r} uses logic but has none")
        for team in teams:
            logic_ctx = ctx.logic_context(hole_result.hole, team=team, option=option, possible=possible)
            if evaluate_bool(option.logic, logic_ctx):
                _award(team, option, None)
        return

    if calculation not in TEAM_METHODS:
        raise ValueError(f"Unknown calculation {calculation!r} for junk {option.name!r}")

    field = "gross" if option.based_on == BASED_ON_GROSS else "net"
    scores = {
        team.team_id: calculate_team_score(
            calculation, team_scores_for(team.player_ids, hole_result.players, field)
        )
        for team in teams
    }
    if option.score_to_par:
        winners = [
            team_id for team_id, s in scores.items()
            if s is not None and matches_score_to_par(option.score_to_par, s - hole_result.par)
        ]
    elif option.logic:
        winners = []
        for team in teams:
            if scores[team.team_id] is None:
                continue
            logic_ctx = ctx.logic_context(hole_result.hole, team=team, option=option, possible=possible)
            if evaluate_bool(option.logic, logic_ctx):
                winners.append(team.team_id)
    else:
        winners = _team_winners_by_score(option, scores)

    for team_id in winners:
        _award(hole_result.teams[team_id], option, None)


def evaluate_junk_for_hole(ctx: ScoringContext, hole: str) -> None:
    """Award junk for one hole. Nothing is awarded until the hole is complete."""
    hole_result = ctx.hole(hole)
    if hole_result is None:
        return
    for player in hole_result.players.values():
        player.junk = []
    for team in hole_result.teams.values():
        team.junk = []
    if not hole_result.complete:
        return

    options = get_junk_options_for_hole(hole, ctx.game)
    possible = possible_points(options)

    for option in options:
        if option.scope == SCOPE_TEAM:
            continue
        for player_id in ctx.scoreboard.meta.player_order:
            player = hole_result.players.get(player_id)
            if player is not None and _player_earns(ctx, hole_result, option, player, possible):
                _award(player, option, player_id)

    for option in options:
        if option.scope == SCOPE_TEAM:
            _evaluate_team_junk(ctx, hole_result, option, possible)
