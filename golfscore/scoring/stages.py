"""Scoring stages.

Setup stages take and return the ``ScoringContext``. Hole stages also take a
hole and run hole by hole in play order, so anything a hole reads from an
earlier hole (running totals, match standing) is already final.
"""

from __future__ import annotations

from golfscore.game.handicap import adjust_handicaps_to_low, effective_handicap, pops_for_hole
from golfscore.game.models import Round
from golfscore.scoring.context import ScoringContext
from golfscore.scoring.junk import evaluate_junk_for_hole
from golfscore.scoring.multipliers import evaluate_multipliers_for_hole
from golfscore.scoring.options import get_game_option_value
from golfscore.scoring.points import (
    calculate_position_points,
    points_from_table,
    position_lookup,
)
from golfscore.scoring.ranking import rank_with_ties
from golfscore.scoring.results import (
    Cumulative,
    HoleInfo,
    HoleResult,
    PlayerCumulative,
    PlayerHoleResult,
    Scoreboard,
    ScoreboardMeta,
    TeamCumulative,
    TeamHoleResult,
)
from golfscore.scoring.team_scoring import (
    calculate_team_score,
    team_junk_points,
    team_scores_for,
)
from golfscore.utils.constants import (
    DEFAULT_PAR,
    HANDICAP_FROM_LOW,
    HIGHER,
    LOWER,
    METHOD_BEST_BALL,
    METHOD_SUM,
    OPT_BETTER_POINTS,
    OPT_HANDICAP_INDEX_FROM,
    OPT_MATCH_PLAY,
    OPT_USE_HANDICAPS,
    SPEC_TYPE_SKINS,
)


def _hole_info(hole: str, rounds: list[Round]) -> HoleInfo:
    for round_ in rounds:
        tee_hole = round_.tee.get_hole(hole) if round_.tee else None
        if tee_hole is not None:
            return HoleInfo(hole, tee_hole.par, tee_hole.allocation, tee_hole.yards)
    return HoleInfo(hole, DEFAULT_PAR, int(hole) if hole.isdigit() else 0)


def _player_par_and_allocation(round_: Round | None, info: HoleInfo) -> tuple[int, int]:
    tee_hole = round_.tee.get_hole(info.hole) if round_ and round_.tee else None
    if tee_hole is None:
        return info.par, info.allocation
    return tee_hole.par, tee_hole.allocation


# =============================================================================
# Setup stages
# =============================================================================


def initialize_scoreboard(ctx: ScoringContext) -> ScoringContext:
    game = ctx.game
    rounds = game.rounds or []
    player_order = list(game.player_ids)
    for round_ in rounds:
        if round_.player_id not in player_order:
            player_order.append(round_.player_id)

    holes: dict[str, HoleResult] = {}
    hole_order = []
    for game_hole in game.ordered_holes():
        hole_order.append(game_hole.hole)
        holes[game_hole.hole] = HoleResult(
            hole=game_hole.hole,
            hole_info=_hole_info(game_hole.hole, rounds),
            players={pid: PlayerHoleResult(player_id=pid) for pid in player_order},
        )

    ctx.scoreboard = Scoreboard(
        holes=holes,
        cumulative=Cumulative(
            players={pid: PlayerCumulative(player_id=pid) for pid in player_order},
        ),
        meta=ScoreboardMeta(
            game_id=game.game_id,
            hole_order=hole_order,
            player_order=player_order,
            has_teams=game.scope.teams_config.teams,
        ),
    )
    return ctx


def calculate_gross_scores(ctx: ScoringContext) -> ScoringContext:
    rounds = {r.player_id: r for r in ctx.game.rounds or []}
    for hole_result in ctx.scoreboard.holes.values():
        for player_id, player in hole_result.players.items():
            round_ = rounds.get(player_id)
            score = round_.score_for(hole_result.hole) if round_ else None
            if score is None:
                continue
            player.has_score = True
            player.gross = score.gross
            hole_result.scores_entered += 1

        missing = [pid for pid in rounds if not hole_result.players[pid].has_score]
        hole_result.complete = bool(rounds) and not missing
        if hole_result.scores_entered and missing:
            hole_result.warnings.append(f"Waiting for scores from: {', '.join(missing)}")

    ctx.scoreboard.meta.holes_played = [
        h for h in ctx.scoreboard.meta.hole_order
        if ctx.scoreboard.holes[h].scores_entered
    ]
    return ctx


def calculate_pops(ctx: ScoringContext) -> ScoringContext:
    game = ctx.game
    ctx.use_handicaps = bool(get_game_option_value(OPT_USE_HANDICAPS, game, default=True))
    handicaps = {r.player_id: effective_handicap(r) for r in game.rounds or []}
    if get_game_option_value(OPT_HANDICAP_INDEX_FROM, game) == HANDICAP_FROM_LOW:
        handicaps = adjust_handicaps_to_low(handicaps)
    ctx.handicaps = handicaps

    if not ctx.use_handicaps:
        return ctx
    rounds = {r.player_id: r for r in game.rounds or []}
    for hole_result in ctx.scoreboard.holes.values():
        for player_id, player in hole_result.players.items():
            _, allocation = _player_par_and_allocation(rounds.get(player_id), hole_result.hole_info)
            player.pops = pops_for_hole(handicaps.get(player_id, 0), allocation)
    return ctx


def calculate_net_scores(ctx: ScoringContext) -> ScoringContext:
    rounds = {r.player_id: r for r in ctx.game.rounds or []}
    for hole_result in ctx.scoreboard.holes.values():
        for player_id, player in hole_result.players.items():
            if not player.has_score:
                continue
            par, _ = _player_par_and_allocation(rounds.get(player_id), hole_result.hole_info)
            player.net = player.gross - player.pops if ctx.use_handicaps else player.gross
            player.score_to_par = player.gross - par
            player.net_to_par = player.net - par
    return ctx


def assign_teams(ctx: ScoringContext) -> ScoringContext:
    """Resolve each hole's roster.

    Teams set on a hole win. Otherwise fixed teams carry forward from the last
    hole that had them and rotating teams carry forward within their period.
    With teams hidden and never set, every player is their own team.
    """
    config = ctx.game.scope.teams_config
    player_order = ctx.scoreboard.meta.player_order
    last_roster: list[tuple[str, list[str]]] | None = None
    last_index = 0

    for index, hole in enumerate(ctx.scoreboard.meta.hole_order):
        game_hole = ctx.game.get_hole(hole)
        hole_result = ctx.scoreboard.holes[hole]
        if game_hole is not None and game_hole.teams:
            roster = [(t.team, list(t.player_ids or [])) for t in game_hole.teams]
            last_roster, last_index = roster, index
        elif last_roster is not None and (
            config.rotate_every <= 0
            or index // config.rotate_every == last_index // config.rotate_every
        ):
            roster = last_roster
        elif not config.teams:
            roster = [(str(n), [pid]) for n, pid in enumerate(player_order, start=1)]
        else:
            roster = []
            if hole_result.scores_entered:
                hole_result.warnings.append("No teams assigned")

        ctx.rosters[hole] = roster
        hole_result.teams = {
            team_id: TeamHoleResult(team_id=team_id, player_ids=list(player_ids))
            for team_id, player_ids in roster
        }
    return ctx


def calculate_team_scores(ctx: ScoringContext) -> ScoringContext:
    method = ctx.game.scope.teams_config.calculation or METHOD_BEST_BALL
    for hole_result in ctx.scoreboard.holes.values():
        for team in hole_result.sorted_teams():
            scores = team_scores_for(team.player_ids, hole_result.players, "net")
            team.score = calculate_team_score(method, scores)
            team.low_ball = calculate_team_score(METHOD_BEST_BALL, scores)
            team.total = calculate_team_score(METHOD_SUM, scores)
            if team.score is None and hole_result.scores_entered:
                warning = f"Team {team.team_id} has no scores"
                team.warnings.append(warning)
                hole_result.warnings.append(warning)
    return ctx


def rank_players(ctx: ScoringContext) -> ScoringContext:
    for hole_result in ctx.scoreboard.holes.values():
        scored = [p for p in hole_result.players.values() if p.has_score]
        for ranked in rank_with_ties(scored, lambda p: p.net, LOWER):
            ranked.item.rank = ranked.rank
            ranked.item.tie_count = ranked.tie_count
    return ctx


def rank_teams(ctx: ScoringContext) -> ScoringContext:
    for hole_result in ctx.scoreboard.holes.values():
        scored = [t for t in hole_result.sorted_teams() if t.score is not None]
        for ranked in rank_with_ties(scored, lambda t: t.score, LOWER):
            ranked.item.rank = ranked.rank
            ranked.item.tie_count = ranked.tie_count
    return ctx


# =============================================================================
# Hole stages
# =============================================================================


def evaluate_junk(ctx: ScoringContext, hole: str) -> ScoringContext:
    evaluate_junk_for_hole(ctx, hole)
    return ctx


def evaluate_multipliers(ctx: ScoringContext, hole: str) -> ScoringContext:
    evaluate_multipliers_for_hole(ctx, hole)
    return ctx


def _base_points(ctx: ScoringContext, team: TeamHoleResult) -> float:
    spec = ctx.game.spec_ref
    if spec is None or team.score is None:
        return 0
    if spec.points_table:
        return points_from_table(team.rank, team.tie_count, spec.points_table)
    if spec.position_points:
        return calculate_position_points(team.rank, team.tie_count, position_lookup(spec.position_points))
    return 0


def calculate_points(ctx: ScoringContext, hole: str) -> ScoringContext:
    """Points for a complete hole; an incomplete hole shows none."""
    hole_result = ctx.hole(hole)
    for player in hole_result.players.values():
        multiplier = 1
        for m in player.multipliers:
            multiplier *= m.value
        player.points = sum(j.value for j in player.junk) * multiplier if hole_result.complete else 0

    for team in hole_result.sorted_teams():
        if not hole_result.complete:
            team.points = 0
            continue
        base = _base_points(ctx, team)
        team.points = (base + team_junk_points(team, hole_result.players)) * team.overall_multiplier
    return ctx


def _is_match_play(ctx: ScoringContext) -> bool:
    return ctx.game.spec_type == SPEC_TYPE_SKINS or bool(
        get_game_option_value(OPT_MATCH_PLAY, ctx.game, default=False)
    )


def _update_match(ctx: ScoringContext, hole_result: HoleResult, index: int) -> None:
    teams = hole_result.sorted_teams()
    if len(teams) != 2:
        return
    first, second = teams
    for team in teams:
        ctx.match_wins.setdefault(team.team_id, 0)

    if ctx.match_result is not None:
        first.match_diff, second.match_diff = ctx.match_result
        first.match_over = second.match_over = True
        return

    if hole_result.complete and first.score is not None and second.score is not None:
        if first.score < second.score:
            ctx.match_wins[first.team_id] += 1
        elif second.score < first.score:
            ctx.match_wins[second.team_id] += 1

    diff = ctx.match_wins[first.team_id] - ctx.match_wins[second.team_id]
    remaining = len(ctx.scoreboard.meta.hole_order) - index - 1
    if diff and abs(diff) > remaining:
        result = f"{abs(diff)} & {remaining}" if remaining else f"{abs(diff)} up"
        leader_first = diff > 0
        first.match_diff = result if leader_first else f"-{result}"
        second.match_diff = f"-{result}" if leader_first else result
        first.match_over = second.match_over = True
        ctx.match_result = (first.match_diff, second.match_diff)
    else:
        first.match_diff, second.match_diff = diff, -diff


def calculate_running_totals(ctx: ScoringContext, hole: str) -> ScoringContext:
    """Carry points forward hole to hole and compare two-team matches."""
    hole_result = ctx.hole(hole)
    teams = hole_result.sorted_teams()
    for team in teams:
        ctx.running[team.team_id] = ctx.running.get(team.team_id, 0) + (
            team.points if hole_result.complete else 0
        )
        team.running_total = ctx.running[team.team_id]

    if len(teams) == 2:
        sign = -1 if get_game_option_value(OPT_BETTER_POINTS, ctx.game) == LOWER else 1
        first, second = teams
        if hole_result.complete:
            first.hole_net_total = sign * (first.points - second.points)
            second.hole_net_total = -first.hole_net_total
        first.running_diff = sign * (first.running_total - second.running_total)
        second.running_diff = -first.running_diff

    if _is_match_play(ctx):
        _update_match(ctx, hole_result, ctx.hole_order.index(hole))
    return ctx


# =============================================================================
# Final stages
# =============================================================================


def calculate_cumulatives(ctx: ScoringContext) -> ScoringContext:
    scoreboard = ctx.scoreboard
    players = scoreboard.cumulative.players
    teams: dict[str, TeamCumulative] = {}

    for hole in scoreboard.meta.hole_order:
        hole_result = scoreboard.holes[hole]
        for player_id, player in hole_result.players.items():
            if not player.has_score:
                continue
            total = players[player_id]
            total.gross_total += player.gross
            total.pops_total += player.pops
            total.net_total += player.net
            total.points_total += player.points
            total.junk_total += sum(j.value for j in player.junk)
            total.holes_played += 1

        for team in hole_result.sorted_teams():
            total = teams.setdefault(team.team_id, TeamCumulative(team_id=team.team_id))
            if hole_result.complete and team.score is not None:
                total.score_total += team.score
            total.points_total += team.points
            total.junk_total += team_junk_points(team, hole_result.players)
            if team.match_diff is not None:
                total.match_diff = team.match_diff
                total.match_over = team.match_over

    played = [p for p in players.values() if p.holes_played > 0]
    for ranked in rank_with_ties(played, lambda p: p.net_total, LOWER):
        ranked.item.rank = ranked.rank
        ranked.item.tie_count = ranked.tie_count

    scoring = [t for t in teams.values() if t.points_total > 0]
    for ranked in rank_with_ties(scoring, lambda t: t.points_total, HIGHER):
        ranked.item.rank = ranked.rank
        ranked.item.tie_count = ranked.tie_count

    scoreboard.cumulative.teams = teams
    return ctx


SETUP_STAGES = [
    initialize_scoreboard,
    calculate_gross_scores,
    calculate_pops,
    calculate_net_scores,
    assign_teams,
    calculate_team_scores,
    rank_players,
    rank_teams,
]

HOLE_STAGES = [
    evaluate_junk,
    evaluate_multipliers,
    calculate_points,
    calculate_running_totals,
]

FINAL_STAGES = [
    calculate_cumulatives,
]
