"""Builders shared by the golfscore tests."""

from __future__ import annotations

import copy
from pathlib import Path

from golfscore.game.catalog import load_options
from golfscore.game.models import (
    Game,
    GameHole,
    GameScope,
    GameSpec,
    Option,
    Player,
    PointsTableEntry,
    Round,
    Score,
    Team,
    TeamOption,
    TeamsConfig,
    Tee,
    TeeHole,
)

SEED_PATH = Path(__file__).resolve().parent.parent / "data" / "seed"
SAMPLE_GAME = Path(__file__).resolve().parent.parent / "data" / "games" / "five_points_sample.json"

# Hole n has par PARS[n - 1] and stroke allocation n.
PARS = [4, 4, 3, 5, 4, 4, 3, 5, 4, 4, 4, 3, 5, 4, 4, 3, 5, 4]


def seed_options(*names: str) -> list[Option]:
    """Options from the seed catalog, in the order named."""
    catalog = load_options(SEED_PATH)
    return [copy.deepcopy(catalog[name]) for name in names]


def make_tee(holes: int = 18) -> Tee:
    return Tee(
        name="Test",
        holes=[TeeHole(hole=str(n), par=PARS[n - 1], allocation=n) for n in range(1, holes + 1)],
        slope=113,
        rating=72.0,
    )


def make_game(
    options: list[Option] | None = None,
    players: tuple[str, ...] = ("a", "b", "c", "d"),
    teams: list[list[str]] | None = None,
    holes: int = 9,
    teams_config: TeamsConfig | None = None,
    points_table: list[PointsTableEntry] | None = None,
    position_points: list[float] | None = None,
    spec_type: str = "points",
    handicaps: dict[str, int] | None = None,
    game_id: str = "g1",
) -> Game:
    """A loaded game. ``teams`` are set on hole 1 only and carry forward."""
    opts = {o.name: o for o in options or []}
    config = teams_config or TeamsConfig(teams=teams is not None)
    spec = GameSpec(
        name="test",
        disp="Test",
        spec_type=spec_type,
        teams_config=config,
        options=copy.deepcopy(opts),
        points_table=list(points_table or []),
        position_points=list(position_points or []),
    )
    game_holes = [GameHole(hole=str(n), seq=n) for n in range(1, holes + 1)]
    if teams:
        game_holes[0].teams = [
            Team(team=str(i), player_ids=list(ids)) for i, ids in enumerate(teams, start=1)
        ]
    tee = make_tee(holes)
    return Game(
        game_id=game_id,
        name="Test",
        spec=opts,
        spec_ref=spec,
        players=[Player(player_id=pid, name=pid.upper()) for pid in players],
        holes=game_holes,
        rounds=[
            Round(player_id=pid, course_handicap=(handicaps or {}).get(pid, 0), tee=copy.deepcopy(tee))
            for pid in players
        ],
        scope=GameScope(teams_config=copy.deepcopy(config)),
    )


def set_scores(game: Game, hole: str, scores: dict[str, int]) -> Game:
    for player_id, gross in scores.items():
        game.get_round(player_id).scores[hole] = Score(gross=gross)
    return game


def hole_team(game: Game, hole: str, team_id: str) -> Team:
    """The team on a hole, copying the hole 1 rosters when the hole has none yet."""
    game_hole = game.get_hole(hole)
    if not game_hole.teams:
        game_hole.teams = [
            Team(team=t.team, player_ids=list(t.player_ids)) for t in game.get_hole("1").teams or []
        ]
    team = game_hole.get_team(team_id)
    if team is None:
        roster = game.get_hole("1").get_team(team_id)
        team = Team(team=team_id, player_ids=list(roster.player_ids))
        game_hole.teams.append(team)
    return team


def select(
    game: Game,
    hole: str,
    team_id: str,
    name: str,
    value: str = "true",
    player_id: str | None = None,
    first_hole: str | None = "",
) -> Game:
    """Record a team option; ``first_hole`` defaults to the hole itself."""
    team = hole_team(game, hole, team_id)
    team.options.append(TeamOption(
        option_name=name,
        value=value,
        player_id=player_id,
        first_hole=hole if first_hole == "" else first_hole,
    ))
    return game


