"""Request-scoped state threaded through the scoring stages."""

from __future__ import annotations

from dataclasses import dataclass, field

from golfscore.game.models import Game, Option, Team, TeamOption
from golfscore.scoring.junk import possible_points
from golfscore.scoring.logic import LogicContext
from golfscore.scoring.options import get_junk_options_for_hole
from golfscore.scoring.results import (
    HoleResult,
    PlayerHoleResult,
    Scoreboard,
    TeamHoleResult,
)


@dataclass
class ScoringContext:
    """A game snapshot and the scoreboard being built from it.

    Created per call and discarded afterwards; stages mutate only this.
    """

    game: Game
    scoreboard: Scoreboard | None = None
    use_handicaps: bool = True
    handicaps: dict[str, int] = field(default_factory=dict)
    rosters: dict[str, list[tuple[str, list[str]]]] = field(default_factory=dict)
    running: dict[str, float] = field(default_factory=dict)
    match_wins: dict[str, int] = field(default_factory=dict)
    match_result: tuple | None = None

    @property
    def hole_order(self) -> list[str]:
        return self.scoreboard.meta.hole_order if self.scoreboard else []

    def hole(self, hole: str) -> HoleResult | None:
        return self.scoreboard.hole(hole) if self.scoreboard else None

    def game_team(self, hole: str, team_id: str) -> Team | None:
        game_hole = self.game.get_hole(hole)
        return game_hole.get_team(team_id) if game_hole else None

    def team_options(self, hole: str, team_id: str) -> list[TeamOption]:
        team = self.game_team(hole, team_id)
        return list(team.options or []) if team else []

    def player_options(self, hole: str, player_id: str) -> list[TeamOption]:
        """Player-level selections on any team of the hole."""
        game_hole = self.game.get_hole(hole)
        if game_hole is None:
            return []
        return [
            opt
            for team in game_hole.teams or []
            for opt in team.options or []
            if opt.player_id == player_id
        ]

    def possible_points(self, hole: str) -> float:
        hole_result = self.hole(hole)
        earned = (
            [j for p in hole_result.players.values() for j in p.junk] if hole_result else []
        )
        return possible_points(get_junk_options_for_hole(hole, self.game), earned)

    def logic_context(
        self,
        hole: str,
        team: TeamHoleResult | None = None,
        player: PlayerHoleResult | None = None,
        option: Option | None = None,
        possible: float | None = None,
    ) -> LogicContext:
        return LogicContext(
            hole=hole,
            hole_result=self.hole(hole),
            scoreboard=self.scoreboard,
            team=team,
            player=player,
            option=option,
            possible_points=self.possible_points(hole) if possible is None else possible,
        )
