"""Scoreboard value objects produced by the scoring pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from golfscore.utils.constants import DEFAULT_PAR


@dataclass
class AwardedJunk:
    name: str
    value: float
    player_id: str | None = None

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value, "playerId": self.player_id}


@dataclass
class AppliedMultiplier:
    name: str
    value: float
    earned: bool = False
    first_hole: str | None = None
    override: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": self.value,
            "earned": self.earned,
            "firstHole": self.first_hole,
            "override": self.override,
        }


@dataclass(frozen=True)
class HoleInfo:
    hole: str
    par: int = DEFAULT_PAR
    allocation: int = 0
    yards: int = 0

    def to_dict(self) -> dict:
        return {"hole": self.hole, "par": self.par, "allocation": self.allocation, "yards": self.yards}


@dataclass
class PlayerHoleResult:
    player_id: str
    has_score: bool = False
    gross: int = 0
    pops: int = 0
    net: int = 0
    score_to_par: int = 0
    net_to_par: int = 0
    rank: int = 0
    tie_count: int = 0
    junk: list[AwardedJunk] = field(default_factory=list)
    multipliers: list[AppliedMultiplier] = field(default_factory=list)
    points: float = 0

    def to_dict(self) -> dict:
        return {
            "playerId": self.player_id,
            "hasScore": self.has_score,
            "gross": self.gross,
            "pops": self.pops,
            "net": self.net,
            "scoreToPar": self.score_to_par,
            "netToPar": self.net_to_par,
            "rank": self.rank,
            "tieCount": self.tie_count,
            "junk": [j.to_dict() for j in self.junk],
            "multipliers": [m.to_dict() for m in self.multipliers],
            "points": self.points,
        }


@dataclass
class TeamHoleResult:
    """Per-hole team result. ``score is None`` means no player has scored."""

    team_id: str
    player_ids: list[str] = field(default_factory=list)
    score: float | None = None
    low_ball: float | None = None
    total: float | None = None
    rank: int = 0
    tie_count: int = 0
    junk: list[AwardedJunk] = field(default_factory=list)
    multipliers: list[AppliedMultiplier] = field(default_factory=list)
    points: float = 0
    hole_net_total: float = 0
    running_total: float = 0
    running_diff: float = 0
    match_diff: int | str | None = None
    match_over: bool = False
    tee_multiplier: float = 1
    overall_multiplier: float = 1
    warnings: list[str] = field(default_factory=list)

    @property
    def incomplete(self) -> bool:
        return self.score is None

    def has_multiplier(self, name: str) -> bool:
        return any(m.name == name for m in self.multipliers)

    def to_dict(self) -> dict:
        return {
            "teamId": self.team_id,
            "playerIds": list(self.player_ids),
            "score": self.score,
            "lowBall": self.low_ball,
            "total": self.total,
            "rank": self.rank,
            "tieCount": self.tie_count,
            "junk": [j.to_dict() for j in self.junk],
            "multipliers": [m.to_dict() for m in self.multipliers],
            "points": self.points,
            "holeNetTotal": self.hole_net_total,
            "runningTotal": self.running_total,
            "runningDiff": self.running_diff,
            "matchDiff": self.match_diff,
            "matchOver": self.match_over,
            "teeMultiplier": self.tee_multiplier,
            "overallMultiplier": self.overall_multiplier,
            "incomplete": self.incomplete,
            "warnings": list(self.warnings),
        }


@dataclass
class HoleResult:
    """One hole of the scoreboard.

    Points, junk and earned multipliers wait for ``complete``.
    ``hole_multiplier`` and the teams' ``tee_multiplier`` are not gated: a
    press shows as soon as it is selected, before any score is in.
    """

    hole: str
    hole_info: HoleInfo
    players: dict[str, PlayerHoleResult] = field(default_factory=dict)
    teams: dict[str, TeamHoleResult] = field(default_factory=dict)
    scores_entered: int = 0
    complete: bool = False
    hole_multiplier: float = 1
    warnings: list[str] = field(default_factory=list)

    @property
    def par(self) -> int:
        return self.hole_info.par

    def sorted_teams(self) -> list[TeamHoleResult]:
        """Teams in id order; dict order is never relied upon."""
        return [self.teams[k] for k in sorted(self.teams, key=_id_sort_key)]

    def to_dict(self) -> dict:
        return {
            "hole": self.hole,
            "holeInfo": self.hole_info.to_dict(),
            "players": {pid: p.to_dict() for pid, p in self.players.items()},
            "teams": {tid: t.to_dict() for tid, t in self.teams.items()},
            "scoresEntered": self.scores_entered,
            "complete": self.complete,
            "holeMultiplier": self.hole_multiplier,
            "warnings": list(self.warnings),
        }


@dataclass
class PlayerCumulative:
    player_id: str
    gross_total: int = 0
    pops_total: int = 0
    net_total: int = 0
    points_total: float = 0
    junk_total: float = 0
    holes_played: int = 0
    rank: int = 0
    tie_count: int = 0

    def to_dict(self) -> dict:
        return {
            "playerId": self.player_id,
            "grossTotal": self.gross_total,
            "popsTotal": self.pops_total,
            "netTotal": self.net_total,
            "pointsTotal": self.points_total,
            "junkTotal": self.junk_total,
            "holesPlayed": self.holes_played,
            "rank": self.rank,
            "tieCount": self.tie_count,
        }


@dataclass
class TeamCumulative:
    team_id: str
    score_total: float = 0
    points_total: float = 0
    junk_total: float = 0
    rank: int = 0
    tie_count: int = 0
    match_diff: int | str | None = None
    match_over: bool = False

    def to_dict(self) -> dict:
        return {
            "teamId": self.team_id,
            "scoreTotal": self.score_total,
            "pointsTotal": self.points_total,
            "junkTotal": self.junk_total,
            "rank": self.rank,
            "tieCount": self.tie_count,
            "matchDiff": self.match_diff,
            "matchOver": self.match_over,
        }


@dataclass
class Cumulative:
    players: dict[str, PlayerCumulative] = field(default_factory=dict)
    teams: dict[str, TeamCumulative] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "players": {pid: p.to_dict() for pid, p in self.players.items()},
            "teams": {tid: t.to_dict() for tid, t in self.teams.items()},
        }


@dataclass
class ScoreboardMeta:
    game_id: str
    holes_played: list[str] = field(default_factory=list)
    hole_order: list[str] = field(default_factory=list)
    player_order: list[str] = field(default_factory=list)
    has_teams: bool = False

    def to_dict(self) -> dict:
        return {
            "gameId": self.game_id,
            "holesPlayed": list(self.holes_played),
            "holeOrder": list(self.hole_order),
            "playerOrder": list(self.player_order),
            "hasTeams": self.has_teams,
        }


@dataclass
class Scoreboard:
    holes: dict[str, HoleResult]
    cumulative: Cumulative
    meta: ScoreboardMeta

    def hole(self, hole: str) -> HoleResult | None:
        return self.holes.get(hole)

    def previous_hole(self, hole: str, offset: int = 1) -> HoleResult | None:
        """The hole ``offset`` positions earlier in play order."""
        order = self.meta.hole_order
        if hole not in order:
            return None
        index = order.index(hole) - offset
        if index < 0 or index >= len(order):
            return None
        return self.holes.get(order[index])

    def to_dict(self) -> dict:
        return {
            "holes": {h: r.to_dict() for h, r in self.holes.items()},
            "cumulative": self.cumulative.to_dict(),
            "meta": self.meta.to_dict(),
        }


def _id_sort_key(value: str) -> tuple:
    return (0, int(value), "") if value.isdigit() else (1, 0, value)
