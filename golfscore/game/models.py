"""Data models for golfscore games.

Options are persisted with their catalog field names (``based_on``,
``score_to_par`` ...); everything else uses camelCase keys. A collection set
to ``None`` has not finished loading, which is different from an empty one.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import ClassVar, Union

from golfscore.utils.constants import (
    DEFAULT_MULTIPLIER_VALUE,
    DEFAULT_SEQ,
    METHOD_BEST_BALL,
    OPTION_GAME,
    OPTION_JUNK,
    OPTION_MULTIPLIER,
    SCOPE_PLAYER,
    VALUE_TEXT,
)


def _compact(d: dict) -> dict:
    """Drop unset optional keys so stored options stay sparse."""
    return {k: v for k, v in d.items() if v is not None}


# =============================================================================
# Options
# =============================================================================


@dataclass(frozen=True)
class Choice:
    name: str
    disp: str

    def to_dict(self) -> dict:
        return {"name": self.name, "disp": self.disp}

    @classmethod
    def from_dict(cls, d: dict) -> Choice:
        return cls(name=d["name"], disp=d.get("disp", d["name"]))


@dataclass
class GameOption:
    """A single game-level setting stored as a string."""

    type: ClassVar[str] = OPTION_GAME

    name: str
    disp: str = ""
    value_type: str = VALUE_TEXT
    default_value: str = ""
    value: str | None = None
    choices: list[Choice] | None = None
    team_only: bool = False
    seq: int | None = None

    @property
    def sort_key(self) -> int:
        return DEFAULT_SEQ if self.seq is None else self.seq

    def to_dict(self) -> dict:
        return _compact({
            "name": self.name,
            "disp": self.disp,
            "type": self.type,
            "valueType": self.value_type,
            "defaultValue": self.default_value,
            "value": self.value,
            "choices": [c.to_dict() for c in self.choices] if self.choices is not None else None,
            "teamOnly": self.team_only or None,
            "seq": self.seq,
        })

    @classmethod
    def from_dict(cls, d: dict) -> GameOption:
        choices = d.get("choices")
        value = d.get("value")
        return cls(
            name=d["name"],
            disp=d.get("disp", ""),
            value_type=d.get("valueType", VALUE_TEXT),
            default_value=str(d.get("defaultValue", "")),
            value=str(value) if value is not None else None,
            choices=[Choice.from_dict(c) for c in choices] if choices is not None else None,
            team_only=d.get("teamOnly", False),
            seq=d.get("seq"),
        )


@dataclass
class JunkOption:
    """A bonus-point rule (birdie, low ball, prox ...)."""

    type: ClassVar[str] = OPTION_JUNK

    name: str
    disp: str = ""
    value: float = 0
    scope: str = SCOPE_PLAYER
    based_on: str | None = None
    score_to_par: str | None = None
    logic: str | None = None
    calculation: str | None = None
    better: str | None = None
    show_in: str | None = None
    limit: str | None = None
    icon: str | None = None
    seq: int | None = None
    sub_type: str | None = None

    @property
    def sort_key(self) -> int:
        return DEFAULT_SEQ if self.seq is None else self.seq

    def to_dict(self) -> dict:
        return _compact({
            "name": self.name,
            "disp": self.disp,
            "type": self.type,
            "value": self.value,
            "scope": self.scope,
            "based_on": self.based_on,
            "score_to_par": self.score_to_par,
            "logic": self.logic,
            "calculation": self.calculation,
            "better": self.better,
            "show_in": self.show_in,
            "limit": self.limit,
            "icon": self.icon,
            "seq": self.seq,
            "sub_type": self.sub_type,
        })

    @classmethod
    def from_dict(cls, d: dict) -> JunkOption:
        return cls(
            name=d["name"],
            disp=d.get("disp", ""),
            value=d.get("value", 0),
            scope=d.get("scope") or SCOPE_PLAYER,
            based_on=d.get("based_on"),
            score_to_par=d.get("score_to_par"),
            logic=d.get("logic"),
            calculation=d.get("calculation"),
            better=d.get("better"),
            show_in=d.get("show_in"),
            limit=d.get("limit"),
            icon=d.get("icon"),
            seq=d.get("seq"),
            sub_type=d.get("sub_type"),
        )


@dataclass
class MultiplierOption:
    """A point-multiplier rule (double, press, birdie bbq, custom ...)."""

    type: ClassVar[str] = OPTION_MULTIPLIER

    name: str
    disp: str = ""
    value: float | None = None
    value_from: str | None = None
    scope: str | None = None
    based_on: str | None = None
    availability: str | None = None
    sub_type: str | None = None
    override: bool = False
    input_value: bool = False
    icon: str | None = None
    seq: int | None = None
    invalidation_reason: str | None = None

    @property
    def sort_key(self) -> int:
        return DEFAULT_SEQ if self.seq is None else self.seq

    @property
    def static_value(self) -> float:
        return DEFAULT_MULTIPLIER_VALUE if self.value is None else self.value

    def to_dict(self) -> dict:
        return _compact({
            "name": self.name,
            "disp": self.disp,
            "type": self.type,
            "value": self.value,
            "value_from": self.value_from,
            "scope": self.scope,
            "based_on": self.based_on,
            "availability": self.availability,
            "sub_type": self.sub_type,
            "override": self.override or None,
            "input_value": self.input_value or None,
            "icon": self.icon,
            "seq": self.seq,
            "invalidation_reason": self.invalidation_reason,
        })

    @classmethod
    def from_dict(cls, d: dict) -> MultiplierOption:
        return cls(
            name=d["name"],
            disp=d.get("disp", ""),
            value=d.get("value"),
            value_from=d.get("value_from"),
            scope=d.get("scope"),
            based_on=d.get("based_on"),
            availability=d.get("availability"),
            sub_type=d.get("sub_type"),
            override=d.get("override", False),
            input_value=d.get("input_value", False),
            icon=d.get("icon"),
            seq=d.get("seq"),
            invalidation_reason=d.get("invalidation_reason"),
        )


Option = Union[GameOption, JunkOption, MultiplierOption]

OPTION_TYPES: dict[str, type] = {
    OPTION_GAME: GameOption,
    OPTION_JUNK: JunkOption,
    OPTION_MULTIPLIER: MultiplierOption,
}


def option_from_dict(d: dict) -> Option:
    """Deserialize an option, dispatching on its ``type`` tag."""
    tag = d.get("type")
    option_cls = OPTION_TYPES.get(tag)
    if option_cls is None:
        raise ValueError(f"Unknown option type {tag!r} for option {d.get('name')!r}")
    return option_cls.from_dict(d)


def options_to_dict(options: dict[str, Option] | None) -> dict | None:
    if options is None:
        return None
    return {name: opt.to_dict() for name, opt in options.items()}


def options_from_dict(d: dict | None) -> dict[str, Option] | None:
    if d is None:
        return None
    return {name: option_from_dict(opt) for name, opt in d.items()}


# =============================================================================
# Game spec
# =============================================================================


@dataclass(frozen=True)
class PointsTableEntry:
    rank: int
    tie_count: int
    points: float

    def to_dict(self) -> dict:
        return {"rank": self.rank, "tieCount": self.tie_count, "points": self.points}

    @classmethod
    def from_dict(cls, d: dict) -> PointsTableEntry:
        return cls(rank=d["rank"], tie_count=d["tieCount"], points=d["points"])


@dataclass
class TeamsConfig:
    teams: bool = False
    team_count: int = 2
    rotate_every: int = 0
    calculation: str = METHOD_BEST_BALL

    def to_dict(self) -> dict:
        return {
            "teams": self.teams,
            "teamCount": self.team_count,
            "rotateEvery": self.rotate_every,
            "calculation": self.calculation,
        }

    @classmethod
    def from_dict(cls, d: dict) -> TeamsConfig:
        return cls(
            teams=d.get("teams", False),
            team_count=d.get("teamCount", 2),
            rotate_every=d.get("rotateEvery") or 0,
            calculation=d.get("calculation", METHOD_BEST_BALL),
        )


@dataclass
class GameSpec:
    """Named template bundling options and metadata."""

    name: str
    disp: str = ""
    spec_type: str | None = None
    min_players: int = 1
    teams_config: TeamsConfig = field(default_factory=TeamsConfig)
    options: dict[str, Option] = field(default_factory=dict)
    points_table: list[PointsTableEntry] = field(default_factory=list)
    position_points: list[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "disp": self.disp,
            "specType": self.spec_type,
            "minPlayers": self.min_players,
            "teamsConfig": self.teams_config.to_dict(),
            "options": options_to_dict(self.options),
            "pointsTable": [e.to_dict() for e in self.points_table],
            "positionPoints": list(self.position_points),
        }

    @classmethod
    def from_dict(cls, d: dict) -> GameSpec:
        return cls(
            name=d["name"],
            disp=d.get("disp", ""),
            spec_type=d.get("specType"),
            min_players=d.get("minPlayers", 1),
            teams_config=TeamsConfig.from_dict(d.get("teamsConfig") or {}),
            options=options_from_dict(d.get("options") or {}),
            points_table=[PointsTableEntry.from_dict(e) for e in d.get("pointsTable", [])],
            position_points=list(d.get("positionPoints", [])),
        )


# =============================================================================
# Holes, teams, rounds
# =============================================================================


@dataclass
class TeamOption:
    """An activated junk or multiplier selection on a team for one hole."""

    option_name: str
    value: str = "true"
    player_id: str | None = None
    first_hole: str | None = None

    def to_dict(self) -> dict:
        return _compact({
            "optionName": self.option_name,
            "value": self.value,
            "playerId": self.player_id,
            "firstHole": self.first_hole,
        })

    @classmethod
    def from_dict(cls, d: dict) -> TeamOption:
        return cls(
            option_name=d["optionName"],
            value=str(d.get("value", "true")),
            player_id=d.get("playerId"),
            first_hole=d.get("firstHole"),
        )


@dataclass
class Team:
    team: str
    player_ids: list[str] | None = field(default_factory=list)
    options: list[TeamOption] | None = field(default_factory=list)

    @property
    def is_loaded(self) -> bool:
        return self.player_ids is not None and self.options is not None

    def team_options(self, option_name: str) -> list[TeamOption]:
        """Team-level (not player) selections of an option."""
        return [
            opt for opt in self.options or []
            if opt.option_name == option_name and not opt.player_id
        ]

    def to_dict(self) -> dict:
        return {
            "team": self.team,
            "playerIds": list(self.player_ids) if self.player_ids is not None else None,
            "options": [o.to_dict() for o in self.options] if self.options is not None else None,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Team:
        player_ids = d.get("playerIds", [])
        options = d.get("options", [])
        return cls(
            team=str(d["team"]),
            player_ids=list(player_ids) if player_ids is not None else None,
            options=[TeamOption.from_dict(o) for o in options] if options is not None else None,
        )


@dataclass
class GameHole:
    hole: str
    seq: int = 0
    teams: list[Team] | None = field(default_factory=list)
    options: dict[str, Option] | None = field(default_factory=dict)

    @property
    def is_loaded(self) -> bool:
        if self.teams is None or self.options is None:
            return False
        return all(t.is_loaded for t in self.teams)

    def get_team(self, team_id: str) -> Team | None:
        for t in self.teams or []:
            if t.team == team_id:
                return t
        return None

    def team_of(self, player_id: str) -> Team | None:
        for t in self.teams or []:
            if player_id in (t.player_ids or []):
                return t
        return None

    def to_dict(self) -> dict:
        return {
            "hole": self.hole,
            "seq": self.seq,
            "teams": [t.to_dict() for t in self.teams] if self.teams is not None else None,
            "options": options_to_dict(self.options),
        }

    @classmethod
    def from_dict(cls, d: dict) -> GameHole:
        teams = d.get("teams", [])
        return cls(
            hole=str(d["hole"]),
            seq=d.get("seq", int(d["hole"])),
            teams=[Team.from_dict(t) for t in teams] if teams is not None else None,
            options=options_from_dict(d.get("options", {})),
        )


@dataclass
class Score:
    gross: int
    values: list[dict] = field(default_factory=list)
    history: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"gross": self.gross, "values": self.values, "history": self.history}

    @classmethod
    def from_dict(cls, d: dict) -> Score:
        return cls(
            gross=int(d["gross"]),
            values=list(d.get("values", [])),
            history=list(d.get("history", [])),
        )


@dataclass(frozen=True)
class TeeHole:
    hole: str
    par: int
    allocation: int
    yards: int = 0

    def to_dict(self) -> dict:
        return {"hole": self.hole, "par": self.par, "allocation": self.allocation, "yards": self.yards}

    @classmethod
    def from_dict(cls, d: dict) -> TeeHole:
        return cls(
            hole=str(d["hole"]),
            par=d["par"],
            allocation=d["allocation"],
            yards=d.get("yards", 0),
        )


@dataclass
class Tee:
    name: str
    holes: list[TeeHole] = field(default_factory=list)
    slope: int | None = None
    rating: float | None = None

    def get_hole(self, hole: str) -> TeeHole | None:
        for h in self.holes:
            if h.hole == hole:
                return h
        return None

    @property
    def par(self) -> int:
        return sum(h.par for h in self.holes)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "holes": [h.to_dict() for h in self.holes],
            "slope": self.slope,
            "rating": self.rating,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Tee:
        return cls(
            name=d.get("name", ""),
            holes=[TeeHole.from_dict(h) for h in d.get("holes", [])],
            slope=d.get("slope"),
            rating=d.get("rating"),
        )


@dataclass
class Round:
    """A player's scoring round linked to the game."""

    player_id: str
    course_handicap: int | None = None
    game_handicap: int | None = None
    handicap_index: float | None = None
    tee: Tee | None = None
    scores: dict[str, Score] | None = field(default_factory=dict)

    def score_for(self, hole: str) -> Score | None:
        return (self.scores or {}).get(hole)

    @property
    def has_scores(self) -> bool:
        return bool(self.scores)

    def to_dict(self) -> dict:
        return {
            "playerId": self.player_id,
            "courseHandicap": self.course_handicap,
            "gameHandicap": self.game_handicap,
            "handicapIndex": self.handicap_index,
            "tee": self.tee.to_dict() if self.tee else None,
            "scores": (
                {hole: s.to_dict() for hole, s in self.scores.items()}
                if self.scores is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, d: dict) -> Round:
        tee = d.get("tee")
        scores = d.get("scores", {})
        return cls(
            player_id=d["playerId"],
            course_handicap=d.get("courseHandicap"),
            game_handicap=d.get("gameHandicap"),
            handicap_index=d.get("handicapIndex"),
            tee=Tee.from_dict(tee) if tee else None,
            scores=(
                {str(hole): Score.from_dict(s) for hole, s in scores.items()}
                if scores is not None else None
            ),
        )


@dataclass(frozen=True)
class Player:
    player_id: str
    name: str = ""

    def to_dict(self) -> dict:
        return {"playerId": self.player_id, "name": self.name}

    @classmethod
    def from_dict(cls, d: dict) -> Player:
        return cls(player_id=d["playerId"], name=d.get("name", ""))


@dataclass
class GameScope:
    teams_config: TeamsConfig = field(default_factory=TeamsConfig)

    def to_dict(self) -> dict:
        return {"teamsConfig": self.teams_config.to_dict()}

    @classmethod
    def from_dict(cls, d: dict) -> GameScope:
        return cls(teams_config=TeamsConfig.from_dict(d.get("teamsConfig") or {}))


@dataclass
class Game:
    """Root aggregate for one golf game snapshot."""

    game_id: str
    name: str = ""
    spec: dict[str, Option] | None = field(default_factory=dict)
    spec_ref: GameSpec | None = None
    players: list[Player] = field(default_factory=list)
    holes: list[GameHole] | None = field(default_factory=list)
    rounds: list[Round] | None = field(default_factory=list)
    scope: GameScope = field(default_factory=GameScope)
    version: int = 1

    @property
    def spec_type(self) -> str | None:
        return self.spec_ref.spec_type if self.spec_ref else None

    @property
    def player_ids(self) -> list[str]:
        return [p.player_id for p in self.players]

    def ordered_holes(self) -> list[GameHole]:
        return sorted(self.holes or [], key=lambda h: h.seq)

    def get_hole(self, hole: str) -> GameHole | None:
        for h in self.holes or []:
            if h.hole == hole:
                return h
        return None

    def get_round(self, player_id: str) -> Round | None:
        for r in self.rounds or []:
            if r.player_id == player_id:
                return r
        return None

    @property
    def is_loaded(self) -> bool:
        """True when every scoring-relevant collection has loaded."""
        if self.spec is None or self.holes is None or self.rounds is None:
            return False
        if any(r.scores is None for r in self.rounds):
            return False
        return all(h.is_loaded for h in self.holes)

    def to_dict(self) -> dict:
        return {
            "gameId": self.game_id,
            "name": self.name,
            "spec": options_to_dict(self.spec),
            "specRef": self.spec_ref.to_dict() if self.spec_ref else None,
            "players": [p.to_dict() for p in self.players],
            "holes": [h.to_dict() for h in self.holes] if self.holes is not None else None,
            "rounds": [r.to_dict() for r in self.rounds] if self.rounds is not None else None,
            "scope": self.scope.to_dict(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Game:
        spec_ref = d.get("specRef")
        holes = d.get("holes", [])
        rounds = d.get("rounds", [])
        return cls(
            game_id=d["gameId"],
            name=d.get("name", ""),
            spec=options_from_dict(d.get("spec", {})),
            spec_ref=GameSpec.from_dict(spec_ref) if spec_ref else None,
            players=[Player.from_dict(p) for p in d.get("players", [])],
            holes=[GameHole.from_dict(h) for h in holes] if holes is not None else None,
            rounds=[Round.from_dict(r) for r in rounds] if rounds is not None else None,
            scope=GameScope.from_dict(d.get("scope") or {}),
            version=d.get("version", 1),
        )

    @staticmethod
    def new_game_id() -> str:
        return str(uuid.uuid4())
