"""Multiplier evaluation, availability and per-team controls.

User multipliers are recorded as ``TeamOption``s with ``first_hole`` set to
the hole they were pressed on. ``rest_of_nine`` and ``game`` scoped ones keep
applying on later holes; that is worked out by scanning back, never by
copying selections forward. Automatic and bbq multipliers are earned from
junk and availability alone.

Availability failures are logged and treated as available so a broken
expression never hides a control.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from golfscore.game.models import Game, MultiplierOption, TeamOption
from golfscore.scoring.logic import LogicContext, LogicError, evaluate_bool, parse, references
from golfscore.scoring.options import (
    get_multiplier_option,
    get_multiplier_options_for_hole,
    get_option_value_for_hole,
)
from golfscore.scoring.results import AppliedMultiplier, HoleResult
from golfscore.scoring.team_scoring import team_has_junk, team_junk_points
from golfscore.utils.constants import (
    BACK_NINE_START,
    BASED_ON_USER,
    DEFAULT_MULTIPLIER_VALUE,
    FRONT_NINE_START,
    HOLES_PER_NINE,
    OPT_MAX_OFF_TEE,
    PRE_DOUBLE,
    SCOPE_GAME,
    SCOPE_NONE,
    SCOPE_PLAYER,
    SCOPE_REST_OF_NINE,
    STATUS_ACTIVE,
    STATUS_INHERITED,
    SUB_TYPE_AUTOMATIC,
    SUB_TYPE_BBQ,
)

if TYPE_CHECKING:
    from golfscore.scoring.context import ScoringContext

logger = logging.getLogger("golfscore.multipliers")

EARNED_SUB_TYPES = (SUB_TYPE_AUTOMATIC, SUB_TYPE_BBQ)
PERSISTENT_SCOPES = (SCOPE_REST_OF_NINE, SCOPE_GAME)


# =============================================================================
# Values
# =============================================================================

ValueResolver = Callable[[Game, str, MultiplierOption], float]

VALUE_RESOLVERS: dict[str, ValueResolver] = {}


def register_value_resolver(name: str) -> Callable[[ValueResolver], ValueResolver]:
    """Register a named ``value_from`` resolver."""

    def decorator(fn: ValueResolver) -> ValueResolver:
        VALUE_RESOLVERS[name] = fn
        return fn

    return decorator


@register_value_resolver("frontNinePreDoubleTotal")
def front_nine_pre_double_total(game: Game, hole: str, option: MultiplierOption) -> float:
    """Product of every pre-double pressed on holes 1-9, by any team."""
    total = 1
    for game_hole in game.holes or []:
        if not game_hole.hole.isdigit():
            continue
        if not FRONT_NINE_START <= int(game_hole.hole) < BACK_NINE_START:
            continue
        pre_double = get_multiplier_option(PRE_DOUBLE, game_hole.hole, game)
        value = pre_double.static_value if pre_double else DEFAULT_MULTIPLIER_VALUE
        for team in game_hole.teams or []:
            for opt in team.team_options(PRE_DOUBLE):
                if opt.first_hole == game_hole.hole:
                    total *= value
    return total


def get_multiplier_value(option: MultiplierOption, game: Game, hole: str) -> float:
    if option.value_from:
        resolver = VALUE_RESOLVERS.get(option.value_from)
        if resolver is None:
            raise ValueError(f"Unknown value_from {option.value_from!r} on {option.name!r}")
        return resolver(game, hole, option)
    return option.static_value


# =============================================================================
# Activation
# =============================================================================


@dataclass(frozen=True)
class ActiveMultiplier:
    option: MultiplierOption
    source_hole: str
    value: float
    inherited: bool = False
    player_id: str | None = None

    @property
    def name(self) -> str:
        return self.option.name


def nine_start(hole: int) -> int:
    return ((hole - 1) // HOLES_PER_NINE) * HOLES_PER_NINE + 1


def is_selectable(option: MultiplierOption) -> bool:
    return option.sub_type not in EARNED_SUB_TYPES


def _hole_team_options(game: Game, hole: str, team_id: str) -> list[TeamOption]:
    game_hole = game.get_hole(hole)
    team = game_hole.get_team(team_id) if game_hole else None
    return list(team.options or []) if team else []


def _entered_value(raw: str) -> float | None:
    try:
        return float(raw)
    except ValueError:
        return None


def _activation_value(option: MultiplierOption, game: Game, hole: str, selection: TeamOption) -> float:
    """Typed-in value for custom multipliers, else the option's value."""
    if option.input_value:
        entered = _entered_value(selection.value)
        if entered is not None:
            return entered
    return get_multiplier_value(option, game, hole)


def _earlier_holes(game: Game, hole: str, option: MultiplierOption) -> list[str]:
    """Holes a persistent multiplier could have been pressed on before ``hole``, nearest first."""
    if option.scope == SCOPE_REST_OF_NINE:
        if not hole.isdigit():
            return []
        number = int(hole)
        return [str(h) for h in range(number - 1, nine_start(number) - 1, -1)]
    order = [h.hole for h in game.ordered_holes()]
    if hole not in order:
        return []
    return list(reversed(order[:order.index(hole)]))


def _activations(game: Game, hole: str, team_id: str, option: MultiplierOption) -> list[ActiveMultiplier]:
    found = [
        ActiveMultiplier(
            option=option,
            source_hole=hole,
            value=_activation_value(option, game, hole, sel),
            player_id=sel.player_id,
        )
        for sel in _hole_team_options(game, hole, team_id)
        if sel.option_name == option.name and sel.first_hole in (None, hole)
    ]
    if option.scope in PERSISTENT_SCOPES:
        for earlier in _earlier_holes(game, hole, option):
            for sel in _hole_team_options(game, earlier, team_id):
                if sel.option_name == option.name and sel.first_hole == earlier:
                    found.append(ActiveMultiplier(
                        option=option,
                        source_hole=earlier,
                        value=_activation_value(option, game, earlier, sel),
                        inherited=True,
                        player_id=sel.player_id,
                    ))
    return found


def active_team_multipliers(game: Game, hole: str, team_id: str) -> list[ActiveMultiplier]:
    """User multipliers in effect for a team on a hole, inherited ones included."""
    active: list[ActiveMultiplier] = []
    for option in get_multiplier_options_for_hole(hole, game):
        if is_selectable(option):
            active.extend(_activations(game, hole, team_id, option))
    return active


def get_team_multiplier_status(game: Game, hole: str, team_id: str, name: str) -> str | None:
    """``active`` when pressed on this hole, ``inherited`` when carried from earlier."""
    matches = [a for a in active_team_multipliers(game, hole, team_id) if a.name == name]
    if any(not a.inherited for a in matches):
        return STATUS_ACTIVE
    if matches:
        return STATUS_INHERITED
    return None


def get_inherited_multiplier_status(game: Game, hole: str, team_id: str, name: str) -> list[ActiveMultiplier]:
    """Each earlier activation still in effect, one entry per press."""
    return [
        a for a in active_team_multipliers(game, hole, team_id)
        if a.name == name and a.inherited
    ]


def get_all_inherited_multipliers(game: Game, hole: str) -> dict[str, list[ActiveMultiplier]]:
    game_hole = game.get_hole(hole)
    inherited: dict[str, list[ActiveMultiplier]] = {}
    for team in (game_hole.teams or []) if game_hole else []:
        found = [a for a in active_team_multipliers(game, hole, team.team) if a.inherited]
        if found:
            inherited[team.team] = found
    return inherited


# =============================================================================
# Custom (hole toolbar) multipliers
# =============================================================================


@dataclass(frozen=True)
class CustomMultiplierState:
    option_name: str
    team_id: str
    value: float
    override: bool


def get_custom_multiplier_option(game: Game, hole: str) -> MultiplierOption | None:
    for option in get_multiplier_options_for_hole(hole, game):
        if option.input_value or option.scope == SCOPE_NONE:
            return option
    return None


def get_custom_multiplier_state(game: Game, hole: str) -> CustomMultiplierState | None:
    option = get_custom_multiplier_option(game, hole)
    game_hole = game.get_hole(hole)
    if option is None or game_hole is None:
        return None
    for team in game_hole.teams or []:
        for sel in team.team_options(option.name):
            if sel.first_hole in (None, hole):
                return CustomMultiplierState(
                    option_name=option.name,
                    team_id=team.team,
                    value=_activation_value(option, game, hole, sel),
                    override=option.override,
                )
    return None


# =============================================================================
# Availability
# =============================================================================


def evaluate_availability(option: MultiplierOption, logic_ctx: LogicContext) -> bool:
    """Evaluate ``availability``. Errors count as available."""
    if not option.availability:
        return True
    try:
        return evaluate_bool(option.availability, logic_ctx)
    except (LogicError, LookupError) as e:
        logger.warning(json.dumps({
            "event": "availability_failed",
            "option": option.name,
            "hole": logic_ctx.hole,
            "error": str(e),
        }))
        return True


def is_multiplier_available(
    ctx: ScoringContext, option: MultiplierOption, hole: str, team_id: str
) -> bool:
    """Availability plus the ``max_off_tee`` cap on the projected tee multiplier."""
    hole_result = ctx.hole(hole)
    team = hole_result.teams.get(team_id) if hole_result else None
    if team is None:
        return False
    if not evaluate_availability(option, ctx.logic_context(hole, team=team, option=option)):
        return False
    cap = get_option_value_for_hole(OPT_MAX_OFF_TEE, hole, ctx.game)
    if cap and not team.has_multiplier(option.name):
        value = get_multiplier_value(option, ctx.game, hole)
        projected = value if option.override else team.tee_multiplier * value
        if projected > cap:
            return False
    return True


def depends_on_multiplier(option: MultiplierOption, name: str) -> bool:
    """True when ``option``'s availability tests another team for multiplier ``name``."""
    if not option.availability:
        return False
    try:
        tree = parse(option.availability)
    except LogicError as e:
        logger.warning(json.dumps({"event": "dependency_check_failed", "option": option.name, "error": str(e)}))
        return False
    return references(tree, "other_team_multiplied_with", name)


# =============================================================================
# Hole evaluation
# =============================================================================


def tee_multiplier_total(hole_result: HoleResult) -> float:
    """Selected multipliers for the hole; an override replaces the rest."""
    selected = [m for t in hole_result.sorted_teams() for m in t.multipliers if not m.earned]
    overrides = [m for m in selected if m.override]
    if overrides:
        return overrides[0].value
    return math.prod(m.value for m in selected)


def apply_tee_multipliers(hole_result: HoleResult) -> None:
    tee = tee_multiplier_total(hole_result)
    all_earned = 1
    for team in hole_result.sorted_teams():
        earned = math.prod(m.value for m in team.multipliers if m.earned)
        team.tee_multiplier = tee
        team.overall_multiplier = tee * earned
        all_earned *= earned
    hole_result.hole_multiplier = tee * all_earned


def _apply_earned_multipliers(
    ctx: ScoringContext, hole_result: HoleResult, options: list[MultiplierOption]
) -> None:
    earned_options = [o for o in options if not is_selectable(o)]
    if not earned_options:
        return
    teams = hole_result.sorted_teams()
    for team in teams:
        team.points = team_junk_points(team, hole_result.players)
    possible = ctx.possible_points(hole_result.hole)
    for option in earned_options:
        for team in teams:
            trigger = option.based_on
            if trigger and trigger != BASED_ON_USER and not team_has_junk(team, hole_result.players, trigger):
                continue
            logic_ctx = ctx.logic_context(hole_result.hole, team=team, option=option, possible=possible)
            if evaluate_availability(option, logic_ctx):
                team.multipliers.append(AppliedMultiplier(
                    name=option.name,
                    value=get_multiplier_value(option, ctx.game, hole_result.hole),
                    earned=True,
                    first_hole=hole_result.hole,
                ))


def evaluate_multipliers_for_hole(ctx: ScoringContext, hole: str) -> None:
    """Apply selected multipliers, then earned ones once the hole is complete."""
    hole_result = ctx.hole(hole)
    if hole_result is None:
        return
    for player in hole_result.players.values():
        player.multipliers = []

    for team in hole_result.sorted_teams():
        team.multipliers = []
        for active in active_team_multipliers(ctx.game, hole, team.team_id):
            applied = AppliedMultiplier(
                name=active.name,
                value=active.value,
                first_hole=active.source_hole,
                override=active.option.override,
            )
            player = hole_result.players.get(active.player_id) if active.player_id else None
            if player is not None and active.option.scope == SCOPE_PLAYER:
                player.multipliers.append(applied)
            else:
                team.multipliers.append(applied)

    if hole_result.complete:
        _apply_earned_multipliers(ctx, hole_result, get_multiplier_options_for_hole(hole, ctx.game))
    apply_tee_multipliers(hole_result)


# =============================================================================
# Controls
# =============================================================================


@dataclass(frozen=True)
class MultiplierControl:
    name: str
    disp: str
    value: float
    selected: bool
    togglable: bool = True
    inherited: bool = False
    first_hole: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "disp": self.disp,
            "value": self.value,
            "selected": self.selected,
            "togglable": self.togglable,
            "inherited": self.inherited,
            "firstHole": self.first_hole,
        }


def override_owner(hole_result: HoleResult) -> str | None:
    for team in hole_result.sorted_teams():
        if any(m.override and not m.earned for m in team.multipliers):
            return team.team_id
    return None


def get_multiplier_controls(ctx: ScoringContext, hole: str, team_id: str) -> list[MultiplierControl]:
    """Buttons for one team on one hole.

    While a team holds an override, every other team gets nothing and the
    owner only gets the control to switch it off.
    """
    hole_result = ctx.hole(hole)
    if hole_result is None or team_id not in hole_result.teams:
        return []

    active = active_team_multipliers(ctx.game, hole, team_id)
    owner = override_owner(hole_result)
    if owner is not None:
        if owner != team_id:
            return []
        return [
            MultiplierControl(a.name, a.option.disp, a.value, selected=True, first_hole=a.source_hole)
            for a in active
            if a.option.override and not a.inherited
        ]

    controls: list[MultiplierControl] = []
    for option in get_multiplier_options_for_hole(hole, ctx.game):
        if not is_selectable(option) or option.scope == SCOPE_NONE or option.input_value:
            continue
        mine = [a for a in active if a.name == option.name]
        for a in mine:
            if a.inherited:
                controls.append(MultiplierControl(
                    option.name, option.disp, a.value,
                    selected=True, togglable=False, inherited=True, first_hole=a.source_hole,
                ))
        current = [a for a in mine if not a.inherited]
        if current:
            controls.append(MultiplierControl(
                option.name, option.disp, current[0].value, selected=True, first_hole=hole,
            ))
        elif is_multiplier_available(ctx, option, hole, team_id):
            controls.append(MultiplierControl(
                option.name, option.disp, get_multiplier_value(option, ctx.game, hole), selected=False,
            ))
    return controls
