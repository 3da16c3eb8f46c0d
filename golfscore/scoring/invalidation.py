"""Selections that stopped being valid after a score edit.

``find_invalidations`` compares the scoring context before and after an edit
and reports only what was valid before and is not any more, on holes after
the edited one. Each kind of item has its own detector in ``DETECTORS``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, ClassVar, Union

from golfscore.game.models import MultiplierOption
from golfscore.scoring.context import ScoringContext
from golfscore.scoring.multipliers import (
    PERSISTENT_SCOPES,
    ActiveMultiplier,
    active_team_multipliers,
    depends_on_multiplier,
    evaluate_availability,
)
from golfscore.scoring.tee_flip import teams_tied_before
from golfscore.utils.constants import (
    BASED_ON_USER,
    DEFAULT_INVALIDATION_REASON,
    KIND_MULTIPLIER,
    KIND_TEE_FLIP,
    SUB_TYPE_PRESS,
    TEE_FLIP_DECLINED,
    TEE_FLIP_REASON,
    TEE_FLIP_WINNER,
)


@dataclass(frozen=True)
class ScoreImpact:
    team_id: str
    current_points: float
    projected_points: float
    current_total: float
    projected_total: float

    def to_dict(self) -> dict:
        return {
            "teamId": self.team_id,
            "currentPoints": self.current_points,
            "projectedPoints": self.projected_points,
            "currentTotal": self.current_total,
            "projectedTotal": self.projected_total,
        }


@dataclass
class MultiplierInvalidation:
    kind: ClassVar[str] = KIND_MULTIPLIER

    hole: str
    team_id: str
    option_name: str
    disp: str
    first_hole: str
    value: float
    reason: str
    score_impact: ScoreImpact | None = None

    @property
    def key(self) -> tuple:
        return (self.kind, self.first_hole, self.team_id, self.option_name)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "hole": self.hole,
            "teamId": self.team_id,
            "optionName": self.option_name,
            "disp": self.disp,
            "firstHole": self.first_hole,
            "value": self.value,
            "reason": self.reason,
            "scoreImpact": self.score_impact.to_dict() if self.score_impact else None,
        }


@dataclass
class TeeFlipInvalidation:
    kind: ClassVar[str] = KIND_TEE_FLIP

    hole: str
    team_id: str
    option_name: str
    reason: str = TEE_FLIP_REASON

    @property
    def key(self) -> tuple:
        return (self.kind, self.hole, self.team_id, self.option_name)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "hole": self.hole,
            "teamId": self.team_id,
            "optionName": self.option_name,
            "reason": self.reason,
        }


InvalidatedItem = Union[MultiplierInvalidation, TeeFlipInvalidation]


@dataclass
class InvalidationResult:
    edited_hole: str
    items: list[InvalidatedItem] = field(default_factory=list)

    @property
    def has_invalidations(self) -> bool:
        return bool(self.items)

    def of_kind(self, kind: str) -> list[InvalidatedItem]:
        return [item for item in self.items if item.kind == kind]

    def to_dict(self) -> dict:
        return {"editedHole": self.edited_hole, "items": [i.to_dict() for i in self.items]}


Detector = Callable[[ScoringContext, ScoringContext, str], list[InvalidatedItem]]

DETECTORS: list[Detector] = []


def register_detector(fn: Detector) -> Detector:
    DETECTORS.append(fn)
    return fn


def _holes_after(ctx: ScoringContext, edited_hole: str) -> list[str]:
    order = ctx.hole_order
    if edited_hole not in order:
        return []
    return order[order.index(edited_hole) + 1:]


def _is_checked(option: MultiplierOption) -> bool:
    return option.sub_type == SUB_TYPE_PRESS or option.based_on == BASED_ON_USER


def _available(ctx: ScoringContext, option: MultiplierOption, hole: str, team_id: str) -> bool:
    hole_result = ctx.hole(hole)
    team = hole_result.teams.get(team_id) if hole_result else None
    if team is None:
        return False
    return evaluate_availability(option, ctx.logic_context(hole, team=team, option=option))


def _score_impact(ctx: ScoringContext, hole: str, team_id: str, value: float) -> ScoreImpact | None:
    hole_result = ctx.hole(hole)
    team = hole_result.teams.get(team_id) if hole_result else None
    if team is None or not value:
        return None
    lost = team.points * (1 - 1 / value)
    return ScoreImpact(
        team_id=team_id,
        current_points=team.points,
        projected_points=round(team.points - lost, 2),
        current_total=team.running_total,
        projected_total=round(team.running_total - lost, 2),
    )


def _multiplier_item(
    ctx: ScoringContext, hole: str, team_id: str, active: ActiveMultiplier, reason: str
) -> MultiplierInvalidation:
    return MultiplierInvalidation(
        hole=hole,
        team_id=team_id,
        option_name=active.name,
        disp=active.option.disp or active.name,
        first_hole=active.source_hole,
        value=active.value,
        reason=reason,
        score_impact=_score_impact(ctx, hole, team_id, active.value),
    )


@register_detector
def detect_multiplier_invalidations(
    before: ScoringContext, after: ScoringContext, edited_hole: str
) -> list[InvalidatedItem]:
    holes = _holes_after(after, edited_hole)
    items: list[MultiplierInvalidation] = []
    checked: set[tuple] = set()

    for hole in holes:
        for team in after.hole(hole).sorted_teams():
            for active in active_team_multipliers(after.game, hole, team.team_id):
                option = active.option
                if not _is_checked(option):
                    continue
                check_hole = hole
                if option.scope in PERSISTENT_SCOPES:
                    if active.source_hole not in holes:
                        continue
                    check_hole = active.source_hole
                key = (option.name, team.team_id, active.source_hole)
                if key in checked:
                    continue
                checked.add(key)
                if not _available(before, option, check_hole, team.team_id):
                    continue
                if _available(after, option, check_hole, team.team_id):
                    continue
                reason = option.invalidation_reason or DEFAULT_INVALIDATION_REASON
                items.append(_multiplier_item(after, check_hole, team.team_id, active, reason))

    # Selections that were only available because of an invalidated one.
    reported = {(i.option_name, i.team_id, i.first_hole) for i in items}
    pending = list(items)
    while pending:
        cause = pending.pop(0)
        hole_result = after.hole(cause.hole)
        for team in hole_result.sorted_teams():
            if team.team_id == cause.team_id:
                continue
            for active in active_team_multipliers(after.game, cause.hole, team.team_id):
                key = (active.name, team.team_id, active.source_hole)
                if key in reported or not depends_on_multiplier(active.option, cause.option_name):
                    continue
                reported.add(key)
                reason = f"Depends on Team {cause.team_id}'s {cause.disp}"
                dependent = _multiplier_item(after, cause.hole, team.team_id, active, reason)
                items.append(dependent)
                pending.append(dependent)
    return items


@register_detector
def detect_tee_flip_invalidations(
    before: ScoringContext, after: ScoringContext, edited_hole: str
) -> list[InvalidatedItem]:
    items: list[InvalidatedItem] = []
    for hole in _holes_after(after, edited_hole):
        game_hole = after.game.get_hole(hole)
        if game_hole is None:
            continue
        recorded = [
            (team.team, name)
            for team in game_hole.teams or []
            for name in (TEE_FLIP_WINNER, TEE_FLIP_DECLINED)
            if team.team_options(name)
        ]
        if not recorded:
            continue
        if not teams_tied_before(before.scoreboard, hole) or teams_tied_before(after.scoreboard, hole):
            continue
        for team_id, name in recorded:
            items.append(TeeFlipInvalidation(hole=hole, team_id=team_id, option_name=name))
    return items


def find_invalidations(before: ScoringContext, after: ScoringContext, edited_hole: str) -> InvalidationResult:
    result = InvalidationResult(edited_hole=edited_hole)
    for detector in DETECTORS:
        result.items.extend(detector(before, after, edited_hole))
    return result
