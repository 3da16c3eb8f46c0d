"""Logic expression evaluator.

Expressions are JSON-logic documents stored as strings (legacy data uses
single quotes). They are parsed once into a small tree of ``Literal``,
``ListNode`` and ``Operation`` nodes and evaluated against a
``LogicContext`` describing the hole, team and player being scored.

Besides the standard JSON-logic operators a closed set of golf operators is
available (``team``, ``countJunk``, ``rankWithTies`` ...). Anything else is a
configuration error and raises ``LogicError``.
"""

from __future__ import annotations

import functools
import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Union

from golfscore.scoring.results import HoleResult, PlayerHoleResult, Scoreboard, TeamHoleResult
from golfscore.utils.constants import HIGHER, LOWER

logger = logging.getLogger("golfscore.logic")


class LogicError(ValueError):
    """Malformed expression, unknown operator or failed evaluation."""


# =============================================================================
# Expression tree
# =============================================================================


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class ListNode:
    items: tuple


@dataclass(frozen=True)
class Operation:
    op: str
    args: tuple


Node = Union[Literal, ListNode, Operation]


def load_json(expression: str) -> Any:
    """Decode an expression string, accepting single-quoted JSON."""
    try:
        return json.loads(expression.replace("'", '"'))
    except json.JSONDecodeError as e:
        raise LogicError(f"JSON parse error: {e}") from e


def build_tree(raw: Any) -> Node:
    if isinstance(raw, dict):
        if not raw:
            return Literal({})
        if len(raw) != 1:
            keys = ", ".join(sorted(raw))
            raise LogicError(f"Malformed expression: object with {len(raw)} keys ({keys})")
        ((op, args),) = raw.items()
        if not isinstance(args, list):
            args = [args]
        return Operation(op, tuple(build_tree(a) for a in args))
    if isinstance(raw, list):
        return ListNode(tuple(build_tree(item) for item in raw))
    return Literal(raw)


def find_operators(node: Node) -> list[str]:
    """Every operator name in the tree, in first-seen order, without repeats."""
    seen: list[str] = []

    def walk(n: Node) -> None:
        if isinstance(n, Operation):
            if n.op not in seen:
                seen.append(n.op)
            for a in n.args:
                walk(a)
        elif isinstance(n, ListNode):
            for item in n.items:
                walk(item)

    walk(node)
    return seen


def unknown_operators(node: Node) -> list[str]:
    return [op for op in find_operators(node) if op not in KNOWN_OPERATORS]


@functools.lru_cache(maxsize=1024)
def parse(expression: str) -> Node:
    """Parse and check an expression. Results are cached per string."""
    tree = build_tree(load_json(expression))
    unknown = unknown_operators(tree)
    if unknown:
        raise LogicError(f"Unknown operator(s): {', '.join(unknown)}")
    return tree


def references(node: Node, op: str, literal: Any) -> bool:
    """True if an ``op`` operation anywhere in the tree has ``literal`` as a direct argument."""
    if isinstance(node, Operation):
        if node.op == op and any(isinstance(a, Literal) and a.value == literal for a in node.args):
            return True
        return any(references(a, op, literal) for a in node.args)
    if isinstance(node, ListNode):
        return any(references(item, op, literal) for item in node.items)
    return False


# =============================================================================
# Evaluation context
# =============================================================================


@dataclass
class LogicContext:
    """What an expression is evaluated against.

    ``player`` is set for player-scoped junk; ``team`` for team junk and
    multiplier availability. ``option`` is the junk/multiplier being
    evaluated and is exposed to ``var`` as ``junk``.
    """

    hole: str
    hole_result: HoleResult | None = None
    scoreboard: Scoreboard | None = None
    team: TeamHoleResult | None = None
    player: PlayerHoleResult | None = None
    option: Any = None
    possible_points: float = 0
    extra: dict = field(default_factory=dict)

    @property
    def teams(self) -> list[TeamHoleResult]:
        return self.hole_result.sorted_teams() if self.hole_result else []

    @property
    def better(self) -> str:
        return getattr(self.option, "better", None) or HIGHER

    def resolve_team(self, ref: Any) -> TeamHoleResult | None:
        if isinstance(ref, TeamHoleResult):
            return ref
        if ref is None or ref == "this":
            return self.team
        if ref == "other":
            for t in self.teams:
                if self.team is None or t.team_id != self.team.team_id:
                    return t
            return None
        if self.hole_result is not None:
            return self.hole_result.teams.get(str(ref))
        return None

    def resolve_hole(self, ref: Any) -> HoleResult | None:
        """A hole argument; ``None`` means "no hole" (e.g. before hole 1)."""
        if isinstance(ref, HoleResult) or ref is None:
            return ref
        if self.scoreboard is None:
            return None
        return self.scoreboard.hole(str(ref))

    def data(self) -> dict:
        return {
            "hole": {"hole": self.hole, "par": self.hole_result.par if self.hole_result else None},
            "team": self.team.to_dict() if self.team else None,
            "teams": [t.to_dict() for t in self.teams],
            "player": self.player.to_dict() if self.player else None,
            "possiblePoints": self.possible_points,
            "junk": self.option.to_dict() if self.option is not None else None,
            **self.extra,
        }


# =============================================================================
# Standard operators
# =============================================================================


def truthy(value: Any) -> bool:
    if isinstance(value, list):
        return len(value) > 0
    if isinstance(value, dict):
        return True
    return bool(value)


def _to_number(value: Any) -> float | int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return math.nan
        return int(number) if number.is_integer() else number
    raise LogicError(f"Not a number: {value!r}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce_pair(a: Any, b: Any) -> tuple:
    if _is_number(a) and not _is_number(b):
        return a, _to_number(b)
    if _is_number(b) and not _is_number(a):
        return _to_number(a), b
    return a, b


def _loose_eq(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    a, b = _coerce_pair(a, b)
    return a == b


def _strict_eq(a: Any, b: Any) -> bool:
    if _is_number(a) and _is_number(b):
        return a == b
    return type(a) is type(b) and a == b


def _compare(fn: Callable[[Any, Any], bool]) -> Callable[..., bool]:
    def compare(*args: Any) -> bool:
        if len(args) < 2:
            raise LogicError("Comparison needs at least two arguments")
        pairs = list(zip(args, args[1:]))
        try:
            return all(fn(*_coerce_pair(x, y)) for x, y in pairs)
        except TypeError as e:
            raise LogicError(f"Cannot compare {args!r}") from e

    return compare


def _add(*args: Any) -> float | int:
    return sum(_to_number(a) for a in args)


def _subtract(*args: Any) -> float | int:
    if len(args) == 1:
        return -_to_number(args[0])
    return _to_number(args[0]) - _to_number(args[1])


def _multiply(*args: Any) -> float | int:
    return math.prod(_to_number(a) for a in args)


def _divide(a: Any, b: Any) -> float:
    try:
        return _to_number(a) / _to_number(b)
    except ZeroDivisionError as e:
        raise LogicError("Division by zero") from e


def _modulo(a: Any, b: Any) -> float | int:
    try:
        return _to_number(a) % _to_number(b)
    except ZeroDivisionError as e:
        raise LogicError("Modulo by zero") from e


def _min(*args: Any) -> float | int | None:
    return min((_to_number(a) for a in args), default=None)


def _max(*args: Any) -> float | int | None:
    return max((_to_number(a) for a in args), default=None)


def _cat(*args: Any) -> str:
    return "".join("" if a is None else str(a) for a in args)


def _substr(source: Any, start: int, length: int | None = None) -> str:
    text = str(source)
    start = int(start)
    begin = max(len(text) + start, 0) if start < 0 else start
    if length is None:
        return text[begin:]
    length = int(length)
    if length < 0:
        return text[begin:len(text) + length]
    return text[begin:begin + length]


def _in(needle: Any, haystack: Any) -> bool:
    if isinstance(haystack, (str, list)):
        return needle in haystack
    return False


def _merge(*args: Any) -> list:
    merged: list = []
    for a in args:
        if isinstance(a, list):
            merged.extend(a)
        else:
            merged.append(a)
    return merged


def _log(value: Any) -> Any:
    logger.debug("logic log: %r", value)
    return value


_OPERATIONS: dict[str, Callable[..., Any]] = {
    "==": _loose_eq,
    "===": _strict_eq,
    "!=": lambda a, b: not _loose_eq(a, b),
    "!==": lambda a, b: not _strict_eq(a, b),
    ">": _compare(lambda x, y: x > y),
    ">=": _compare(lambda x, y: x >= y),
    "<": _compare(lambda x, y: x < y),
    "<=": _compare(lambda x, y: x <= y),
    "!": lambda a=None: not truthy(a),
    "not": lambda a=None: not truthy(a),
    "!!": lambda a=None: truthy(a),
    "+": _add,
    "-": _subtract,
    "*": _multiply,
    "/": _divide,
    "%": _modulo,
    "min": _min,
    "max": _max,
    "cat": _cat,
    "substr": _substr,
    "in": _in,
    "merge": _merge,
    "log": _log,
}


# Operators that read the data object or control evaluation of their arguments.


def _get_var(data: Any, path: Any, default: Any = None) -> Any:
    if path is None or path == "":
        return data
    current = data
    for part in str(path).split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.lstrip("-").isdigit():
            index = int(part)
            if not -len(current) <= index < len(current):
                return default
            current = current[index]
        else:
            return default
    return default if current is None else current


def _op_var(args: tuple, data: Any, ctx: LogicContext) -> Any:
    values = [_eval(a, data, ctx) for a in args]
    if not values:
        return data
    path = values[0]
    if isinstance(path, list):
        path, default = (path + [None, None])[:2]
    else:
        default = values[1] if len(values) > 1 else None
    return _get_var(data, path, default)


def _missing_keys(keys: list, data: Any) -> list:
    return [k for k in keys if _get_var(data, k) in (None, "")]


def _op_missing(args: tuple, data: Any, ctx: LogicContext) -> list:
    values = [_eval(a, data, ctx) for a in args]
    keys = values[0] if values and isinstance(values[0], list) else values
    return _missing_keys(keys, data)


def _op_missing_some(args: tuple, data: Any, ctx: LogicContext) -> list:
    need, keys = (_eval(a, data, ctx) for a in args[:2])
    missing = _missing_keys(keys, data)
    if len(keys) - len(missing) >= _to_number(need):
        return []
    return missing


def _op_if(args: tuple, data: Any, ctx: LogicContext) -> Any:
    for i in range(0, len(args) - 1, 2):
        if truthy(_eval(args[i], data, ctx)):
            return _eval(args[i + 1], data, ctx)
    if len(args) % 2 == 1:
        return _eval(args[-1], data, ctx)
    return None


def _op_and(args: tuple, data: Any, ctx: LogicContext) -> Any:
    value = None
    for a in args:
        value = _eval(a, data, ctx)
        if not truthy(value):
            return value
    return value


def _op_or(args: tuple, data: Any, ctx: LogicContext) -> Any:
    value = None
    for a in args:
        value = _eval(a, data, ctx)
        if truthy(value):
            return value
    return value


def _scope_items(args: tuple, data: Any, ctx: LogicContext) -> list:
    if len(args) < 2:
        raise LogicError("Array operation needs a source and a logic argument")
    items = _eval(args[0], data, ctx)
    return items if isinstance(items, list) else []


def _op_some(args: tuple, data: Any, ctx: LogicContext) -> bool:
    return any(truthy(_eval(args[1], item, ctx)) for item in _scope_items(args, data, ctx))


def _op_all(args: tuple, data: Any, ctx: LogicContext) -> bool:
    items = _scope_items(args, data, ctx)
    return bool(items) and all(truthy(_eval(args[1], item, ctx)) for item in items)


def _op_none(args: tuple, data: Any, ctx: LogicContext) -> bool:
    return not _op_some(args, data, ctx)


def _op_filter(args: tuple, data: Any, ctx: LogicContext) -> list:
    return [item for item in _scope_items(args, data, ctx) if truthy(_eval(args[1], item, ctx))]


def _op_map(args: tuple, data: Any, ctx: LogicContext) -> list:
    return [_eval(args[1], item, ctx) for item in _scope_items(args, data, ctx)]


def _op_reduce(args: tuple, data: Any, ctx: LogicContext) -> Any:
    items = _scope_items(args, data, ctx)
    accumulator = _eval(args[2], data, ctx) if len(args) > 2 else None
    for item in items:
        accumulator = _eval(args[1], {"current": item, "accumulator": accumulator}, ctx)
    return accumulator


_LAZY: dict[str, Callable[[tuple, Any, LogicContext], Any]] = {
    "var": _op_var,
    "missing": _op_missing,
    "missing_some": _op_missing_some,
    "if": _op_if,
    "?:": _op_if,
    "and": _op_and,
    "or": _op_or,
    "some": _op_some,
    "all": _op_all,
    "none": _op_none,
    "filter": _op_filter,
    "map": _op_map,
    "reduce": _op_reduce,
}


# =============================================================================
# Golf operators
# =============================================================================


def _sorted_by_running_total(hole: HoleResult, better: str) -> list[TeamHoleResult]:
    # Worst-placed team first.
    return sorted(
        hole.sorted_teams(),
        key=lambda t: t.running_total,
        reverse=better == LOWER,
    )


def _team_op(ctx: LogicContext, ref: Any = "this") -> TeamHoleResult | None:
    return ctx.resolve_team(ref)


def _count_junk(ctx: LogicContext, team: Any, junk_name: str) -> int:
    result = ctx.resolve_team(team)
    if result is None:
        return 0
    count = sum(1 for j in result.junk if j.name == junk_name)
    if ctx.hole_result is not None:
        for player_id in result.player_ids:
            player = ctx.hole_result.players.get(player_id)
            if player is not None:
                count += sum(1 for j in player.junk if j.name == junk_name)
    return count


def _rank_with_ties(ctx: LogicContext, rank: Any, tie_count: Any) -> bool:
    subject = ctx.player if ctx.player is not None else ctx.team
    if subject is None:
        return False
    return subject.rank == _to_number(rank) and subject.tie_count == _to_number(tie_count)


def _team_down_the_most(ctx: LogicContext, hole: Any = None, team: Any = None) -> bool:
    hole_result = ctx.resolve_hole(hole)
    subject = ctx.resolve_team(team)
    if hole_result is None or subject is None:
        return True
    if len(hole_result.teams) < 2:
        return True
    ordered = _sorted_by_running_total(hole_result, ctx.better)
    if all(t.running_total == ordered[0].running_total for t in ordered):
        return True
    return ordered[0].team_id == subject.team_id


def _team_second_to_last(ctx: LogicContext, hole: Any = None, team: Any = None) -> bool:
    hole_result = ctx.resolve_hole(hole)
    subject = ctx.resolve_team(team)
    if hole_result is None or subject is None:
        return False
    if len(hole_result.teams) < 2:
        return False
    ordered = _sorted_by_running_total(hole_result, ctx.better)
    return ordered[1].team_id == subject.team_id


def _other_team_multiplied_with(
    ctx: LogicContext, hole: Any = None, team: Any = None, name: Any = None
) -> bool:
    hole_result = ctx.resolve_hole(hole) if hole is not None else ctx.hole_result
    subject = ctx.resolve_team(team)
    if hole_result is None or subject is None or name is None:
        return False
    return any(
        t.has_multiplier(name)
        for t in hole_result.teams.values()
        if t.team_id != subject.team_id
    )


def _get_prev_hole(ctx: LogicContext, offset: Any = 1) -> HoleResult | None:
    if ctx.scoreboard is None:
        return None
    return ctx.scoreboard.previous_hole(ctx.hole, int(_to_number(offset)))


def _get_curr_hole(ctx: LogicContext, hole: Any = None) -> HoleResult | None:
    if hole is None:
        return ctx.hole_result
    return ctx.resolve_hole(hole)


def _players_on_team(ctx: LogicContext, ref: Any = "this") -> int:
    team = ctx.resolve_team(ref)
    return len(team.player_ids) if team else 0


def _is_wolf_player(ctx: LogicContext) -> bool:
    """The wolf rotates through the player order, one hole at a time."""
    if ctx.scoreboard is None:
        return False
    players = ctx.scoreboard.meta.player_order
    holes = ctx.scoreboard.meta.hole_order
    if not players or ctx.hole not in holes:
        return False
    wolf = players[holes.index(ctx.hole) % len(players)]
    if ctx.player is not None:
        return ctx.player.player_id == wolf
    if ctx.team is not None:
        return wolf in ctx.team.player_ids
    return False


def _par_or_better(ctx: LogicContext, hole: Any = None, score_type: Any = "gross") -> bool:
    hole_result = ctx.resolve_hole(hole) if hole is not None else ctx.hole_result
    if hole_result is None:
        return False
    if ctx.player is not None:
        player_ids = [ctx.player.player_id]
    elif ctx.team is not None:
        player_ids = ctx.team.player_ids
    else:
        return False
    for player_id in player_ids:
        player = hole_result.players.get(player_id)
        if player is None or not player.has_score:
            continue
        to_par = player.net_to_par if score_type == "net" else player.score_to_par
        if to_par <= 0:
            return True
    return False


def _hole_par(ctx: LogicContext, hole: Any = None) -> int:
    hole_result = ctx.resolve_hole(hole) if hole is not None else ctx.hole_result
    return hole_result.par if hole_result else 0


def _existing_pre_multiplier_total(ctx: LogicContext, hole: Any = None, threshold: Any = 0) -> bool:
    """Product of the team's selected (non-earned) multipliers on a hole meets ``threshold``."""
    hole_result = ctx.resolve_hole(hole) if hole is not None else ctx.hole_result
    if hole_result is None or ctx.team is None:
        return False
    team = hole_result.teams.get(ctx.team.team_id)
    if team is None:
        return False
    product = math.prod(m.value for m in team.multipliers if not m.earned)
    return product >= _to_number(threshold)


_CUSTOM: dict[str, Callable[..., Any]] = {
    "team": _team_op,
    "countJunk": _count_junk,
    "rankWithTies": _rank_with_ties,
    "team_down_the_most": _team_down_the_most,
    "team_second_to_last": _team_second_to_last,
    "other_team_multiplied_with": _other_team_multiplied_with,
    "getPrevHole": _get_prev_hole,
    "getCurrHole": _get_curr_hole,
    "playersOnTeam": _players_on_team,
    "isWolfPlayer": _is_wolf_player,
    "parOrBetter": _par_or_better,
    "holePar": _hole_par,
    "existingPreMultiplierTotal": _existing_pre_multiplier_total,
}

STANDARD_OPERATORS = frozenset(_OPERATIONS) | frozenset(_LAZY)
CUSTOM_OPERATORS = frozenset(_CUSTOM)
KNOWN_OPERATORS = STANDARD_OPERATORS | CUSTOM_OPERATORS


# =============================================================================
# Public API
# =============================================================================


def _eval(node: Node, data: Any, ctx: LogicContext) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, ListNode):
        return [_eval(item, data, ctx) for item in node.items]

    lazy = _LAZY.get(node.op)
    if lazy is not None:
        return lazy(node.args, data, ctx)

    values = [_eval(a, data, ctx) for a in node.args]
    try:
        if node.op in _OPERATIONS:
            return _OPERATIONS[node.op](*values)
        if node.op in _CUSTOM:
            return _CUSTOM[node.op](ctx, *values)
    except TypeError as e:
        raise LogicError(f"Bad arguments for {node.op}: {values!r}") from e
    raise LogicError(f"Unknown operator: {node.op}")


def evaluate(expression: str | Node, ctx: LogicContext) -> Any:
    """Evaluate an expression string (or parsed tree). Raises ``LogicError``."""
    node = parse(expression) if isinstance(expression, str) else expression
    return _eval(node, ctx.data(), ctx)


def evaluate_bool(expression: str | Node, ctx: LogicContext) -> bool:
    return truthy(evaluate(expression, ctx))


def is_simple_rank_check(expression: str) -> tuple[int, int] | None:
    """``(rank, tie_count)`` when the expression is a bare ``rankWithTies`` test."""
    try:
        node = parse(expression)
    except LogicError:
        return None
    if isinstance(node, Operation) and node.op == "rankWithTies" and len(node.args) == 2:
        rank, tie_count = node.args
        if isinstance(rank, Literal) and isinstance(tie_count, Literal):
            return int(rank.value), int(tie_count.value)
    return None
