"""Option lookup: per-hole overrides falling back to the game's working spec."""

from __future__ import annotations

from typing import Any

from golfscore.game.models import Game, GameOption, JunkOption, MultiplierOption, Option
from golfscore.utils.constants import TRUE_VALUE, VALUE_BOOL, VALUE_NUM


def option_value(option: Option | None) -> Any:
    """The typed value an option carries.

    Game options store strings: bools become ``True``/``False`` and numbers
    become floats. An unset value falls back to ``default_value``.
    """
    if option is None:
        return None
    if isinstance(option, GameOption):
        raw = option.value if option.value is not None else option.default_value
        if option.value_type == VALUE_BOOL:
            return raw == TRUE_VALUE
        if option.value_type == VALUE_NUM:
            try:
                return float(raw)
            except (TypeError, ValueError):
                return None
        return raw
    if isinstance(option, MultiplierOption):
        return option.static_value
    return option.value


def get_option_for_hole(name: str, hole: str, game: Game) -> Option | None:
    """Hole override first, then the game-level working copy."""
    game_hole = game.get_hole(hole)
    if game_hole is not None and game_hole.options is not None and name in game_hole.options:
        return game_hole.options[name]
    return (game.spec or {}).get(name)


def get_option_value_for_hole(name: str, hole: str, game: Game) -> Any:
    return option_value(get_option_for_hole(name, hole, game))


def get_game_option_value(name: str, game: Game, default: Any = None) -> Any:
    value = option_value((game.spec or {}).get(name))
    return default if value is None else value


def is_option_on_hole(name: str, hole: str, game: Game) -> bool:
    """Junk and multipliers are on when defined; game options when truthy."""
    option = get_option_for_hole(name, hole, game)
    if option is None:
        return False
    if isinstance(option, GameOption):
        return bool(option_value(option))
    return True


def effective_options_for_hole(hole: str, game: Game) -> dict[str, Option]:
    merged: dict[str, Option] = dict(game.spec or {})
    game_hole = game.get_hole(hole)
    if game_hole is not None and game_hole.options:
        merged.update(game_hole.options)
    return merged


def _sorted_of_type(options: dict[str, Option], option_cls: type) -> list:
    found = [opt for opt in options.values() if isinstance(opt, option_cls)]
    return sorted(found, key=lambda opt: (opt.sort_key, opt.name))


def get_junk_options_for_hole(hole: str, game: Game) -> list[JunkOption]:
    return _sorted_of_type(effective_options_for_hole(hole, game), JunkOption)


def get_multiplier_options_for_hole(hole: str, game: Game) -> list[MultiplierOption]:
    return _sorted_of_type(effective_options_for_hole(hole, game), MultiplierOption)


def get_multiplier_option(name: str, hole: str, game: Game) -> MultiplierOption | None:
    option = get_option_for_hole(name, hole, game)
    return option if isinstance(option, MultiplierOption) else None


def distinct_option_values(name: str, game: Game) -> list[Any]:
    """Distinct effective values across the game default and every hole.

    More than one entry means the option varies by hole.
    """
    values: list[Any] = []
    default = option_value((game.spec or {}).get(name))
    if default is not None:
        values.append(default)
    for game_hole in game.ordered_holes():
        value = get_option_value_for_hole(name, game_hole.hole, game)
        if value is not None and value not in values:
            values.append(value)
    return values


def get_spec_field(name: str, field_name: str, game: Game, default: Any = None) -> Any:
    """A raw field of a game-level option (``better``, ``calculation`` ...)."""
    option = (game.spec or {}).get(name)
    if option is None:
        return default
    value = getattr(option, field_name, None)
    return default if value is None else value
