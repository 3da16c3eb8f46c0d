"""Seed catalog: option records and the game specs built from them."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path

from golfscore.game.models import (
    Game,
    GameHole,
    GameScope,
    GameSpec,
    Option,
    Player,
    Round,
    Tee,
    option_from_dict,
)
from golfscore.utils.constants import HOLES_PER_ROUND

DEFAULT_SEED_PATH = "data/seed"


def default_seed_path() -> str:
    return os.environ.get("GOLFSCORE_SEED_PATH", DEFAULT_SEED_PATH)


def _read_records(path: Path) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, list) else [data]


def load_options(seed_path: str | Path) -> dict[str, Option]:
    """Every option under ``<seed>/options``, keyed by name."""
    options: dict[str, Option] = {}
    for path in sorted((Path(seed_path) / "options").glob("*.json")):
        for record in _read_records(path):
            option = option_from_dict(record)
            options[option.name] = option
    return options


def load_spec(seed_path: str | Path, name: str) -> GameSpec:
    """A spec file lists option names from the catalog plus per-spec field overrides."""
    path = Path(seed_path) / "specs" / f"{name}.json"
    if not path.exists():
        raise ValueError(f"Spec not found: {name}")
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    catalog = load_options(seed_path)
    overrides = data.get("overrides", {})
    options: dict[str, dict] = {}
    for option_name in data.get("options", []):
        if option_name not in catalog:
            raise ValueError(f"Spec {name} uses unknown option {option_name}")
        record = catalog[option_name].to_dict()
        record.update(overrides.get(option_name, {}))
        options[option_name] = record

    return GameSpec.from_dict({**data, "options": options})


def create_game(
    spec: GameSpec,
    players: list[Player],
    tee: Tee | None = None,
    holes: int = HOLES_PER_ROUND,
    game_id: str | None = None,
) -> Game:
    """A fresh game with a working copy of the spec's options and empty holes."""
    return Game(
        game_id=game_id or Game.new_game_id(),
        name=spec.disp or spec.name,
        spec=copy.deepcopy(spec.options),
        spec_ref=copy.deepcopy(spec),
        players=list(players),
        holes=[GameHole(hole=str(n), seq=n) for n in range(1, holes + 1)],
        rounds=[Round(player_id=p.player_id, tee=copy.deepcopy(tee)) for p in players],
        scope=GameScope(teams_config=copy.deepcopy(spec.teams_config)),
    )
