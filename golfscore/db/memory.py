"""In-memory game repository for tests and the local CLIs."""

from __future__ import annotations

import copy
import json
from pathlib import Path

from golfscore.game.models import Game


class InMemoryGameRepository:
    def __init__(self) -> None:
        self._games: dict[str, Game] = {}

    def get_game(self, game_id: str) -> Game | None:
        game = self._games.get(game_id)
        if game is None:
            return None
        return copy.deepcopy(game)

    def save_game(self, game: Game) -> None:
        existing = self._games.get(game.game_id)
        if existing is not None and existing.version != game.version:
            raise ValueError(
                f"Version conflict: expected {game.version}, found {existing.version}"
            )
        saved = copy.deepcopy(game)
        saved.version = game.version + 1
        self._games[game.game_id] = saved

    def delete_game(self, game_id: str) -> None:
        self._games.pop(game_id, None)

    def list_games(self) -> list[str]:
        return sorted(self._games)

    @classmethod
    def from_file(cls, path: str | Path) -> InMemoryGameRepository:
        """Load a single game snapshot saved with ``Game.to_dict``."""
        repo = cls()
        with open(path) as f:
            game = Game.from_dict(json.load(f))
        repo._games[game.game_id] = game
        return repo
