"""Repository protocol for golfscore persistence."""

from __future__ import annotations

from typing import Protocol

from golfscore.game.models import Game


class GameRepository(Protocol):
    def get_game(self, game_id: str) -> Game | None:
        ...

    def save_game(self, game: Game) -> None:
        ...

    def delete_game(self, game_id: str) -> None:
        ...

    def list_games(self) -> list[str]:
        ...
