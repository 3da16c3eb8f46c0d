"""Shared fixtures for golfscore tests."""

from __future__ import annotations

import pytest

from golfscore.db.memory import InMemoryGameRepository
from golfscore.game.catalog import load_options
from golfscore.game.commands import GameCommands
from tests.helpers import SEED_PATH


@pytest.fixture
def catalog():
    return load_options(SEED_PATH)


@pytest.fixture
def game_repo():
    return InMemoryGameRepository()


@pytest.fixture
def commands(game_repo):
    return GameCommands(game_repo)
