"""Tests for the scoreboard fingerprint and cache."""

import copy

import pytest

from golfscore.scoring.fingerprint import ScoreboardCache, scoreboard_fingerprint
from tests.helpers import make_game, seed_options, select, set_scores


@pytest.fixture
def game():
    game = make_game(seed_options("low_ball", "double"), teams=[["a", "b"], ["c", "d"]])
    return set_scores(game, "1", {"a": 3, "b": 5, "c": 4, "d": 5})


class TestFingerprint:
    def test_stable(self, game):
        assert scoreboard_fingerprint(game) == scoreboard_fingerprint(copy.deepcopy(game))

    def test_ignores_version_and_name(self, game):
        before = scoreboard_fingerprint(game)
        game.version += 3
        game.name = "Renamed"
        assert scoreboard_fingerprint(game) == before

    def test_score_change(self, game):
        before = scoreboard_fingerprint(game)
        set_scores(game, "1", {"a": 4})
        assert scoreboard_fingerprint(game) != before

    def test_selection_change(self, game):
        before = scoreboard_fingerprint(game)
        select(game, "2", "2", "double")
        assert scoreboard_fingerprint(game) != before

    def test_option_change(self, game):
        before = scoreboard_fingerprint(game)
        game.spec["low_ball"].value = 3
        assert scoreboard_fingerprint(game) != before

    def test_not_loaded(self, game):
        game.rounds[0].scores = None
        assert scoreboard_fingerprint(game) is None


class TestScoreboardCache:
    def test_reuses_until_changed(self, game):
        cache = ScoreboardCache()
        first = cache.get(game)
        assert cache.get(game) is first

        set_scores(game, "2", {"a": 4})
        second = cache.get(game)
        assert second is not first
        assert second.hole("2").players["a"].gross == 4

    def test_keeps_last_while_not_loaded(self, game):
        cache = ScoreboardCache()
        first = cache.get(game)
        fingerprint = cache.fingerprint
        game.holes[0].teams = None
        assert cache.get(game) is first
        assert cache.fingerprint == fingerprint

    def test_empty_before_first_load(self, game):
        game.spec = None
        assert ScoreboardCache().get(game) is None
