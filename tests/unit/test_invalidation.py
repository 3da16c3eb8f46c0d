"""Tests for invalidation detection after score edits."""

import pytest

from golfscore.scoring.invalidation import MultiplierInvalidation, TeeFlipInvalidation
from golfscore.scoring.tee_flip import get_tee_flip_winner
from golfscore.utils.constants import TEE_FLIP_WINNER
from tests.helpers import make_game, seed_options, set_scores

TEAMS = [["a", "b"], ["c", "d"]]


@pytest.fixture
def pressed(game_repo, commands):
    """Team 2 doubled on hole 2 while behind; team 1 doubled back."""
    game = make_game(seed_options("low_ball", "double", "double_back"), teams=TEAMS)
    set_scores(game, "1", {"a": 3, "b": 5, "c": 4, "d": 5})
    set_scores(game, "2", {"a": 5, "b": 5, "c": 4, "d": 5})
    game_repo.save_game(game)
    assert commands.toggle_team_multiplier("g1", "2", "2", "double").success
    assert commands.toggle_team_multiplier("g1", "2", "1", "double_back").success
    return game_repo.get_game("g1")


class TestMultiplierInvalidation:
    def test_press_no_longer_available(self, pressed, commands):
        result = commands.set_score("g1", "c", "1", 2)
        items = result.invalidations.items
        double = items[0]
        assert isinstance(double, MultiplierInvalidation)
        assert (double.hole, double.team_id, double.option_name) == ("2", "2", "double")
        assert double.first_hole == "2"
        assert double.reason == "Team is no longer the furthest behind"

    def test_dependent_cascades(self, pressed, commands):
        items = commands.set_score("g1", "c", "1", 2).invalidations.items
        assert len(items) == 2
        dependent = items[1]
        assert (dependent.team_id, dependent.option_name) == ("1", "double_back")
        assert dependent.reason == "Depends on Team 2's Double"

    def test_score_impact(self, pressed, commands):
        double = commands.set_score("g1", "c", "1", 2).invalidations.items[0]
        impact = double.score_impact
        assert impact.current_points == 8
        assert impact.projected_points == 4
        assert impact.current_total == 10
        assert impact.projected_total == 6

    def test_still_valid(self, pressed, commands):
        result = commands.set_score("g1", "d", "1", 4)
        assert not result.invalidations.has_invalidations

    def test_edits_only_affect_later_holes(self, pressed, commands):
        result = commands.set_score("g1", "c", "2", 3)
        assert result.invalidations.items == []

    def test_remove_invalidated_item(self, pressed, commands):
        double = commands.set_score("g1", "c", "1", 2).invalidations.items[0]
        result = commands.remove_invalidated_item("g1", double)
        assert result.success
        assert result.game.get_hole("2").get_team("2").team_options("double") == []

        again = commands.remove_invalidated_item("g1", double)
        assert again.message == "Item already removed"

    def test_serialization(self, pressed, commands):
        data = commands.set_score("g1", "c", "1", 2).invalidations.to_dict()
        assert data["editedHole"] == "1"
        assert data["items"][0]["kind"] == "multiplier"
        assert data["items"][0]["scoreImpact"]["projectedPoints"] == 4


class TestTeeFlipInvalidation:
    @pytest.fixture
    def flipped(self, game_repo, commands):
        game = make_game(seed_options("low_ball"), teams=TEAMS)
        set_scores(game, "1", {"a": 4, "b": 5, "c": 4, "d": 5})
        game_repo.save_game(game)
        assert commands.record_tee_flip("g1", "2", "1").success

    def test_flip_invalidated_when_no_longer_tied(self, flipped, commands):
        result = commands.set_score("g1", "c", "1", 3)
        flips = result.invalidations.of_kind("tee_flip")
        assert len(flips) == 1
        assert isinstance(flips[0], TeeFlipInvalidation)
        assert (flips[0].hole, flips[0].team_id, flips[0].option_name) == ("2", "1", TEE_FLIP_WINNER)
        assert flips[0].reason == "Teams are no longer tied"

    def test_flip_kept_while_tied(self, flipped, commands):
        result = commands.set_score("g1", "b", "1", 6)
        assert result.invalidations.of_kind("tee_flip") == []

    def test_remove_flip(self, flipped, commands):
        flip = commands.set_score("g1", "c", "1", 3).invalidations.items[0]
        result = commands.remove_invalidated_item("g1", flip)
        assert get_tee_flip_winner(result.game, "2") is None
