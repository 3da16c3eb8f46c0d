"""Tests for game integrity checks."""

import json

from golfscore.game.integrity import validate_game_integrity
from golfscore.game.models import Game, JunkOption, Player, Team
from tests.helpers import SAMPLE_GAME, make_game, seed_options, select, set_scores

TEAMS = [["a", "b"], ["c", "d"]]


def game():
    return make_game(seed_options("low_ball", "prox", "double"), teams=TEAMS)


class TestIntegrity:
    def test_valid(self):
        g = game()
        set_scores(g, "1", {"a": 4})
        select(g, "2", "1", "double")
        select(g, "1", "2", "prox", player_id="c", first_hole=None)
        assert validate_game_integrity(g) == []

    def test_sample_snapshot(self):
        with open(SAMPLE_GAME) as f:
            assert validate_game_integrity(Game.from_dict(json.load(f))) == []

    def test_duplicate_player(self):
        g = game()
        g.players.append(Player(player_id="a"))
        assert "Player a listed 2 times" in validate_game_integrity(g)

    def test_unknown_team_member(self):
        g = game()
        g.holes[0].teams[0].player_ids.append("z")
        assert "Hole 1: team 1 has unknown player z" in validate_game_integrity(g)

    def test_player_on_two_teams(self):
        g = game()
        g.holes[0].teams.append(Team(team="3", player_ids=["a"]))
        assert "Hole 1: player a on teams 1 and 3" in validate_game_integrity(g)

    def test_unknown_selection(self):
        g = game()
        select(g, "2", "1", "triple")
        assert "Hole 2: team 1 selected unknown option triple" in validate_game_integrity(g)

    def test_unknown_first_hole(self):
        g = game()
        select(g, "2", "1", "double", first_hole="12")
        assert "Hole 2: double on team 1 starts on unknown hole 12" in validate_game_integrity(g)

    def test_tee_flip_selection_allowed(self):
        g = game()
        select(g, "2", "1", "tee_flip_winner")
        assert validate_game_integrity(g) == []

    def test_bad_scores(self):
        g = game()
        set_scores(g, "1", {"a": 0})
        set_scores(g, "10", {"b": 4})
        errors = validate_game_integrity(g)
        assert "Player a hole 1: gross 0 is not positive" in errors
        assert "Player b scored unknown hole 10" in errors

    def test_miskeyed_option(self):
        g = game()
        g.spec["birdie"] = JunkOption(name="eagle")
        assert "Option keyed birdie is named eagle" in validate_game_integrity(g)

    def test_not_loaded_skips(self):
        g = game()
        g.players.append(Player(player_id="a"))
        g.spec = None
        assert validate_game_integrity(g) == []
