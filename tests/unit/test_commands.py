"""Tests for GameCommands."""

import pytest

from golfscore.db.memory import InMemoryGameRepository
from golfscore.game.catalog import create_game, load_spec
from golfscore.game.models import Player
from golfscore.scoring.tee_flip import get_tee_flip_declined, get_tee_flip_winner
from golfscore.utils.constants import TEE_FLIP_DECLINED
from tests.helpers import SEED_PATH, make_game, make_tee, seed_options, set_scores

TEAMS = [["a", "b"], ["c", "d"]]
OPTIONS = (
    "use_handicaps", "handicap_index_from", "max_off_tee",
    "low_ball", "prox", "birdie", "double", "double_back", "custom",
)


@pytest.fixture
def game(game_repo):
    game = make_game(seed_options(*OPTIONS), teams=TEAMS)
    set_scores(game, "1", {"a": 3, "b": 5, "c": 4, "d": 5})
    game_repo.save_game(game)
    return game


def hole_options(result, hole, team_id):
    return [o.option_name for o in result.game.get_hole(hole).get_team(team_id).options]


class TestSetScore:
    def test_set_and_reload(self, game, commands):
        result = commands.set_score("g1", "a", "2", 4)
        assert result.success
        assert result.game.get_round("a").score_for("2").gross == 4
        assert result.events[0]["event"] == "score_set"
        assert result.events[0]["previous"] is None

    def test_edit_keeps_history(self, game, commands):
        result = commands.set_score("g1", "a", "1", 4)
        score = result.game.get_round("a").score_for("1")
        assert score.gross == 4
        assert score.history[0]["gross"] == 3
        assert result.events[0]["previous"] == 3

    def test_version_bumped(self, game, commands, game_repo):
        before = game_repo.get_game("g1").version
        commands.set_score("g1", "a", "2", 4)
        assert game_repo.get_game("g1").version == before + 1

    @pytest.mark.parametrize("game_id,player,hole,gross,error", [
        ("nope", "a", "1", 4, "Game not found"),
        ("g1", "a", "19", 4, "Unknown hole 19"),
        ("g1", "a", "1", 0, "Gross score must be positive"),
        ("g1", "z", "1", 4, "No round for player z"),
    ])
    def test_rejected(self, game, commands, game_id, player, hole, gross, error):
        result = commands.set_score(game_id, player, hole, gross)
        assert not result.success
        assert result.error == error

    def test_clear(self, game, commands):
        result = commands.clear_score("g1", "a", "1")
        assert result.success
        assert result.game.get_round("a").score_for("1") is None
        assert result.events[0]["previous"] == 3

    def test_clear_missing(self, game, commands):
        result = commands.clear_score("g1", "a", "5")
        assert result.success
        assert result.message == "No score for a on hole 5"


class TestOptions:
    def test_set_game_option(self, game, commands):
        result = commands.set_game_option("g1", "handicap_index_from", "low")
        assert result.game.spec["handicap_index_from"].value == "low"

    @pytest.mark.parametrize("name,value,error", [
        ("use_handicaps", "maybe", "use_handicaps must be true or false"),
        ("max_off_tee", "lots", "max_off_tee must be a number"),
        ("handicap_index_from", "mid", "mid is not a choice for handicap_index_from"),
        ("birdie", "two", "birdie must be a number"),
        ("missing", "1", "Unknown option missing"),
    ])
    def test_invalid_values(self, game, commands, name, value, error):
        result = commands.set_game_option("g1", name, value)
        assert not result.success
        assert result.error == error

    def test_junk_value(self, game, commands):
        result = commands.set_game_option("g1", "birdie", "2")
        assert result.game.spec["birdie"].value == 2

    def test_hole_override(self, game, commands):
        result = commands.set_hole_option("g1", "3", "max_off_tee", "4")
        assert result.events[0]["override"] == "set"
        assert result.game.get_hole("3").options["max_off_tee"].value == "4"

        result = commands.set_hole_option("g1", "3", "max_off_tee", "0")
        assert result.events[0]["override"] == "removed"
        assert "max_off_tee" not in result.game.get_hole("3").options

        result = commands.set_hole_option("g1", "3", "max_off_tee", "0")
        assert result.message == "max_off_tee on hole 3 already matches the game value"

    def test_clear_hole_option(self, game, commands):
        commands.set_hole_option("g1", "3", "birdie", "3")
        result = commands.clear_hole_option("g1", "3", "birdie")
        assert "birdie" not in result.game.get_hole("3").options
        assert commands.clear_hole_option("g1", "3", "birdie").message == "No override for birdie on hole 3"

    def test_reset_spec(self, game_repo, commands):
        spec = load_spec(SEED_PATH, "five_points")
        players = [Player(player_id=p) for p in ("a", "b", "c", "d")]
        game_repo.save_game(create_game(spec, players, tee=make_tee(), game_id="fp"))

        assert commands.reset_spec_from_catalog("fp").message == "Nothing to reset"
        commands.set_game_option("fp", "low_ball", "3")
        result = commands.reset_spec_from_catalog("fp")
        assert result.message == "Reset 1 option(s)"
        assert result.game.spec["low_ball"].value == 2

    def test_reset_without_catalog_spec(self, game, commands, game_repo):
        stored = game_repo.get_game("g1")
        stored.spec_ref = None
        game_repo.save_game(stored)
        result = commands.reset_spec_from_catalog("g1")
        assert result.error == "Game has no catalog spec"


class TestPlayerJunk:
    def test_toggle_on_and_off(self, game, commands):
        result = commands.toggle_player_junk("g1", "1", "a", "prox")
        assert result.events[0]["granted"]
        assert hole_options(result, "1", "1") == ["prox"]

        result = commands.toggle_player_junk("g1", "1", "a", "prox")
        assert not result.events[0]["granted"]
        assert hole_options(result, "1", "1") == []

    def test_one_per_group(self, game, commands):
        commands.toggle_player_junk("g1", "1", "a", "prox")
        result = commands.toggle_player_junk("g1", "1", "c", "prox")
        assert result.events[0]["removed_from"] == ["a"]
        assert hole_options(result, "1", "1") == []
        assert hole_options(result, "1", "2") == ["prox"]

    def test_materializes_carried_teams(self, game, commands):
        result = commands.toggle_player_junk("g1", "4", "d", "prox")
        teams = result.game.get_hole("4").teams
        assert [(t.team, t.player_ids) for t in teams] == [("1", ["a", "b"]), ("2", ["c", "d"])]

    def test_rejected(self, game, commands):
        assert commands.toggle_player_junk("g1", "1", "a", "double").error == "Unknown junk double"
        assert commands.toggle_player_junk("g1", "1", "z", "prox").error == "Player z is not on a team on hole 1"


class TestTeamMultipliers:
    def test_press(self, game, commands):
        result = commands.toggle_team_multiplier("g1", "2", "2", "double")
        assert result.events[0]["active"]
        selection = result.game.get_hole("2").get_team("2").options[0]
        assert selection.first_hole == "2"

    def test_release_cascades(self, game, commands):
        commands.toggle_team_multiplier("g1", "2", "2", "double")
        commands.toggle_team_multiplier("g1", "2", "1", "double_back")
        result = commands.toggle_team_multiplier("g1", "2", "2", "double")
        assert not result.events[0]["active"]
        assert result.events[0]["cascaded"] == [{"team_id": "1", "multiplier": "double_back"}]
        assert hole_options(result, "2", "1") == []

    def test_blocked_by_override(self, game, commands):
        commands.set_custom_multiplier("g1", "2", "1", 3)
        result = commands.toggle_team_multiplier("g1", "2", "2", "double")
        assert not result.success
        assert result.error == "Team 1 has an override multiplier on hole 2"

    def test_rejected(self, game, commands):
        assert commands.toggle_team_multiplier("g1", "2", "2", "birdie").error == "Unknown multiplier birdie"
        assert commands.toggle_team_multiplier("g1", "2", "9", "double").error == "Unknown team 9 on hole 2"


class TestCustomMultiplier:
    def test_override_purges_hole_presses(self, game, commands):
        commands.toggle_team_multiplier("g1", "2", "2", "double")
        result = commands.set_custom_multiplier("g1", "2", "1", 3)
        assert result.events[0]["purged"] == [{"team_id": "2", "multiplier": "double"}]
        assert hole_options(result, "2", "2") == []
        custom = result.game.get_hole("2").get_team("1").options[0]
        assert (custom.option_name, custom.value) == ("custom", "3")

    def test_replace_and_clear(self, game, commands):
        commands.set_custom_multiplier("g1", "2", "1", 3)
        result = commands.set_custom_multiplier("g1", "2", "2", 1.5)
        assert hole_options(result, "2", "1") == []
        assert result.game.get_hole("2").get_team("2").options[0].value == "1.5"

        result = commands.set_custom_multiplier("g1", "2", "2", None)
        assert hole_options(result, "2", "2") == []

    def test_rejected(self, game, commands, game_repo):
        assert commands.set_custom_multiplier("g1", "2", "1", 0).error == "Multiplier must be positive"
        stored = game_repo.get_game("g1")
        del stored.spec["custom"]
        game_repo.save_game(stored)
        assert commands.set_custom_multiplier("g1", "2", "1", 3).error == "No custom multiplier on hole 2"


class TestTeeFlip:
    def test_record(self, game, commands):
        result = commands.record_tee_flip("g1", "2", "2")
        assert get_tee_flip_winner(result.game, "2") == "2"

    def test_record_replaces_decline(self, game, commands):
        result = commands.decline_tee_flip("g1", "2")
        assert get_tee_flip_declined(result.game, "2")
        assert hole_options(result, "2", "1") == [TEE_FLIP_DECLINED]

        result = commands.record_tee_flip("g1", "2", "1")
        assert not get_tee_flip_declined(result.game, "2")
        assert get_tee_flip_winner(result.game, "2") == "1"

    def test_unknown_team(self, game, commands):
        assert commands.record_tee_flip("g1", "2", "7").error == "Unknown team 7 on hole 2"


class TestLifecycle:
    def test_delete_keeps_scored_rounds(self, game, commands, game_repo):
        result = commands.delete_game("g1")
        assert result.success
        assert [r.player_id for r in result.kept_rounds] == ["a", "b", "c", "d"]
        assert result.message == "Deleted game, kept 4 round(s) with scores"
        assert game_repo.get_game("g1") is None

    def test_delete_missing(self, commands):
        assert commands.delete_game("nope").error == "Game not found"

    def test_version_conflict(self, game):
        repo = InMemoryGameRepository()
        repo.save_game(game)
        first = repo.get_game("g1")
        second = repo.get_game("g1")
        repo.save_game(first)
        with pytest.raises(ValueError, match="Version conflict"):
            repo.save_game(second)
