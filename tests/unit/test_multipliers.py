"""Tests for multiplier activation, availability, evaluation and controls."""

import logging

import pytest

from golfscore.game.models import GameOption, MultiplierOption
from golfscore.scoring.logic import LogicContext
from golfscore.scoring.multipliers import (
    VALUE_RESOLVERS,
    depends_on_multiplier,
    evaluate_availability,
    get_all_inherited_multipliers,
    get_custom_multiplier_state,
    get_inherited_multiplier_status,
    get_multiplier_controls,
    get_multiplier_value,
    get_team_multiplier_status,
    is_multiplier_available,
    is_selectable,
    nine_start,
)
from golfscore.scoring.pipeline import score, score_with_context
from tests.helpers import hole_team, make_game, seed_options, select, set_scores

TEAMS = [["a", "b"], ["c", "d"]]


def control_names(ctx, hole, team_id):
    return [c.name for c in get_multiplier_controls(ctx, hole, team_id)]


@pytest.fixture
def press_game():
    """Team 1 wins hole 1, so team 2 is behind going into hole 2."""
    game = make_game(seed_options("low_ball", "double", "double_back"), teams=TEAMS)
    return set_scores(game, "1", {"a": 3, "b": 5, "c": 4, "d": 5})


class TestPersistence:
    def test_rest_of_nine(self):
        game = make_game(seed_options("pre_double"), teams=TEAMS, holes=18)
        select(game, "2", "1", "pre_double")
        assert get_team_multiplier_status(game, "1", "1", "pre_double") is None
        assert get_team_multiplier_status(game, "2", "1", "pre_double") == "active"
        for hole in range(3, 10):
            assert get_team_multiplier_status(game, str(hole), "1", "pre_double") == "inherited"
        assert get_team_multiplier_status(game, "10", "1", "pre_double") is None
        assert get_team_multiplier_status(game, "5", "2", "pre_double") is None

    def test_inherited_entries(self):
        game = make_game(seed_options("pre_double"), teams=TEAMS, holes=18)
        select(game, "2", "1", "pre_double")
        select(game, "4", "1", "pre_double")
        found = get_inherited_multiplier_status(game, "6", "1", "pre_double")
        assert sorted(a.source_hole for a in found) == ["2", "4"]

        hole_team(game, "6", "1")
        inherited = get_all_inherited_multipliers(game, "6")
        assert list(inherited) == ["1"]

    def test_game_scope(self):
        all_in = MultiplierOption(name="all_in", value=3, scope="game", based_on="user")
        game = make_game([all_in], teams=TEAMS, holes=18)
        select(game, "4", "2", "all_in")
        assert get_team_multiplier_status(game, "18", "2", "all_in") == "inherited"
        assert get_team_multiplier_status(game, "3", "2", "all_in") is None

    def test_hole_scope_does_not_carry(self, press_game):
        select(press_game, "2", "2", "double")
        assert get_team_multiplier_status(press_game, "3", "2", "double") is None

    def test_inherited_multipliers_apply(self):
        game = make_game(seed_options("low_ball", "pre_double"), teams=TEAMS, holes=9)
        select(game, "2", "1", "pre_double")
        set_scores(game, "3", {"a": 3, "b": 5, "c": 4, "d": 5})
        hole = score(game).hole("3")
        assert hole.teams["1"].points == 4
        assert hole.teams["1"].multipliers[0].first_hole == "2"

    def test_nine_start(self):
        assert nine_start(1) == 1
        assert nine_start(9) == 1
        assert nine_start(10) == 10
        assert nine_start(18) == 10


class TestValues:
    def test_front_nine_pre_double_total(self):
        game = make_game(seed_options("pre_double", "re_pre"), teams=TEAMS, holes=18)
        select(game, "2", "1", "pre_double")
        select(game, "5", "2", "pre_double")
        re_pre = game.spec["re_pre"]
        assert get_multiplier_value(re_pre, game, "10") == 4

    def test_unknown_value_source(self):
        option = MultiplierOption(name="mystery", value_from="nope")
        with pytest.raises(ValueError, match="Unknown value_from"):
            get_multiplier_value(option, make_game([]), "1")

    def test_registered_resolver(self, monkeypatch):
        monkeypatch.setitem(VALUE_RESOLVERS, "flatThree", lambda game, hole, option: 3)
        option = MultiplierOption(name="triple", value_from="flatThree")
        assert get_multiplier_value(option, make_game([]), "1") == 3

    def test_static_default(self):
        assert get_multiplier_value(MultiplierOption(name="double"), make_game([]), "1") == 2

    def test_earned_types_not_selectable(self):
        assert not is_selectable(MultiplierOption(name="x", sub_type="automatic"))
        assert not is_selectable(MultiplierOption(name="x", sub_type="bbq"))
        assert is_selectable(MultiplierOption(name="x", sub_type="press"))


class TestHoleEvaluation:
    def test_selected_multiplier_scales_hole(self, press_game):
        select(press_game, "2", "2", "double")
        set_scores(press_game, "2", {"a": 5, "b": 5, "c": 4, "d": 5})
        hole = score(press_game).hole("2")
        assert hole.teams["2"].points == 4
        assert hole.teams["1"].tee_multiplier == 2
        assert hole.hole_multiplier == 2

    def test_multipliers_show_before_hole_complete(self, press_game):
        select(press_game, "2", "2", "double")
        hole = score(press_game).hole("2")
        assert hole.teams["2"].has_multiplier("double")
        assert hole.teams["2"].points == 0

    def test_earned_bbq(self):
        game = make_game(seed_options("low_ball", "birdie", "birdie_bbq"), teams=TEAMS)
        set_scores(game, "1", {"a": 3, "b": 5, "c": 4, "d": 5})
        hole = score(game).hole("1")
        assert hole.teams["1"].points == 6
        assert hole.teams["1"].overall_multiplier == 2
        assert hole.teams["1"].tee_multiplier == 1
        assert not hole.teams["2"].has_multiplier("birdie_bbq")
        assert hole.hole_multiplier == 2

    def test_earned_needs_complete_hole(self):
        game = make_game(seed_options("low_ball", "birdie", "birdie_bbq"), teams=TEAMS)
        set_scores(game, "1", {"a": 3, "b": 5, "c": 4})
        hole = score(game).hole("1")
        assert not hole.teams["1"].has_multiplier("birdie_bbq")

    def test_automatic_sweep(self):
        game = make_game(seed_options("low_ball", "low_total", "sweep"), teams=TEAMS)
        set_scores(game, "1", {"a": 3, "b": 4, "c": 4, "d": 5})
        hole = score(game).hole("1")
        assert hole.teams["1"].has_multiplier("sweep")
        assert hole.teams["1"].points == 8

    def test_sweep_counts_earned_player_junk(self):
        game = make_game(seed_options("low_ball", "low_total", "birdie", "sweep"), teams=TEAMS)
        set_scores(game, "1", {"a": 3, "b": 4, "c": 4, "d": 5})
        hole = score(game).hole("1")
        assert hole.teams["1"].has_multiplier("sweep")
        assert hole.teams["1"].points == 10

    def test_no_sweep_when_opponent_holds_prox(self):
        game = make_game(seed_options("low_ball", "low_total", "prox", "birdie", "sweep"), teams=TEAMS)
        select(game, "1", "2", "prox", player_id="c", first_hole=None)
        set_scores(game, "1", {"a": 3, "b": 4, "c": 4, "d": 5})
        hole = score(game).hole("1")
        assert not hole.teams["1"].has_multiplier("sweep")
        assert hole.teams["1"].overall_multiplier == 1
        assert hole.teams["1"].points == 5
        assert hole.teams["2"].points == 1

    def test_no_sweep_when_points_shared(self):
        game = make_game(seed_options("low_ball", "low_total", "sweep"), teams=TEAMS)
        set_scores(game, "1", {"a": 3, "b": 5, "c": 4, "d": 4})
        hole = score(game).hole("1")
        assert not hole.teams["1"].has_multiplier("sweep")
        assert hole.teams["1"].points == 4

    def test_player_scope_multiplier(self):
        solo = MultiplierOption(name="solo", value=2, scope="player", based_on="user")
        game = make_game(seed_options("birdie") + [solo], teams=TEAMS)
        select(game, "1", "1", "solo", player_id="a")
        set_scores(game, "1", {"a": 3, "b": 5, "c": 4, "d": 5})
        hole = score(game).hole("1")
        assert hole.players["a"].points == 2
        assert not hole.teams["1"].has_multiplier("solo")


class TestAvailability:
    def test_press_only_for_team_behind(self, press_game):
        ctx = score_with_context(press_game)
        assert "double" in control_names(ctx, "2", "2")
        assert "double" not in control_names(ctx, "2", "1")

    def test_double_back_after_double(self, press_game):
        ctx = score_with_context(press_game)
        assert "double_back" not in control_names(ctx, "2", "1")

        select(press_game, "2", "2", "double")
        ctx = score_with_context(press_game)
        assert "double_back" in control_names(ctx, "2", "1")
        selected = [c for c in get_multiplier_controls(ctx, "2", "2") if c.name == "double"]
        assert selected[0].selected

    def test_max_off_tee_cap(self, press_game):
        press_game.spec["max_off_tee"] = GameOption(
            name="max_off_tee", value_type="num", default_value="0", value="2",
        )
        select(press_game, "2", "2", "double")
        ctx = score_with_context(press_game)
        double_back = press_game.spec["double_back"]
        assert not is_multiplier_available(ctx, double_back, "2", "1")
        assert "double" in control_names(ctx, "2", "2")

    def test_failure_counts_as_available(self, caplog):
        flaky = MultiplierOption(name="flaky", availability="{'/': [1, 0]}")
        with caplog.at_level(logging.WARNING, logger="golfscore.multipliers"):
            assert evaluate_availability(flaky, LogicContext(hole="1"))
        assert "availability_failed" in caplog.text

    def test_no_availability_is_available(self):
        assert evaluate_availability(MultiplierOption(name="plain"), LogicContext(hole="1"))

    def test_depends_on_multiplier(self, catalog):
        assert depends_on_multiplier(catalog["double_back"], "double")
        assert not depends_on_multiplier(catalog["double"], "double")
        assert not depends_on_multiplier(catalog["pre_double"], "double")


class TestControls:
    def test_inherited_control_locked(self):
        game = make_game(seed_options("low_ball", "pre_double"), teams=TEAMS)
        select(game, "2", "1", "pre_double")
        ctx = score_with_context(game)
        controls = [c for c in get_multiplier_controls(ctx, "4", "1") if c.name == "pre_double"]
        assert len(controls) == 2
        inherited = [c for c in controls if c.inherited]
        assert inherited[0].first_hole == "2"
        assert not inherited[0].togglable
        assert not [c for c in controls if not c.inherited][0].selected

    def test_override_is_exclusive(self):
        game = make_game(seed_options("low_ball", "double", "custom"), teams=TEAMS)
        select(game, "2", "2", "double")
        select(game, "2", "1", "custom", value="3")
        ctx = score_with_context(game)
        assert get_multiplier_controls(ctx, "2", "2") == []
        owner_controls = get_multiplier_controls(ctx, "2", "1")
        assert [c.name for c in owner_controls] == ["custom"]
        assert owner_controls[0].value == 3
        assert ctx.scoreboard.hole("2").teams["2"].tee_multiplier == 3

    def test_custom_state(self):
        game = make_game(seed_options("custom"), teams=TEAMS)
        assert get_custom_multiplier_state(game, "2") is None
        select(game, "2", "1", "custom", value="1.5")
        state = get_custom_multiplier_state(game, "2")
        assert state.team_id == "1"
        assert state.value == 1.5
        assert state.override

    def test_custom_not_offered_as_toggle(self, press_game):
        press_game.spec.update({o.name: o for o in seed_options("custom")})
        ctx = score_with_context(press_game)
        assert "custom" not in control_names(ctx, "2", "2")

    def test_unknown_team(self, press_game):
        ctx = score_with_context(press_game)
        assert get_multiplier_controls(ctx, "2", "9") == []
