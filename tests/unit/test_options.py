"""Tests for option lookup and precedence."""

from golfscore.game.models import GameOption, JunkOption, MultiplierOption
from golfscore.scoring.options import (
    distinct_option_values,
    effective_options_for_hole,
    get_game_option_value,
    get_junk_options_for_hole,
    get_multiplier_option,
    get_multiplier_options_for_hole,
    get_option_value_for_hole,
    get_spec_field,
    is_option_on_hole,
    option_value,
)
from tests.helpers import make_game


def max_off_tee(value=None):
    return GameOption(name="max_off_tee", value_type="num", default_value="0", value=value)


class TestOptionValue:
    def test_bool(self):
        assert option_value(GameOption(name="x", value_type="bool", default_value="true")) is True
        assert option_value(GameOption(name="x", value_type="bool", default_value="true", value="false")) is False

    def test_num(self):
        assert option_value(max_off_tee("8")) == 8.0

    def test_text_falls_back_to_default(self):
        assert option_value(GameOption(name="x", default_value="full")) == "full"

    def test_junk_and_multiplier(self):
        assert option_value(JunkOption(name="birdie", value=1)) == 1
        assert option_value(MultiplierOption(name="double")) == 2
        assert option_value(MultiplierOption(name="triple", value=3)) == 3

    def test_none(self):
        assert option_value(None) is None


class TestPrecedence:
    def test_hole_override_wins(self):
        game = make_game([max_off_tee()], holes=3)
        game.get_hole("3").options["max_off_tee"] = max_off_tee("4")
        assert get_option_value_for_hole("max_off_tee", "3", game) == 4.0
        assert get_option_value_for_hole("max_off_tee", "2", game) == 0.0

    def test_distinct_values_track_overrides(self):
        game = make_game([max_off_tee()], holes=3)
        game.get_hole("3").options["max_off_tee"] = max_off_tee("4")
        assert distinct_option_values("max_off_tee", game) == [0.0, 4.0]

        del game.get_hole("3").options["max_off_tee"]
        assert len(distinct_option_values("max_off_tee", game)) == 1

    def test_effective_options_merge(self):
        game = make_game([max_off_tee(), JunkOption(name="birdie", value=1)], holes=2)
        game.get_hole("2").options["birdie"] = JunkOption(name="birdie", value=2)
        merged = effective_options_for_hole("2", game)
        assert merged["birdie"].value == 2
        assert "max_off_tee" in merged
        assert effective_options_for_hole("1", game)["birdie"].value == 1

    def test_game_option_default(self):
        game = make_game([], holes=1)
        assert get_game_option_value("use_handicaps", game, default=True) is True


class TestTypedLookups:
    def test_junk_sorted_by_seq_then_name(self):
        game = make_game([
            JunkOption(name="b_junk", seq=2),
            JunkOption(name="a_junk"),
            JunkOption(name="c_junk", seq=1),
        ], holes=1)
        assert [j.name for j in get_junk_options_for_hole("1", game)] == ["c_junk", "b_junk", "a_junk"]

    def test_multipliers_only(self):
        game = make_game([MultiplierOption(name="double"), JunkOption(name="birdie")], holes=1)
        assert [m.name for m in get_multiplier_options_for_hole("1", game)] == ["double"]
        assert get_multiplier_option("birdie", "1", game) is None
        assert get_multiplier_option("double", "1", game).name == "double"

    def test_is_option_on_hole(self):
        game = make_game([
            GameOption(name="match_play", value_type="bool", default_value="false"),
            JunkOption(name="birdie"),
        ], holes=1)
        assert is_option_on_hole("birdie", "1", game)
        assert not is_option_on_hole("match_play", "1", game)
        assert not is_option_on_hole("missing", "1", game)

    def test_spec_field(self):
        game = make_game([JunkOption(name="low_ball", better="lower")], holes=1)
        assert get_spec_field("low_ball", "better", game) == "lower"
        assert get_spec_field("low_ball", "calculation", game, "best_ball") == "best_ball"
        assert get_spec_field("missing", "better", game, "higher") == "higher"
