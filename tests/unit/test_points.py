"""Tests for points arithmetic."""

import pytest

from golfscore.game.models import PointsTableEntry
from golfscore.scoring.points import (
    calculate_points,
    calculate_position_points,
    calculate_total_multiplier,
    distribute_position_points,
    points_from_table,
    position_lookup,
    split_points,
)
from golfscore.scoring.ranking import rank_with_ties
from golfscore.scoring.results import AppliedMultiplier, AwardedJunk


class TestSplitPoints:
    def test_average(self):
        assert split_points([3, 2]) == 2.5

    def test_empty(self):
        assert split_points([]) == 0


class TestPositionPoints:
    def test_two_tied_for_first(self):
        assert calculate_position_points(1, 2, position_lookup([3, 2])) == 2.5

    def test_no_tie(self):
        assert calculate_position_points(2, 1, position_lookup([3, 2])) == 2

    def test_past_the_end_is_zero(self):
        lookup = position_lookup([3, 2])
        assert lookup(3) == 0
        assert lookup(0) == 0

    @pytest.mark.parametrize("scores", [
        [70, 71, 72, 73],
        [70, 70, 72, 73],
        [70, 70, 70, 73],
        [70, 70, 70, 70],
    ])
    def test_distribution_conserves_points(self, scores):
        position_points = [5, 3, 2, 1]
        ranked = rank_with_ties(scores, lambda s: s)
        distributed = distribute_position_points(ranked, position_points)
        assert sum(distributed) == pytest.approx(sum(position_points))

    def test_distribution_with_more_players_than_places(self):
        ranked = rank_with_ties([1, 2, 2, 4], lambda s: s)
        assert distribute_position_points(ranked, [3, 2]) == [3, 1, 1, 0]


class TestPointsTable:
    TABLE = [
        PointsTableEntry(rank=1, tie_count=1, points=5),
        PointsTableEntry(rank=1, tie_count=2, points=2),
        PointsTableEntry(rank=2, tie_count=1, points=0),
    ]

    def test_exact_lookup(self):
        assert points_from_table(1, 1, self.TABLE) == 5
        assert points_from_table(1, 2, self.TABLE) == 2

    def test_missing_entry_scores_zero(self):
        assert points_from_table(1, 3, self.TABLE) == 0


class TestCalculatePoints:
    def test_junk_then_multipliers(self):
        assert calculate_points(3, [{"value": 1}], [{"value": 2}]) == 8

    def test_no_multipliers(self):
        assert calculate_points(3, [{"value": 1}, {"value": 2}], []) == 6

    def test_accepts_result_objects(self):
        junk = [AwardedJunk("birdie", 1)]
        multipliers = [AppliedMultiplier("double", 2), AppliedMultiplier("pre_double", 2)]
        assert calculate_points(1, junk, multipliers) == 8

    def test_total_multiplier(self):
        assert calculate_total_multiplier([]) == 1
        assert calculate_total_multiplier([{"value": 2}, {"value": 3}]) == 6
