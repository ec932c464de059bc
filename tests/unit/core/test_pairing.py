"""Unit tests for rating bins and matchup selection."""

import math

import pytest

from confelo.elo.engine import Engine
from confelo.elo.errors import InvalidRatingError
from confelo.elo.history import ComparisonHistory
from confelo.elo.models import (
    ComparisonMethod,
    ComparisonResult,
    EngineConfig,
    OptimizationConfig,
    Rating,
    RatingUpdate,
)
from confelo.elo.pairing import (
    get_optimal_matchup,
    information_gain,
    is_calibration_turn,
    matchup_priority,
)

# Mark all tests in this module as unit tests
pytestmark = pytest.mark.unit


def make_items() -> list[Rating]:
    """Two high, two mid and two low rated items."""
    return [
        Rating(id="high1", score=1700.0, games=8),
        Rating(id="high2", score=1680.0, games=7),
        Rating(id="mid1", score=1450.0, games=5),
        Rating(id="mid2", score=1430.0, games=6),
        Rating(id="low1", score=1200.0, games=4),
        Rating(id="low2", score=1180.0, games=3),
    ]


def pairwise_result(item_a: str, item_b: str, delta: float = 1.0) -> ComparisonResult:
    return ComparisonResult(
        updates=[
            RatingUpdate(item_id=item_a, old_rating=1500, new_rating=1500 + delta, delta=delta),
            RatingUpdate(item_id=item_b, old_rating=1500, new_rating=1500 - delta, delta=-delta),
        ],
        method=ComparisonMethod.PAIRWISE,
    )


def history_of_length(n: int) -> ComparisonHistory:
    """History whose comparisons involve none of the test items."""
    history = ComparisonHistory()
    for _ in range(n):
        history.add_comparison(pairwise_result("z1", "z2"))
    return history


class TestRatingBins:
    """Tests for grouping items by rating."""

    def test_all_items_binned_without_empty_bins(self):
        bins = Engine().get_rating_bins(make_items(), 50.0)

        assert sorted(id_ for ids in bins.values() for id_ in ids) == sorted(
            item.id for item in make_items()
        )
        assert all(ids for ids in bins.values())
        assert bins == {34: ["high1"], 33: ["high2"], 29: ["mid1"], 28: ["mid2"], 24: ["low1"], 23: ["low2"]}

    def test_larger_bins_group_more_items(self):
        bins = Engine().get_rating_bins(make_items(), 100.0)
        assert bins == {17: ["high1"], 16: ["high2"], 14: ["mid1", "mid2"], 12: ["low1"], 11: ["low2"]}

    def test_single_item(self):
        bins = Engine().get_rating_bins([make_items()[0]], 50.0)
        assert bins == {34: ["high1"]}

    def test_bins_offset_by_min_rating(self):
        engine = Engine()
        offset_engine = Engine(EngineConfig(min_rating=1000.0, max_rating=2000.0))
        item = [Rating(id="x", score=1120.0)]
        assert engine.get_rating_bins(item, 50.0) == {22: ["x"]}
        assert offset_engine.get_rating_bins(item, 50.0) == {2: ["x"]}

    def test_build_rating_bins_ranges(self):
        bins = Engine().build_rating_bins(make_items(), 100.0)
        assert [b.index for b in bins] == [11, 12, 14, 16, 17]
        mid_bin = bins[2]
        assert mid_bin.min_rating == 1400.0
        assert mid_bin.max_rating == 1500.0
        assert mid_bin.item_ids == ["mid1", "mid2"]

    def test_invalid_score_rejected(self):
        with pytest.raises(InvalidRatingError):
            Engine().get_rating_bins([Rating(id="x", score=math.nan)], 50.0)


class TestInformationGain:
    """Tests for information gain and priority."""

    def test_close_ratings_more_informative(self):
        assert information_gain(1500, 1520, 0) > information_gain(1500, 1700, 0)

    def test_repeated_pairs_less_informative(self):
        assert information_gain(1500, 1520, 0) > information_gain(1500, 1520, 5)

    def test_middle_of_scale_favoured(self):
        assert information_gain(1400, 1400, 0) == pytest.approx(1.0)
        assert information_gain(2900, 2900, 0) == pytest.approx(0.5)

    @pytest.mark.parametrize(
        "information,priority",
        [(0.95, 5), (0.8, 5), (0.7, 4), (0.5, 3), (0.3, 2), (0.1, 1), (0.0, 1)],
    )
    def test_priority_scale(self, information, priority):
        assert matchup_priority(information) == priority

    def test_calibration_turns_follow_history_length(self):
        assert [is_calibration_turn(n, 0.15) for n in range(12)] == [
            True, True, False, False, False, False, False, False, False, False, True, True,
        ]
        assert not any(is_calibration_turn(n, 0.0) for n in range(10))


class TestGetOptimalMatchup:
    """Tests for selecting the next comparison."""

    def test_basic_selection(self):
        matchup = Engine().get_optimal_matchup(make_items(), ComparisonHistory(), OptimizationConfig())

        assert matchup is not None
        assert (matchup.item_a, matchup.item_b) == ("mid2", "mid1")
        assert matchup.expected_close is True
        # adjacent-bin pair: priority 4 reduced by one
        assert matchup.priority == 3
        assert matchup.information == pytest.approx(information_gain(1430, 1450, 0))

    def test_repeated_pair_penalised(self):
        history = ComparisonHistory()
        history.add_comparison(pairwise_result("mid1", "mid2"))

        matchup = Engine().get_optimal_matchup(make_items(), history)

        assert (matchup.item_a, matchup.item_b) == ("low2", "low1")

    def test_within_bin_keeps_full_priority(self):
        items = [Rating(id="a", score=1500.0), Rating(id="b", score=1510.0)]
        matchup = Engine().get_optimal_matchup(items, None)

        assert (matchup.item_a, matchup.item_b) == ("a", "b")
        assert matchup.priority == 5

    def test_cross_bin_pairs_only_on_calibration_turns(self):
        items = [
            Rating(id="a", score=1350.0),  # bin 27
            Rating(id="c", score=1451.0),  # bin 29
            Rating(id="x", score=2350.0),  # bin 47
            Rating(id="y", score=2449.0),  # bin 48
        ]
        engine = Engine()

        calibration = engine.get_optimal_matchup(items, history_of_length(0))
        assert (calibration.item_a, calibration.item_b) == ("a", "c")
        assert calibration.priority == 1
        assert calibration.expected_close is False

        regular = engine.get_optimal_matchup(items, history_of_length(2))
        assert (regular.item_a, regular.item_b) == ("x", "y")

    def test_distant_items_without_calibration_have_no_matchup(self):
        # bins 20 and 40: neither within-bin nor adjacent pairs exist
        items = [Rating(id="a", score=1000.0), Rating(id="b", score=2000.0)]

        assert get_optimal_matchup(items, history_of_length(5)) is None
        assert Engine().get_optimal_matchup(items, history_of_length(12)) is None

    @pytest.mark.parametrize("history_length", [0, 1, 10, 11])
    def test_distant_items_matched_on_calibration_turns(self, history_length):
        items = [Rating(id="a", score=1000.0), Rating(id="b", score=2000.0)]
        matchup = get_optimal_matchup(items, history_of_length(history_length))

        assert matchup is not None
        assert (matchup.item_a, matchup.item_b) == ("a", "b")
        assert matchup.priority == 1
        assert matchup.expected_close is False

    def test_ties_keep_first_candidate(self):
        items = [
            Rating(id="a", score=1400.0),
            Rating(id="b", score=1400.0),
            Rating(id="c", score=1400.0),
        ]
        matchup = Engine().get_optimal_matchup(items, None)
        assert (matchup.item_a, matchup.item_b) == ("a", "b")

    @pytest.mark.parametrize("count", [0, 1])
    def test_needs_two_items(self, count):
        assert Engine().get_optimal_matchup(make_items()[:count], ComparisonHistory()) is None

    def test_expected_close_matches_gap(self):
        history = ComparisonHistory()
        history.add_comparison(pairwise_result("high1", "low1"))
        items = make_items()
        scores = {item.id: item.score for item in items}

        matchup = Engine().get_optimal_matchup(items, history)

        gap = abs(scores[matchup.item_a] - scores[matchup.item_b])
        assert matchup.expected_close == (gap <= 50.0)
        assert 1 <= matchup.priority <= 5
