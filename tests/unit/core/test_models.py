"""Unit tests for rating core data models."""

import math
import time
from datetime import timedelta

import pytest
from pydantic import ValidationError

from confelo.elo.models import (
    MIN_DURATION,
    ComparisonMethod,
    ComparisonResult,
    ConvergenceStatus,
    EngineConfig,
    Matchup,
    OptimizationConfig,
    PairwiseGame,
    ProgressMetrics,
    Rating,
    RatingUpdate,
    elapsed_since,
)

# Mark all tests in this module as unit tests
pytestmark = pytest.mark.unit


class TestComparisonMethod:
    """Tests for ComparisonMethod enum."""

    def test_method_values(self):
        assert ComparisonMethod.PAIRWISE.value == "pairwise"
        assert ComparisonMethod.TRIO.value == "trio"
        assert ComparisonMethod.QUARTET.value == "quartet"

    def test_method_is_string_enum(self):
        assert ComparisonMethod("trio") is ComparisonMethod.TRIO
        assert ComparisonMethod.QUARTET == "quartet"


class TestRating:
    """Tests for Rating model."""

    def test_defaults(self):
        rating = Rating(id="P1", score=1500.0)
        assert rating.games == 0
        assert rating.confidence == 0.0

    def test_non_finite_scores_are_representable(self):
        """Validation of scores happens in the engine, not the model."""
        assert math.isnan(Rating(id="P1", score=math.nan).score)
        assert Rating(id="P1", score=math.inf).score == math.inf

    def test_negative_games_rejected(self):
        with pytest.raises(ValidationError):
            Rating(id="P1", score=1500.0, games=-1)

    @pytest.mark.parametrize("confidence", [-0.1, 1.1])
    def test_confidence_range(self, confidence):
        with pytest.raises(ValidationError):
            Rating(id="P1", score=1500.0, confidence=confidence)


class TestComparisonResult:
    """Tests for ComparisonResult model."""

    def test_defaults(self):
        result = ComparisonResult(method=ComparisonMethod.PAIRWISE)
        assert result.updates == []
        assert result.duration == timedelta(0)
        assert result.timestamp.tzinfo is not None

    def test_method_from_string(self):
        result = ComparisonResult(
            method="quartet",
            updates=[RatingUpdate(item_id="A", old_rating=1500, new_rating=1510, delta=10)],
        )
        assert result.method is ComparisonMethod.QUARTET
        assert result.updates[0].k_factor == 0

    def test_json_round_trip_keeps_method(self):
        result = ComparisonResult(method=ComparisonMethod.TRIO)
        restored = ComparisonResult.model_validate_json(result.model_dump_json())
        assert restored.method is ComparisonMethod.TRIO
        assert restored.timestamp == result.timestamp


class TestEngineConfig:
    """Tests for EngineConfig model."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.initial_rating == 1500.0
        assert config.k_factor == 32
        assert config.min_rating == 0.0
        assert config.max_rating == 3000.0

    def test_frozen(self):
        config = EngineConfig()
        with pytest.raises(ValidationError):
            config.k_factor = 16


class TestOptimizationConfig:
    """Tests for OptimizationConfig model."""

    def test_defaults(self):
        config = OptimizationConfig()
        assert config.bin_size == 50.0
        assert config.stability_threshold == 5.0
        assert config.stability_window == 10
        assert config.min_coverage == 5
        assert config.max_coverage == 10
        assert config.top_n_for_stability == 5
        assert config.cross_bin_rate == 0.15
        assert config.convergence_window == 20

    def test_bin_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            OptimizationConfig(bin_size=0)

    def test_cross_bin_rate_is_a_fraction(self):
        with pytest.raises(ValidationError):
            OptimizationConfig(cross_bin_rate=1.5)


class TestResultModels:
    """Tests for matchup, game and status models."""

    def test_matchup_priority_range(self):
        with pytest.raises(ValidationError):
            Matchup(item_a="A", item_b="B", expected_close=True, priority=6, information=0.5)
        with pytest.raises(ValidationError):
            Matchup(item_a="A", item_b="B", expected_close=True, priority=3, information=-0.1)

    def test_pairwise_game_weight_range(self):
        winner, loser = Rating(id="A", score=1500), Rating(id="B", score=1500)
        with pytest.raises(ValidationError):
            PairwiseGame(winner=winner, loser=loser, weight=0.5, expected_win=0.5)

    def test_status_and_progress_defaults(self):
        status = ConvergenceStatus(should_stop=False, confidence=0.0, remaining_estimate=3)
        assert status.criteria_met == {}
        assert status.metrics.avg_rating_change == 0.0

        progress = ProgressMetrics()
        assert progress.total_comparisons == 0
        assert progress.confidence_scores == {}


class TestElapsedSince:
    """Tests for audit durations."""

    def test_floor_applied_to_instant_work(self):
        # a start reading in the future yields a negative raw elapsed time
        assert elapsed_since(time.perf_counter() + 60.0) == MIN_DURATION

    def test_real_elapsed_time_kept(self):
        assert elapsed_since(time.perf_counter() - 2.0) >= timedelta(seconds=2)
