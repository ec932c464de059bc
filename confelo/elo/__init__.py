"""Elo rating core: pairwise and multi-way updates, matchup selection, convergence."""

from confelo.elo.comparison import MultiWayComparison
from confelo.elo.engine import Engine
from confelo.elo.errors import (
    ConfigurationError,
    DuplicateItemError,
    EloError,
    InvalidBoundsError,
    InvalidInitialRatingError,
    InvalidKFactorError,
    InvalidRatingError,
    RatingConservationError,
    TooFewItemsError,
    TooManyItemsError,
)
from confelo.elo.history import ComparisonHistory, pair_key
from confelo.elo.models import (
    ComparisonMethod,
    ComparisonResult,
    ConvergenceMetrics,
    ConvergenceStatus,
    EngineConfig,
    Matchup,
    OptimizationConfig,
    PairwiseGame,
    ProgressMetrics,
    Rating,
    RatingBin,
    RatingUpdate,
)
from confelo.elo.rating import expected_game_count, position_weight, rank_ratings

__all__ = [
    "Engine",
    "MultiWayComparison",
    "ComparisonHistory",
    "pair_key",
    "expected_game_count",
    "position_weight",
    "rank_ratings",
    # Models
    "ComparisonMethod",
    "ComparisonResult",
    "ConvergenceMetrics",
    "ConvergenceStatus",
    "EngineConfig",
    "Matchup",
    "OptimizationConfig",
    "PairwiseGame",
    "ProgressMetrics",
    "Rating",
    "RatingBin",
    "RatingUpdate",
    # Errors
    "EloError",
    "ConfigurationError",
    "InvalidKFactorError",
    "InvalidBoundsError",
    "InvalidInitialRatingError",
    "InvalidRatingError",
    "TooFewItemsError",
    "TooManyItemsError",
    "DuplicateItemError",
    "RatingConservationError",
]
