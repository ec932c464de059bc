"""Data models for the Elo rating core."""

import time
from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ComparisonMethod(str, Enum):
    """Kind of comparison that produced a result."""
    PAIRWISE = "pairwise"  # two items, winner/loser
    TRIO = "trio"          # three items ranked 1st..3rd
    QUARTET = "quartet"    # four items ranked 1st..4th


class Rating(BaseModel):
    """One item's current skill estimate.

    Ratings are values: engine operations return new instances and never
    modify the ones passed in.
    """
    id: str
    score: float
    games: int = Field(0, ge=0)  # comparisons participated in
    confidence: float = Field(0.0, ge=0.0, le=1.0)


class RatingUpdate(BaseModel):
    """Audit record of one item's rating change."""
    item_id: str
    old_rating: float
    new_rating: float
    delta: float
    k_factor: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Audit records never report a zero duration
MIN_DURATION = timedelta(microseconds=1)


def elapsed_since(started: float) -> timedelta:
    """Wall-clock time since a time.perf_counter() reading, at least MIN_DURATION."""
    return max(timedelta(seconds=time.perf_counter() - started), MIN_DURATION)


class ComparisonResult(BaseModel):
    """Outcome of one comparison, with one update per affected item."""
    updates: list[RatingUpdate] = Field(default_factory=list)
    method: ComparisonMethod
    timestamp: datetime = Field(default_factory=_utcnow)
    duration: timedelta = timedelta(0)


class EngineConfig(BaseModel):
    """Configuration for the Elo engine. Validated when the engine is built."""
    model_config = ConfigDict(frozen=True)

    initial_rating: float = 1500.0
    k_factor: int = 32
    min_rating: float = 0.0
    max_rating: float = 3000.0


class PairwiseGame(BaseModel):
    """One decomposed pairwise contest inside a multi-way comparison."""
    winner: Rating
    loser: Rating
    weight: float = Field(ge=0.6, le=1.0)
    expected_win: float
    rating_change: float = 0.0  # winner's change; the loser's is the negation


class Matchup(BaseModel):
    """Candidate next comparison between two items."""
    item_a: str
    item_b: str
    expected_close: bool  # ratings within 50 points
    priority: int = Field(ge=1, le=5)  # higher = more informative
    information: float = Field(ge=0.0)


class RatingBin(BaseModel):
    """Group of items whose ratings fall in the same range."""
    index: int
    min_rating: float
    max_rating: float
    item_ids: list[str] = Field(default_factory=list)


class OptimizationConfig(BaseModel):
    """Knobs for matchup selection and convergence detection."""
    bin_size: float = Field(50.0, gt=0)
    stability_threshold: float = 5.0  # max avg rating change considered stable
    stability_window: int = 10        # history points checked for ranking stability
    min_coverage: int = 5             # minimum comparisons per item
    max_coverage: int = 10
    top_n_for_stability: int = 5
    cross_bin_rate: float = Field(0.15, ge=0.0, le=1.0)
    convergence_window: int = 20      # recent comparisons used for metrics


class ConvergenceMetrics(BaseModel):
    """Signals behind a convergence decision."""
    avg_rating_change: float = 0.0
    rating_variance: float = 0.0
    ranking_stability: float = 0.0    # share of top-N positions unchanged (0-1)
    coverage_percentage: float = 0.0  # share of items at minimum coverage (0-1)
    recent_comparisons: int = 0


class ConvergenceStatus(BaseModel):
    """Stop/continue recommendation."""
    should_stop: bool
    confidence: float = Field(ge=0.0, le=1.0)
    remaining_estimate: int = Field(ge=0)
    criteria_met: dict[str, bool] = Field(default_factory=dict)
    metrics: ConvergenceMetrics = Field(default_factory=ConvergenceMetrics)


class ProgressMetrics(BaseModel):
    """Read-only progress indicators for display."""
    total_comparisons: int = 0
    coverage_complete: float = 0.0
    convergence_rate: float = 1.0
    estimated_remaining: int = 0
    top_n_stable: int = 0
    confidence_scores: dict[str, float] = Field(default_factory=dict)
