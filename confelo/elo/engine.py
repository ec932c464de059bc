"""Elo engine: configuration, pairwise updates and the public rating API."""

import time
from datetime import datetime, timezone

from confelo.elo import pairing, rating, stopping
from confelo.elo.comparison import MultiWayComparison
from confelo.elo.errors import (
    InvalidBoundsError,
    InvalidInitialRatingError,
    InvalidKFactorError,
)
from confelo.elo.history import ComparisonHistory
from confelo.elo.models import (
    ComparisonMethod,
    ComparisonResult,
    ConvergenceStatus,
    EngineConfig,
    Matchup,
    OptimizationConfig,
    ProgressMetrics,
    Rating,
    RatingBin,
    RatingUpdate,
    elapsed_since,
)
from confelo.logging import get_logger

log = get_logger(__name__)


class Engine:
    """Elo rating engine for pairwise and ranked multi-way comparisons.

    The engine holds only its immutable configuration. Every operation
    reads its inputs and returns new values; ratings and history belong to
    the caller. Applying the same comparison twice moves ratings twice.

    Example:
        >>> engine = Engine(EngineConfig(k_factor=32))
        >>> a, b = engine.new_rating("a"), engine.new_rating("b")
        >>> new_a, new_b = engine.calculate_pairwise(a, b)
        >>> new_a.score
        1516.0
    """

    def __init__(self, config: EngineConfig | None = None):
        """Initialize the engine.

        Args:
            config: Engine parameters (defaults if None)

        Raises:
            InvalidKFactorError: k_factor is not positive
            InvalidBoundsError: min_rating >= max_rating, or a bound is NaN
            InvalidInitialRatingError: initial_rating is NaN or infinite
        """
        config = config or EngineConfig()

        if config.k_factor <= 0:
            raise InvalidKFactorError(config.k_factor)
        # Written so NaN bounds fail too
        if not config.min_rating < config.max_rating:
            raise InvalidBoundsError(config.min_rating, config.max_rating)
        if not rating.is_valid_score(config.initial_rating):
            raise InvalidInitialRatingError(config.initial_rating)

        self.config = config
        log.debug(
            "engine_created",
            k_factor=config.k_factor,
            min_rating=config.min_rating,
            max_rating=config.max_rating,
        )

    @classmethod
    def from_env(cls) -> "Engine":
        """Build an engine from CONFELO_ELO_* environment variables."""
        from confelo.config import load_engine_config

        return cls(load_engine_config())

    @property
    def initial_rating(self) -> float:
        return self.config.initial_rating

    @property
    def k_factor(self) -> int:
        return self.config.k_factor

    @property
    def min_rating(self) -> float:
        return self.config.min_rating

    @property
    def max_rating(self) -> float:
        return self.config.max_rating

    # Rating math bound to this engine's configuration

    def expected_score(self, rating_a: float, rating_b: float) -> float:
        return rating.expected_score(rating_a, rating_b)

    def clamp(self, value: float) -> float:
        return rating.clamp(value, self.min_rating, self.max_rating)

    def confidence(self, games: int) -> float:
        return rating.confidence(games)

    def scale_rating(self, value: float, out_min: float, out_max: float) -> float:
        """Convert an internal rating to an output scale such as 0-10."""
        return rating.rescale(value, self.min_rating, self.max_rating, out_min, out_max)

    def new_rating(self, item_id: str) -> Rating:
        """Starting rating for an item that has not been compared yet."""
        return Rating(id=item_id, score=self.initial_rating, games=0, confidence=0.0)

    # Pairwise flow

    def calculate_pairwise(self, winner: Rating, loser: Rating) -> tuple[Rating, Rating]:
        """Apply one Elo update for a decided two-item comparison.

        Args:
            winner: Rating of the preferred item
            loser: Rating of the other item

        Returns:
            (new_winner, new_loser), scores clamped to the engine bounds

        Raises:
            InvalidRatingError: either score is NaN or infinite
        """
        rating.validate_score(winner.score, winner.id)
        rating.validate_score(loser.score, loser.id)

        expected_winner = self.expected_score(winner.score, loser.score)
        expected_loser = 1.0 - expected_winner

        # R' = R + K * (S - E)
        winner_delta = self.k_factor * (1.0 - expected_winner)
        loser_delta = self.k_factor * (0.0 - expected_loser)

        new_winner = Rating(
            id=winner.id,
            score=self.clamp(winner.score + winner_delta),
            games=winner.games + 1,
            confidence=self.confidence(winner.games + 1),
        )
        new_loser = Rating(
            id=loser.id,
            score=self.clamp(loser.score + loser_delta),
            games=loser.games + 1,
            confidence=self.confidence(loser.games + 1),
        )
        return new_winner, new_loser

    def calculate_pairwise_with_result(
        self,
        winner: Rating,
        loser: Rating,
    ) -> tuple[Rating, Rating, ComparisonResult]:
        """Pairwise update plus an audit record of both rating changes."""
        timestamp = datetime.now(timezone.utc)
        started = time.perf_counter()

        new_winner, new_loser = self.calculate_pairwise(winner, loser)

        updates = [
            RatingUpdate(
                item_id=old.id,
                old_rating=old.score,
                new_rating=new.score,
                delta=new.score - old.score,
                k_factor=self.k_factor,
            )
            for old, new in ((winner, new_winner), (loser, new_loser))
        ]
        result = ComparisonResult(
            updates=updates,
            method=ComparisonMethod.PAIRWISE,
            timestamp=timestamp,
            duration=elapsed_since(started),
        )
        return new_winner, new_loser, result

    # Multi-way flow

    def new_multiway_comparison(self, ranked: list[Rating]) -> MultiWayComparison:
        """Validate a best-to-worst ranking of 2-4 items and prepare it for execution."""
        return MultiWayComparison(self, ranked)

    def calculate_multiway(self, ranked: list[Rating]) -> tuple[list[Rating], ComparisonResult]:
        """Construct and execute a multi-way comparison in one call."""
        return self.new_multiway_comparison(ranked).execute()

    # Optimization flow

    def get_rating_bins(self, items: list[Rating], bin_size: float) -> dict[int, list[str]]:
        return pairing.get_rating_bins(items, bin_size, self.min_rating)

    def build_rating_bins(self, items: list[Rating], bin_size: float) -> list[RatingBin]:
        return pairing.build_rating_bins(items, bin_size, self.min_rating)

    def get_optimal_matchup(
        self,
        items: list[Rating],
        history: ComparisonHistory | None,
        config: OptimizationConfig | None = None,
    ) -> Matchup | None:
        """Most informative next pair, or None with fewer than 2 items."""
        return pairing.get_optimal_matchup(items, history, config, self.min_rating)

    def check_convergence(
        self,
        items: list[Rating],
        history: ComparisonHistory | None,
        config: OptimizationConfig | None = None,
    ) -> ConvergenceStatus:
        return stopping.check_convergence(items, history, config)

    def get_progress_metrics(
        self,
        items: list[Rating],
        history: ComparisonHistory | None,
        config: OptimizationConfig | None = None,
    ) -> ProgressMetrics:
        return stopping.get_progress_metrics(items, history, config)
