"""Multi-way (trio / quartet) ranking comparisons.

A ranked list of 2-4 items is decomposed into every pairwise game implied
by the ranking. The better-ranked item wins each game, and each game's
rating change is scaled by a position weight. Within a game both sides
are scaled by the same weight, so the total change across the whole
comparison stays zero.
"""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from confelo.elo.errors import (
    DuplicateItemError,
    RatingConservationError,
    TooFewItemsError,
    TooManyItemsError,
)
from confelo.elo.models import (
    ComparisonMethod,
    ComparisonResult,
    PairwiseGame,
    Rating,
    RatingUpdate,
    elapsed_since,
)
from confelo.elo.rating import position_weight, validate_score
from confelo.logging import get_logger

if TYPE_CHECKING:
    from confelo.elo.engine import Engine

log = get_logger(__name__)

MIN_ITEMS = 2
MAX_ITEMS = 4
CONSERVATION_TOLERANCE = 1e-10

_METHODS = {
    2: ComparisonMethod.PAIRWISE,
    3: ComparisonMethod.TRIO,
    4: ComparisonMethod.QUARTET,
}


class MultiWayComparison:
    """A single ranked comparison of 2-4 items.

    Build it through Engine.new_multiway_comparison, which validates the
    ranking, then call execute().
    """

    def __init__(self, engine: Engine, ranked: list[Rating]):
        """Initialize the comparison.

        Args:
            engine: Engine providing K-factor and rating bounds
            ranked: Items ordered from best (1st place) to worst

        Raises:
            TooFewItemsError: fewer than 2 items
            TooManyItemsError: more than 4 items
            DuplicateItemError: an ID appears twice
            InvalidRatingError: a score is NaN or infinite
        """
        if len(ranked) < MIN_ITEMS:
            raise TooFewItemsError(len(ranked))
        if len(ranked) > MAX_ITEMS:
            raise TooManyItemsError(len(ranked))

        seen: set[str] = set()
        for rating in ranked:
            if rating.id in seen:
                raise DuplicateItemError(rating.id)
            seen.add(rating.id)
            validate_score(rating.score, rating.id)

        self.engine = engine
        self.items = list(ranked)
        self.method = _METHODS[len(ranked)]
        self.games: list[PairwiseGame] = []
        self.total_changes: dict[str, float] = {}

    def _generate_games(self) -> None:
        self.games = []
        n = len(self.items)
        for i in range(n):
            for j in range(i + 1, n):
                winner = self.items[i]
                loser = self.items[j]
                self.games.append(
                    PairwiseGame(
                        winner=winner,
                        loser=loser,
                        weight=position_weight(i, j),
                        expected_win=self.engine.expected_score(winner.score, loser.score),
                    )
                )

    def _calculate_changes(self) -> None:
        self.total_changes = {item.id: 0.0 for item in self.items}
        k = float(self.engine.k_factor)

        for game in self.games:
            expected_loser = 1.0 - game.expected_win

            # Unweighted 1-vs-0 deltas are exact negatives; scaling both by
            # the same weight keeps the game zero-sum.
            winner_change = k * (1.0 - game.expected_win) * game.weight
            loser_change = k * (0.0 - expected_loser) * game.weight

            game.rating_change = winner_change
            self.total_changes[game.winner.id] += winner_change
            self.total_changes[game.loser.id] += loser_change

    def execute(self) -> tuple[list[Rating], ComparisonResult]:
        """Run the comparison.

        Returns:
            Updated ratings in the original ranking order, and the audit
            result with one RatingUpdate per item
        """
        timestamp = datetime.now(timezone.utc)
        started = time.perf_counter()

        self._generate_games()
        self._calculate_changes()

        games_played = {item.id: 0 for item in self.items}
        for game in self.games:
            games_played[game.winner.id] += 1
            games_played[game.loser.id] += 1

        updated: list[Rating] = []
        updates: list[RatingUpdate] = []
        for item in self.items:
            change = self.total_changes[item.id]
            new_score = self.engine.clamp(item.score + change)
            games = item.games + games_played[item.id]

            updated.append(
                Rating(
                    id=item.id,
                    score=new_score,
                    games=games,
                    confidence=self.engine.confidence(games),
                )
            )
            updates.append(
                RatingUpdate(
                    item_id=item.id,
                    old_rating=item.score,
                    new_rating=new_score,
                    delta=change,
                    k_factor=self.engine.k_factor,
                )
            )

        result = ComparisonResult(
            updates=updates,
            method=self.method,
            timestamp=timestamp,
            duration=elapsed_since(started),
        )

        log.debug(
            "multiway_comparison_executed",
            method=self.method.value,
            items=[item.id for item in self.items],
            games=len(self.games),
        )
        return updated, result

    def validate_rating_conservation(self) -> None:
        """Check that the summed rating change is zero.

        Raises:
            RatingConservationError: |sum of changes| exceeds 1e-10
        """
        total = math.fsum(self.total_changes.values())
        if abs(total) > CONSERVATION_TOLERANCE:
            raise RatingConservationError(total, CONSERVATION_TOLERANCE)
