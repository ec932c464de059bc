"""Matchup selection for the next comparison.

Items are grouped into rating bins. Candidate pairs come from three tiers:
pairs inside a bin, pairs across adjacent bins, and on calibration turns
pairs across distant bins. Each candidate is scored by expected
information gain and the best one is returned.
"""

import math
from collections.abc import Iterator
from itertools import combinations

from confelo.elo.history import ComparisonHistory
from confelo.elo.models import Matchup, OptimizationConfig, Rating, RatingBin
from confelo.elo.rating import validate_score
from confelo.logging import get_logger

log = get_logger(__name__)

CLOSE_RATING_GAP = 50.0

# Decay scales for information gain
_CLOSENESS_SCALE = 100.0
_NOVELTY_SCALE = 3.0
_MIDDLE_RATING = 1400.0
_MIDDLE_SPREAD = 1000.0
_MIN_MIDDLE_FACTOR = 0.5


def information_gain(rating_a: float, rating_b: float, games_played: int) -> float:
    """Estimate how informative a comparison between two items would be.

    Higher when the ratings are close, when the pair has rarely been
    compared before, and when the pair sits in the middle of the scale.

    Args:
        rating_a: Score of the first item
        rating_b: Score of the second item
        games_played: Past comparisons between these two items

    Returns:
        Non-negative information score (at most 1.0)
    """
    closeness = math.exp(-abs(rating_a - rating_b) / _CLOSENESS_SCALE)
    novelty = math.exp(-games_played / _NOVELTY_SCALE)

    avg_rating = (rating_a + rating_b) / 2.0
    middle = max(_MIN_MIDDLE_FACTOR, 1.0 - abs(avg_rating - _MIDDLE_RATING) / _MIDDLE_SPREAD)

    return closeness * novelty * middle


def matchup_priority(information: float) -> int:
    """Map information gain onto a 1-5 priority scale."""
    if information >= 0.8:
        return 5
    if information >= 0.6:
        return 4
    if information >= 0.4:
        return 3
    if information >= 0.2:
        return 2
    return 1


def bin_index(score: float, bin_size: float, min_rating: float) -> int:
    return math.floor((score - min_rating) / bin_size)


def get_rating_bins(
    items: list[Rating],
    bin_size: float,
    min_rating: float = 0.0,
) -> dict[int, list[str]]:
    """Group item IDs by rating bin.

    Only non-empty bins are returned. IDs keep their input order inside
    a bin.

    Raises:
        InvalidRatingError: an item score is NaN or infinite
    """
    bins: dict[int, list[str]] = {}
    for item in items:
        validate_score(item.score, item.id)
        bins.setdefault(bin_index(item.score, bin_size, min_rating), []).append(item.id)
    return bins


def build_rating_bins(
    items: list[Rating],
    bin_size: float,
    min_rating: float = 0.0,
) -> list[RatingBin]:
    """Rating bins as models with their rating ranges, lowest bin first."""
    return [
        RatingBin(
            index=index,
            min_rating=min_rating + index * bin_size,
            max_rating=min_rating + (index + 1) * bin_size,
            item_ids=item_ids,
        )
        for index, item_ids in sorted(get_rating_bins(items, bin_size, min_rating).items())
    ]


def is_calibration_turn(history_length: int, cross_bin_rate: float) -> bool:
    """Deterministic sampling of cross-bin turns from the history length."""
    return history_length % 10 < cross_bin_rate * 10


def _within_bin_pairs(bins: dict[int, list[str]]) -> Iterator[tuple[str, str]]:
    for index in sorted(bins):
        yield from combinations(bins[index], 2)


def _adjacent_bin_pairs(bins: dict[int, list[str]]) -> Iterator[tuple[str, str]]:
    for index in sorted(bins):
        upper = bins.get(index + 1)
        if not upper:
            continue
        for item_a in bins[index]:
            for item_b in upper:
                yield item_a, item_b


def _cross_bin_pairs(bins: dict[int, list[str]]) -> Iterator[tuple[str, str]]:
    indices = sorted(bins)
    for pos, low in enumerate(indices):
        for high in indices[pos + 1:]:
            if high - low < 2:
                continue
            for item_a in bins[low]:
                for item_b in bins[high]:
                    yield item_a, item_b


def get_optimal_matchup(
    items: list[Rating],
    history: ComparisonHistory | None,
    config: OptimizationConfig | None = None,
    min_rating: float = 0.0,
) -> Matchup | None:
    """Pick the most informative next comparison.

    Args:
        items: Current ratings
        history: Past comparisons (None is treated as empty)
        config: Optimization knobs (defaults if None)
        min_rating: Lower engine bound, the origin of bin 0

    Returns:
        Best matchup, or None when fewer than 2 items are given or no
        tier yields a candidate pair
    """
    if len(items) < 2:
        return None

    config = config or OptimizationConfig()
    scores = {item.id: item.score for item in items}
    bins = get_rating_bins(items, config.bin_size, min_rating)
    history_length = len(history) if history is not None else 0

    # (pairs, priority reduction) per tier
    tiers = [(_within_bin_pairs(bins), 0), (_adjacent_bin_pairs(bins), 1)]
    if is_calibration_turn(history_length, config.cross_bin_rate):
        tiers.append((_cross_bin_pairs(bins), 1))

    best = _best_candidate(tiers, scores, history)
    if best is None:
        # Items spread over non-adjacent bins outside a calibration turn
        log.debug("no_matchup_available", items=len(items), history_length=history_length)
    else:
        log.debug(
            "matchup_selected",
            item_a=best.item_a,
            item_b=best.item_b,
            information=round(best.information, 4),
            priority=best.priority,
        )
    return best


def _best_candidate(
    tiers: list[tuple[Iterator[tuple[str, str]], int]],
    scores: dict[str, float],
    history: ComparisonHistory | None,
) -> Matchup | None:
    best: Matchup | None = None
    best_information = -1.0

    for pairs, reduction in tiers:
        for item_a, item_b in pairs:
            past = history.get_pair_comparison_count(item_a, item_b) if history is not None else 0
            rating_a = scores[item_a]
            rating_b = scores[item_b]
            information = information_gain(rating_a, rating_b, past)

            if information > best_information:
                best_information = information
                best = Matchup(
                    item_a=item_a,
                    item_b=item_b,
                    expected_close=abs(rating_a - rating_b) <= CLOSE_RATING_GAP,
                    priority=max(1, matchup_priority(information) - reduction),
                    information=information,
                )

    return best
