"""Pure Elo rating calculations."""

import math
from collections.abc import Iterable, Mapping

from confelo.elo.errors import InvalidRatingError
from confelo.elo.models import Rating

# Games after which confidence saturates at 1.0
CONFIDENCE_GAMES = 20

MIN_POSITION_WEIGHT = 0.6
POSITION_WEIGHT_STEP = 0.2

_MAX_EXPONENT = 300.0


def expected_score(rating_a: float, rating_b: float) -> float:
    """Calculate expected score for item A against item B.

    Uses the standard Elo formula: E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Elo rating of item A
        rating_b: Elo rating of item B

    Returns:
        Expected score (0.0 to 1.0) for item A
    """
    exponent = (rating_b - rating_a) / 400.0
    # 10**300 is still representable; beyond that the result is 0 or 1 anyway
    exponent = max(-_MAX_EXPONENT, min(_MAX_EXPONENT, exponent))
    return 1.0 / (1.0 + math.pow(10.0, exponent))


def is_valid_score(value: float) -> bool:
    """A score is usable unless it is NaN or infinite."""
    return not (math.isnan(value) or math.isinf(value))


def validate_score(value: float, item_id: str | None = None) -> None:
    """Raise InvalidRatingError if value is NaN or infinite."""
    if not is_valid_score(value):
        raise InvalidRatingError(value, item_id)


def clamp(rating: float, min_rating: float, max_rating: float) -> float:
    """Clip a rating to [min_rating, max_rating]."""
    if rating < min_rating:
        return min_rating
    if rating > max_rating:
        return max_rating
    return rating


def confidence(games: int) -> float:
    """Confidence from games played, reaching 1.0 after 20 games."""
    return min(games / CONFIDENCE_GAMES, 1.0)


def rescale(
    rating: float,
    min_rating: float,
    max_rating: float,
    out_min: float,
    out_max: float,
) -> float:
    """Map a rating from the engine range onto [out_min, out_max].

    The rating is clamped to the engine bounds first. NaN or infinite
    input maps to out_min.
    """
    if not is_valid_score(rating):
        return out_min

    clamped = clamp(rating, min_rating, max_rating)
    normalized = (clamped - min_rating) / (max_rating - min_rating)
    return out_min + normalized * (out_max - out_min)


def expected_game_count(item_count: int) -> int:
    """Number of pairwise games in an N-way comparison (n choose 2)."""
    if item_count < 2:
        return 0
    return item_count * (item_count - 1) // 2


def position_weight(higher_pos: int, lower_pos: int) -> float:
    """Weight for a sub-game between two rank positions (0-based).

    Depends only on the better-ranked position: 1st vs anyone is 1.0,
    2nd vs anyone below is 0.8, 3rd vs 4th is 0.6.
    """
    weight = 1.0 - higher_pos * POSITION_WEIGHT_STEP
    return max(MIN_POSITION_WEIGHT, weight)


def rank_ratings(
    ratings: Iterable[Rating],
    scores: Mapping[str, float] | None = None,
) -> list[Rating]:
    """Sort ratings by score, highest first. Ties keep their input order.

    When scores is given, items are ranked by scores[item.id] instead of
    their current score, e.g. to rank a historical snapshot.
    """
    if scores is None:
        return sorted(ratings, key=lambda r: r.score, reverse=True)
    return sorted(ratings, key=lambda r: scores[r.id], reverse=True)
