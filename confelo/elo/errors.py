"""Error taxonomy for the rating core.

Every error is a ValueError so callers that only care about "bad input"
can catch the builtin. Contextual detail (which item, which value) is kept
as attributes on the exception.
"""


class EloError(ValueError):
    """Base class for all rating core errors."""


class ConfigurationError(EloError):
    """Engine configuration is unusable. Raised at construction time."""


class InvalidKFactorError(ConfigurationError):
    def __init__(self, k_factor: int):
        self.k_factor = k_factor
        super().__init__(f"k-factor must be positive, got {k_factor}")


class InvalidBoundsError(ConfigurationError):
    def __init__(self, min_rating: float, max_rating: float):
        self.min_rating = min_rating
        self.max_rating = max_rating
        super().__init__(
            f"min rating must be less than max rating (min={min_rating}, max={max_rating})"
        )


class InvalidInitialRatingError(ConfigurationError):
    def __init__(self, initial_rating: float):
        self.initial_rating = initial_rating
        super().__init__(f"initial rating must be finite, got {initial_rating}")


class InvalidRatingError(EloError):
    """A rating score is NaN or infinite."""

    def __init__(self, value: float, item_id: str | None = None):
        self.value = value
        self.item_id = item_id
        if item_id is None:
            message = f"rating value is invalid: {value}"
        else:
            message = f"invalid rating for item {item_id}: {value}"
        super().__init__(message)


class TooFewItemsError(EloError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(f"multi-way comparison requires at least 2 items, got {count}")


class TooManyItemsError(EloError):
    def __init__(self, count: int):
        self.count = count
        super().__init__(f"multi-way comparison supports at most 4 items, got {count}")


class DuplicateItemError(EloError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"item {item_id} appears multiple times in one comparison")


class RatingConservationError(EloError):
    """Sum of rating changes in a comparison is not zero.

    Signals a logic defect in the update rule, never bad user input.
    """

    def __init__(self, total_change: float, tolerance: float):
        self.total_change = total_change
        self.tolerance = tolerance
        super().__init__(
            f"rating conservation violated: total change = {total_change:.12g} "
            f"(tolerance {tolerance:g})"
        )
