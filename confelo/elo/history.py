"""Append-only log of comparison results with derived indexes."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone
from itertools import combinations

from confelo.elo.models import ComparisonResult, Rating

PairKey = tuple[str, str]


def pair_key(item_a: str, item_b: str) -> PairKey:
    """Canonical key for an unordered pair of items."""
    if item_a <= item_b:
        return (item_a, item_b)
    return (item_b, item_a)


class ComparisonHistory:
    """Ordered comparison results plus per-pair counts and rating trajectories.

    The indexes are only updated by add_comparison, so they always match
    the recorded results. The history is owned by the caller; the rating
    core reads it and never keeps a reference between calls.
    """

    def __init__(self, recent_window: int = 20):
        """Initialize an empty history.

        Args:
            recent_window: Default size for get_recent_comparisons
        """
        self.recent_window = recent_window
        self.start_time = datetime.now(timezone.utc)
        self._comparisons: list[ComparisonResult] = []
        self._rating_history: dict[str, list[float]] = defaultdict(list)
        self._pair_history: dict[PairKey, int] = defaultdict(int)

    def __len__(self) -> int:
        return len(self._comparisons)

    @property
    def comparisons(self) -> tuple[ComparisonResult, ...]:
        return tuple(self._comparisons)

    def add_comparison(self, result: ComparisonResult) -> None:
        """Record a comparison result and update the indexes."""
        self._comparisons.append(result)

        for update in result.updates:
            self._rating_history[update.item_id].append(update.new_rating)

        item_ids = [update.item_id for update in result.updates]
        for item_a, item_b in combinations(item_ids, 2):
            if item_a != item_b:
                self._pair_history[pair_key(item_a, item_b)] += 1

    def get_pair_comparison_count(self, item_a: str, item_b: str) -> int:
        """How many times two items appeared in the same comparison."""
        return self._pair_history.get(pair_key(item_a, item_b), 0)

    def get_recent_comparisons(self, n: int) -> list[ComparisonResult]:
        """Last n comparisons in chronological order.

        A non-positive n falls back to recent_window.
        """
        if n <= 0:
            n = self.recent_window
        return self._comparisons[-n:]

    def get_rating_progression(self, item_id: str) -> list[float]:
        """Every rating the item has held after a recorded comparison."""
        return list(self._rating_history.get(item_id, ()))

    def tracked_items(self) -> list[str]:
        """IDs that appear in at least one recorded comparison."""
        return list(self._rating_history)

    def ratings_at(self, index: int, items: Iterable[Rating]) -> dict[str, float]:
        """Reconstruct item scores as they stood right after comparison `index`.

        Scores are folded forward from the recorded updates. An item not
        yet updated by then takes the old rating of its first later update,
        or its current score if the history never touches it.
        """
        current = {item.id: item.score for item in items}
        snapshot: dict[str, float] = {}

        for result in self._comparisons[: index + 1]:
            for update in result.updates:
                if update.item_id in current:
                    snapshot[update.item_id] = update.new_rating

        for result in self._comparisons[index + 1:]:
            for update in result.updates:
                if update.item_id in current and update.item_id not in snapshot:
                    snapshot[update.item_id] = update.old_rating

        for item_id, score in current.items():
            snapshot.setdefault(item_id, score)

        return snapshot
