"""Convergence detection and progress metrics.

Four independent criteria are evaluated over recent history:

- rating stability: average absolute rating change is small
- ranking stability: the top-N ranking has held across recent history points
- variance threshold: recent rating changes are consistently small
- minimum coverage: every item has been compared often enough

Stopping is recommended once at least three of them hold.
"""

import math

import numpy as np

from confelo.elo.history import ComparisonHistory
from confelo.elo.models import (
    ConvergenceMetrics,
    ConvergenceStatus,
    OptimizationConfig,
    ProgressMetrics,
    Rating,
)
from confelo.elo.rating import rank_ratings
from confelo.logging import get_logger

log = get_logger(__name__)

RATING_STABILITY = "rating_stability"
RANKING_STABILITY = "ranking_stability"
VARIANCE_THRESHOLD = "variance_threshold"
MINIMUM_COVERAGE = "minimum_coverage"
CRITERIA = (RATING_STABILITY, RANKING_STABILITY, VARIANCE_THRESHOLD, MINIMUM_COVERAGE)

CRITERIA_REQUIRED_TO_STOP = 3
RANKING_OVERLAP_THRESHOLD = 0.8
REMAINING_SAFETY_MARGIN = 1.25


def top_n_ids(items: list[Rating], scores: dict[str, float], n: int) -> list[str]:
    """IDs of the n highest-scoring items. Ties keep the input order."""
    return [item.id for item in rank_ratings(items, scores)[:n]]


def _historical_rankings(
    items: list[Rating],
    history: ComparisonHistory,
    config: OptimizationConfig,
) -> list[list[str]]:
    """Top-N rankings at each of the last stability_window history points, newest first."""
    window = max(config.stability_window, 1)
    last = len(history) - 1
    rankings = []
    for index in range(last, max(last - window, -1), -1):
        snapshot = history.ratings_at(index, items)
        rankings.append(top_n_ids(items, snapshot, config.top_n_for_stability))
    return rankings


def _position_overlap(current: list[str], previous: list[str]) -> float:
    if not current:
        return 1.0
    matches = sum(1 for a, b in zip(current, previous) if a == b)
    return matches / len(current)


def ranking_stability(
    items: list[Rating],
    history: ComparisonHistory,
    config: OptimizationConfig,
) -> tuple[float, bool]:
    """Average top-N position overlap with recent history, and whether it counts as stable.

    Stability is only claimed once the history holds at least
    stability_window comparisons and every checked point overlaps the
    current ranking in at least 80% of positions.
    """
    if not items or len(history) == 0:
        return 0.0, False

    scores = {item.id: item.score for item in items}
    current = top_n_ids(items, scores, config.top_n_for_stability)
    overlaps = [
        _position_overlap(current, previous)
        for previous in _historical_rankings(items, history, config)
    ]

    stability = float(np.mean(overlaps))
    stable = (
        len(history) >= config.stability_window
        and all(overlap >= RANKING_OVERLAP_THRESHOLD for overlap in overlaps)
    )
    return stability, stable


def consecutive_stable_positions(
    items: list[Rating],
    history: ComparisonHistory | None,
    config: OptimizationConfig,
) -> int:
    """Count top positions, from first place down, unchanged across recent history points."""
    if not items or history is None or len(history) == 0:
        return 0

    scores = {item.id: item.score for item in items}
    current = top_n_ids(items, scores, config.top_n_for_stability)
    previous_rankings = _historical_rankings(items, history, config)

    stable = 0
    for position, item_id in enumerate(current):
        if all(
            position < len(previous) and previous[position] == item_id
            for previous in previous_rankings
        ):
            stable += 1
        else:
            break
    return stable


def _coverage_counts(items: list[Rating], history: ComparisonHistory | None) -> list[int]:
    if history is None:
        return [0 for _ in items]
    return [len(history.get_rating_progression(item.id)) for item in items]


def estimate_remaining(
    items: list[Rating],
    history: ComparisonHistory | None,
    config: OptimizationConfig,
) -> int:
    """Comparisons still needed, from the coverage shortfall plus a 25% margin."""
    shortfall = sum(
        max(0, config.min_coverage - count) for count in _coverage_counts(items, history)
    )
    return max(1, math.ceil(shortfall * REMAINING_SAFETY_MARGIN))


def check_convergence(
    items: list[Rating],
    history: ComparisonHistory | None,
    config: OptimizationConfig | None = None,
) -> ConvergenceStatus:
    """Decide whether enough comparisons have been made.

    Args:
        items: Current ratings
        history: Past comparisons (None is treated as empty)
        config: Thresholds and windows (defaults if None)

    Returns:
        ConvergenceStatus with the recommendation, confidence (met / 4),
        the per-criterion results and the underlying metrics
    """
    config = config or OptimizationConfig()

    if history is None or len(history) == 0:
        return ConvergenceStatus(
            should_stop=False,
            confidence=0.0,
            remaining_estimate=config.min_coverage * len(items),
            criteria_met={name: False for name in CRITERIA},
            metrics=ConvergenceMetrics(),
        )

    recent = history.get_recent_comparisons(config.convergence_window)
    deltas = np.array([update.delta for result in recent for update in result.updates], dtype=float)

    if deltas.size:
        avg_change = float(np.mean(np.abs(deltas)))
        variance = float(np.var(deltas))
    else:
        avg_change = 0.0
        variance = 0.0

    stability, ranking_stable = ranking_stability(items, history, config)

    counts = _coverage_counts(items, history)
    covered = sum(1 for count in counts if count >= config.min_coverage)
    coverage = covered / len(items) if items else 0.0

    criteria_met = {
        RATING_STABILITY: bool(deltas.size) and avg_change < config.stability_threshold,
        RANKING_STABILITY: ranking_stable,
        VARIANCE_THRESHOLD: bool(deltas.size) and variance < config.stability_threshold / 2,
        MINIMUM_COVERAGE: bool(items) and covered == len(items),
    }
    met = sum(criteria_met.values())
    should_stop = met >= CRITERIA_REQUIRED_TO_STOP

    status = ConvergenceStatus(
        should_stop=should_stop,
        confidence=met / len(CRITERIA),
        remaining_estimate=0 if should_stop else estimate_remaining(items, history, config),
        criteria_met=criteria_met,
        metrics=ConvergenceMetrics(
            avg_rating_change=avg_change,
            rating_variance=variance,
            ranking_stability=stability,
            coverage_percentage=coverage,
            recent_comparisons=len(recent),
        ),
    )

    log.debug(
        "convergence_checked",
        should_stop=should_stop,
        criteria_met=met,
        avg_rating_change=round(avg_change, 4),
        comparisons=len(history),
    )
    return status


def convergence_rate(history: ComparisonHistory | None, window: int) -> float:
    """Recent average rating-change magnitude relative to the window before it.

    Values near 0 mean changes are dying out; 1.0 means no improvement yet
    (also returned while there is not enough history for two windows).
    """
    if history is None:
        return 1.0

    window = max(window, 1)
    magnitudes = [
        float(np.mean([abs(update.delta) for update in result.updates]))
        for result in history.comparisons
        if result.updates
    ]
    if len(magnitudes) < 2 * window:
        return 1.0

    recent = float(np.mean(magnitudes[-window:]))
    earlier = float(np.mean(magnitudes[-2 * window:-window]))
    if earlier == 0.0:
        return 0.0 if recent == 0.0 else 1.0
    return min(recent / earlier, 1.0)


def item_confidence(progression: list[float], config: OptimizationConfig) -> float:
    """Blend of how often an item was compared and how steady its rating has been."""
    if config.max_coverage > 0:
        count_factor = min(len(progression) / config.max_coverage, 1.0)
    else:
        count_factor = 1.0

    if len(progression) < 2:
        stability_factor = 0.0
    else:
        spread = float(np.std(progression))
        if config.stability_threshold > 0:
            stability_factor = 1.0 / (1.0 + spread / config.stability_threshold)
        else:
            stability_factor = 1.0 if spread == 0.0 else 0.0

    return 0.5 * count_factor + 0.5 * stability_factor


def get_progress_metrics(
    items: list[Rating],
    history: ComparisonHistory | None,
    config: OptimizationConfig | None = None,
) -> ProgressMetrics:
    """Progress indicators for display. Makes no stopping decision."""
    config = config or OptimizationConfig()

    counts = _coverage_counts(items, history)
    if not items:
        coverage = 0.0
    elif config.min_coverage > 0:
        coverage = float(np.mean([min(count / config.min_coverage, 1.0) for count in counts]))
    else:
        coverage = 1.0

    if history is None:
        confidence_scores = {item.id: 0.0 for item in items}
    else:
        confidence_scores = {
            item.id: item_confidence(history.get_rating_progression(item.id), config)
            for item in items
        }

    status = check_convergence(items, history, config)

    return ProgressMetrics(
        total_comparisons=len(history) if history is not None else 0,
        coverage_complete=coverage,
        convergence_rate=convergence_rate(history, config.stability_window),
        estimated_remaining=status.remaining_estimate,
        top_n_stable=consecutive_stable_positions(items, history, config),
        confidence_scores=confidence_scores,
    )
