"""confelo - Elo ranking of conference proposals from human comparisons."""

from confelo.elo import (
    ComparisonHistory,
    ComparisonResult,
    Engine,
    EngineConfig,
    OptimizationConfig,
    Rating,
)

__version__ = "0.1.0"

__all__ = [
    "Engine",
    "EngineConfig",
    "OptimizationConfig",
    "Rating",
    "ComparisonResult",
    "ComparisonHistory",
]
