"""Environment-driven configuration for confelo.

Every setting has a default in the pydantic models; CONFELO_* environment
variables override individual fields. Values that do not parse are
ignored and the default is kept.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import Any

from confelo.elo.models import EngineConfig, OptimizationConfig
from confelo.logging import configure_logging, get_logger

log = get_logger(__name__)

ENV_PREFIX = "CONFELO_"

# env var suffix -> (field name, parser)
ENGINE_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "ELO_INITIAL_RATING": ("initial_rating", float),
    "ELO_K_FACTOR": ("k_factor", int),
    "ELO_MIN_RATING": ("min_rating", float),
    "ELO_MAX_RATING": ("max_rating", float),
}

OPTIMIZATION_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "OPT_BIN_SIZE": ("bin_size", float),
    "OPT_STABILITY_THRESHOLD": ("stability_threshold", float),
    "OPT_STABILITY_WINDOW": ("stability_window", int),
    "OPT_MIN_COVERAGE": ("min_coverage", int),
    "OPT_MAX_COVERAGE": ("max_coverage", int),
    "OPT_TOP_N_FOR_STABILITY": ("top_n_for_stability", int),
    "OPT_CROSS_BIN_RATE": ("cross_bin_rate", float),
    "OPT_CONVERGENCE_WINDOW": ("convergence_window", int),
}


def _read_overrides(
    fields: dict[str, tuple[str, Callable[[str], Any]]],
    environ: Mapping[str, str],
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for suffix, (field, parse) in fields.items():
        name = ENV_PREFIX + suffix
        raw = environ.get(name, "").strip()
        if not raw:
            continue
        try:
            overrides[field] = parse(raw)
        except ValueError:
            log.debug("env_override_ignored", variable=name, value=raw)
    return overrides


def load_engine_config(environ: Mapping[str, str] | None = None) -> EngineConfig:
    """EngineConfig defaults with CONFELO_ELO_* overrides applied."""
    environ = os.environ if environ is None else environ
    return EngineConfig(**_read_overrides(ENGINE_ENV_FIELDS, environ))


def load_optimization_config(environ: Mapping[str, str] | None = None) -> OptimizationConfig:
    """OptimizationConfig defaults with CONFELO_OPT_* overrides applied."""
    environ = os.environ if environ is None else environ
    return OptimizationConfig(**_read_overrides(OPTIMIZATION_ENV_FIELDS, environ))


def configure_logging_from_env(environ: Mapping[str, str] | None = None) -> None:
    """Configure structlog from CONFELO_LOG_LEVEL and CONFELO_LOG_CLI."""
    environ = os.environ if environ is None else environ
    level = environ.get(ENV_PREFIX + "LOG_LEVEL", "INFO")
    cli_mode = environ.get(ENV_PREFIX + "LOG_CLI", "").lower() == "true"
    configure_logging(cli_mode=cli_mode, log_level=level)
