"""Structured logging configuration for confelo.

The rating core emits only debug-level events (engine_created,
matchup_selected, convergence_checked, ...). Whoever drives a rating
session decides at startup how they are rendered:
- JSON renderer for headless sessions (one event per line)
- Console renderer for an operator watching a terminal
"""

import logging
import sys

import structlog
from structlog.dev import ConsoleRenderer
from structlog.processors import (
    JSONRenderer,
    StackInfoRenderer,
    TimeStamper,
    add_log_level,
    format_exc_info,
)


def configure_logging(cli_mode: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog for a rating session.

    Args:
        cli_mode: If True, render human-readable lines for the terminal.
                  If False, render one JSON object per event.
        log_level: Logging level name; unknown names fall back to INFO.
                   Use DEBUG to see per-comparison engine events.
    """
    processors = [
        # Level name, e.g. "debug" for engine events
        add_log_level,
        TimeStamper(fmt="iso"),
        StackInfoRenderer(),
        # Conservation errors and the like carry exc_info when logged
        format_exc_info,
    ]

    if cli_mode:
        # Colour only when someone is actually watching
        renderer = ConsoleRenderer(colors=sys.stdout.isatty())
    else:
        renderer = JSONRenderer()

    processors.append(renderer)

    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=processors,
        # Events below the level are dropped before any processor runs
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically as module-level `log = get_logger(__name__)`."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
