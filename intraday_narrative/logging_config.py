"""
intraday_narrative.logging_config
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Opt-in structlog setup for applications embedding the engine.

The package itself only calls ``structlog.get_logger``; nothing is
configured on import.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(log_level: str = "INFO") -> None:
    """Route structlog events to stdout as JSON lines.

    Parameters
    ----------
    log_level : str
        Minimum level name (``DEBUG``, ``INFO``, ``WARNING``, ...).  Unknown
        names fall back to ``INFO``.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=False,
    )
