"""Structured logger configuration.

The lookup client is used both as an MCP stdio server and as a command line
tool whose ``--json`` output goes to stdout. Logs therefore always go to
stderr: JSON lines by default, or a human-friendly console rendering for
interactive CLI runs.
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", console: bool = False) -> None:
    """Configure structlog output.

    Args:
        level: Minimum level name (``DEBUG``, ``INFO``, ``WARNING``...).
        console: Render colored, aligned lines instead of JSON.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = structlog.dev.ConsoleRenderer() if console else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


# JSON to stderr until an entry point says otherwise
configure_logging()

logger = structlog.get_logger()
