"""Centralized logging configuration for snapvcs."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from snapvcs.constants import DEFAULT_LOG_LEVEL

LOGGER_NAME = "snapvcs"


def configure_logging(log_level: str = DEFAULT_LOG_LEVEL) -> None:
    """Route the package's log records to stderr through rich.

    Calling it again replaces the previous handler, so the level can be
    changed between CLI invocations in the same process.

    Raises:
        ValueError: If ``log_level`` is not a logging level name
    """
    level = log_level.upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level: {log_level}")

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
