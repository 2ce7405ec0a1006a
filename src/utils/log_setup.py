"""Process-wide logging: seven suite levels rendered through rich."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from src.models.config import LogLevel

SILLY = 5
TRACE = 7

logging.addLevelName(SILLY, "SILLY")
logging.addLevelName(TRACE, "TRACE")

LEVELS: dict[LogLevel, int] = {
    LogLevel.SILLY: SILLY,
    LogLevel.TRACE: TRACE,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}

ROOT_LOGGER_NAME = "src"


def to_logging_level(level: LogLevel | str) -> int:
    return LEVELS[LogLevel(level)]


def setup_logging(level: LogLevel | str = LogLevel.INFO, console: Console | None = None) -> logging.Logger:
    """Install a RichHandler on the suite's logger tree and set its threshold.

    Calling it again replaces the previous handler, so the CLI and the e2e
    conftest can both call it safely.
    """
    numeric = to_logging_level(level)
    suite_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(suite_logger.handlers):
        if isinstance(handler, RichHandler):
            suite_logger.removeHandler(handler)

    handler = RichHandler(console=console or Console(stderr=True), rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    suite_logger.addHandler(handler)
    suite_logger.setLevel(numeric)

    suite_logger.info(
        "Logger initialized with minimum level: %s (%d)",
        LogLevel(level).value, numeric,
    )
    return suite_logger
