"""Log sink setup: console through rich, plus an optional fresh log file."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "status_checker"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Marker so repeated setup replaces our handlers and leaves foreign ones alone
_HANDLER_ATTR = "_status_checker_handler"


def configure_logging(level: str = "INFO", log_file: Optional[str] = None,
                      console: bool = True) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Logging level name
        log_file: File to write events to; truncated if it already exists
        console: Whether to also render events on stderr

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    logger.propagate = False

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            logger.removeHandler(handler)
            handler.close()

    if console:
        rich_handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        setattr(rich_handler, _HANDLER_ATTR, True)
        logger.addHandler(rich_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        setattr(file_handler, _HANDLER_ATTR, True)
        logger.addHandler(file_handler)

    return logger
