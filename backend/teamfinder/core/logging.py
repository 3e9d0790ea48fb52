"""Logging configuration for the TeamFinder application."""

from __future__ import annotations

import logging
import sys
from typing import Any

from teamfinder.core.exceptions import TeamFinderError


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Configure and return the application logger."""
    logger = logging.getLogger("teamfinder")

    if logger.handlers:
        return logger

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = "teamfinder") -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


class LogContext:
    """Context manager for structured logging with additional context.

    Domain failures (``TeamFinderError``) are expected outcomes of a request
    and are logged at WARNING without a traceback.
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: Any) -> None:
        self.logger = logger
        self.operation = operation
        self.context = context

    def _describe(self) -> str:
        if not self.context:
            return self.operation
        pairs = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.operation} ({pairs})"

    def __enter__(self) -> "LogContext":
        self.logger.debug(f"Starting {self._describe()}")
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> bool:
        if exc_type is None:
            self.logger.info(f"Completed {self._describe()}")
        elif isinstance(exc_val, TeamFinderError):
            self.logger.warning(f"Rejected {self._describe()}: [{exc_val.kind}] {exc_val.message}")
        else:
            self.logger.error(
                f"Failed {self._describe()}: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        return False


# Initialize default logger
logger = setup_logging()
