"""Logging configuration for stakeout.

Uses Python's standard logging module with support for:
- File logging via config or STAKEOUT_LOG environment variable
- Custom VERBOSE and TRACE levels below INFO and DEBUG
- Stderr fallback when no log file is configured
- Compact format with timestamps and lowercase level names
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stakeout.config.schema import LoggingConfig

# Custom log levels
TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

# Package logger
logger = logging.getLogger("stakeout")

_LEVEL_MAP = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None = None, verbose: bool = False) -> int:
    """Pick the effective log level.

    An explicit ``level`` in the config wins. Otherwise ``verbose`` selects
    VERBOSE and the default is INFO.
    """
    if config and config.level:
        return _LEVEL_MAP.get(config.level.upper(), logging.INFO)
    if verbose:
        return VERBOSE
    return logging.INFO


def setup_logging(config: LoggingConfig | None = None, verbose: bool = False) -> None:
    """Initialize logging based on configuration.

    Replaces any handlers installed by a previous call, so the CLI and tests
    can call this more than once.

    Args:
        config: Optional LoggingConfig with level and file settings.
        verbose: Lower the default level to VERBOSE (``-v``).
    """
    log_level = resolve_level(config, verbose)
    logger.setLevel(log_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Format: HH:MM:SS level: message
    formatter = _LowercaseLevelFormatter(
        "%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S"
    )

    log_path = config.file if config and config.file else os.environ.get("STAKEOUT_LOG")

    if log_path:
        log_path = os.path.expanduser(log_path)
        try:
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            return
        except OSError as e:
            print(f"[stakeout] Failed to open log file: {e}", file=sys.stderr)

    _add_stderr_handler(formatter, log_level)


def _add_stderr_handler(formatter: logging.Formatter, level: int = logging.DEBUG) -> None:
    """Add a stderr handler to the logger."""
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional name for a child logger (e.g., "watching", "engine").
              If None, returns the root stakeout logger.

    Returns:
        A configured logger instance.
    """
    if name:
        return logger.getChild(name)
    return logger
