"""Configuration schema dataclasses for stakeout.

Defines the structure of configuration at all levels (system, user,
project, explicit file). Defaults here are what the tool runs with when no
config file exists at all.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_PLACEHOLDER = "%%"
DEFAULT_LOCK_FILENAME = "stakeout.lock"


@dataclass
class WatchConfig:
    """Polling and command execution settings.

    Example config.yaml:
        watch:
          sleep_time: 2
          sync: true
          command_timeout: 300
    """

    sleep_time: float = 1.0  # Seconds between polls
    sync: bool = False  # Serialize runs through the shared lock file
    command_timeout: float | None = None  # None = wait forever
    output_limit: int = 50000  # Max characters of captured output
    placeholder: str = DEFAULT_PLACEHOLDER


@dataclass
class LockConfig:
    """Location of the shared execution lock file."""

    directory: str | None = None  # Default: $TMPDIR, then platform temp dir
    filename: str = DEFAULT_LOCK_FILENAME


@dataclass
class NotifierConfig:
    """Desktop notification backend selection."""

    backend: str = "auto"  # auto, growl, snarl, none


@dataclass
class ClassifierConfig:
    """Result classification policy."""

    spec_summaries: bool = False  # Also recognize "N examples, N failures"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    watch: WatchConfig = field(default_factory=WatchConfig)
    lock: LockConfig = field(default_factory=LockConfig)
    notifier: NotifierConfig = field(default_factory=NotifierConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level keys, kept for forward compatibility
    extra: dict[str, Any] = field(default_factory=dict)
