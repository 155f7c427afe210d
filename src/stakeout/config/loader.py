"""Configuration file loading.

Handles:
- YAML file parsing
- Environment variable overrides
- Command-line overrides (flat dotted keys)
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from stakeout.config.merge import expand_dotted, merge_configs
from stakeout.config.paths import get_config_paths
from stakeout.config.schema import (
    DEFAULT_LOCK_FILENAME,
    DEFAULT_PLACEHOLDER,
    ClassifierConfig,
    Config,
    LockConfig,
    LoggingConfig,
    NotifierConfig,
    WatchConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("stakeout.config")

_KNOWN_SECTIONS = {"watch", "lock", "notifier", "classifier", "logging"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML as dict, or empty dict on error.
    """
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    ``TMPDIR`` is not read here; the lock directory falls back to it at
    resolution time so an explicit ``lock.directory`` still wins.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("STAKEOUT_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    backend = os.environ.get("STAKEOUT_NOTIFIER")
    if backend:
        overrides.setdefault("notifier", {})["backend"] = backend.lower()

    return overrides


class ConfigError(Exception):
    """A config value cannot be converted to the type its setting needs."""


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _seconds(value: Any) -> float:
    seconds = float(value)
    if seconds < 0:
        raise ValueError("must not be negative")
    return seconds


def _optional_seconds(value: Any) -> float | None:
    return None if value is None else _seconds(value)


def _convert(
    section: str, key: str, value: Any, convert: Callable[[Any], Any], expected: str
) -> Any:
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"Invalid value for {section}.{key}: {value!r} (expected {expected})"
        ) from e


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Args:
        data: Merged configuration dictionary.

    Returns:
        Typed Config object.

    Raises:
        ConfigError: A value has the wrong type.
    """
    watch_data = _section(data, "watch")
    watch = WatchConfig(
        sleep_time=_convert(
            "watch", "sleep_time", watch_data.get("sleep_time", 1.0), _seconds, "seconds"
        ),
        sync=bool(watch_data.get("sync", False)),
        command_timeout=_convert(
            "watch", "command_timeout", watch_data.get("command_timeout"),
            _optional_seconds, "seconds or null",
        ),
        output_limit=_convert(
            "watch", "output_limit", watch_data.get("output_limit", 50000), int, "an integer"
        ),
        placeholder=str(watch_data.get("placeholder") or DEFAULT_PLACEHOLDER),
    )

    lock_data = _section(data, "lock")
    lock = LockConfig(
        directory=lock_data.get("directory"),
        filename=lock_data.get("filename") or DEFAULT_LOCK_FILENAME,
    )

    notifier_data = _section(data, "notifier")
    notifier = NotifierConfig(
        backend=str(notifier_data.get("backend", "auto")).lower(),
    )

    classifier_data = _section(data, "classifier")
    classifier = ClassifierConfig(
        spec_summaries=bool(classifier_data.get("spec_summaries", False)),
    )

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        file=log_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in _KNOWN_SECTIONS}

    return Config(
        watch=watch,
        lock=lock,
        notifier=notifier,
        classifier=classifier,
        logging=logging_config,
        extra=extra,
    )


def load_config(
    project_root: str | Path | None = None,
    config_file: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. ``overrides`` (command-line flags, flat dotted keys)
    2. Environment variables
    3. ``config_file`` (``--config``)
    4. Project config ($project_root/.stakeout/config.yaml)
    5. User config
    6. System config

    Args:
        project_root: Project directory for project-level config.
        config_file: Extra YAML file given on the command line.
        overrides: Flat dotted-key overrides, e.g. ``{"watch.sync": True}``.

    Returns:
        Merged Config object.

    Raises:
        ConfigError: A layer holds a value of the wrong type. The message
            names the setting and the file (or other source) it came from.
    """
    layers: list[tuple[str, dict[str, Any]]] = []

    paths = get_config_paths(project_root)
    if config_file is not None:
        if not config_file.exists():
            _log.warning("Config file %s not found", config_file)
        paths.append(config_file)

    for path in paths:
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            layers.append((str(path), config_data))

    layers.append(("environment", env_overrides()))

    if overrides:
        layers.append(("command line", expand_dotted(overrides)))

    # Check each layer alone so the error can name where the bad value lives
    for source, data in layers:
        try:
            dict_to_config(merge_configs(data))
        except ConfigError as e:
            raise ConfigError(f"{e} in {source}") from e.__cause__

    return dict_to_config(merge_configs(*(data for _, data in layers)))
