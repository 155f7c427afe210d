"""Configuration management for stakeout.

Provides layered YAML-based configuration with:
- System-level config (/etc/stakeout/ or %PROGRAMDATA%)
- User-level config (~/.config/stakeout/, ~/.stakeout/ or %APPDATA%)
- Project-level config ($cwd/.stakeout/)
- Environment variable overrides
- Command-line overrides (highest priority)

Example usage:
    from stakeout.config import load_config

    config = load_config(project_root=".", overrides={"watch.sync": True})
    print(config.watch.sleep_time)
"""

from stakeout.config.loader import (
    ConfigError,
    dict_to_config,
    load_config,
    load_yaml_file,
)
from stakeout.config.paths import (
    get_config_paths,
    get_lock_dir,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from stakeout.config.schema import (
    ClassifierConfig,
    Config,
    LockConfig,
    LoggingConfig,
    NotifierConfig,
    WatchConfig,
)

__all__ = [
    # Main API
    "Config",
    "ConfigError",
    "load_config",
    "load_yaml_file",
    "dict_to_config",
    # Schema types
    "WatchConfig",
    "LockConfig",
    "NotifierConfig",
    "ClassifierConfig",
    "LoggingConfig",
    # Path utilities
    "get_config_paths",
    "get_lock_dir",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
