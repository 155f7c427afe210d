"""Where config files and the lock file live.

Config layers, lowest priority first:

    system   /etc/stakeout/config.yaml       %PROGRAMDATA%\\stakeout\\config.yaml
    user     $XDG_CONFIG_HOME/stakeout/, ~/.config/stakeout/ or ~/.stakeout/
             (Windows: %APPDATA%\\stakeout\\)
    project  <cwd>/.stakeout/config.yaml
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "stakeout"
DOT_DIR = ".stakeout"


def _env_dir(var: str) -> Path | None:
    root = os.environ.get(var)
    return Path(root) / APP_NAME if root else None


def get_system_config_path() -> Path | None:
    """System-wide config file, or None when Windows has no ``%PROGRAMDATA%``."""
    if sys.platform == "win32":
        directory = _env_dir("PROGRAMDATA")
    else:
        directory = Path("/etc") / APP_NAME
    return directory / CONFIG_FILENAME if directory else None


def get_user_config_path() -> Path | None:
    """Per-user config file.

    ``~/.config/stakeout`` is preferred over ``~/.stakeout`` only when
    ``~/.config`` already exists.
    """
    if sys.platform == "win32":
        directory = _env_dir("APPDATA")
    else:
        directory = _env_dir("XDG_CONFIG_HOME")
        if directory is None:
            home = Path.home()
            xdg_default = home / ".config"
            directory = xdg_default / APP_NAME if xdg_default.exists() else home / DOT_DIR
    return directory / CONFIG_FILENAME if directory else None


def get_project_config_path(project_root: str | Path) -> Path:
    return Path(project_root) / DOT_DIR / CONFIG_FILENAME


def get_config_paths(project_root: str | Path | None = None) -> list[Path]:
    """Config files to merge, lowest priority first. They may not exist."""
    candidates = [get_system_config_path(), get_user_config_path()]
    if project_root is not None:
        candidates.append(get_project_config_path(project_root))
    return [path for path in candidates if path is not None]


def get_lock_dir(configured: str | None = None) -> Path:
    """Directory holding the shared lock file.

    Priority: explicit config value, then ``$TMPDIR``, then the platform
    temp directory.
    """
    if configured:
        return Path(os.path.expanduser(configured))
    tmpdir = os.environ.get("TMPDIR")
    if tmpdir:
        return Path(tmpdir)
    return Path(tempfile.gettempdir())
