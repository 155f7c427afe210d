"""stakeout: run a command whenever watched files change."""

__version__ = "0.1.0"

# Public API
from stakeout.classify import Classification, ResultClassifier, Verdict
from stakeout.config import Config, ConfigError, load_config
from stakeout.engine import Engine, RunOutcome
from stakeout.locking import ExecutionLock, LockError, with_exclusive_section
from stakeout.notify import Notifier, NotifierUnavailableError, NullNotifier, create_notifier
from stakeout.terminal import RunResult, ShellExecutor, render_command
from stakeout.watching import FileStateTracker, WatchSet

__all__ = [
    # Engine
    "Engine",
    "RunOutcome",
    # Watching
    "FileStateTracker",
    "WatchSet",
    # Locking
    "ExecutionLock",
    "LockError",
    "with_exclusive_section",
    # Classification
    "Classification",
    "ResultClassifier",
    "Verdict",
    # Execution
    "RunResult",
    "ShellExecutor",
    "render_command",
    # Notifications
    "Notifier",
    "NotifierUnavailableError",
    "NullNotifier",
    "create_notifier",
    # Config
    "Config",
    "ConfigError",
    "load_config",
]
