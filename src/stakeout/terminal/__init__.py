"""Command execution for stakeout.

Renders the command template for a triggering file and runs it through the
system shell, capturing merged output and the exit status.
"""

from stakeout.terminal.executor import ShellExecutor, quote_path, render_command
from stakeout.terminal.protocol import CommandExecutor
from stakeout.terminal.result import RunResult

__all__ = [
    "CommandExecutor",
    "RunResult",
    "ShellExecutor",
    "quote_path",
    "render_command",
]
