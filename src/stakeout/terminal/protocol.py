"""Executor protocol for running the watched command."""

from __future__ import annotations

from typing import Protocol

from stakeout.terminal.result import RunResult


class CommandExecutor(Protocol):
    """Protocol for executing an already rendered shell command.

    Implementations:
    - ShellExecutor: local subprocess through the system shell
    - test doubles that record commands instead of running them
    """

    async def execute(
        self,
        command: str,
        timeout: float | None = None,
        output_limit: int = 50000,
    ) -> RunResult:
        """Execute ``command`` and capture its merged output.

        Must not raise for failures of the command itself; those are
        reported through the returned RunResult.
        """
        ...
