"""Shared test doubles and helpers for stakeout tests."""

from __future__ import annotations

import os
from pathlib import Path

from stakeout.notify.base import Notifier
from stakeout.terminal.result import RunResult


class RecordingNotifier(Notifier):
    """Notifier that keeps every call for assertions."""

    name = "recording"

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str, int]] = []

    def notify(self, title: str, message: str, icon: str, priority: int) -> None:
        self.calls.append((title, message, icon, priority))

    @property
    def titles(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeExecutor:
    """CommandExecutor double that records commands and returns canned results."""

    def __init__(self, output: str = "", exit_code: int | None = 0) -> None:
        self.output = output
        self.exit_code = exit_code
        self.commands: list[str] = []

    async def execute(
        self,
        command: str,
        timeout: float | None = None,
        output_limit: int = 50000,
    ) -> RunResult:
        self.commands.append(command)
        return RunResult(
            command=command,
            exit_code=self.exit_code,
            output=self.output,
            status="ok" if self.exit_code == 0 else "error",
        )


def bump_mtime(path: Path, seconds: float = 10.0) -> float:
    """Push a file's mtime forward without relying on clock resolution."""
    new_mtime = path.stat().st_mtime + seconds
    os.utime(path, (new_mtime, new_mtime))
    return new_mtime
