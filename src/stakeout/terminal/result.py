"""Command execution result dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RunResult:
    """Result of one execution of the watched command.

    Attributes:
        command: The rendered shell command that was executed.
        exit_code: Process exit code (0 = success), or None if it was
            killed after a timeout.
        output: Combined stdout/stderr output (may be truncated).
        truncated: True if output was truncated due to output_limit.
        status: Execution status - "ok", "error" or "timeout".
        duration_ms: Execution duration in milliseconds.
    """

    command: str
    exit_code: int | None
    output: str
    truncated: bool = False
    status: str = "ok"  # "ok", "error", "timeout"
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        """True if command completed with exit code 0."""
        return self.exit_code == 0

    def __repr__(self) -> str:
        if self.success:
            lines = self.output.count("\n") + 1 if self.output else 0
            return f"<RunResult ok, {lines} lines>"
        return f"<RunResult {self.status}, exit={self.exit_code}>"
