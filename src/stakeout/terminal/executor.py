"""Shell execution of the watched command.

``render_command`` is the only place a file path is interpolated into a
shell command line; everything that runs the command goes through it.
"""

from __future__ import annotations

import asyncio
import shlex
import subprocess
import sys
import time

from stakeout.config.schema import DEFAULT_PLACEHOLDER
from stakeout.logging import get_logger
from stakeout.terminal.result import RunResult

log = get_logger("terminal")


def quote_path(path: str) -> str:
    """Quote ``path`` as a single word for the platform shell."""
    if sys.platform == "win32":
        return subprocess.list2cmdline([path])
    return shlex.quote(path)


def render_command(template: str, path: str, placeholder: str = DEFAULT_PLACEHOLDER) -> str:
    """Substitute the quoted ``path`` for every ``placeholder`` in ``template``.

    Only the substituted value is quoted; the template itself is passed to
    the shell verbatim. A template without the placeholder is returned
    unchanged.

    >>> render_command("ruby -Itest %%", 'a"b.rb')
    'ruby -Itest \\'a"b.rb\\''
    """
    if not placeholder or placeholder not in template:
        return template
    return template.replace(placeholder, quote_path(path))


class ShellExecutor:
    """Execute commands through the system shell using asyncio subprocess."""

    def __init__(self, cwd: str | None = None) -> None:
        """Initialize the executor.

        Args:
            cwd: Working directory for commands. None uses the current one.
        """
        self._cwd = cwd

    async def execute(
        self,
        command: str,
        timeout: float | None = None,
        output_limit: int = 50000,
    ) -> RunResult:
        """Run ``command`` in a shell, capturing merged stdout/stderr.

        Args:
            command: Fully rendered shell command line.
            timeout: Seconds before the process is killed. None waits forever.
            output_limit: Maximum characters of output to keep.

        Returns:
            RunResult with exit code, output and status.
        """
        start_time = time.perf_counter()
        log.debug("Executing: %s", command)

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,  # Merge stderr into stdout
                cwd=self._cwd,
            )
        except FileNotFoundError as e:
            return self._failed(command, 127, f"Command not found: {e}", start_time)
        except PermissionError as e:
            return self._failed(command, 126, f"Permission denied: {e}", start_time)
        except OSError as e:
            return self._failed(command, 1, f"OS error: {e}", start_time)

        try:
            stdout_data, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            return RunResult(
                command=command,
                exit_code=None,
                output=f"Command timed out after {timeout}s",
                status="timeout",
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        output = stdout_data.decode("utf-8", errors="replace")
        truncated = len(output) > output_limit
        if truncated:
            output = output[:output_limit] + "\n... (output truncated)"

        exit_code = process.returncode
        return RunResult(
            command=command,
            exit_code=exit_code,
            output=output,
            truncated=truncated,
            status="ok" if exit_code == 0 else "error",
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

    @staticmethod
    def _failed(command: str, exit_code: int, message: str, start_time: float) -> RunResult:
        return RunResult(
            command=command,
            exit_code=exit_code,
            output=message,
            status="error",
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            return  # Already gone
        await process.wait()
