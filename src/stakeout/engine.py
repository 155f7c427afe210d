"""The polling run loop.

Each cycle asks the tracker for the first modified file. If there is one,
the command is rendered for it and run (inside the shared lock when
synchronous mode is on), its output is echoed, classified and reported.
Then the loop pauses for ``sleep_time`` seconds and starts over.

The loop runs until ``stop()`` is called. ``stop()`` is safe to call from a
signal handler installed on the running event loop: it ends the pause at
once and cancels a command that is still running.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.console import Console

from stakeout.classify import Classification, ResultClassifier, Verdict
from stakeout.config.schema import DEFAULT_PLACEHOLDER
from stakeout.locking import ExecutionLock, LockError, with_exclusive_section
from stakeout.logging import VERBOSE, get_logger
from stakeout.terminal.executor import render_command
from stakeout.terminal.result import RunResult

if TYPE_CHECKING:
    from stakeout.notify.base import Notifier
    from stakeout.terminal.protocol import CommandExecutor
    from stakeout.watching.tracker import FileStateTracker, WatchSet

log = get_logger("engine")


@dataclass
class RunOutcome:
    """Everything one triggered run produced."""

    path: str
    result: RunResult
    classification: Classification


class Engine:
    """Polls the watch set and runs the command for each change.

    All state the loop touches is passed in here, so several engines can
    live side by side (tests do exactly that).

    Example:
        tracker = FileStateTracker()
        engine = Engine(
            tracker=tracker,
            watch_set=tracker.initialize(["lib/*.py"]),
            command="pytest %%",
            executor=ShellExecutor(),
            notifier=NullNotifier(),
            classifier=ResultClassifier(),
        )
        await engine.run()
    """

    def __init__(
        self,
        *,
        tracker: FileStateTracker,
        watch_set: WatchSet,
        command: str,
        executor: CommandExecutor,
        notifier: Notifier,
        classifier: ResultClassifier,
        lock: ExecutionLock | None = None,
        sync: bool = False,
        sleep_time: float = 1.0,
        placeholder: str = DEFAULT_PLACEHOLDER,
        command_timeout: float | None = None,
        output_limit: int = 50000,
        console: Console | None = None,
    ) -> None:
        if sync and lock is None:
            raise ValueError("sync=True requires an ExecutionLock")
        self._tracker = tracker
        self._watch_set = watch_set
        self._command = command
        self._executor = executor
        self._notifier = notifier
        self._classifier = classifier
        self._lock = lock
        self._sync = sync
        self._sleep_time = sleep_time
        self._placeholder = placeholder
        self._command_timeout = command_timeout
        self._output_limit = output_limit
        self._console = console or Console()

        self._stop = asyncio.Event()
        self._inflight: asyncio.Task[RunOutcome] | None = None

    @property
    def watch_set(self) -> WatchSet:
        return self._watch_set

    @property
    def sleep_time(self) -> float:
        return self._sleep_time

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Request the loop to end; cancels a running command."""
        if self._stop.is_set():
            return
        log.debug("Stop requested")
        self._stop.set()
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

    async def poll(self) -> RunOutcome | None:
        """Run one cycle without the pause.

        Returns:
            The outcome if a changed file triggered a run, else None (also
            None when the run was cancelled by ``stop()``).

        Raises:
            LockError: The shared lock could not be acquired or released.
        """
        changed = self._tracker.find_changed(self._watch_set)
        if changed is None:
            return None

        path, mtime = changed
        self._inflight = asyncio.create_task(
            with_exclusive_section(self._sync, self._lock, lambda: self._run(path, mtime))
        )
        try:
            return await self._inflight
        except asyncio.CancelledError:
            if self._stop.is_set():
                log.info("Run for %s interrupted", path)
                return None
            raise
        finally:
            self._inflight = None

    async def _run(self, path: str, mtime: float) -> RunOutcome:
        # Record the change first so edits made by the command itself
        # are not mistaken for a new change on the next cycle
        self._tracker.update(self._watch_set, path, mtime)
        self._notifier.notify_changed(path)

        command = render_command(self._command, path, self._placeholder)
        log.info("%s changed, running: %s", path, command)

        result = await self._executor.execute(
            command,
            timeout=self._command_timeout,
            output_limit=self._output_limit,
        )
        self._echo(result)

        classification = self._classifier.classify(result.output, result.exit_code)
        self._report(classification)
        return RunOutcome(path=path, result=result, classification=classification)

    def _echo(self, result: RunResult) -> None:
        if result.output:
            self._console.out(result.output.rstrip("\n"), highlight=False)
        log.log(VERBOSE, "%r in %.0fms", result, result.duration_ms)

    def _report(self, classification: Classification) -> None:
        if classification.verdict is Verdict.PASS:
            log.info("Pass: %s", classification.summary)
            self._notifier.notify_pass(classification.summary)
        else:
            if classification.verdict is Verdict.UNKNOWN:
                log.warning("Unknown result: %s", classification.summary)
            else:
                log.info("Fail: %s", classification.summary)
            self._notifier.notify_fail(classification.summary)

    async def _pause(self) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self._sleep_time)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        """Poll until ``stop()`` is called."""
        if not len(self._watch_set):
            log.warning("No files matched; nothing will trigger a run")
        log.info(
            "Watching %d file(s) every %gs%s",
            len(self._watch_set),
            self._sleep_time,
            " (sync)" if self._sync else "",
        )

        while not self._stop.is_set():
            try:
                await self.poll()
            except LockError as e:
                log.error("%s", e)
                self._notifier.notify_fail(str(e))
            if self._stop.is_set():
                break
            await self._pause()

        log.debug("Run loop finished")
