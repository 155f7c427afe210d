"""Command-line interface for stakeout."""

from __future__ import annotations

import argparse
import asyncio
import signal
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape

from stakeout import __version__
from stakeout.classify import ResultClassifier
from stakeout.config import Config, ConfigError, load_config
from stakeout.engine import Engine
from stakeout.locking import ExecutionLock, LockError, default_lock_path
from stakeout.logging import get_logger, setup_logging
from stakeout.notify import BACKEND_CHOICES, NotifierUnavailableError, create_notifier
from stakeout.terminal.executor import ShellExecutor
from stakeout.watching.tracker import FileStateTracker, WatchSet

log = get_logger("cli")

console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stakeout",
        description=(
            "Run COMMAND whenever one of the watched files changes. "
            "'%%' in COMMAND is replaced by the changed file's path."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-t", "--sleep-time",
        type=int,
        metavar="SECONDS",
        help="Seconds between checks (default: 1)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show resolved options and watched files before starting",
    )
    parser.add_argument(
        "--sync",
        action="store_true",
        default=None,
        help="Never run the command concurrently with another stakeout using the same lock file",
    )
    parser.add_argument(
        "--notifier",
        choices=BACKEND_CHOICES,
        help="Notification backend (default: auto)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Extra YAML config file, applied over the system/user/project files",
    )
    parser.add_argument(
        "command",
        metavar="COMMAND",
        help="Shell command to run, e.g. 'ruby -Itest %%%%'",
    )
    parser.add_argument(
        "filespecs",
        metavar="FILESPEC",
        nargs="+",
        help="Files or glob patterns to watch (e.g. 'lib/**/*.rb')",
    )
    return parser


def build_overrides(parsed: argparse.Namespace) -> dict[str, Any]:
    """Map parsed flags to dotted config keys; unset flags map to None."""
    return {
        "watch.sleep_time": parsed.sleep_time,
        "watch.sync": parsed.sync,
        "notifier.backend": parsed.notifier,
    }


def describe(config: Config, command: str, watch_set: WatchSet, lock_path: Path | None) -> None:
    """Echo the resolved options and the watch set."""
    console.print(f"[bold]Command:[/bold] {escape(command)}", highlight=False)
    console.print(f"Sleep time: {config.watch.sleep_time:g}s", highlight=False)
    console.print(f"Sync: {config.watch.sync}", highlight=False)
    if lock_path is not None:
        console.print(f"Lock file: {lock_path}", highlight=False)
    console.print(f"Notifier: {config.notifier.backend}", highlight=False)
    console.print(f"Watching {len(watch_set)} file(s):", highlight=False)
    for path in watch_set:
        console.print(f"  {path}", markup=False, highlight=False)


async def serve(engine: Engine) -> None:
    """Run the engine with SIGINT/SIGTERM wired to ``Engine.stop``."""
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, engine.stop)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            pass  # Windows: falls back to KeyboardInterrupt
    try:
        await engine.run()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    try:
        config = load_config(
            project_root=Path.cwd(),
            config_file=parsed.config,
            overrides=build_overrides(parsed),
        )
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        return 1
    setup_logging(config.logging, verbose=parsed.verbose)
    log.debug("Resolved config: %s", config)

    try:
        notifier = create_notifier(config.notifier.backend)
    except NotifierUnavailableError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        return 1

    lock: ExecutionLock | None = None
    if config.watch.sync:
        try:
            lock = ExecutionLock(default_lock_path(config.lock.directory, config.lock.filename))
        except LockError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
            return 1

    tracker = FileStateTracker()
    watch_set = tracker.initialize(parsed.filespecs)

    if parsed.verbose:
        describe(config, parsed.command, watch_set, lock.path if lock else None)

    engine = Engine(
        tracker=tracker,
        watch_set=watch_set,
        command=parsed.command,
        executor=ShellExecutor(),
        notifier=notifier,
        classifier=ResultClassifier(spec_summaries=config.classifier.spec_summaries),
        lock=lock,
        sync=config.watch.sync,
        sleep_time=config.watch.sleep_time,
        placeholder=config.watch.placeholder,
        command_timeout=config.watch.command_timeout,
        output_limit=config.watch.output_limit,
    )

    try:
        asyncio.run(serve(engine))
    except KeyboardInterrupt:
        pass

    console.print("Interrupted, exiting.", highlight=False)
    return 0
