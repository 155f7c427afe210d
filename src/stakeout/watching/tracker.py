"""Modification-time tracking for the watched file set.

Polling is used rather than native change notification: the run loop
already wakes on a fixed cadence, and comparing ``st_mtime`` values works
the same on every platform.
"""

from __future__ import annotations

import glob
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from stakeout.logging import get_logger

log = get_logger("watching")


@dataclass
class WatchSet:
    """Watched paths mapped to their last observed modification time.

    Iteration follows insertion order, which is the order the paths were
    first matched by the startup globs.
    """

    mtimes: dict[str, float] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.mtimes)

    def __contains__(self, path: object) -> bool:
        return path in self.mtimes

    def __iter__(self) -> Iterator[str]:
        return iter(self.mtimes)

    @property
    def paths(self) -> list[str]:
        return list(self.mtimes)

    def mtime(self, path: str) -> float:
        return self.mtimes[path]


class FileStateTracker:
    """Expands glob patterns and detects modified files.

    Example:
        tracker = FileStateTracker()
        watch_set = tracker.initialize(["lib/**/*.py", "tests/*.py"])

        changed = tracker.find_changed(watch_set)
        if changed:
            path, mtime = changed
            tracker.update(watch_set, path, mtime)
    """

    def __init__(self, cwd: str | None = None) -> None:
        """Initialize the tracker.

        Args:
            cwd: Directory relative globs are expanded against. Defaults to
                the process working directory at call time.
        """
        self._cwd = cwd

    def expand(self, pattern: str) -> list[str]:
        """Return the regular files matching one glob pattern.

        A literal path (no wildcards) matches itself when it exists, which
        covers filespecs already expanded by the invoking shell.
        """
        pattern = os.path.expanduser(pattern)
        matches = glob.glob(pattern, root_dir=self._cwd, recursive=True)
        # Shell-expanded names may contain glob metacharacters themselves
        if not matches:
            literal = pattern if self._cwd is None else os.path.join(self._cwd, pattern)
            if os.path.isfile(literal):
                matches = [pattern]
        files: list[str] = []
        for match in sorted(matches):
            full = match if self._cwd is None else os.path.join(self._cwd, match)
            if os.path.isfile(full):
                files.append(os.path.normpath(full))
        return files

    def initialize(self, globs: Iterable[str]) -> WatchSet:
        """Build the initial watch set from ``globs``.

        Every match is seeded with its current modification time. Patterns
        that match nothing contribute nothing.
        """
        watch_set = WatchSet()
        for pattern in globs:
            matches = self.expand(pattern)
            if not matches:
                log.debug("Pattern %r matched no files", pattern)
            for path in matches:
                if path in watch_set:
                    continue
                try:
                    watch_set.mtimes[path] = os.stat(path).st_mtime
                except OSError as e:
                    log.warning("Cannot stat %s: %s", path, e)
        log.debug("Watching %d file(s)", len(watch_set))
        return watch_set

    def find_changed(self, watch_set: WatchSet) -> tuple[str, float] | None:
        """Return the first path whose mtime moved forward, with the new mtime.

        Paths that cannot be stat'ed (deleted, permissions) are skipped with
        a warning and stay in the set.
        """
        for path, known_mtime in watch_set.mtimes.items():
            try:
                current = os.stat(path).st_mtime
            except OSError as e:
                log.warning("Error checking %s: %s", path, e)
                continue
            if current > known_mtime:
                return path, current
        return None

    def update(self, watch_set: WatchSet, path: str, mtime: float) -> None:
        """Record ``mtime`` as the last observed time for ``path``."""
        watch_set.mtimes[path] = mtime
