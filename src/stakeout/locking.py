"""Cross-process serialization of command runs.

When synchronous mode is on, every run of the watched command happens while
holding an exclusive advisory lock on a shared file. Separate stakeout
processes (or any cooperating tool) pointed at the same lock path therefore
never run their commands at the same time.

The lock uses OS-level file locking (``fcntl.flock`` on Unix,
``msvcrt.locking`` on Windows). The lock file is created on first use and
left in place; only the lock on it is taken and dropped per run.
"""

from __future__ import annotations

import asyncio
import errno
import os
import sys
import threading
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

from stakeout.config.paths import get_lock_dir
from stakeout.config.schema import DEFAULT_LOCK_FILENAME
from stakeout.logging import TRACE, get_logger

log = get_logger("locking")

T = TypeVar("T")


class LockError(Exception):
    """The shared lock file could not be opened, locked or unlocked."""


def default_lock_path(directory: str | None = None, filename: str = DEFAULT_LOCK_FILENAME) -> Path:
    """Lock file path under the configured directory, ``$TMPDIR`` or the temp dir."""
    return get_lock_dir(directory) / filename


class ExecutionLock:
    """A file-backed exclusive lock shared between processes.

    The file is opened once, at construction, and kept open for the life of
    the object. ``acquire`` blocks until the OS grants the lock.

    OS file locks are per open file, so a second ``acquire`` on the same
    object would succeed at once. An in-process gate is taken first and kept
    until ``release``, which makes the object exclusive between threads and
    tasks of this process as well.

    Example:
        lock = ExecutionLock(default_lock_path())
        with lock:
            run_the_command()
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._held = False
        self._gate = threading.Lock()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fd: int | None = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o666)
        except OSError as e:
            raise LockError(f"Cannot open lock file {self.path}: {e}") from e
        log.debug("Opened lock file %s", self.path)

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Block until the exclusive lock is granted."""
        if self._fd is None:
            raise LockError(f"Lock file {self.path} is closed")
        self._gate.acquire()
        try:
            self._lock_file()
        except BaseException:
            self._gate.release()
            raise
        self._held = True
        log.log(TRACE, "Acquired %s", self.path)

    def _lock_file(self) -> None:
        # Closed while this caller waited on the gate
        if self._fd is None:
            raise LockError(f"Lock file {self.path} is closed")
        try:
            if sys.platform == "win32":
                import msvcrt

                os.lseek(self._fd, 0, os.SEEK_SET)
                while True:
                    try:
                        # LK_LOCK gives up after ~10 one-second retries
                        msvcrt.locking(self._fd, msvcrt.LK_LOCK, 1)
                        break
                    except OSError as e:
                        if e.errno != errno.EDEADLOCK:
                            raise
            else:
                import fcntl

                fcntl.flock(self._fd, fcntl.LOCK_EX)
        except OSError as e:
            raise LockError(f"Cannot lock {self.path}: {e}") from e

    def release(self) -> None:
        """Drop the lock. Releasing a lock that is not held is a no-op."""
        if not self._held or self._fd is None:
            return
        self._held = False
        try:
            self._unlock_file()
        finally:
            self._gate.release()
        log.log(TRACE, "Released %s", self.path)

    def _unlock_file(self) -> None:
        try:
            if sys.platform == "win32":
                import msvcrt

                os.lseek(self._fd, 0, os.SEEK_SET)
                msvcrt.locking(self._fd, msvcrt.LK_UNLCK, 1)
            else:
                import fcntl

                fcntl.flock(self._fd, fcntl.LOCK_UN)
        except OSError as e:
            raise LockError(f"Cannot unlock {self.path}: {e}") from e

    def close(self) -> None:
        """Release if held and close the descriptor. The file stays on disk."""
        if self._fd is None:
            return
        try:
            self.release()
        finally:
            os.close(self._fd)
            self._fd = None

    def __enter__(self) -> ExecutionLock:
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


def _acquire_in_thread(lock: ExecutionLock) -> asyncio.Future[None]:
    """Acquire ``lock`` on a daemon thread, resolving the returned future.

    A daemon thread keeps a blocked ``flock`` from holding up interpreter
    exit. If the waiter is cancelled before the OS grants the lock, the lock
    is released as soon as it arrives.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[None] = loop.create_future()

    def settle(error: BaseException | None) -> None:
        if future.cancelled():
            if error is None:
                lock.release()
            return
        if error is None:
            future.set_result(None)
        else:
            future.set_exception(error)

    def worker() -> None:
        error: BaseException | None = None
        try:
            lock.acquire()
        except BaseException as e:
            error = e
        try:
            loop.call_soon_threadsafe(settle, error)
        except RuntimeError:
            # Event loop already closed; the process is on its way out
            if error is None:
                lock.release()

    threading.Thread(target=worker, name="stakeout-lock", daemon=True).start()
    return future


async def with_exclusive_section(
    enabled: bool,
    lock: ExecutionLock | None,
    body: Callable[[], Awaitable[T]],
) -> T:
    """Run ``body`` while holding ``lock`` when ``enabled``.

    With ``enabled`` false the body runs directly. Otherwise the lock is
    acquired first (blocking, possibly on another process) and released
    after the body finishes, whether it returned, raised or was cancelled.

    Raises:
        LockError: The lock could not be acquired or released.
    """
    if not enabled:
        return await body()
    if lock is None:
        raise LockError("Synchronous mode requested without a lock")

    await _acquire_in_thread(lock)
    try:
        return await body()
    finally:
        lock.release()
