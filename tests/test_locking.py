"""Tests for the cross-process execution lock."""

from __future__ import annotations

import asyncio
import sys
import threading
from pathlib import Path

import pytest

from stakeout.locking import ExecutionLock, LockError, default_lock_path, with_exclusive_section

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="relies on flock semantics")


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    return tmp_path / "locks" / "stakeout.lock"


class TestExecutionLock:
    def test_creates_file(self, lock_path: Path) -> None:
        lock = ExecutionLock(lock_path)
        assert lock_path.exists()
        lock.close()

    def test_file_survives_release_and_close(self, lock_path: Path) -> None:
        lock = ExecutionLock(lock_path)
        with lock:
            assert lock.held
        assert not lock.held
        lock.close()
        assert lock_path.exists()

    def test_release_when_not_held_is_noop(self, lock_path: Path) -> None:
        lock = ExecutionLock(lock_path)
        lock.release()
        lock.close()

    def test_acquire_after_close_fails(self, lock_path: Path) -> None:
        lock = ExecutionLock(lock_path)
        lock.close()
        with pytest.raises(LockError):
            lock.acquire()

    @posix_only
    def test_unopenable_path(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(LockError):
            ExecutionLock(blocker / "stakeout.lock")

    @posix_only
    def test_second_holder_blocks(self, lock_path: Path) -> None:
        first = ExecutionLock(lock_path)
        second = ExecutionLock(lock_path)
        acquired = threading.Event()

        first.acquire()
        waiter = threading.Thread(target=lambda: (second.acquire(), acquired.set()))
        waiter.start()
        assert not acquired.wait(0.3)

        first.release()
        assert acquired.wait(5)
        waiter.join(5)
        second.close()
        first.close()

    def test_same_object_blocks_second_thread(self, lock_path: Path) -> None:
        lock = ExecutionLock(lock_path)
        acquired = threading.Event()

        lock.acquire()
        waiter = threading.Thread(target=lambda: (lock.acquire(), acquired.set()))
        waiter.start()
        assert not acquired.wait(0.3)

        lock.release()
        assert acquired.wait(5)
        waiter.join(5)
        assert lock.held
        lock.close()
        assert not lock.held


class TestDefaultLockPath:
    def test_uses_tmpdir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TMPDIR", str(tmp_path))
        assert default_lock_path() == tmp_path / "stakeout.lock"

    def test_configured_directory(self, tmp_path: Path) -> None:
        assert default_lock_path(str(tmp_path), "x.lock") == tmp_path / "x.lock"


class TestWithExclusiveSection:
    @pytest.mark.asyncio
    async def test_disabled_runs_body_directly(self) -> None:
        async def body() -> str:
            return "done"

        assert await with_exclusive_section(False, None, body) == "done"

    @pytest.mark.asyncio
    async def test_enabled_without_lock_is_an_error(self) -> None:
        async def body() -> None:
            raise AssertionError("body must not run")

        with pytest.raises(LockError):
            await with_exclusive_section(True, None, body)

    @pytest.mark.asyncio
    async def test_held_during_body(self, lock_path: Path) -> None:
        lock = ExecutionLock(lock_path)

        async def body() -> bool:
            return lock.held

        assert await with_exclusive_section(True, lock, body) is True
        assert not lock.held
        lock.close()

    @pytest.mark.asyncio
    async def test_released_when_body_raises(self, lock_path: Path) -> None:
        lock = ExecutionLock(lock_path)

        async def body() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await with_exclusive_section(True, lock, body)
        assert not lock.held

        # A fresh holder can still get in
        other = ExecutionLock(lock_path)
        other.acquire()
        other.close()
        lock.close()

    @posix_only
    @pytest.mark.asyncio
    async def test_overlapping_sections_do_not_interleave(self, lock_path: Path) -> None:
        events: list[str] = []

        def make_body(name: str):
            async def body() -> None:
                events.append(f"{name}-start")
                await asyncio.sleep(0.3)
                events.append(f"{name}-end")

            return body

        first_lock = ExecutionLock(lock_path)
        second_lock = ExecutionLock(lock_path)

        first = asyncio.create_task(with_exclusive_section(True, first_lock, make_body("a")))
        await asyncio.sleep(0.05)
        second = asyncio.create_task(with_exclusive_section(True, second_lock, make_body("b")))
        await asyncio.gather(first, second)

        assert events == ["a-start", "a-end", "b-start", "b-end"]
        first_lock.close()
        second_lock.close()

    @posix_only
    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_keep_lock(self, lock_path: Path) -> None:
        holder = ExecutionLock(lock_path)
        waiter_lock = ExecutionLock(lock_path)
        holder.acquire()
        released = threading.Event()
        release = waiter_lock.release

        def release_and_signal() -> None:
            release()
            released.set()

        waiter_lock.release = release_and_signal  # type: ignore[method-assign]

        async def body() -> None:
            raise AssertionError("body must not run")

        waiting = asyncio.create_task(with_exclusive_section(True, waiter_lock, body))
        await asyncio.sleep(0.1)
        waiting.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiting

        holder.release()
        # The waiter's thread gets the lock, then gives it straight back
        for _ in range(100):
            if released.is_set():
                break
            await asyncio.sleep(0.05)
        assert released.is_set()
        assert not waiter_lock.held

        third = ExecutionLock(lock_path)
        third.acquire()
        third.close()
        holder.close()
        waiter_lock.close()

    @pytest.mark.asyncio
    async def test_shared_lock_object_does_not_interleave(self, lock_path: Path) -> None:
        events: list[str] = []
        lock = ExecutionLock(lock_path)

        def make_body(name: str):
            async def body() -> None:
                events.append(f"{name}-start")
                assert lock.held
                await asyncio.sleep(0.3)
                events.append(f"{name}-end")

            return body

        first = asyncio.create_task(with_exclusive_section(True, lock, make_body("a")))
        await asyncio.sleep(0.05)
        second = asyncio.create_task(with_exclusive_section(True, lock, make_body("b")))
        await asyncio.gather(first, second)

        assert events == ["a-start", "a-end", "b-start", "b-end"]
        assert not lock.held
        lock.close()
