"""Root pytest configuration for all tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from stakeout.logging import logger as stakeout_logger
from tests.utils import FakeExecutor, RecordingNotifier

# Configure pytest-asyncio; asyncio_mode is also set in pyproject.toml
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own config and environment out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("STAKEOUT_LOG", raising=False)
    monkeypatch.delenv("STAKEOUT_NOTIFIER", raising=False)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor(output="3 tests, 5 assertions, 0 failures, 0 errors\n")


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers the CLI installs so they never outlive a test's streams."""
    yield
    for handler in list(stakeout_logger.handlers):
        stakeout_logger.removeHandler(handler)
        handler.close()
    stakeout_logger.setLevel(logging.NOTSET)
