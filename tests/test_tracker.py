"""Tests for FileStateTracker."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from stakeout.watching import FileStateTracker, WatchSet
from tests.utils import bump_mtime


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "lib").mkdir()
    (tmp_path / "lib" / "a.rb").write_text("a")
    (tmp_path / "lib" / "b.rb").write_text("b")
    (tmp_path / "lib" / "nested").mkdir()
    (tmp_path / "lib" / "nested" / "c.rb").write_text("c")
    (tmp_path / "README").write_text("readme")
    return tmp_path


class TestInitialize:
    def test_single_glob(self, project: Path) -> None:
        tracker = FileStateTracker(cwd=str(project))
        watch_set = tracker.initialize(["lib/*.rb"])
        assert sorted(watch_set) == sorted(
            [str(project / "lib" / "a.rb"), str(project / "lib" / "b.rb")]
        )

    def test_union_is_deduplicated(self, project: Path) -> None:
        tracker = FileStateTracker(cwd=str(project))
        watch_set = tracker.initialize(["lib/*.rb", "lib/a.rb", "lib/**/*.rb"])
        assert len(watch_set) == 3
        assert str(project / "lib" / "nested" / "c.rb") in watch_set

    def test_absolute_patterns(self, project: Path) -> None:
        tracker = FileStateTracker()
        watch_set = tracker.initialize([str(project / "lib" / "*.rb")])
        assert len(watch_set) == 2

    def test_shell_expanded_paths(self, project: Path) -> None:
        tracker = FileStateTracker()
        paths = [str(project / "README"), str(project / "lib" / "a.rb")]
        watch_set = tracker.initialize(paths)
        assert watch_set.paths == paths

    def test_literal_name_with_glob_characters(self, tmp_path: Path) -> None:
        odd = tmp_path / "spec[1].rb"
        odd.write_text("x")
        watch_set = FileStateTracker().initialize([str(odd)])
        assert watch_set.paths == [str(odd)]

    def test_unmatched_glob_contributes_nothing(self, project: Path) -> None:
        tracker = FileStateTracker(cwd=str(project))
        watch_set = tracker.initialize(["*.missing", "README"])
        assert watch_set.paths == [str(project / "README")]

    def test_directories_are_skipped(self, project: Path) -> None:
        tracker = FileStateTracker(cwd=str(project))
        watch_set = tracker.initialize(["lib/*"])
        assert str(project / "lib" / "nested") not in watch_set

    def test_seeded_with_current_mtime(self, project: Path) -> None:
        path = project / "README"
        watch_set = FileStateTracker().initialize([str(path)])
        assert watch_set.mtime(str(path)) == path.stat().st_mtime

    def test_empty_globs(self) -> None:
        watch_set = FileStateTracker().initialize([])
        assert len(watch_set) == 0


class TestFindChanged:
    def test_nothing_changed(self, project: Path) -> None:
        tracker = FileStateTracker(cwd=str(project))
        watch_set = tracker.initialize(["lib/**/*.rb"])
        assert tracker.find_changed(watch_set) is None

    def test_reports_changed_file(self, project: Path) -> None:
        tracker = FileStateTracker(cwd=str(project))
        watch_set = tracker.initialize(["lib/*.rb"])
        new_mtime = bump_mtime(project / "lib" / "b.rb")

        assert tracker.find_changed(watch_set) == (str(project / "lib" / "b.rb"), new_mtime)

    def test_first_changed_wins(self, project: Path) -> None:
        tracker = FileStateTracker()
        a, b = project / "lib" / "a.rb", project / "lib" / "b.rb"
        watch_set = tracker.initialize([str(a), str(b)])
        bump_mtime(b)
        bump_mtime(a)

        path, _ = tracker.find_changed(watch_set)
        assert path == str(a)

    def test_idempotent_without_update(self, project: Path) -> None:
        tracker = FileStateTracker(cwd=str(project))
        watch_set = tracker.initialize(["lib/*.rb"])
        assert tracker.find_changed(watch_set) is None
        assert tracker.find_changed(watch_set) is None

    def test_update_marks_change_seen(self, project: Path) -> None:
        tracker = FileStateTracker()
        a, b = project / "lib" / "a.rb", project / "lib" / "b.rb"
        watch_set = tracker.initialize([str(a), str(b)])
        bump_mtime(a)
        bump_mtime(b)

        path, mtime = tracker.find_changed(watch_set)
        tracker.update(watch_set, path, mtime)
        path, mtime = tracker.find_changed(watch_set)
        assert path == str(b)
        tracker.update(watch_set, path, mtime)
        assert tracker.find_changed(watch_set) is None

    def test_older_mtime_is_not_a_change(self, project: Path) -> None:
        path = project / "README"
        watch_set = FileStateTracker().initialize([str(path)])
        old = path.stat().st_mtime - 100
        os.utime(path, (old, old))
        assert FileStateTracker().find_changed(watch_set) is None

    def test_deleted_file_is_skipped_and_kept(
        self, project: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        tracker = FileStateTracker()
        a, b = project / "lib" / "a.rb", project / "lib" / "b.rb"
        watch_set = tracker.initialize([str(a), str(b)])
        a.unlink()
        bump_mtime(b)

        with caplog.at_level(logging.WARNING, logger="stakeout"):
            changed = tracker.find_changed(watch_set)

        assert changed is not None and changed[0] == str(b)
        assert str(a) in watch_set
        assert any(str(a) in record.getMessage() for record in caplog.records)

    def test_recreated_file_triggers_once_newer(self, project: Path) -> None:
        path = project / "README"
        tracker = FileStateTracker()
        watch_set = tracker.initialize([str(path)])
        path.unlink()
        assert tracker.find_changed(watch_set) is None

        path.write_text("back")
        newer = watch_set.mtime(str(path)) + 5
        os.utime(path, (newer, newer))
        assert tracker.find_changed(watch_set) == (str(path), newer)


class TestWatchSet:
    def test_iteration_follows_insertion(self) -> None:
        watch_set = WatchSet({"b": 1.0, "a": 2.0})
        assert list(watch_set) == ["b", "a"]
        assert len(watch_set) == 2
        assert "a" in watch_set
