"""Test suite for the filesystem walker."""

import os
import sys
import threading
from contextlib import contextmanager
from pathlib import Path

import pytest

from scout.common.pydantic import SearchLimits
from scout.search.errors import LimitReason
from scout.search.skip_rules import SkipRules
from scout.search.walker import PROGRESS_INTERVAL, walk
from tests.test_utils import make_tree


class TestWalker:
    """Test traversal, matching and limits."""

    def test_git_subtree_never_entered(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """A .git tree is skipped entirely, even with hidden files shown."""
        make_tree(temp_workspace, [f"project/.git/objects/obj{i:03d}" for i in range(500)])
        make_tree(temp_workspace, ["project/src/app.go"])

        outcome = walk(temp_workspace, "app", limits, skip_rules, True, threading.Event())

        assert [r.display_name for r in outcome.results] == [os.path.join("project", "src", "app.go")]
        assert outcome.skipped_dirs == 1
        # project, .git, src, app.go
        assert outcome.scanned == 4
        assert outcome.limit_reached is None

    def test_files_scanned_boundary(self, temp_workspace: Path, skip_rules: SkipRules):
        """More entries than the scan ceiling ends early with partial results."""
        make_tree(temp_workspace, [f"file_{i:02d}.txt" for i in range(50)])
        limits = SearchLimits(max_files_scanned=20)

        outcome = walk(temp_workspace, "file", limits, skip_rules, True, threading.Event())

        assert outcome.limit_reached is LimitReason.MAX_FILES_SCANNED
        assert len(outcome.results) == 20
        assert outcome.scanned == 21

    def test_exactly_at_scan_ceiling_is_not_a_limit(self, temp_workspace: Path, skip_rules: SkipRules):
        """Scanning exactly the ceiling completes normally."""
        make_tree(temp_workspace, [f"file_{i:02d}.txt" for i in range(20)])
        limits = SearchLimits(max_files_scanned=20)

        outcome = walk(temp_workspace, "file", limits, skip_rules, True, threading.Event())

        assert outcome.limit_reached is None
        assert len(outcome.results) == 20

    def test_max_results(self, temp_workspace: Path, skip_rules: SkipRules):
        """Results are capped in discovery order."""
        make_tree(temp_workspace, [f"file_{i:02d}.txt" for i in range(30)])
        limits = SearchLimits(max_results=5)

        outcome = walk(temp_workspace, "file", limits, skip_rules, True, threading.Event())

        assert outcome.limit_reached is LimitReason.MAX_RESULTS
        assert [r.display_name for r in outcome.results] == [f"file_{i:02d}.txt" for i in range(5)]

    def test_hidden_policy(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """Hidden entries are only returned when shown."""
        make_tree(temp_workspace, [".secret.txt", "visible.txt", ".hidden_dir/inner.txt"])

        hidden_off = walk(temp_workspace, "txt", limits, skip_rules, False, threading.Event())
        hidden_on = walk(temp_workspace, "txt", limits, skip_rules, True, threading.Event())

        assert [r.display_name for r in hidden_off.results] == ["visible.txt"]
        assert {r.display_name for r in hidden_on.results} == {
            ".secret.txt",
            "visible.txt",
            os.path.join(".hidden_dir", "inner.txt"),
        }

    def test_depth_cap(self, temp_workspace: Path, skip_rules: SkipRules):
        """Directories deeper than the cap are not entered."""
        make_tree(temp_workspace, ["target_0.txt", "l1/target_1.txt", "l1/l2/target_2.txt"])
        limits = SearchLimits(max_depth=1)

        outcome = walk(temp_workspace, "target", limits, skip_rules, True, threading.Event())

        assert [r.path.name for r in outcome.results] == ["target_1.txt", "target_0.txt"]

    def test_ignored_names(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """Desktop metadata files never show up."""
        make_tree(temp_workspace, [".DS_Store", "Thumbs.db", "DS_notes.txt"])

        outcome = walk(temp_workspace, "s", limits, skip_rules, True, threading.Event())

        assert [r.display_name for r in outcome.results] == ["DS_notes.txt"]

    def test_user_skip_patterns(self, temp_workspace: Path, limits: SearchLimits):
        """Prefix and path-suffix patterns from config prune subtrees."""
        make_tree(
            temp_workspace,
            [
                "Python312/lib_match.txt",
                "Google/Chrome/User Data/match.txt",
                "Documents/User Data/match.txt",
            ],
        )
        rules = SkipRules.from_config(["Python*", "Google/Chrome/User Data"])

        outcome = walk(temp_workspace, "match", limits, rules, True, threading.Event())

        assert [r.display_name for r in outcome.results] == [os.path.join("Documents", "User Data", "match.txt")]
        assert outcome.skipped_dirs == 2

    def test_cancelled_before_start(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """A set cancel event stops the walk before the first entry."""
        make_tree(temp_workspace, ["a.txt", "b.txt"])
        cancel = threading.Event()
        cancel.set()

        outcome = walk(temp_workspace, "txt", limits, skip_rules, True, cancel)

        assert outcome.cancelled
        assert outcome.results == []
        assert outcome.scanned == 0

    def test_cancelled_mid_walk(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """Cancelling from the progress callback stops the walk at the next entry."""
        make_tree(temp_workspace, [f"file_{i:04d}.txt" for i in range(PROGRESS_INTERVAL + 50)])
        cancel = threading.Event()

        outcome = walk(temp_workspace, "file", limits, skip_rules, True, cancel, lambda _: cancel.set())

        assert outcome.cancelled
        assert outcome.scanned == PROGRESS_INTERVAL

    def test_progress_reports(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """Progress is reported every interval of scanned entries."""
        make_tree(temp_workspace, [f"file_{i:04d}.txt" for i in range(2 * PROGRESS_INTERVAL + 10)])
        reports: list[int] = []

        walk(temp_workspace, "nomatch", limits, skip_rules, True, threading.Event(), reports.append)

        assert reports == [PROGRESS_INTERVAL, 2 * PROGRESS_INTERVAL]

    def test_display_name_round_trip(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """Root plus display name rebuilds the absolute path of every result."""
        make_tree(temp_workspace, ["docs/guide/notes.md", "docs/notes.txt", "notes"])

        outcome = walk(temp_workspace, "notes", limits, skip_rules, True, threading.Event())

        assert len(outcome.results) == 3
        for result in outcome.results:
            assert temp_workspace / result.display_name == result.path
            assert result.path.is_absolute()

    def test_idempotent(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """Re-running the same query over an unchanged tree gives identical results."""
        make_tree(temp_workspace, ["a/report.txt", "b/report.md", "c/other.txt"])

        first = walk(temp_workspace, "report", limits, skip_rules, True, threading.Event())
        second = walk(temp_workspace, "report", limits, skip_rules, True, threading.Event())

        assert first.results == second.results

    def test_matches_directories(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """Directories are results too, with their metadata."""
        make_tree(temp_workspace, ["reports/q1.csv"])

        outcome = walk(temp_workspace, "reports", limits, skip_rules, True, threading.Event())

        assert outcome.results[0].is_dir
        assert outcome.results[0].matched_indexes == tuple(range(len("reports")))

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_broken_symlink_reported(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """A dangling link is listed with its own metadata."""
        os.symlink(temp_workspace / "missing", temp_workspace / "dangling_link")

        outcome = walk(temp_workspace, "dangling", limits, skip_rules, True, threading.Event())

        assert len(outcome.results) == 1
        assert not outcome.results[0].is_dir

    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="needs POSIX permissions enforced for the current user",
    )
    def test_permission_errors_are_counted(self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules):
        """Unreadable directories are tallied and the walk carries on."""
        make_tree(temp_workspace, ["locked/secret.txt", "open/readme.txt"])
        locked = temp_workspace / "locked"
        locked.chmod(0)
        try:
            outcome = walk(temp_workspace, "txt", limits, skip_rules, True, threading.Event())
        finally:
            locked.chmod(0o755)

        assert outcome.permission_errors == 1
        assert [r.display_name for r in outcome.results] == [os.path.join("open", "readme.txt")]


class _CountingScandir:
    """Wraps ``os.scandir`` and counts how many entries the walker pulls."""

    def __init__(self, on_entry=None):
        self.pulled = 0
        self._on_entry = on_entry
        self._scandir = os.scandir

    def __call__(self, path):
        return self._iterate(path)

    @contextmanager
    def _iterate(self, path):
        with self._scandir(path) as it:
            yield self._entries(it)

    def _entries(self, it):
        for entry in it:
            self.pulled += 1
            if self._on_entry is not None:
                self._on_entry(self.pulled)
            yield entry


class TestDirectoryListing:
    """Test that huge directories are not read past what the walk can use."""

    def test_listing_stops_at_scan_budget(
        self, temp_workspace: Path, skip_rules: SkipRules, monkeypatch: pytest.MonkeyPatch
    ):
        """Only as many entries as the scan ceiling allows are read."""
        make_tree(temp_workspace, [f"file_{i:02d}.txt" for i in range(50)])
        scandir = _CountingScandir()
        monkeypatch.setattr(os, "scandir", scandir)

        outcome = walk(temp_workspace, "file", SearchLimits(max_files_scanned=5), skip_rules, True, threading.Event())

        assert outcome.limit_reached is LimitReason.MAX_FILES_SCANNED
        assert scandir.pulled == 6
        assert len(outcome.results) == 5

    def test_cancel_interrupts_listing(
        self, temp_workspace: Path, limits: SearchLimits, skip_rules: SkipRules, monkeypatch: pytest.MonkeyPatch
    ):
        """Cancelling while a directory is being read ends the walk without reading the rest."""
        make_tree(temp_workspace, [f"file_{i:02d}.txt" for i in range(50)])
        cancel = threading.Event()
        scandir = _CountingScandir(lambda pulled: pulled == 3 and cancel.set())
        monkeypatch.setattr(os, "scandir", scandir)

        outcome = walk(temp_workspace, "file", limits, skip_rules, True, cancel)

        assert outcome.cancelled
        assert outcome.results == []
        assert scandir.pulled == 3
