"""Test suite for directory skip rules."""

import os
import shutil
import sys
import threading
from pathlib import Path

import pytest

from scout.common.pydantic import SearchLimits
from scout.search.content import search_content
from scout.search.skip_rules import ESSENTIAL_SKIP_NAMES, SkipRules
from scout.search.walker import walk


class TestSkipRules:
    """Test merging and applying skip rules."""

    def test_essential_rules_always_present(self):
        """User patterns add to the essential rules, never replace them."""
        rules = SkipRules.from_config(["Projects"])
        assert ESSENTIAL_SKIP_NAMES <= rules.names
        assert "Projects" in rules.names

    def test_pattern_kinds(self):
        """Trailing '*' makes a prefix, a separator makes a path suffix, anything else is a name."""
        rules = SkipRules.from_config(["Python*", "Google/Chrome/User Data", "Backups", "  ", "*"])

        assert "Python" in rules.prefixes
        assert ("Google", "Chrome", "User Data") in rules.path_suffixes
        assert "Backups" in rules.names
        assert "" not in rules.prefixes

    def test_exact_name(self):
        """Exact names skip regardless of location."""
        rules = SkipRules.from_config([])
        assert rules.should_skip_dir("/home/u/project/.git", ".git")
        assert not rules.should_skip_dir("/home/u/project/src", "src")

    def test_prefix(self):
        """Prefix rules skip any directory name starting with the prefix."""
        rules = SkipRules.from_config(["Python*"])
        assert rules.should_skip_dir("/opt2/Python312", "Python312")
        assert not rules.should_skip_dir("/home/u/MyPython", "MyPython")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX paths")
    def test_absolute_paths_only_match_full_path(self):
        """Absolute rules match the full path, not a same-named folder elsewhere."""
        rules = SkipRules.from_config([])
        assert rules.should_skip_dir("/usr", "usr")
        assert not rules.should_skip_dir("/home/u/usr", "usr")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX paths")
    def test_path_suffix(self):
        """Path suffix rules match trailing path components."""
        rules = SkipRules.from_config(["Google/Chrome/User Data"])
        assert rules.should_skip_dir("/home/u/.config/Google/Chrome/User Data", "User Data")
        assert not rules.should_skip_dir("/home/u/Documents/User Data", "User Data")

    def test_ignored_names(self):
        """Desktop metadata files are ignored."""
        rules = SkipRules.from_config([])
        assert rules.is_ignored(".DS_Store")
        assert rules.is_ignored("Thumbs.db")
        assert not rules.is_ignored("notes.txt")


class TestRipgrepGlobs:
    """Test exclusion globs handed to the content search tool."""

    def test_globs_mirror_walker_rules(self):
        """Names, prefixes and suffixes all turn into exclusion globs."""
        rules = SkipRules.from_config(["Python*", "Google/Chrome/User Data"])
        globs = rules.rg_globs(os.path.expanduser("~"))

        assert "!.git/" in globs
        assert "!node_modules/" in globs
        assert "!Python*/" in globs
        assert "!**/Google/Chrome/User Data/" in globs

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX paths")
    def test_absolute_paths_anchored_at_root(self):
        """System paths below the search root are excluded with anchored globs."""
        rules = SkipRules.from_config([])
        assert "!/usr/" in rules.rg_globs("/")
        assert not any(g.startswith("!/") for g in rules.rg_globs("/home"))

    def test_globs_only_match_directories(self):
        """Files named like a skipped directory or prefix are still searched."""
        rules = SkipRules.from_config(["Python*", "Google/Chrome/User Data", "secret"])
        globs = rules.rg_globs("/")

        assert globs
        assert all(g.endswith("/") for g in globs)
        assert "!TEMP*" not in globs
        assert "!build" not in globs

    @pytest.mark.skipif(shutil.which("rg") is None, reason="ripgrep not installed")
    def test_ripgrep_keeps_files_with_skipped_names(self, temp_workspace: Path, limits: SearchLimits):
        """Content search and the walker agree on files sharing a skipped name."""
        names = ["TEMPLATE.md", "wsl.conf", "UnityBridge.cs", "build", "Python_notes.txt"]
        for name in names:
            (temp_workspace / name).write_text("needle\n")
        rules = SkipRules.from_config(["Python*"])

        walked = walk(temp_workspace, ".", limits, rules, True, threading.Event())
        found = search_content("needle", temp_workspace, True, threading.Event(), limits, rules)

        assert {r.path.name for r in walked.results} == set(names) - {"build"}
        assert {r.path.name for r in found.results} == set(names)
