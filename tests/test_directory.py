"""Test suite for directory listing and editor commands."""

from pathlib import Path

from scout.app.directory import editor_command, list_directory
from scout.search.matcher import PARENT_ENTRY, SortMode
from tests.test_utils import make_tree


class TestListDirectory:
    """Test the browser's directory listing."""

    def test_parent_first_then_dirs(self, temp_workspace: Path):
        """The parent entry leads, directories come before files."""
        make_tree(temp_workspace, ["b.txt", "a.txt", "zdir/inner.txt"])

        entries = list_directory(temp_workspace, show_hidden=True)

        assert [e.display_name for e in entries] == [PARENT_ENTRY, "zdir", "a.txt", "b.txt"]
        assert entries[0].path == temp_workspace.parent
        assert entries[1].is_dir

    def test_hidden_policy(self, temp_workspace: Path):
        """Dotfiles are only listed when shown."""
        make_tree(temp_workspace, [".env_local", "visible.txt"])

        hidden = [e.display_name for e in list_directory(temp_workspace, show_hidden=False)]
        shown = [e.display_name for e in list_directory(temp_workspace, show_hidden=True)]

        assert ".env_local" not in hidden
        assert ".env_local" in shown

    def test_sort_mode(self, temp_workspace: Path):
        """The listing honours the sort mode."""
        (temp_workspace / "small.txt").write_text("x")
        (temp_workspace / "large.txt").write_text("x" * 1000)

        entries = list_directory(temp_workspace, show_hidden=True, sort_mode=SortMode.SIZE)

        assert [e.display_name for e in entries] == [PARENT_ENTRY, "large.txt", "small.txt"]

    def test_root_has_no_parent(self):
        """A filesystem root has no parent entry."""
        root = Path(Path.cwd().anchor)
        entries = list_directory(root, show_hidden=False)
        assert all(e.display_name != PARENT_ENTRY for e in entries)


class TestEditorCommand:
    """Test opening files at a line."""

    def test_vscode_goto(self):
        """VS Code jumps to the line with -g."""
        assert editor_command("code", Path("/p/a.py"), 12) == ["code", "-g", f"{Path('/p/a.py')}:12"]

    def test_terminal_editors(self):
        """vim and nano take +line before the path."""
        assert editor_command("vim", Path("/p/a.py"), 3) == ["vim", "+3", str(Path("/p/a.py"))]
        assert editor_command("/usr/bin/nano", Path("/p/a.py"), 3) == ["/usr/bin/nano", "+3", str(Path("/p/a.py"))]

    def test_without_line(self):
        """Without a line number the path is passed alone."""
        assert editor_command("vim", Path("/p/a.py")) == ["vim", str(Path("/p/a.py"))]
        assert editor_command("emacs", Path("/p/a.py"), 5) == ["emacs", str(Path("/p/a.py"))]
