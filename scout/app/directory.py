"""Directory listing and opening entries."""

import logging
import os
import shutil
from pathlib import Path

from ..common.pydantic import SearchResult
from ..search.matcher import PARENT_ENTRY, SortMode, sort_results

logger = logging.getLogger(__name__)

FALLBACK_EDITORS = ("code", "vim", "nano", "vi")


def list_directory(path: Path, show_hidden: bool, sort_mode: SortMode = SortMode.NAME) -> list[SearchResult]:
    """List ``path`` as result rows, with a parent entry unless it is a filesystem root.

    Raises:
        OSError: the directory cannot be read.
    """
    entries: list[SearchResult] = []
    if path.parent != path:
        entries.append(SearchResult(path=path.parent, display_name=PARENT_ENTRY, is_dir=True))

    with os.scandir(path) as it:
        for entry in it:
            if not show_hidden and entry.name.startswith("."):
                continue
            try:
                is_dir = entry.is_dir()
                stat = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            entries.append(
                SearchResult(
                    path=Path(entry.path),
                    display_name=entry.name,
                    is_dir=is_dir,
                    size=stat.st_size,
                    modified_ns=stat.st_mtime_ns,
                )
            )
    return sort_results(entries, sort_mode)


def editor_command(editor: str, path: Path, line: int | None = None) -> list[str]:
    """Command line that opens ``path`` in ``editor``, at ``line`` when the editor supports it."""
    name = Path(editor).name
    if line and line > 0:
        if name == "code":
            return [editor, "-g", f"{path}:{line}"]
        if name in ("vim", "vi", "nvim", "nano"):
            return [editor, f"+{line}", str(path)]
    return [editor, str(path)]


def find_editor(preferred: str = "") -> str | None:
    """First available editor, trying the configured one first."""
    candidates = [preferred] if preferred else []
    candidates.extend(FALLBACK_EDITORS)
    for candidate in candidates:
        if shutil.which(candidate):
            return candidate
    logger.warning("No editor found on PATH (tried %s)", ", ".join(candidates))
    return None
