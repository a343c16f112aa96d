"""Mounted volume discovery for the search-everything strategy."""

import os
import string
import sys
from collections.abc import Iterable
from pathlib import Path

from more_itertools import unique_everseen


def _subdirs(path: Path) -> list[Path]:
    try:
        return sorted(p for p in path.iterdir() if p.is_dir())
    except OSError:
        return []


def normalize_volume_path(path: str) -> str:
    """Normalize Windows-style drive paths to their WSL mount point.

    ``"L:"`` and ``"L:\\"`` become ``"/mnt/l"``, ``"L:/foo"`` becomes
    ``"/mnt/l/foo"``; POSIX paths are returned unchanged.
    """
    if path.startswith("/"):
        return path
    if len(path) >= 2 and path[1] == ":":
        letter = path[0].lower()
        if len(path) == 2:
            return f"/mnt/{letter}"
        if path[2] in "\\/":
            rest = path[3:].replace("\\", "/").rstrip("/")
            return f"/mnt/{letter}/{rest}" if rest else f"/mnt/{letter}"
    return path


def dedupe_volumes(paths: Iterable[str]) -> list[str]:
    """Normalize and de-duplicate, keeping first-seen order."""
    return list(unique_everseen(normalize_volume_path(p) for p in paths))


def mounted_volumes(platform: str | None = None, base: Path = Path("/")) -> list[str]:
    """List mounted volumes/roots for the current platform.

    ``base`` relocates the POSIX lookup of ``/Volumes``, ``/mnt`` and ``/media``.
    """
    platform = platform or sys.platform
    if platform.startswith("win"):
        drives = [f"{letter}:\\" for letter in string.ascii_uppercase if os.path.exists(f"{letter}:\\")]
        # Windows drive roots must not be folded into WSL mount points.
        return list(unique_everseen(drives))

    if platform == "darwin":
        volumes = [str(p) for p in _subdirs(base / "Volumes")]
        volumes.append(str(base))
        return dedupe_volumes(volumes)

    volumes = [str(base)]
    volumes.extend(str(p) for p in _subdirs(base / "mnt"))
    for user_dir in _subdirs(base / "media"):
        volumes.extend(str(p) for p in _subdirs(user_dir))
    return dedupe_volumes(volumes)


def volume_label(path: str) -> str:
    """Human readable label for a volume root."""
    if len(path) >= 2 and path[1] == ":":
        return path[0].upper() + ":"
    if path in ("/", os.sep):
        return "Root"
    if path.startswith("/mnt/"):
        rest = path[len("/mnt/") :].strip("/")
        if len(rest) == 1:
            return rest.upper() + ":"
    return Path(path).name or path
