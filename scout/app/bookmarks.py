"""Bookmarks ranked by frecency."""

from collections.abc import Mapping, Sequence
from datetime import datetime

from .app_config import AppConfig


def rank_bookmarks(bookmarks: Sequence[str], frecency: Mapping[str, int]) -> list[str]:
    """Order bookmarks by visit count, highest first. Ties keep their original order."""
    return sorted(bookmarks, key=lambda path: -frecency.get(path, 0))


def record_visit(config: AppConfig, path: str, now: datetime | None = None) -> int:
    """Count a visit to ``path`` and return its new score."""
    config.frecency[path] = config.frecency.get(path, 0) + 1
    config.last_visited[path] = (now or datetime.now().astimezone()).isoformat(timespec="seconds")
    return config.frecency[path]


def toggle_bookmark(config: AppConfig, path: str) -> bool:
    """Add ``path`` to the bookmarks, or remove it if present. Returns True if it is now bookmarked."""
    if path in config.bookmarks:
        config.bookmarks.remove(path)
        return False
    config.bookmarks.append(path)
    return True
