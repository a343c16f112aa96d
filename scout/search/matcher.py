"""Substring matching and result ordering."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from ..common.pydantic import SearchResult

PARENT_ENTRY = ".."


@dataclass(frozen=True, slots=True)
class NameMatch:
    """Position of a matched name in its source list, plus highlighted characters."""

    index: int
    matched_indexes: tuple[int, ...]


def _fold(text: str) -> str:
    # Characters whose lowercase form has a different length are kept as-is so
    # that indices into the folded string stay valid for the original.
    return "".join(lowered if len(lowered := ch.lower()) == 1 else ch for ch in text)


def substring_match(query: str, candidate: str) -> tuple[int, ...] | None:
    """Case-insensitive containment check.

    Returns the contiguous character range of the first occurrence of ``query``
    inside ``candidate``, or ``None`` when it does not occur. An empty query
    never matches.
    """
    if not query:
        return None
    start = _fold(candidate).find(_fold(query))
    if start < 0:
        return None
    return tuple(range(start, start + len(query)))


def substring_match_names(query: str, names: Iterable[str]) -> list[NameMatch]:
    """Match every name against the query, preserving input order."""
    if not query:
        return []
    folded_query = _fold(query)
    matches: list[NameMatch] = []
    for i, name in enumerate(names):
        start = _fold(name).find(folded_query)
        if start >= 0:
            matches.append(NameMatch(index=i, matched_indexes=tuple(range(start, start + len(query)))))
    return matches


def match_results(query: str, results: Iterable[SearchResult]) -> list[SearchResult]:
    """Filter listed entries by query, attaching highlight positions."""
    matched: list[SearchResult] = []
    for result in results:
        if result.display_name == PARENT_ENTRY:
            continue
        indexes = substring_match(query, result.display_name)
        if indexes is not None:
            matched.append(result.model_copy(update={"matched_indexes": indexes}))
    return matched


class SortMode(StrEnum):
    """Orderings the user can apply to a visible result set."""

    NAME = "name"
    SIZE = "size"
    DATE = "date"
    TYPE = "type"

    def next(self) -> "SortMode":
        """Next mode in the cycle."""
        modes = list(SortMode)
        return modes[(modes.index(self) + 1) % len(modes)]


def _sort_key(result: SearchResult, mode: SortMode) -> tuple:
    is_parent = result.display_name == PARENT_ENTRY
    dirs_first = 0 if mode is SortMode.SIZE or result.is_dir else 1
    name = result.display_name.lower()
    match mode:
        case SortMode.SIZE:
            key: tuple = (-result.size,)
        case SortMode.DATE:
            key = (-(result.modified_ns or 0),)
        case SortMode.TYPE:
            key = (result.path.suffix.lower(), name)
        case _:
            key = (name,)
    return (not is_parent, dirs_first, *key)


def sort_results(results: Iterable[SearchResult], mode: SortMode) -> list[SearchResult]:
    """Re-sort results; the parent entry stays first and directories lead except by size."""
    return sorted(results, key=lambda r: _sort_key(r, mode))
