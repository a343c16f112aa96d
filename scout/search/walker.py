"""Depth-first filesystem walker used by the recursive and multi-volume strategies."""

import logging
import os
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from threading import Event

from ..common.pydantic import SearchLimits, SearchResult
from .errors import LimitReason
from .matcher import substring_match
from .skip_rules import SkipRules

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 1000

ProgressCallback = Callable[[int], None]


@dataclass
class WalkOutcome:
    """Everything one walk produced, including why it stopped."""

    results: list[SearchResult] = field(default_factory=list)
    scanned: int = 0
    skipped_dirs: int = 0
    permission_errors: int = 0
    limit_reached: LimitReason | None = None
    cancelled: bool = False


@dataclass
class _Frame:
    entries: Iterator[os.DirEntry]
    depth: int
    prefix: str


def _list_dir(path: str, outcome: WalkOutcome, cancel_event: Event, budget: int) -> list[os.DirEntry] | None:
    """Read and name-sort at most ``budget`` entries of ``path``, stopping early on cancellation."""
    entries: list[os.DirEntry] = []
    try:
        with os.scandir(path) as it:
            for entry in it:
                if cancel_event.is_set():
                    outcome.cancelled = True
                    return None
                entries.append(entry)
                if len(entries) >= budget:
                    # Nothing past the budget can be scanned before the limit stops the walk.
                    break
    except PermissionError:
        outcome.permission_errors += 1
        return None
    except OSError as e:
        logger.debug("Cannot list %s: %s", path, e)
        return None
    entries.sort(key=lambda e: e.name)
    return entries


def walk(
    root: str | os.PathLike[str],
    query: str,
    limits: SearchLimits,
    skip_rules: SkipRules,
    show_hidden: bool,
    cancel_event: Event,
    on_progress: ProgressCallback | None = None,
) -> WalkOutcome:
    """Walk ``root`` depth-first and collect entries whose root-relative path contains ``query``.

    The cancel event is checked before every entry. Skipped, hidden and
    too-deep directories are never entered. Results keep discovery order and
    stop at ``limits.max_results``; the walk also stops once more than
    ``limits.max_files_scanned`` entries have been seen. Directories that
    cannot be read are tallied in ``permission_errors`` rather than logged.
    """
    root_str = os.path.abspath(root)
    outcome = WalkOutcome()
    started = time.monotonic()
    logger.debug("Recursive search in %s for %r", root_str, query)

    root_entries = _list_dir(root_str, outcome, cancel_event, limits.max_files_scanned + 1)
    stack = [_Frame(iter(root_entries), 0, "")] if root_entries else []

    while stack:
        frame = stack[-1]
        entry = next(frame.entries, None)
        if entry is None:
            stack.pop()
            continue

        if cancel_event.is_set():
            outcome.cancelled = True
            logger.debug("Walk of %s cancelled after %d entries", root_str, outcome.scanned)
            break

        outcome.scanned += 1
        if on_progress is not None and outcome.scanned % PROGRESS_INTERVAL == 0:
            on_progress(outcome.scanned)
        if outcome.scanned > limits.max_files_scanned:
            outcome.limit_reached = LimitReason.MAX_FILES_SCANNED
            logger.info("Hit max files scanned limit (%d) in %s", limits.max_files_scanned, root_str)
            break

        name = entry.name
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            is_dir = False

        if is_dir and skip_rules.should_skip_dir(entry.path, name):
            outcome.skipped_dirs += 1
            continue
        if not show_hidden and name.startswith("."):
            continue
        if skip_rules.is_ignored(name):
            continue

        try:
            # lstat, so a broken link reports its own metadata
            stat = entry.stat(follow_symlinks=False)
        except PermissionError:
            outcome.permission_errors += 1
            continue
        except OSError:
            continue

        display_name = frame.prefix + name
        matched = substring_match(query, display_name)
        if matched is not None:
            outcome.results.append(
                SearchResult(
                    path=Path(entry.path),
                    display_name=display_name,
                    is_dir=is_dir,
                    size=stat.st_size,
                    modified_ns=stat.st_mtime_ns,
                    matched_indexes=matched,
                )
            )
            if len(outcome.results) >= limits.max_results:
                outcome.limit_reached = LimitReason.MAX_RESULTS
                logger.info("Hit max results limit (%d) in %s", limits.max_results, root_str)
                break

        if is_dir and frame.depth + 1 <= limits.max_depth:
            children = _list_dir(entry.path, outcome, cancel_event, limits.max_files_scanned - outcome.scanned + 1)
            if outcome.cancelled:
                logger.debug("Walk of %s cancelled while listing %s", root_str, entry.path)
                break
            if children:
                stack.append(_Frame(iter(children), frame.depth + 1, display_name + os.sep))

    elapsed = time.monotonic() - started
    if outcome.permission_errors:
        logger.info(
            "Scan of %s: %d entries, %d dirs skipped, %d permission errors, %d matches in %.2fs",
            root_str,
            outcome.scanned,
            outcome.skipped_dirs,
            outcome.permission_errors,
            len(outcome.results),
            elapsed,
        )
    else:
        logger.info(
            "Scan of %s: %d entries, %d dirs skipped, %d matches in %.2fs",
            root_str,
            outcome.scanned,
            outcome.skipped_dirs,
            len(outcome.results),
            elapsed,
        )
    return outcome
