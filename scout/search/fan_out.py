"""Search-everything strategy: one walker per mounted volume."""

import logging
import os
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from threading import Event

from ..common.pydantic import SearchLimits, SearchResult
from ..events import ResultStream
from ..events.search import SearchBatch, SearchComplete, SearchProgress
from .errors import LimitReason
from .skip_rules import SkipRules
from .volumes import mounted_volumes, volume_label
from .walker import WalkOutcome, walk

logger = logging.getLogger(__name__)

WalkFn = Callable[..., WalkOutcome]


def label_prefix(label: str) -> str:
    """Prefix prepended to the display name of a volume's results."""
    return f"[{label}] "


def label_result(result: SearchResult, label: str) -> SearchResult:
    """Prefix the display name with the volume label, shifting highlight positions to match."""
    prefix = label_prefix(label)
    return result.model_copy(
        update={
            "display_name": prefix + result.display_name,
            "matched_indexes": tuple(i + len(prefix) for i in result.matched_indexes),
            "volume": label,
        }
    )


def strip_label(result: SearchResult) -> str:
    """Root-relative part of a labelled display name."""
    if result.volume is None:
        return result.display_name
    prefix = label_prefix(result.volume)
    if result.display_name.startswith(prefix):
        return result.display_name[len(prefix) :]
    return result.display_name


def resolve_result_path(volume_root: str | os.PathLike[str], result: SearchResult) -> Path:
    """Rebuild the absolute path of a walker result from its volume root and display name."""
    return Path(volume_root) / strip_label(result)


def search_all_volumes(
    query: str,
    limits: SearchLimits,
    skip_rules: SkipRules,
    show_hidden: bool,
    cancel_event: Event,
    stream: ResultStream,
    volumes: Sequence[str] | None = None,
    walk_fn: WalkFn = walk,
) -> None:
    """Walk every volume concurrently and merge their results into ``stream``.

    The running union is published as soon as any volume finishes, so a slow
    volume never hides a fast one. ``SearchComplete`` is only published after
    every per-volume task has exited. A volume whose walk raises contributes
    nothing and does not fail the others.
    """
    roots = list(volumes) if volumes is not None else mounted_volumes()
    logger.info("Searching %d volumes for %r: %s", len(roots), query, ", ".join(roots))

    def run_volume(root: str) -> tuple[str, WalkOutcome]:
        label = volume_label(root)
        if cancel_event.is_set():
            return label, WalkOutcome(cancelled=True)
        stream.publish(SearchProgress(scanned=0, volume=label))

        def on_progress(scanned: int) -> None:
            stream.publish(SearchProgress(scanned=scanned, volume=label))

        return label, walk_fn(root, query, limits, skip_rules, show_hidden, cancel_event, on_progress)

    merged: list[SearchResult] = []
    limit_reached: LimitReason | None = None
    permission_errors = 0

    if roots:
        with ThreadPoolExecutor(max_workers=len(roots), thread_name_prefix="scout-volume") as executor:
            futures = {executor.submit(run_volume, root): root for root in roots}
            for future in as_completed(futures):
                root = futures[future]
                try:
                    label, outcome = future.result()
                except Exception:
                    logger.exception("Search of volume %s failed", root)
                    continue
                if cancel_event.is_set():
                    continue

                permission_errors += outcome.permission_errors
                room = max(limits.max_results - len(merged), 0)
                if len(outcome.results) > room:
                    limit_reached = LimitReason.MAX_RESULTS
                elif outcome.limit_reached is not None and limit_reached is None:
                    limit_reached = outcome.limit_reached
                merged.extend(label_result(r, label) for r in outcome.results[:room])
                stream.publish(SearchBatch(results=tuple(merged), cumulative=True))

    if cancel_event.is_set():
        logger.debug("Multi-volume search for %r cancelled", query)
        return
    logger.info("Multi-volume search complete: %d results", len(merged))
    stream.publish(SearchComplete(total=len(merged), limit_reached=limit_reached, permission_errors=permission_errors))
