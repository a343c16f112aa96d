"""File content search backed by ripgrep."""

import logging
import os
import re
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from threading import Event

from ..common.pydantic import SearchLimits, SearchResult
from .errors import LimitReason, SearchTimeoutError, SubprocessFailureError, ToolNotFoundError
from .skip_rules import SkipRules

logger = logging.getLogger(__name__)

TOOL_NAMES = ("rg", "ripgrep")
PREVIEW_WIDTH = 100
MONITOR_INTERVAL = 0.05

# path:line:column:content, where path may itself contain a drive colon
_LINE_RE = re.compile(r"^(?P<path>.+?):(?P<line>\d+):(?P<column>\d+):(?P<content>.*)$")


@dataclass
class ContentOutcome:
    """Parsed content matches and how the subprocess ended."""

    results: list[SearchResult] = field(default_factory=list)
    limit_reached: LimitReason | None = None
    permission_errors: int = 0
    cancelled: bool = False


def find_search_tool() -> str | None:
    """Locate the text-search binary on PATH."""
    for name in TOOL_NAMES:
        found = shutil.which(name)
        if found:
            return found
    return None


def build_command(
    tool: str, query: str, root: str, show_hidden: bool, limits: SearchLimits, skip_rules: SkipRules
) -> list[str]:
    """Build the ripgrep invocation."""
    cmd = [
        tool,
        "--line-number",
        "--column",
        "--no-heading",
        "--color=never",
        "--fixed-strings",
        "--ignore-case",
        # ripgrep counts the root as depth 0, the walker counts its children as depth 0
        f"--max-depth={limits.max_depth + 1}",
        f"--max-count={limits.max_results}",
        f"--max-filesize={limits.max_file_size}",
    ]
    for glob in skip_rules.rg_globs(root):
        cmd.extend(["--glob", glob])
    cmd.append("--hidden" if show_hidden else "--no-hidden")
    cmd.extend(["--regexp", query, "--", root])
    return cmd


def is_permission_noise(stderr: str) -> bool:
    """Whether stderr holds nothing but permission-denied complaints."""
    lines = [line for line in stderr.splitlines() if line.strip()]
    return bool(lines) and all("permission denied" in line.lower() for line in lines)


def preview_name(relative_path: str, line_number: int, content: str, width: int = PREVIEW_WIDTH) -> str:
    """Display name for a content hit, truncated to the preview width."""
    text = f"{relative_path}:{line_number} - {content.strip()}"
    if len(text) > width:
        return text[: width - 3] + "..."
    return text


def parse_output(output: str, root: str, max_results: int) -> list[SearchResult]:
    """Parse ``path:line:column:content`` lines into results."""
    results: list[SearchResult] = []
    for line in output.splitlines():
        if not line:
            continue
        m = _LINE_RE.match(line)
        if m is None:
            continue
        file_path = m["path"]
        line_number = int(m["line"])
        try:
            relative = os.path.relpath(file_path, root)
        except ValueError:
            relative = file_path
        if relative.startswith(".."):
            relative = file_path
        results.append(
            SearchResult(
                path=Path(file_path),
                display_name=preview_name(relative, line_number, m["content"]),
                line_number=line_number,
            )
        )
        if len(results) >= max_results:
            break
    return results


def _monitor(proc: subprocess.Popen, cancel_event: Event, deadline: float, done: Event, reason: list[str]) -> None:
    """Kill the subprocess when cancelled or past its deadline, whichever happens first."""
    while not done.wait(MONITOR_INTERVAL):
        if cancel_event.is_set():
            reason.append("cancelled")
        elif time.monotonic() >= deadline:
            reason.append("timeout")
        else:
            continue
        if proc.poll() is None:
            proc.kill()
        return


def search_content(
    query: str,
    root: str | os.PathLike[str],
    show_hidden: bool,
    cancel_event: Event,
    limits: SearchLimits,
    skip_rules: SkipRules,
) -> ContentOutcome:
    """Search file contents under ``root``.

    Raises:
        ToolNotFoundError: ripgrep is not installed.
        SearchTimeoutError: the search ran longer than ``limits.content_timeout``.
        SubprocessFailureError: ripgrep failed for a reason other than permissions.
    """
    tool = find_search_tool()
    if tool is None:
        raise ToolNotFoundError("ripgrep not found - install it to search file contents")

    root_str = os.path.abspath(root)
    if cancel_event.is_set():
        return ContentOutcome(cancelled=True)

    cmd = build_command(tool, query, root_str, show_hidden, limits, skip_rules)
    logger.debug("Running content search: %s", " ".join(cmd))
    started = time.monotonic()

    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        raise SubprocessFailureError(f"failed to run {tool}: {e}") from e

    done = threading.Event()
    kill_reason: list[str] = []
    monitor = threading.Thread(
        target=_monitor,
        args=(proc, cancel_event, started + limits.content_timeout, done, kill_reason),
        daemon=True,
    )
    monitor.start()
    try:
        stdout, stderr = proc.communicate()
    finally:
        done.set()
    monitor.join()

    if kill_reason and kill_reason[0] == "cancelled":
        logger.debug("Content search cancelled during execution")
        return ContentOutcome(cancelled=True)
    if kill_reason:
        logger.warning("Content search timed out after %.0fs", limits.content_timeout)
        raise SearchTimeoutError(f"content search timed out after {limits.content_timeout:.0f}s")

    outcome = ContentOutcome()
    if proc.returncode == 1:
        logger.info("Content search complete: no matches in %.2fs", time.monotonic() - started)
        return outcome
    if proc.returncode not in (0, 1):
        if proc.returncode == 2 and is_permission_noise(stderr):
            outcome.permission_errors = len(stderr.strip().splitlines())
            logger.info("Content search had %d permission errors, keeping partial results", outcome.permission_errors)
        else:
            message = stderr.strip() or f"{Path(tool).name} exited with code {proc.returncode}"
            logger.error("Content search failed (exit %d): %s", proc.returncode, message)
            raise SubprocessFailureError(message)

    outcome.results = parse_output(stdout, root_str, limits.max_results)
    if len(outcome.results) >= limits.max_results:
        outcome.limit_reached = LimitReason.MAX_RESULTS
    logger.info("Content search complete: %d results in %.2fs", len(outcome.results), time.monotonic() - started)
    return outcome
