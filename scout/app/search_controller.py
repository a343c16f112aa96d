"""Search session controller.

Owns the one active ``SearchSession`` and everything the UI shows for it. All
methods run on the UI loop; background work only ever reaches the controller
through the session's ``ResultStream``, which ``poll`` drains.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from functools import partial
from pathlib import Path

from ..common.clock import Clock
from ..common.debounce import DebouncedRunner
from ..common.pydantic import SearchQuery, SearchResult
from ..events.search import SearchBatch, SearchComplete, SearchFailed, SearchProgress
from ..search.errors import LimitReason
from ..search.matcher import SortMode, match_results, sort_results
from ..search.session import SearchSession, SearchSnapshot, SearchStrategy, SessionState, execute
from .app_config import AppConfig
from .bookmarks import record_visit
from .directory import list_directory

logger = logging.getLogger(__name__)

DEBOUNCE_DELAY = 0.3
MIN_QUERY_LENGTH = 2
STATUS_TTL = 3.0
SHORT_QUERY_PROMPT = f"Type at least {MIN_QUERY_LENGTH} characters to search"

Spawn = Callable[[Callable[[], None]], None]
Listing = Callable[[Path, bool, SortMode], list[SearchResult]]


def spawn_thread(func: Callable[[], None]) -> None:
    """Run ``func`` on a daemon thread that nobody joins."""
    threading.Thread(target=func, name="scout-search", daemon=True).start()


def _limit_note(reason: LimitReason | None) -> str:
    match reason:
        case LimitReason.MAX_RESULTS:
            return " (result limit reached)"
        case LimitReason.MAX_FILES_SCANNED:
            return " (scan limit reached)"
    return ""


class SearchController:
    """Debounces queries, dispatches sessions and folds their streams into visible state."""

    def __init__(
        self,
        config: AppConfig,
        directory: Path,
        clock: Clock,
        spawn: Spawn = spawn_thread,
        volumes: Sequence[str] | None = None,
        listing_fn: Listing = list_directory,
    ):
        """Initialize the controller and list ``directory``.

        ``clock`` must fire its timers on the same loop that calls the controller,
        e.g. a ``LoopClock`` around the UI loop.
        """
        self.config = config
        self.directory = directory
        self.strategy = SearchStrategy.LOCAL_NAME
        self.query = SearchQuery(text="")
        self.session: SearchSession | None = None
        self.sort_mode = SortMode.NAME
        self.entries: list[SearchResult] = []
        self.visible: list[SearchResult] = []
        self.searching = False
        self.progress: dict[str | None, int] = {}
        self._locked = False
        self._clock = clock
        self._debounce = DebouncedRunner(DEBOUNCE_DELAY, self._clock)
        self._spawn = spawn
        self._volumes = volumes
        self._listing_fn = listing_fn
        self._status = ""
        self._status_expires: float | None = None
        self._view_changed = False
        self.refresh_listing()

    # Status

    @property
    def status_text(self) -> str:
        """Current status line; transient messages disappear once they expire."""
        if self._status_expires is not None and self._clock.now() >= self._status_expires:
            self._status = ""
            self._status_expires = None
        return self._status

    def set_status(self, text: str, transient: bool = False) -> None:
        """Show ``text``, optionally only for a few seconds."""
        self._status = text
        self._status_expires = self._clock.now() + STATUS_TTL if transient else None

    @property
    def locked(self) -> bool:
        """Whether the result set is frozen for navigation."""
        return self._locked

    # Browsing

    def refresh_listing(self) -> None:
        """Re-read the current directory."""
        try:
            self.entries = self._listing_fn(self.directory, self.config.show_hidden, self.sort_mode)
        except OSError as e:
            logger.warning("Cannot list %s: %s", self.directory, e)
            self.entries = []
            self.set_status(f"cannot read {self.directory}: {e.strerror or e}", transient=True)
        if not self.searching:
            self.visible = list(self.entries)

    def set_directory(self, path: Path) -> None:
        """Leave any search and browse ``path``."""
        self.on_cancel()
        self.directory = path
        record_visit(self.config, str(path))
        self.refresh_listing()

    def toggle_hidden(self) -> None:
        """Flip the hidden-file policy for listings and future searches."""
        self.config.show_hidden = not self.config.show_hidden
        self.refresh_listing()
        self.set_status("showing hidden files" if self.config.show_hidden else "hiding hidden files", transient=True)

    def sort(self, mode: SortMode | None = None) -> SortMode:
        """Re-sort the listing and visible results by ``mode``, or by the next mode."""
        self.sort_mode = mode or self.sort_mode.next()
        self.entries = sort_results(self.entries, self.sort_mode)
        self.visible = sort_results(self.visible, self.sort_mode)
        self.set_status(f"sorted by {self.sort_mode}", transient=True)
        return self.sort_mode

    # Search lifecycle

    def enter_search(self) -> None:
        """Start search mode with an empty query."""
        self.searching = True
        self._locked = False
        self.query = SearchQuery(text="")
        self.visible = list(self.entries)
        self.set_status(f"search: {self.strategy.label}")

    def _cancel_session(self) -> None:
        if self._debounce.pending:
            logger.debug("Dropping pending dispatch of %r", self.session)
        self._debounce.cancel()
        if self.session is not None:
            self.session.cancel()
            self.session = None

    def on_query_changed(self, text: str) -> None:
        """React to a keystroke in the search input."""
        if self._locked:
            return
        self.searching = True
        self.query = SearchQuery(text=text)

        if not self.strategy.expensive:
            self._cancel_session()
            self.visible = match_results(text, self.entries) if text else list(self.entries)
            self.set_status(f"{len(self.visible)} matches" if text else f"search: {self.strategy.label}")
            return

        self._cancel_session()
        if len(text) < MIN_QUERY_LENGTH:
            self.visible = []
            self.set_status(SHORT_QUERY_PROMPT)
            return

        session = SearchSession(self.strategy, self.query)
        self.session = session
        self._debounce.submit(partial(self._on_debounce, session))

    def _on_debounce(self, session: SearchSession) -> None:
        if session is not self.session or session.query != self.query:
            return
        if session.state is not SessionState.DEBOUNCING:
            return
        self._dispatch(session)

    def _dispatch(self, session: SearchSession) -> None:
        snapshot = SearchSnapshot(
            directory=self.directory,
            limits=self.config.search_limits(),
            skip_rules=self.config.skip_rules(),
            show_hidden=self.config.show_hidden,
        )
        self.visible = []
        self.progress = {}
        session.transition(SessionState.DISPATCHED)
        self._view_changed = True
        self.set_status(f"searching ({session.strategy.label})...")
        logger.debug("Dispatching %r on stream %d in %s", session, session.stream.stream_id, snapshot.directory)
        self._spawn(partial(execute, session, snapshot, self._volumes))

    def poll(self) -> bool:
        """Fold pending stream events into visible state. Returns True if anything changed."""
        changed, self._view_changed = self._view_changed, False
        session = self.session
        if session is None or not session.running:
            return changed

        for event in session.stream.poll():
            changed = True
            match event:
                case SearchProgress(scanned=scanned, volume=volume):
                    self.progress[volume] = scanned
                    where = f" {volume}" if volume else ""
                    self.set_status(f"searching{where} {scanned} files scanned")
                case SearchBatch(results=results, cumulative=cumulative):
                    if cumulative:
                        self.visible = list(results)
                    else:
                        self.visible.extend(results)
                    session.transition(SessionState.STREAMING)
                case SearchComplete():
                    session.transition(SessionState.COMPLETE)
                    session.release()
                    note = _limit_note(event.limit_reached)
                    if event.permission_errors:
                        note += f", {event.permission_errors} unreadable"
                    self.set_status(f"{event.total} results{note}")
                    break
                case SearchFailed():
                    session.transition(SessionState.ERRORED)
                    session.release()
                    self.visible = []
                    self.set_status(f"search error: {event.message}", transient=True)
                    break
        return changed

    def on_strategy_changed(self, strategy: SearchStrategy) -> None:
        """Switch strategy, restarting the search for the current query."""
        if self._locked:
            return
        self._cancel_session()
        self.strategy = strategy
        self.set_status(f"search: {strategy.label}", transient=True)
        if self.searching and self.query.text:
            self.on_query_changed(self.query.text)

    def cycle_strategy(self) -> SearchStrategy:
        """Move to the next strategy."""
        self.on_strategy_changed(self.strategy.next())
        return self.strategy

    def on_cancel(self) -> None:
        """Leave search mode and show the unfiltered listing again."""
        self._cancel_session()
        self._locked = False
        self.searching = False
        self.query = SearchQuery(text="")
        self.progress = {}
        self.visible = list(self.entries)
        self.set_status("")

    def on_lock(self) -> None:
        """Freeze the current results; only navigation is possible afterwards."""
        if not self.searching or self._locked:
            return
        self._debounce.cancel()
        session = self.session
        if session is not None:
            if session.state in (SessionState.ERRORED, SessionState.CANCELLED):
                session.release()
            else:
                session.lock()
        self._locked = True
        self.set_status(f"{len(self.visible)} results locked")

    def unlock(self) -> None:
        """Allow editing the query again, keeping the locked results visible."""
        if not self._locked:
            return
        self._locked = False
        if self.session is not None:
            self.session.cancel()
            self.session = None

    def shutdown(self) -> None:
        """Cancel everything in flight."""
        self._cancel_session()
