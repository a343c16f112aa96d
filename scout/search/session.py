"""Search session lifecycle and strategy dispatch."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from itertools import count
from pathlib import Path
from threading import Event

from ..common.pydantic import SearchLimits, SearchQuery
from ..events import ResultStream
from ..events.search import SearchBatch, SearchComplete, SearchFailed, SearchProgress
from .content import search_content
from .errors import ErrorKind, SearchError
from .fan_out import search_all_volumes
from .skip_rules import SkipRules
from .walker import walk

logger = logging.getLogger(__name__)


class SearchStrategy(StrEnum):
    """Available search strategies, in cycling order."""

    LOCAL_NAME = "local"
    RECURSIVE_NAME = "recursive"
    CONTENT = "content"
    MULTI_VOLUME = "everywhere"

    @property
    def expensive(self) -> bool:
        """Whether the strategy runs in the background behind the debounce."""
        return self is not SearchStrategy.LOCAL_NAME

    @property
    def label(self) -> str:
        """Short description for the status bar."""
        return _STRATEGY_LABELS[self]

    def next(self) -> "SearchStrategy":
        """Next strategy in the cycle."""
        strategies = list(SearchStrategy)
        return strategies[(strategies.index(self) + 1) % len(strategies)]


_STRATEGY_LABELS = {
    SearchStrategy.LOCAL_NAME: "current directory",
    SearchStrategy.RECURSIVE_NAME: "recursive file search",
    SearchStrategy.CONTENT: "content search",
    SearchStrategy.MULTI_VOLUME: "search everywhere",
}


class SessionState(StrEnum):
    """Search session states."""

    DEBOUNCING = "debouncing"
    DISPATCHED = "dispatched"
    STREAMING = "streaming"
    LOCKED = "locked"
    CANCELLED = "cancelled"
    COMPLETE = "complete"
    ERRORED = "errored"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.DEBOUNCING: frozenset({SessionState.DISPATCHED, SessionState.LOCKED, SessionState.CANCELLED}),
    SessionState.DISPATCHED: frozenset(
        {
            SessionState.STREAMING,
            SessionState.COMPLETE,
            SessionState.ERRORED,
            SessionState.LOCKED,
            SessionState.CANCELLED,
        }
    ),
    SessionState.STREAMING: frozenset(
        {SessionState.COMPLETE, SessionState.ERRORED, SessionState.LOCKED, SessionState.CANCELLED}
    ),
    SessionState.COMPLETE: frozenset({SessionState.LOCKED, SessionState.CANCELLED}),
    SessionState.ERRORED: frozenset({SessionState.CANCELLED}),
    SessionState.LOCKED: frozenset({SessionState.CANCELLED}),
    SessionState.CANCELLED: frozenset(),
}


class InvalidTransition(RuntimeError):
    """Raised on an illegal session state change."""


@dataclass(frozen=True, slots=True)
class SearchSnapshot:
    """Configuration captured at dispatch time; background tasks never see live config."""

    directory: Path
    limits: SearchLimits
    skip_rules: SkipRules
    show_hidden: bool


_session_ids = count(1)


class SearchSession:
    """One search attempt. Owns its cancel event and result stream exclusively."""

    def __init__(self, strategy: SearchStrategy, query: SearchQuery):
        """Create a session in the debouncing state."""
        self.session_id = next(_session_ids)
        self.strategy = strategy
        self.query = query
        self.cancel_event = Event()
        self.stream = ResultStream()
        self.state = SessionState.DEBOUNCING

    def __repr__(self) -> str:
        """Debug representation."""
        return (
            f"SearchSession(id={self.session_id}, strategy={self.strategy}, "
            f"query={self.query.text!r}, state={self.state})"
        )

    @property
    def running(self) -> bool:
        """Whether background work may still be producing output."""
        return self.state in (SessionState.DISPATCHED, SessionState.STREAMING)

    @property
    def live(self) -> bool:
        """Whether the cancel event is still open."""
        return not self.cancel_event.is_set()

    def transition(self, state: SessionState) -> None:
        """Move to ``state``, rejecting transitions the lifecycle does not allow."""
        if state == self.state:
            return
        if state not in _TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self!r} cannot move to {state}")
        self.state = state

    def release(self) -> None:
        """Signal background work to stop and stop listening to it."""
        self.cancel_event.set()
        self.stream.close()

    def cancel(self) -> None:
        """Tear the session down."""
        self.release()
        if self.state is not SessionState.CANCELLED:
            self.transition(SessionState.CANCELLED)

    def lock(self) -> None:
        """Freeze the current result set."""
        self.release()
        self.transition(SessionState.LOCKED)


def execute(session: SearchSession, snapshot: SearchSnapshot, volumes: Sequence[str] | None = None) -> None:
    """Run the session's strategy, reporting everything through its stream.

    Runs on a background thread. Errors end up as a single ``SearchFailed``
    event; cancellation ends the session silently.
    """
    stream = session.stream
    cancel_event = session.cancel_event
    query = session.query.text
    if stream.closed:
        logger.debug("Search %d abandoned before it started", session.session_id)
        return

    def on_progress(scanned: int) -> None:
        stream.publish(SearchProgress(scanned=scanned))

    try:
        match session.strategy:
            case SearchStrategy.CONTENT:
                content = search_content(
                    query, snapshot.directory, snapshot.show_hidden, cancel_event, snapshot.limits, snapshot.skip_rules
                )
                if content.cancelled:
                    return
                stream.publish(SearchBatch(results=tuple(content.results)))
                stream.publish(
                    SearchComplete(
                        total=len(content.results),
                        limit_reached=content.limit_reached,
                        permission_errors=content.permission_errors,
                    )
                )
            case SearchStrategy.MULTI_VOLUME:
                search_all_volumes(
                    query,
                    snapshot.limits,
                    snapshot.skip_rules,
                    snapshot.show_hidden,
                    cancel_event,
                    stream,
                    volumes=volumes,
                )
            case _:
                outcome = walk(
                    snapshot.directory,
                    query,
                    snapshot.limits,
                    snapshot.skip_rules,
                    snapshot.show_hidden,
                    cancel_event,
                    on_progress,
                )
                if outcome.cancelled:
                    return
                stream.publish(SearchBatch(results=tuple(outcome.results)))
                stream.publish(
                    SearchComplete(
                        total=len(outcome.results),
                        limit_reached=outcome.limit_reached,
                        permission_errors=outcome.permission_errors,
                    )
                )
    except SearchError as e:
        logger.warning("Search %d failed: %s", session.session_id, e.message)
        stream.publish(SearchFailed(kind=e.kind, message=e.message))
    except Exception as e:
        logger.exception("Search %d crashed", session.session_id)
        stream.publish(SearchFailed(kind=ErrorKind.INTERNAL, message=str(e) or type(e).__name__))
