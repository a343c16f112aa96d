"""Search session events."""

from ..common.pydantic import SearchResult
from ..search.errors import ErrorKind, LimitReason
from . import Event, ProgressEvent


class SearchProgress(ProgressEvent):
    """Running count of scanned entries, optionally for one volume."""

    scanned: int
    volume: str | None = None

    @property
    def coalesce_key(self) -> object:
        """One pending progress event per volume."""
        return (type(self), self.volume)


class SearchBatch(Event):
    """Immutable snapshot of results.

    When ``cumulative`` is set the batch replaces everything shown so far;
    otherwise it is appended.
    """

    results: tuple[SearchResult, ...]
    cumulative: bool = True


class SearchComplete(Event):
    """Terminal event: the session finished normally, possibly early."""

    total: int
    limit_reached: LimitReason | None = None
    permission_errors: int = 0


class SearchFailed(Event):
    """Terminal event: the session failed."""

    kind: ErrorKind
    message: str
