"""Search error taxonomy."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Kinds of conditions a search can end with."""

    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    PERMISSION_DENIED = "permission_denied"
    LIMIT_REACHED = "limit_reached"
    SUBPROCESS_FAILURE = "subprocess_failure"
    INTERNAL = "internal"


class LimitReason(StrEnum):
    """Why a search stopped early without failing."""

    MAX_RESULTS = "max_results"
    MAX_FILES_SCANNED = "max_files_scanned"


class SearchError(Exception):
    """Session-level search failure."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        """Initialize the search error."""
        super().__init__(message)
        self.message = message


class ToolNotFoundError(SearchError):
    """External text-search tool is not installed."""

    kind = ErrorKind.NOT_FOUND


class SearchTimeoutError(SearchError):
    """Content search exceeded its wall-clock ceiling."""

    kind = ErrorKind.TIMEOUT


class SubprocessFailureError(SearchError):
    """External tool exited with an error not explained by permission noise."""

    kind = ErrorKind.SUBPROCESS_FAILURE
