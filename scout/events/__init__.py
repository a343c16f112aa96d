"""Events."""

from .core import Event, ProgressEvent, ResultStream

__all__ = ["Event", "ProgressEvent", "ResultStream"]
