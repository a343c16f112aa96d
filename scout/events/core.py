"""Bounded, thread-safe message channel between background searches and the UI loop.

Producers (walkers, the content-search parser, the fan-out merge point) call
``publish``; the single consumer (the UI loop) calls ``poll`` on its own
schedule and never blocks. Result and terminal messages are never dropped.
Progress notifications are coalesced per source and dropped once the bounded
progress capacity is used up, so a slow consumer cannot make a producer wait.
Once closed, a stream silently discards anything a leaked task still writes.
"""

import threading
import time
from collections import deque
from itertools import count

from pydantic import Field

from ..common.pydantic import FrozenBaseModel


class Event(FrozenBaseModel):
    """Base class for all events, stamped with their creation time."""

    event_t: int = Field(default_factory=time.time_ns)


class ProgressEvent(Event):
    """Event that may be coalesced or dropped under pressure."""

    @property
    def coalesce_key(self) -> object:
        """Events sharing a key replace each other while still pending."""
        return type(self)


_stream_ids = count(1)


class ResultStream:
    """Single-consumer event channel owned by one search session."""

    def __init__(self, progress_capacity: int = 16) -> None:
        """Initialize the stream."""
        self.stream_id = next(_stream_ids)
        self._events: deque[Event] = deque()
        self._progress_capacity = progress_capacity
        self._pending_progress = 0
        self._closed = False
        self._lock = threading.Lock()
        self._ping = threading.Condition(self._lock)

    @property
    def closed(self) -> bool:
        """Whether the consumer has released this stream."""
        return self._closed

    def publish(self, event: Event) -> bool:
        """Submit an event. Returns False if it was discarded."""
        with self._ping:
            if self._closed:
                return False
            if isinstance(event, ProgressEvent):
                key = event.coalesce_key
                for i in range(len(self._events) - 1, -1, -1):
                    pending = self._events[i]
                    if isinstance(pending, ProgressEvent) and pending.coalesce_key == key:
                        self._events[i] = event
                        self._ping.notify_all()
                        return True
                if self._pending_progress >= self._progress_capacity:
                    return False
                self._pending_progress += 1
            self._events.append(event)
            self._ping.notify_all()
            return True

    def poll(self, limit: int | None = None) -> list[Event]:
        """Take pending events without blocking."""
        with self._lock:
            taken: list[Event] = []
            while self._events and (limit is None or len(taken) < limit):
                event = self._events.popleft()
                if isinstance(event, ProgressEvent):
                    self._pending_progress -= 1
                taken.append(event)
            return taken

    def wait(self, timeout: float | None = None) -> bool:
        """Block until an event is pending. Intended for tests and headless use."""
        with self._ping:
            return self._ping.wait_for(lambda: bool(self._events) or self._closed, timeout=timeout)

    def close(self) -> None:
        """Release the stream and drop everything still pending."""
        with self._ping:
            self._closed = True
            self._events.clear()
            self._pending_progress = 0
            self._ping.notify_all()
