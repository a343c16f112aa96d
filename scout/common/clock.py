"""Time sources and deferred callbacks, injectable so debounce logic can be tested without sleeping."""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Protocol


class Timer:
    """A callback due after ``delay`` seconds. The base class fires as soon as it is started."""

    def __init__(self, delay: float, callback: Callable[[], None]):
        """Store timer configuration for later execution."""
        self.delay = delay
        self.callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        """Whether the timer was cancelled."""
        return self._cancelled

    def cancel(self) -> None:
        """Cancel the timer."""
        self._cancelled = True

    def fire(self) -> None:
        """Run the callback unless the timer was cancelled in the meantime."""
        if not self._cancelled:
            self.callback()

    def start(self) -> None:
        """Start the timer."""
        self.fire()


class Clock(ABC):
    """Source of timers and of the current time."""

    @abstractmethod
    def timer(self, delay: float, callback: Callable[[], None]) -> Timer:
        """Create a timer that will call callback after delay seconds."""

    def now(self) -> float:
        """Monotonic time in seconds."""
        return time.monotonic()


class ThreadingTimer(Timer):
    """Timer that fires on a daemon ``threading.Timer`` thread."""

    def __init__(self, delay: float, callback: Callable[[], None]):
        """Wrap a ``threading.Timer`` to defer execution."""
        super().__init__(delay, callback)
        self._thread = threading.Timer(delay, self.fire)
        self._thread.daemon = True

    def cancel(self) -> None:
        """Cancel the timer."""
        super().cancel()
        self._thread.cancel()

    def start(self) -> None:
        """Start the timer."""
        if not self._cancelled:
            self._thread.start()


class ThreadingClock(Clock):
    """Clock whose timers fire on background threads."""

    def timer(self, delay: float, callback: Callable[[], None]) -> Timer:
        """Create a timer that will call callback after delay seconds."""
        return ThreadingTimer(delay, callback)


class TimerHandle(Protocol):
    """Anything an event loop returns for a scheduled callback."""

    def stop(self) -> None:
        """Unschedule the callback."""


Schedule = Callable[[float, Callable[[], None]], TimerHandle]


class LoopTimer(Timer):
    """Timer scheduled on a single-threaded event loop."""

    def __init__(self, schedule: Schedule, delay: float, callback: Callable[[], None]):
        """Remember how to schedule on the loop."""
        super().__init__(delay, callback)
        self._schedule = schedule
        self._handle: TimerHandle | None = None

    def cancel(self) -> None:
        """Cancel the timer."""
        super().cancel()
        if self._handle is not None:
            self._handle.stop()
            self._handle = None

    def start(self) -> None:
        """Start the timer."""
        if not self._cancelled:
            self._handle = self._schedule(self.delay, self.fire)


class LoopClock(Clock):
    """Clock whose timers fire on the UI loop, so callbacks never race the code that reads their state.

    ``schedule`` is e.g. a Textual ``App.set_timer``.
    """

    def __init__(self, schedule: Schedule):
        """Initialize the clock."""
        self._schedule = schedule

    def timer(self, delay: float, callback: Callable[[], None]) -> Timer:
        """Create a timer that will call callback after delay seconds."""
        return LoopTimer(self._schedule, delay, callback)
