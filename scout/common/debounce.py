"""Debounced runner."""

from collections.abc import Callable
from typing import Any

from .clock import Clock, ThreadingClock, Timer


class DebouncedRunner:
    """Run only the last submitted function, once ``delay`` seconds pass without another submit."""

    def __init__(self, delay: float, clock: Clock | None = None):
        """Initialize the debounced runner."""
        self._delay = delay
        self._clock = clock or ThreadingClock()
        self._timer: Timer | None = None

    @property
    def pending(self) -> bool:
        """Whether a submitted function is still waiting to run."""
        return self._timer is not None and not self._timer.cancelled

    def cancel(self) -> None:
        """Cancel the pending run, if any."""
        if self._timer:
            self._timer.cancel()
        self._timer = None

    def submit(self, func: Callable[[], Any]) -> None:
        """Replace any pending run with ``func``."""
        self.cancel()
        timer: Timer

        def fire() -> None:
            if self._timer is timer:
                self._timer = None
            func()

        timer = self._clock.timer(self._delay, fire)
        self._timer = timer
        timer.start()
