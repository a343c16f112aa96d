"""Status bar widget for the scout app."""

from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import Label


class StatusBar(Horizontal):
    """A thin bottom status bar: current directory on the left, search status on the right."""

    def __init__(self, *args: Any, **kwargs: Any):
        """Initialize the status bar."""
        super().__init__(*args, **kwargs)
        self.location_text = Label("", id="location_text")
        self.spacer = Container(id="status_spacer")
        self.status_text = Label("", id="status_text")

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield self.location_text
        yield self.spacer
        yield self.status_text

    def show(self, location: str, status: str) -> None:
        """Update both labels."""
        self.location_text.update(Text(location))
        self.status_text.update(Text(status))
