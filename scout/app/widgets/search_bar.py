"""Search bar widget that reports query edits to the app."""

from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.widgets import Input, Label

from ...search.session import SearchStrategy


class SearchBar(Horizontal):
    """Strategy badge plus the query input."""

    class QueryChanged(Message):
        """Message emitted when the search input changes."""

        def __init__(self, query: str) -> None:
            """Initialize the query changed message."""
            super().__init__()
            self.query = query

    class Submitted(Message):
        """Message emitted when the user confirms the query."""

    def __init__(self, placeholder: str = "Search files and folders...", **kwargs: Any):
        """Initialize the search bar."""
        super().__init__(**kwargs)
        self.badge = Label("", id="strategy_badge")
        self.input = Input(placeholder=placeholder, classes="search-input", id="search_input")

    def compose(self) -> ComposeResult:
        """Compose the search bar."""
        yield self.badge
        yield self.input

    def show_strategy(self, strategy: SearchStrategy) -> None:
        """Show which strategy the query runs against."""
        self.badge.update(Text(f"[{strategy.label}]"))

    def open(self) -> None:
        """Clear the input and focus it."""
        self.display = True
        self.input.disabled = False
        with self.input.prevent(Input.Changed):
            self.input.value = ""
        self.input.focus()

    def close(self) -> None:
        """Hide the bar."""
        self.display = False

    def set_locked(self, locked: bool) -> None:
        """Stop accepting edits while results are locked."""
        self.input.disabled = locked

    def on_input_changed(self, message: Input.Changed) -> None:
        """Forward edits of the query input."""
        if message.input.id != "search_input":
            return
        message.stop()
        self.post_message(self.QueryChanged(message.value))

    def on_input_submitted(self, message: Input.Submitted) -> None:
        """Forward enter in the query input."""
        message.stop()
        self.post_message(self.Submitted())
