"""Bookmark picker modal."""

from collections.abc import Mapping, Sequence
from typing import ClassVar

from more_itertools import unique_everseen
from rich.text import Text
from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Label, OptionList
from textual.widgets.option_list import Option

from .bookmarks import rank_bookmarks


class BookmarksScreen(ModalScreen[str | None]):
    """Modal list of bookmarks, most visited first."""

    BINDINGS: ClassVar = [Binding("escape", "dismiss_none", "Close")]

    DEFAULT_CSS = """
    BookmarksScreen { align: center middle; }
    BookmarksScreen > Container {
        width: 80;
        height: 60%;
        background: $surface;
        border: round $primary;
    }
    #hdr { dock: top; height: 3; padding: 1; background: $primary; }
    #title { color: $text; text-style: bold; }
    #bookmarks { height: 1fr; margin: 1; }
    """

    def __init__(self, bookmarks: Sequence[str], frecency: Mapping[str, int]) -> None:
        """Initialize the bookmark picker.

        Args:
            bookmarks: Bookmarked directories.
            frecency: Visit count per directory.
        """
        super().__init__()
        self.ranked = rank_bookmarks(list(unique_everseen(bookmarks)), frecency)
        self.frecency = frecency

    def compose(self) -> ComposeResult:
        """Compose the modal layout."""
        with Container():
            with Container(id="hdr"):
                yield Label("Bookmarks", id="title")
            yield OptionList(
                *(Option(self._label_for(path), id=path) for path in self.ranked),
                id="bookmarks",
            )

    def _label_for(self, path: str) -> Text:
        label = Text(path)
        visits = self.frecency.get(path, 0)
        if visits:
            label.append(f"  ({visits})", style="dim")
        return label

    def on_mount(self) -> None:
        """Focus the list."""
        self.query_one("#bookmarks", OptionList).focus()

    @on(OptionList.OptionSelected, "#bookmarks")
    def _on_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_dismiss_none(self) -> None:
        """Close without choosing."""
        self.dismiss(None)
