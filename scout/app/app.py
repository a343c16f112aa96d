"""Application entry point."""

import logging
import os
import subprocess
from pathlib import Path
from typing import ClassVar

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Header
from textual.worker import WorkerCancelled

from ..common.clock import LoopClock
from ..common.pydantic import SearchResult
from ..search.matcher import PARENT_ENTRY
from .app_config import AppConfig
from .bookmarks import toggle_bookmark
from .bookmarks_screen import BookmarksScreen
from .directory import editor_command, find_editor
from .search_controller import SearchController
from .widgets.results_table import ResultsTable
from .widgets.search_bar import SearchBar
from .widgets.status_bar import StatusBar

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05


class ScoutApp(App):
    """Terminal file browser with live search."""

    TITLE = "scout"
    BINDINGS: ClassVar = [
        Binding("ctrl+c", "close_app", "Quit", priority=True),
        Binding("q", "close_app", "Quit"),
        Binding("slash", "search", "Search"),
        Binding("tab", "cycle_strategy", "Strategy", priority=True),
        Binding("escape", "cancel_search", "Cancel"),
        Binding("backspace", "parent", "Up"),
        Binding("s", "sort", "Sort"),
        Binding("b", "bookmarks", "Bookmarks"),
        Binding("B", "toggle_bookmark", "Bookmark"),
        Binding("full_stop", "toggle_hidden", "Hidden"),
    ]

    CSS = """
    SearchBar {
        dock: top;
        height: 3;
        margin: 0 1;
    }

    #strategy_badge {
        width: auto;
        height: 1fr;
        content-align: left middle;
        margin-right: 1;
        color: $accent;
    }

    SearchBar > Input {
        height: 1fr;
        width: 1fr;
    }

    DataTable {
        height: 1fr;
        width: 1fr;
        margin: 0 1;
    }

    .search-input {
        border: solid $accent;
    }

    StatusBar {
        dock: bottom;
        height: 1;
        padding: 0 1;
    }

    #location_text {
        width: auto;
        color: $text-muted;
    }

    #status_spacer {
        width: 1fr;
    }

    #status_text {
        width: auto;
        min-width: 25;
        content-align: right middle;
    }
    """

    def __init__(self, config: AppConfig, directory: Path, controller: SearchController | None = None):
        """Initialize the app."""
        super().__init__()
        self.controller = controller or SearchController(config, directory, clock=LoopClock(self.set_timer))

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield Header()
        yield SearchBar()
        yield ResultsTable()
        yield StatusBar()

    def on_mount(self) -> None:
        """Set up the app when mounted."""
        search_bar = self.query_one(SearchBar)
        search_bar.close()
        search_bar.show_strategy(self.controller.strategy)
        self.query_one(ResultsTable).focus()
        self._refresh_view()
        self.poll_timer = self.set_interval(POLL_INTERVAL, self._poll)

    def on_unmount(self) -> None:
        """Stop background searches."""
        self.controller.shutdown()

    def _poll(self) -> None:
        if self.controller.poll():
            self._refresh_view()
        else:
            self._refresh_status()

    def _refresh_status(self) -> None:
        self.query_one(StatusBar).show(str(self.controller.directory), self.controller.status_text)

    def _refresh_view(self) -> None:
        self.sub_title = str(self.controller.directory)
        with self.batch_update():
            self.query_one(ResultsTable).update_results(self.controller.visible)
            self._refresh_status()

    # Search

    @on(SearchBar.QueryChanged)
    def _on_query_changed(self, message: SearchBar.QueryChanged) -> None:
        self.controller.on_query_changed(message.query)
        self._refresh_view()

    @on(SearchBar.Submitted)
    def _on_query_submitted(self, _: SearchBar.Submitted) -> None:
        self.controller.on_lock()
        self.query_one(SearchBar).set_locked(True)
        self.query_one(ResultsTable).focus()
        self._refresh_view()

    def action_search(self) -> None:
        """Open the search bar, or resume editing a locked query."""
        search_bar = self.query_one(SearchBar)
        if self.controller.locked:
            self.controller.unlock()
            search_bar.set_locked(False)
            search_bar.input.focus()
            return
        self.controller.enter_search()
        search_bar.show_strategy(self.controller.strategy)
        search_bar.open()
        self._refresh_view()

    def action_cycle_strategy(self) -> None:
        """Cycle the search strategy while searching; move focus otherwise."""
        if not self.controller.searching or self.controller.locked:
            self.screen.focus_next()
            return
        strategy = self.controller.cycle_strategy()
        self.query_one(SearchBar).show_strategy(strategy)
        self._refresh_view()

    def action_cancel_search(self) -> None:
        """Leave search mode."""
        if not self.controller.searching:
            return
        self.controller.on_cancel()
        self.query_one(SearchBar).close()
        self.query_one(ResultsTable).focus()
        self._refresh_view()

    # Browsing

    def _browse(self, path: Path) -> None:
        self.controller.set_directory(path)
        self.query_one(SearchBar).close()
        table = self.query_one(ResultsTable)
        self._refresh_view()
        table.move_cursor(row=0)
        table.focus()

    @on(DataTable.RowSelected)
    def _on_row_selected(self, _: DataTable.RowSelected) -> None:
        result = self.query_one(ResultsTable).selected_result()
        if result is None:
            return
        if result.is_dir or result.display_name == PARENT_ENTRY:
            self._browse(result.path)
        else:
            self._open_file(result)

    def _open_file(self, result: SearchResult) -> None:
        editor = find_editor(self.controller.config.editor or os.environ.get("EDITOR", ""))
        if editor is None:
            self.notify("No editor found", severity="warning")
            return
        command = editor_command(editor, result.path, result.line_number)
        logger.debug("Opening %s", command)
        with self.suspend():
            try:
                subprocess.run(command, check=False)
            except OSError as e:
                logger.warning("Failed to start %s: %s", editor, e)
        self._refresh_view()

    def action_parent(self) -> None:
        """Browse the parent directory."""
        directory = self.controller.directory
        if directory.parent != directory:
            self._browse(directory.parent)

    def action_sort(self) -> None:
        """Cycle the sort mode."""
        self.controller.sort()
        self._refresh_view()

    def action_toggle_hidden(self) -> None:
        """Show or hide hidden entries."""
        self.controller.toggle_hidden()
        self._refresh_view()

    def action_toggle_bookmark(self) -> None:
        """Bookmark the current directory, or remove the bookmark."""
        path = str(self.controller.directory)
        added = toggle_bookmark(self.controller.config, path)
        self.notify(f"{'Bookmarked' if added else 'Removed bookmark'} {path}")

    @work
    async def action_bookmarks(self) -> None:
        """Open the bookmark picker."""
        config = self.controller.config
        try:
            chosen = await self.push_screen_wait(BookmarksScreen(config.bookmarks, config.frecency))
        except WorkerCancelled:
            return
        if chosen:
            self._browse(Path(chosen))

    def action_close_app(self) -> None:
        """Close the application."""
        self.exit()

    def dump_config(self) -> AppConfig:
        """Dump the app config."""
        return self.controller.config
