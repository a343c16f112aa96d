"""Results table widget."""

from datetime import datetime

from rich.text import Text
from textual.coordinate import Coordinate
from textual.widgets import DataTable

from ...common.pydantic import SearchResult

MATCH_STYLE = "bold yellow"
DIR_STYLE = "bold blue"


def format_size(n: int | None) -> str:
    """Human readable byte count."""
    if n is None:
        return ""
    if n == 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i, s = 0, float(n)
    while s >= 1024 and i < len(units) - 1:
        s /= 1024
        i += 1
    if i == 0:
        return f"{int(s)} {units[i]}"
    else:
        return f"{s:.1f} {units[i]}"


def format_date(ns: int | None) -> str:
    """Local timestamp of a modification time in nanoseconds."""
    if ns is None:
        return ""
    return datetime.fromtimestamp(ns / 1_000_000_000).strftime("%Y-%m-%d %H:%M")


def highlight_name(result: SearchResult) -> Text:
    """Display name with matched characters styled."""
    text = Text(result.display_name, style=DIR_STYLE if result.is_dir else "")
    if result.is_dir:
        text.append("/")
    for index in result.matched_indexes:
        if 0 <= index < len(result.display_name):
            text.stylize(MATCH_STYLE, index, index + 1)
    return text


class ResultsTable(DataTable):
    """Directory entries or search results, diff-updated in place."""

    def on_mount(self) -> None:
        """Set up the table when mounted."""
        self.add_columns("Name", "Size", "Modified")
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.results: list[SearchResult] = []

    def selected_result(self) -> SearchResult | None:
        """Result under the cursor."""
        if not self.results or not 0 <= self.cursor_row < len(self.results):
            return None
        return self.results[self.cursor_row]

    def update_results(self, results: list[SearchResult]) -> None:
        """Show ``results``, touching only the cells that changed."""
        self.results = list(results)
        for i, result in enumerate(results):
            new_col_values = [
                highlight_name(result),
                "" if result.is_dir else format_size(result.size),
                format_date(result.modified_ns),
            ]
            if i < self.row_count:
                old_col_values = self.get_row_at(i)
                for j, (old_value, new_value) in enumerate(zip(old_col_values, new_col_values, strict=True)):
                    if old_value != new_value:
                        self.update_cell_at(Coordinate(row=i, column=j), new_value)
            else:
                self.add_row(*new_col_values)
        if self.row_count > len(results):
            keys_to_remove = [
                self.coordinate_to_cell_key(Coordinate(row=row_index, column=0))[0]
                for row_index in range(len(results), self.row_count)
            ]
            for row_key in keys_to_remove:
                self.remove_row(row_key)
