"""View states of the navigator, one dataclass per state."""

from dataclasses import dataclass
from typing import Optional, Union

from pgnavlib.models import Column, ResultSet

from .cursor import first_index, next_index, previous_index
from .pager import Pager


@dataclass
class ConnectionSelection:
    """Choosing a saved connection profile."""

    cursor: Optional[int] = None

    name = "connections"


@dataclass
class Connecting:
    profile_name: str

    name = "connecting"


@dataclass
class ConnectionErrorState:
    """A connect or fetch failed; only the way back to connections is open."""

    message: str

    name = "error"


@dataclass
class TableList:
    cursor: Optional[int] = None

    name = "tables"


@dataclass
class RowBrowsing:
    """Row cursor and field selection over a paged result set.

    The field selection belongs to the selected row and is dropped whenever
    the row or the page changes.
    """

    result: ResultSet
    pager: Pager
    row_cursor: Optional[int] = None
    field_cursor: Optional[int] = None

    def selected_row(self) -> Optional[list]:
        if self.row_cursor is None or not 0 <= self.row_cursor < len(self.result.rows):
            return None
        return self.result.rows[self.row_cursor]

    def selected_column(self) -> Optional[Column]:
        if self.field_cursor is None or not 0 <= self.field_cursor < len(self.result.columns):
            return None
        return self.result.columns[self.field_cursor]

    def selected_value(self) -> Optional[str]:
        row = self.selected_row()
        if row is None or self.field_cursor is None or not 0 <= self.field_cursor < len(row):
            return None
        return row[self.field_cursor]

    def next_row(self) -> None:
        self.row_cursor = next_index(self.row_cursor, len(self.result.rows))
        self.field_cursor = None

    def previous_row(self) -> None:
        self.row_cursor = previous_index(self.row_cursor, len(self.result.rows))
        self.field_cursor = None

    def next_field(self) -> None:
        row = self.selected_row()
        if row:
            self.field_cursor = next_index(self.field_cursor, len(row))

    def previous_field(self) -> None:
        row = self.selected_row()
        if row:
            self.field_cursor = previous_index(self.field_cursor, len(row))

    def invalidate_page(self) -> None:
        """Drop rows and selections after a page change, before the re-fetch."""
        self.result.clear_rows()
        self.row_cursor = None
        self.field_cursor = None

    def load(self, result: ResultSet) -> None:
        self.result = result
        self.row_cursor = first_index(len(result.rows))
        self.field_cursor = None


@dataclass
class TableData(RowBrowsing):
    table: str = ""

    name = "table-data"


@dataclass
class CustomQuery(RowBrowsing):
    query: str = ""

    name = "query"


@dataclass
class FieldDetail:
    """Full value of one field, returning to ``origin`` on Esc."""

    column: Optional[Column]
    value: str
    origin: Union[TableData, CustomQuery]
    scroll: int = 0

    name = "field"

    @property
    def line_count(self) -> int:
        return len(self.value.splitlines()) or 1


@dataclass
class CustomQueryInput:
    """Editing query text; ``cursor_pos`` counts characters, not bytes."""

    buffer: str = ""
    cursor_pos: int = 0

    name = "query-input"

    def insert(self, text: str) -> None:
        self.buffer = self.buffer[: self.cursor_pos] + text + self.buffer[self.cursor_pos :]
        self.cursor_pos += len(text)

    def backspace(self) -> None:
        if self.cursor_pos == 0:
            return
        self.buffer = self.buffer[: self.cursor_pos - 1] + self.buffer[self.cursor_pos :]
        self.cursor_pos -= 1

    def delete(self) -> None:
        if self.cursor_pos >= len(self.buffer):
            return
        self.buffer = self.buffer[: self.cursor_pos] + self.buffer[self.cursor_pos + 1 :]

    def move_left(self) -> None:
        self.cursor_pos = max(0, self.cursor_pos - 1)

    def move_right(self) -> None:
        self.cursor_pos = min(len(self.buffer), self.cursor_pos + 1)

    def move_home(self) -> None:
        self.cursor_pos = 0

    def move_end(self) -> None:
        self.cursor_pos = len(self.buffer)


NavigationState = Union[
    ConnectionSelection,
    Connecting,
    ConnectionErrorState,
    TableList,
    TableData,
    FieldDetail,
    CustomQueryInput,
    CustomQuery,
]


def empty_result() -> ResultSet:
    return ResultSet(columns=[], rows=[])


__all__ = [
    "ConnectionSelection",
    "Connecting",
    "ConnectionErrorState",
    "TableList",
    "RowBrowsing",
    "TableData",
    "CustomQuery",
    "FieldDetail",
    "CustomQueryInput",
    "NavigationState",
    "empty_result",
]
