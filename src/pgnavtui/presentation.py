"""Projection from navigator state to a renderable view model.

Nothing here touches the terminal or mutates the navigator; the Textual
screen consumes the ``ViewModel`` returned by ``build_view``.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from pgnavlib.models import Column

from .models.navigation_state import (
    Connecting,
    ConnectionErrorState,
    ConnectionSelection,
    CustomQuery,
    CustomQueryInput,
    FieldDetail,
    TableData,
    TableList,
)

CURSOR_MARKER = "█"

HELP_TEXT = {
    ConnectionSelection: "Use ↑↓ to navigate, Enter to connect, ESC or 'q' to quit",
    Connecting: "Press ESC to go back, 'q' to quit",
    ConnectionErrorState: "Press 'c' or ESC to go back to connection selection, 'q' to quit",
    TableList: "Use ↑↓ to navigate, Enter to select, 's' for SQL query, 'c' for connections, ESC for back, 'q' to quit",
    TableData: (
        "Use ↑↓ to navigate rows, ←→ to select fields, Enter to view field, "
        "PageUp/PageDown to change pages, 's' for SQL query, 't' for tables, ESC for back, "
        "'c' for connections, 'q' to quit"
    ),
    FieldDetail: "Use ↑↓/PageUp/PageDown to scroll, ESC to go back, 'q' to quit",
    CustomQueryInput: "Type a SQL query, Enter to run, ←→/Home/End to move, ESC for tables",
    CustomQuery: (
        "Use ↑↓ to navigate rows, ←→ to select fields, Enter to view field, "
        "PageUp/PageDown to change pages, 's' to edit query, 't' for tables, "
        "'c' for connections, 'q' to quit"
    ),
}


@dataclass
class ListView:
    title: str
    items: List[str]
    highlighted: Optional[int] = None


@dataclass
class TableView:
    title: str
    header_names: List[str]
    header_types: List[str]
    rows: List[List[str]]
    highlighted_row: Optional[int] = None
    highlighted_column: Optional[int] = None


@dataclass
class TextView:
    title: str
    lines: List[str]
    scroll: int = 0

    @property
    def visible_lines(self) -> List[str]:
        return self.lines[self.scroll :]


@dataclass
class InputView:
    title: str
    text: str
    cursor_pos: int = 0

    @property
    def rendered(self) -> str:
        """Text with a block marker at the cursor position."""
        return self.text[: self.cursor_pos] + CURSOR_MARKER + self.text[self.cursor_pos :]


Body = Union[ListView, TableView, TextView, InputView]


@dataclass
class ViewModel:
    title: str
    body: Body
    status: Optional[str] = None
    error: Optional[str] = None
    help: str = ""
    breadcrumb: List[str] = field(default_factory=list)


def _headers(columns: List[Column]) -> Tuple[List[str], List[str]]:
    return [c.name for c in columns], [c.type for c in columns]


def _page_label(current_page: int, total_pages: int) -> str:
    return f"Page {current_page + 1}/{total_pages}"


def _table_body(state: Union[TableData, CustomQuery]) -> TableView:
    names, types = _headers(state.result.columns)
    page = _page_label(state.pager.current_page, state.pager.total_pages)
    if isinstance(state, TableData):
        title = f"Table: {state.table or 'Unknown'} ({page})"
    else:
        title = f"Query Results ({page})"
    return TableView(
        title=title,
        header_names=names,
        header_types=types,
        rows=[list(r) for r in state.result.rows],
        highlighted_row=state.row_cursor,
        highlighted_column=state.field_cursor,
    )


def _field_title(state: FieldDetail) -> str:
    if state.column is None:
        return "Field"
    if state.column.type:
        return f"Field: {state.column.name} ({state.column.type})"
    return f"Field: {state.column.name}"


def _breadcrumb(nav) -> List[str]:
    parts = []
    if nav.profile_name:
        parts.append(nav.profile_name)
    state = nav.state.origin if isinstance(nav.state, FieldDetail) else nav.state
    if isinstance(state, TableData):
        parts.append(state.table)
    elif isinstance(state, (CustomQuery, CustomQueryInput)):
        parts.append("query")
    if isinstance(nav.state, FieldDetail) and nav.state.column is not None:
        parts.append(nav.state.column.name)
    return parts


def build_view(nav) -> ViewModel:
    """Build the view model for the navigator's current state."""
    state = nav.state

    if isinstance(state, ConnectionSelection):
        body: Body = ListView(title="Select Connection", items=nav.store.list(), highlighted=state.cursor)
    elif isinstance(state, Connecting):
        body = TextView(title="Status", lines=[nav.status_message or "Connecting..."])
    elif isinstance(state, ConnectionErrorState):
        body = TextView(title="Error", lines=(state.message or "Unknown error occurred").splitlines())
    elif isinstance(state, TableList):
        body = ListView(title="Tables", items=list(nav.tables), highlighted=state.cursor)
    elif isinstance(state, (TableData, CustomQuery)):
        body = _table_body(state)
    elif isinstance(state, FieldDetail):
        body = TextView(title=_field_title(state), lines=state.value.splitlines() or [""], scroll=state.scroll)
    elif isinstance(state, CustomQueryInput):
        body = InputView(title="SQL Query", text=state.buffer, cursor_pos=state.cursor_pos)
    else:
        raise TypeError(f"No view for state {type(state).__name__}")

    return ViewModel(
        title=body.title,
        body=body,
        status=nav.status_message,
        error=nav.error_message,
        help=HELP_TEXT[type(state)],
        breadcrumb=_breadcrumb(nav),
    )
