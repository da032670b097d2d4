"""Navigation state machine driving the interactive browser.

One ``Navigator`` owns the current view state, the active database
connection and the banners. Key symbols come in one at a time through
``handle_key``; any fetch a transition needs runs to completion (or failure)
before ``handle_key`` returns, so at most one fetch is ever in flight and the
view is only redrawn once a transition has settled.
"""

import logging
from typing import Callable, List, Optional, Protocol

from pgnavlib.clients import ActiveConnection, FetchGateway
from pgnavlib.config import DEFAULT_ITEMS_PER_PAGE
from pgnavlib.errors import ConnectFailure, CredentialError, FetchFailure
from pgnavlib.models import ConnectionProfile, ResultSet

from . import keys
from .models.cursor import first_index, next_index, previous_index
from .models.navigation_state import (
    Connecting,
    ConnectionErrorState,
    ConnectionSelection,
    CustomQuery,
    CustomQueryInput,
    FieldDetail,
    NavigationState,
    RowBrowsing,
    TableData,
    TableList,
    empty_result,
)
from .models.pager import Pager

logger = logging.getLogger(__name__)

FIELD_SCROLL_PAGE = 10


class ProfileSource(Protocol):
    def list(self) -> List[str]: ...

    def get(self, name: str) -> Optional[ConnectionProfile]: ...

    def resolve_password(self, profile: ConnectionProfile) -> str: ...


class Navigator:
    """Finite state machine behind the terminal browser."""

    def __init__(
        self,
        store: ProfileSource,
        gateway: FetchGateway,
        items_per_page: int = DEFAULT_ITEMS_PER_PAGE,
    ):
        if items_per_page <= 0:
            raise ValueError(f"items_per_page must be positive, got {items_per_page}")
        self.store = store
        self.gateway = gateway
        self.items_per_page = items_per_page

        self.state: NavigationState = ConnectionSelection()
        self.connection: Optional[ActiveConnection] = None
        self.profile_name: Optional[str] = None
        self.tables: List[str] = []
        self.error_message: Optional[str] = None
        self.status_message: Optional[str] = None
        self.running = True

        self._last_profile: Optional[str] = None
        self._table_cursor: Optional[int] = None
        self._handlers = {
            ConnectionSelection: self._on_connection_selection,
            Connecting: self._on_connecting,
            ConnectionErrorState: self._on_connection_error,
            TableList: self._on_table_list,
            TableData: self._on_table_data,
            FieldDetail: self._on_field_detail,
            CustomQueryInput: self._on_query_input,
            CustomQuery: self._on_custom_query,
        }

    # Lifecycle

    def start(self, profile_name: Optional[str] = None) -> None:
        """Enter the first state, connecting right away when a profile is given."""
        if profile_name is not None:
            self.connect(profile_name)
            return
        self._enter(ConnectionSelection(cursor=first_index(len(self.store.list()))))

    def handle_key(self, key: str) -> None:
        if not self.running:
            return
        handler = self._handlers[type(self.state)]
        handler(self.state, key)

    def quit(self) -> None:
        logger.info(f"Quit requested in state '{self.state.name}'")
        self.shutdown()
        self.running = False

    def shutdown(self) -> None:
        self._close_connection()

    # Transitions shared by several states

    def _enter(self, state: NavigationState) -> None:
        logger.info(f"State: {self.state.name} -> {state.name}")
        self.state = state

    def _fail(self, message: str) -> None:
        """Route a failure to the error state, discarding the browsing context."""
        logger.error(message)
        self._close_connection()
        self._discard_browsing()
        self.status_message = None
        self.error_message = message
        self._enter(ConnectionErrorState(message=message))

    def _close_connection(self) -> None:
        if self.connection is not None:
            try:
                self.connection.close()
            finally:
                self.connection = None
                self.profile_name = None

    def _discard_browsing(self) -> None:
        self.tables = []
        self._table_cursor = None

    def _to_connection_selection(self) -> None:
        self._close_connection()
        self._discard_browsing()
        self.error_message = None
        self.status_message = None
        names = self.store.list()
        cursor = first_index(len(names))
        if self._last_profile in names:
            cursor = names.index(self._last_profile)
        self._enter(ConnectionSelection(cursor=cursor))

    def _to_table_list(self) -> None:
        cursor = self._table_cursor
        if cursor is None or cursor >= len(self.tables):
            cursor = first_index(len(self.tables))
        self._enter(TableList(cursor=cursor))

    def _to_query_input(self, text: str = "") -> None:
        self._enter(CustomQueryInput(buffer=text, cursor_pos=len(text)))

    # Connecting

    def connect(self, profile_name: str) -> None:
        self._close_connection()
        self._discard_browsing()
        self._last_profile = profile_name
        self.error_message = None
        self.status_message = f"Connecting to {profile_name}..."
        self._enter(Connecting(profile_name=profile_name))

        profile = self.store.get(profile_name)
        if profile is None:
            self._fail("Connection not found")
            return
        try:
            password = self.store.resolve_password(profile)
        except CredentialError as e:
            self._fail(f"Error decrypting password: {e}")
            return
        try:
            self.connection = self.gateway.connect(profile, password)
        except ConnectFailure as e:
            self._fail(f"Connection error: {e}")
            return

        self.profile_name = profile_name
        self.status_message = f"Connected to {profile_name}"
        logger.info(f"Connected to '{profile_name}', loading tables")
        try:
            self.tables = self.gateway.list_tables(self.connection)
        except FetchFailure as e:
            self._fail(f"Error loading tables: {e}")
            return
        logger.info(f"Loaded {len(self.tables)} tables")
        self._enter(TableList(cursor=first_index(len(self.tables))))

    # Fetching

    def _count(self, what: str, fetch: Callable[[], int]) -> int:
        # A failed count only affects the page display, so it becomes 0
        try:
            return fetch()
        except FetchFailure as e:
            logger.warning(f"Row count for {what} failed, showing 0 pages: {e}")
            return 0

    def _load_page(
        self,
        state: RowBrowsing,
        fetch: Callable[[], ResultSet],
        count: Callable[[], int],
        what: str,
        error_prefix: str,
    ) -> bool:
        try:
            state.load(fetch())
        except FetchFailure as e:
            self._fail(f"{error_prefix}: {e}")
            return False
        if not state.pager.update_total(self._count(what, count)):
            return True
        # The rows shrank past the current page, so the loaded rows are stale
        logger.info(f"Row count for {what} shrank, reloading page {state.pager.current_page + 1}")
        try:
            state.load(fetch())
        except FetchFailure as e:
            self._fail(f"{error_prefix}: {e}")
            return False
        return True

    def _load_table_page(self, state: TableData) -> bool:
        conn = self.connection
        if conn is None:
            self._fail("Error loading table data: not connected")
            return False
        loaded = self._load_page(
            state,
            lambda: self.gateway.fetch_table_page(conn, state.table, state.pager.offset, state.pager.items_per_page),
            lambda: self.gateway.count_rows(conn, state.table),
            f"table '{state.table}'",
            "Error loading table data",
        )
        if loaded:
            logger.info(
                f"Loaded {len(state.result.rows)} rows of '{state.table}' "
                f"(page {state.pager.current_page + 1}/{state.pager.total_pages})"
            )
        return loaded

    def _load_query_page(self, state: CustomQuery) -> bool:
        conn = self.connection
        if conn is None:
            self._fail("Error executing query: not connected")
            return False
        loaded = self._load_page(
            state,
            lambda: self.gateway.execute_query(conn, state.query, state.pager.offset, state.pager.items_per_page),
            lambda: self.gateway.count_query_rows(conn, state.query),
            "custom query",
            "Error executing query",
        )
        if loaded:
            logger.info(
                f"Query returned {len(state.result.rows)} rows "
                f"(page {state.pager.current_page + 1}/{state.pager.total_pages})"
            )
        return loaded

    def _reload(self, state: RowBrowsing) -> bool:
        if isinstance(state, TableData):
            return self._load_table_page(state)
        if isinstance(state, CustomQuery):
            return self._load_query_page(state)
        raise TypeError(f"Cannot reload {type(state).__name__}")

    def open_table(self, table: str) -> None:
        state = TableData(result=empty_result(), pager=Pager(self.items_per_page), table=table)
        self._enter(state)
        self._load_table_page(state)

    def run_query(self, query: str) -> None:
        state = CustomQuery(result=empty_result(), pager=Pager(self.items_per_page), query=query)
        self._enter(state)
        if self._load_query_page(state):
            self.status_message = "Query executed"

    # Row browsing shared by TableData and CustomQuery

    def _change_page(self, state: RowBrowsing, move: Callable[[], bool]) -> None:
        state.field_cursor = None
        if not move():
            return
        state.invalidate_page()
        self._reload(state)

    def _open_field_detail(self, state: RowBrowsing) -> None:
        if not state.selected_row():
            return
        if state.field_cursor is None:
            state.field_cursor = 0
        value = state.selected_value()
        if value is None:
            return
        self._enter(FieldDetail(column=state.selected_column(), value=value, origin=state))

    def _on_browse_key(self, state: RowBrowsing, key: str) -> bool:
        if key == keys.DOWN:
            state.next_row()
        elif key == keys.UP:
            state.previous_row()
        elif key == keys.RIGHT:
            state.next_field()
        elif key == keys.LEFT:
            state.previous_field()
        elif key == keys.PAGE_DOWN:
            self._change_page(state, state.pager.advance)
        elif key == keys.PAGE_UP:
            self._change_page(state, state.pager.retreat)
        elif key == keys.ENTER:
            self._open_field_detail(state)
        else:
            return False
        return True

    # Per-state key handlers

    def _on_connection_selection(self, state: ConnectionSelection, key: str) -> None:
        names = self.store.list()
        if key in (keys.QUIT, keys.ESCAPE):
            self.quit()
        elif key == keys.DOWN:
            state.cursor = next_index(state.cursor, len(names))
        elif key == keys.UP:
            state.cursor = previous_index(state.cursor, len(names))
        elif key == keys.ENTER:
            if state.cursor is not None and state.cursor < len(names):
                self.connect(names[state.cursor])

    def _on_connecting(self, state: Connecting, key: str) -> None:
        if key == keys.QUIT:
            self.quit()
        elif key == keys.ESCAPE:
            self._to_connection_selection()

    def _on_connection_error(self, state: ConnectionErrorState, key: str) -> None:
        if key == keys.QUIT:
            self.quit()
        elif key in (keys.ESCAPE, "c"):
            self._to_connection_selection()

    def _on_table_list(self, state: TableList, key: str) -> None:
        if key == keys.QUIT:
            self.quit()
        elif key in (keys.ESCAPE, "c"):
            self._to_connection_selection()
        elif key == keys.DOWN:
            state.cursor = next_index(state.cursor, len(self.tables))
        elif key == keys.UP:
            state.cursor = previous_index(state.cursor, len(self.tables))
        elif key == keys.ENTER:
            if state.cursor is not None and state.cursor < len(self.tables):
                self._table_cursor = state.cursor
                self.open_table(self.tables[state.cursor])
        elif key == "s":
            self._table_cursor = state.cursor
            self._to_query_input()

    def _on_table_data(self, state: TableData, key: str) -> None:
        if key == keys.QUIT:
            self.quit()
        elif key in (keys.ESCAPE, "t"):
            self._to_table_list()
        elif key == "c":
            self._to_connection_selection()
        elif key == "s":
            self._to_query_input()
        else:
            self._on_browse_key(state, key)

    def _on_field_detail(self, state: FieldDetail, key: str) -> None:
        last_line = state.line_count - 1
        if key == keys.QUIT:
            self.quit()
        elif key == keys.ESCAPE:
            self._enter(state.origin)
        elif key == keys.DOWN:
            state.scroll = min(state.scroll + 1, last_line)
        elif key == keys.UP:
            state.scroll = max(state.scroll - 1, 0)
        elif key == keys.PAGE_DOWN:
            state.scroll = min(state.scroll + FIELD_SCROLL_PAGE, last_line)
        elif key == keys.PAGE_UP:
            state.scroll = max(state.scroll - FIELD_SCROLL_PAGE, 0)
        elif key == keys.HOME:
            state.scroll = 0
        elif key == keys.END:
            state.scroll = last_line

    def _on_query_input(self, state: CustomQueryInput, key: str) -> None:
        # Text entry: "q" and the other letter shortcuts are literal input here
        if key == keys.ESCAPE:
            self._to_table_list()
        elif key == keys.ENTER:
            query = state.buffer.strip()
            if query:
                self.run_query(query)
        elif key == keys.BACKSPACE:
            state.backspace()
        elif key == keys.DELETE:
            state.delete()
        elif key == keys.LEFT:
            state.move_left()
        elif key == keys.RIGHT:
            state.move_right()
        elif key == keys.HOME:
            state.move_home()
        elif key == keys.END:
            state.move_end()
        elif keys.is_char(key):
            state.insert(key)

    def _on_custom_query(self, state: CustomQuery, key: str) -> None:
        if key == keys.QUIT:
            self.quit()
        elif key in ("s", keys.ESCAPE):
            self._to_query_input(state.query)
        elif key == "t":
            self._to_table_list()
        elif key == "c":
            self._to_connection_selection()
        else:
            self._on_browse_key(state, key)
