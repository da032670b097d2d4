"""Single screen that renders whatever view the navigator is in."""

import logging

from rich.text import Text
from textual import events
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import ContentSwitcher, Header, Static

from ..keys import translate_key
from ..presentation import InputView, ListView, TableView, TextView, ViewModel
from ..widgets.data_table import ResultTable
from ..widgets.query_input import QueryLine

logger = logging.getLogger(__name__)


class BrowserScreen(Screen):
    """Screen for every navigator state.

    Keys are translated to symbols and handed to the app's navigator; the
    screen is redrawn from a fresh view model after each transition.
    """

    def compose(self):
        """Compose the screen layout."""
        with Vertical():
            yield Header()
            yield Static(id="status-line")
            yield Static(id="error-line")
            yield Static(id="screen-title")
            with ContentSwitcher(initial="list-view", id="body"):
                yield ResultTable(id="list-view")
                yield ResultTable(id="table-view", header_height=2)
                yield Static(id="text-view")
                yield QueryLine(id="input-view")
            yield Static(id="help-line")

    def on_mount(self) -> None:
        self.app.refresh_view()

    def on_key(self, event: events.Key) -> None:
        symbol = translate_key(event.key, event.character)
        if symbol is None:
            return
        event.stop()
        event.prevent_default()
        self.app.dispatch_key(symbol)

    def render_view(self, view: ViewModel) -> None:
        """Update every widget from the view model."""
        status = self.query_one("#status-line", Static)
        status.update(Text(view.status or "", style="green"))
        status.display = bool(view.status)

        error = self.query_one("#error-line", Static)
        error.update(Text(view.error or "", style="bold red"))
        error.display = bool(view.error)

        self.query_one("#screen-title", Static).update(Text(view.title, style="bold"))
        self.query_one("#help-line", Static).update(Text(view.help, style="italic"))

        switcher = self.query_one("#body", ContentSwitcher)
        body = view.body
        if isinstance(body, ListView):
            self.query_one("#list-view", ResultTable).show_list(body)
            switcher.current = "list-view"
        elif isinstance(body, TableView):
            self.query_one("#table-view", ResultTable).show_table(body)
            switcher.current = "table-view"
        elif isinstance(body, TextView):
            self.query_one("#text-view", Static).update(Text("\n".join(body.visible_lines)))
            switcher.current = "text-view"
        elif isinstance(body, InputView):
            self.query_one("#input-view", QueryLine).show_input(body)
            switcher.current = "input-view"
        else:
            logger.error(f"Unknown view body: {type(body).__name__}")
