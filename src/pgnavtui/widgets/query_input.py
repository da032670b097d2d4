"""Single-line query editor display."""

from rich.text import Text
from textual.widgets import Static

from ..presentation import CURSOR_MARKER, InputView


class QueryLine(Static):
    """Shows the query buffer with a cursor marker; editing happens in the navigator."""

    def show_input(self, view: InputView) -> None:
        text = Text(view.rendered)
        marker = view.cursor_pos
        text.stylize("reverse", marker, marker + len(CURSOR_MARKER))
        self.update(text)
