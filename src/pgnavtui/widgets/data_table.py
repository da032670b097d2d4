"""Read-only data table that renders list and table view models."""

from rich.text import Text
from textual.widgets import DataTable

from ..presentation import ListView, TableView


class ResultTable(DataTable):
    """Data table driven entirely by view models.

    The table never takes focus: every key goes to the navigator, and the
    cursor position is copied from the view model on each render.
    """

    can_focus = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.cursor_type = "row"
        self.zebra_stripes = True

    def show_list(self, view: ListView) -> None:
        """Render a single-column list with the highlighted item as cursor row."""
        self.clear(columns=True)
        self.add_column(Text(view.title, style="bold"), key="item")
        for item in view.items:
            self.add_row(Text(item))
        self._place_cursor(view.highlighted, None)

    def show_table(self, view: TableView) -> None:
        """Render rows under a two-row header: column names, then types."""
        self.clear(columns=True)
        for i, (name, type_) in enumerate(zip(view.header_names, view.header_types)):
            label = Text(name, style="bold")
            label.append("\n")
            label.append(type_, style="italic")
            self.add_column(label, key=str(i))
        for row in view.rows:
            self.add_row(*[Text(cell) for cell in row])
        self._place_cursor(view.highlighted_row, view.highlighted_column)

    def _place_cursor(self, row, column) -> None:
        if row is None or row >= self.row_count:
            self.show_cursor = False
            return
        self.show_cursor = True
        if column is None:
            self.cursor_type = "row"
            self.move_cursor(row=row, animate=False)
        else:
            self.cursor_type = "cell"
            self.move_cursor(row=row, column=column, animate=False)
