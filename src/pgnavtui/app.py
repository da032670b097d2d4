"""Main TUI application."""

import logging
from typing import Optional

from textual.app import App

from pgnavlib.clients import PostgresGateway
from pgnavlib.config import ProfileStore

from .navigator import Navigator
from .presentation import build_view
from .screens.browser_screen import BrowserScreen


logger = logging.getLogger(__name__)


class BrowserApp(App):
    """Main TUI application for browsing a PostgreSQL database."""

    TITLE = "pgnav"
    SUB_TITLE = "PostgreSQL Browser"

    CSS = """
    Screen {
        layout: vertical;
    }

    Header {
        dock: top;
    }

    #status-line {
        height: 1;
    }

    #error-line {
        height: auto;
    }

    #screen-title {
        height: 1;
        padding: 0 1;
    }

    #body {
        height: 1fr;
        border: round $primary;
    }

    #help-line {
        dock: bottom;
        height: auto;
        color: $text-muted;
    }
    """

    def __init__(self, navigator: Navigator, profile_name: Optional[str] = None):
        super().__init__()
        self.navigator = navigator
        self.profile_name = profile_name

    def on_mount(self) -> None:
        """Enter the first state (connecting if a profile was given) and show it."""
        self.navigator.start(self.profile_name)
        logger.info("TUI app initialized successfully")
        self.push_screen(BrowserScreen())

    def on_unmount(self) -> None:
        self.navigator.shutdown()

    def dispatch_key(self, symbol: str) -> None:
        """Run one transition to completion, then redraw once."""
        self.navigator.handle_key(symbol)
        if not self.navigator.running:
            self.exit()
            return
        self.refresh_view()

    def refresh_view(self) -> None:
        view = build_view(self.navigator)
        if isinstance(self.screen, BrowserScreen):
            self.screen.render_view(view)
        self.sub_title = " > ".join(view.breadcrumb) or self.SUB_TITLE


def run_tui(profile_name: Optional[str] = None) -> None:
    """Entry point for running the TUI."""
    store = ProfileStore.load()

    # The terminal belongs to the UI, so replace any handlers the CLI installed
    log_file = store.config.log_file
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[
            logging.FileHandler(log_file, mode="w")
        ],
        force=True,
    )
    logging.getLogger("psycopg").setLevel(logging.WARNING)
    logger.info(f"Starting TUI, debug log at: {log_file}")

    navigator = Navigator(store, PostgresGateway(), items_per_page=store.config.items_per_page)
    app = BrowserApp(navigator, profile_name)
    try:
        app.run()
    finally:
        navigator.shutdown()
