"""Page bookkeeping for a paginated result set."""

import math
from dataclasses import dataclass


def total_pages_for(row_count: int, items_per_page: int) -> int:
    if row_count <= 0:
        return 0
    return math.ceil(row_count / items_per_page)


@dataclass
class Pager:
    """Current page and the last known page count.

    ``total_pages`` is only as fresh as the last successful row count. The
    pager never fetches; callers re-fetch when ``advance``, ``retreat`` or
    ``update_total`` report a change.
    """

    items_per_page: int
    current_page: int = 0
    total_pages: int = 0

    def __post_init__(self) -> None:
        if self.items_per_page <= 0:
            raise ValueError(f"items_per_page must be positive, got {self.items_per_page}")

    @property
    def offset(self) -> int:
        return self.current_page * self.items_per_page

    def advance(self) -> bool:
        # total_pages == 0 means an empty result: never advance
        if self.total_pages == 0:
            return False
        if self.current_page < self.total_pages - 1:
            self.current_page += 1
            return True
        return False

    def retreat(self) -> bool:
        if self.current_page > 0:
            self.current_page -= 1
            return True
        return False

    def update_total(self, row_count: int) -> bool:
        """Store a fresh row count; True if the current page moved back into range."""
        self.total_pages = total_pages_for(row_count, self.items_per_page)
        if self.total_pages and self.current_page > self.total_pages - 1:
            self.current_page = self.total_pages - 1
            return True
        return False
