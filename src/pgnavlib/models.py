from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class ConnectionProfile:
    """A named, persisted set of connection parameters for one database.

    The password is never part of the profile; it is resolved from the
    profile store when the connection is opened.
    """

    name: str
    host: str
    port: int
    database: str
    username: str


@dataclass(frozen=True)
class Column:
    name: str
    type: str = ""


@dataclass
class ResultSet:
    """Columns plus string-encoded rows from a table page or a custom query."""

    columns: List[Column] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def clear_rows(self) -> None:
        self.rows = []
