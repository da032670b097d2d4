from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

import pytest

from pgnavlib.errors import CredentialError
from pgnavlib.models import Column, ConnectionProfile, ResultSet
from pgnavtui.navigator import Navigator

Table = Tuple[List[Column], List[List[str]]]


def make_profile(name: str) -> ConnectionProfile:
    return ConnectionProfile(name=name, host="localhost", port=5432, database="app", username="admin")


def make_rows(count: int) -> List[List[str]]:
    return [[str(i), f"user{i}"] for i in range(1, count + 1)]


USER_COLUMNS = [Column("id", "integer"), Column("name", "character varying(50)")]


class FakeConnection:
    def __init__(self, profile_name: str):
        self.profile_name = profile_name
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeGateway:
    """In-memory gateway; ``failures`` maps an operation name to the exception it raises."""

    def __init__(self, tables: Optional[Dict[str, Table]] = None, queries: Optional[Dict[str, Table]] = None):
        self.tables = tables if tables is not None else {}
        self.queries = queries if queries is not None else {}
        self.failures: Dict[str, Exception] = {}
        self.calls: List[tuple] = []
        self.connections: List[FakeConnection] = []
        self.before_fetch: Optional[Callable[[], None]] = None

    def _record(self, op: str, *args) -> None:
        self.calls.append((op,) + args)
        if op in self.failures:
            raise self.failures[op]

    def calls_to(self, op: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == op]

    def connect(self, profile, password):
        self._record("connect", profile.name, password)
        conn = FakeConnection(profile.name)
        self.connections.append(conn)
        return conn

    def list_tables(self, conn):
        self._record("list_tables")
        return sorted(self.tables)

    def fetch_table_page(self, conn, table, offset, limit):
        if self.before_fetch is not None:
            self.before_fetch()
        self._record("fetch_table_page", table, offset, limit)
        columns, rows = self.tables[table]
        return ResultSet(columns=list(columns), rows=[list(r) for r in rows[offset : offset + limit]])

    def count_rows(self, conn, table):
        self._record("count_rows", table)
        return len(self.tables[table][1])

    def count_query_rows(self, conn, query):
        self._record("count_query_rows", query)
        return len(self.queries[query][1])

    def execute_query(self, conn, query, offset, limit):
        if self.before_fetch is not None:
            self.before_fetch()
        self._record("execute_query", query, offset, limit)
        columns, rows = self.queries[query]
        return ResultSet(columns=list(columns), rows=[list(r) for r in rows[offset : offset + limit]])


class FakeStore:
    def __init__(self, names: List[str], passwords: Optional[Dict[str, str]] = None):
        self.profiles = {name: make_profile(name) for name in names}
        self.passwords = passwords if passwords is not None else {name: "secret" for name in names}

    def list(self) -> List[str]:
        return sorted(self.profiles)

    def get(self, name: str) -> Optional[ConnectionProfile]:
        return self.profiles.get(name)

    def resolve_password(self, profile: ConnectionProfile) -> str:
        if profile.name not in self.passwords:
            raise CredentialError("Decryption failed")
        return self.passwords[profile.name]


def press(nav: Navigator, *keys: str) -> None:
    for key in keys:
        nav.handle_key(key)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(
        tables={
            "users": (USER_COLUMNS, make_rows(45)),
            "small": (USER_COLUMNS, make_rows(3)),
            "empty": (USER_COLUMNS, []),
        },
        queries={
            "SELECT * FROM users": ([Column("id"), Column("name")], make_rows(25)),
        },
    )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(["conn1", "conn2"])


@pytest.fixture
def nav(store, gateway) -> Navigator:
    navigator = Navigator(store, gateway, items_per_page=20)
    navigator.start()
    return navigator


@pytest.fixture
def connected(store, gateway) -> Navigator:
    navigator = Navigator(store, gateway, items_per_page=20)
    navigator.start("conn1")
    return navigator
