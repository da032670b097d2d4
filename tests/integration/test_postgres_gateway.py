from __future__ import annotations

import os
from pathlib import Path

import pytest

from pgnavlib.clients import PostgresGateway
from pgnavlib.connstr import parse_connection_string
from pgnavlib.errors import ConnectFailure, FetchFailure
from pgnavlib.models import ConnectionProfile
from pgnavtui import keys
from pgnavtui.models.navigation_state import ConnectionErrorState, CustomQuery, FieldDetail, TableData, TableList
from pgnavtui.navigator import Navigator

DSN = os.environ.get("PGNAV_TEST_DSN")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not DSN, reason="PGNAV_TEST_DSN is not set"),
]


class DsnStore:
    """Single-profile store built from the test DSN."""

    def __init__(self, dsn: str):
        parsed = parse_connection_string(dsn)
        self.password = parsed.password
        self.profile = ConnectionProfile("it", parsed.host, parsed.port, parsed.database, parsed.username)

    def list(self):
        return [self.profile.name]

    def get(self, name):
        return self.profile if name == self.profile.name else None

    def resolve_password(self, profile):
        return self.password


@pytest.fixture(scope="module")
def seeded():
    import psycopg

    script = (Path(__file__).parents[2] / "infra" / "init.sql").read_text()
    with psycopg.connect(DSN, autocommit=True) as conn:
        conn.execute(script)


@pytest.fixture
def store(seeded):
    return DsnStore(DSN)


@pytest.fixture
def conn(store):
    gateway = PostgresGateway()
    connection = gateway.connect(store.profile, store.password)
    yield connection
    connection.close()


def test_list_tables_includes_seed(conn):
    tables = PostgresGateway().list_tables(conn)
    assert {"articles", "authors", "page_views"} <= set(tables)
    assert tables == sorted(tables)


def test_table_page_has_types_and_nulls(conn):
    gateway = PostgresGateway()
    result = gateway.fetch_table_page(conn, "page_views", 0, 20)
    assert [c.name for c in result.columns] == ["id", "article_id", "viewed_at", "referrer"]
    assert result.columns[0].type == "bigint"
    assert len(result.rows) == 20
    assert gateway.count_rows(conn, "page_views") == 45

    nulls = gateway.execute_query(conn, "SELECT referrer FROM page_views WHERE referrer IS NULL", 0, 1)
    assert nulls.rows == [["NULL"]]


def test_varchar_type_has_length(conn):
    result = PostgresGateway().fetch_table_page(conn, "authors", 0, 20)
    assert result.columns[1].type == "character varying(40)"


def test_custom_query_pages_and_keeps_percent(conn):
    gateway = PostgresGateway()
    query = "SELECT id, referrer LIKE '%example%' AS from_example FROM page_views ORDER BY id;"
    result = gateway.execute_query(conn, query, 40, 20)
    assert [c.name for c in result.columns] == ["id", "from_example"]
    assert len(result.rows) == 5
    assert gateway.count_query_rows(conn, query) == 45


def test_custom_query_with_repeated_column_names(conn):
    gateway = PostgresGateway()
    result = gateway.execute_query(conn, "SELECT 1, 2", 0, 20)
    assert [c.name for c in result.columns] == ["?column?", "?column?"]
    assert result.rows == [["1", "2"]]

    joined = gateway.execute_query(
        conn, "-- both ids\nSELECT a.id, b.id FROM articles a JOIN authors b ON b.id = a.author_id -- done", 0, 1
    )
    assert [c.name for c in joined.columns] == ["id", "id"]
    assert len(joined.rows) == 1


def test_bad_query_raises_and_session_survives(conn):
    gateway = PostgresGateway()
    with pytest.raises(FetchFailure):
        gateway.execute_query(conn, "SELECT * FROM no_such_table", 0, 20)
    assert gateway.list_tables(conn)


def test_unreachable_port_is_connect_failure(store):
    profile = ConnectionProfile("closed", store.profile.host, 1, store.profile.database, store.profile.username)
    with pytest.raises(ConnectFailure):
        PostgresGateway().connect(profile, store.password)


def test_navigator_end_to_end(store):
    nav = Navigator(store, PostgresGateway(), items_per_page=20)
    nav.start("it")
    assert isinstance(nav.state, TableList)

    nav.open_table("page_views")
    state = nav.state
    assert isinstance(state, TableData)
    assert state.pager.total_pages == 3
    nav.handle_key(keys.PAGE_DOWN)
    nav.handle_key(keys.PAGE_DOWN)
    assert len(state.result.rows) == 5

    nav.open_table("articles")
    nav.handle_key(keys.RIGHT)
    for _ in range(3):
        nav.handle_key(keys.RIGHT)
    nav.handle_key(keys.ENTER)
    assert isinstance(nav.state, FieldDetail)
    assert nav.state.column.name == "body"

    nav.run_query("select count(*) as n from authors")
    assert isinstance(nav.state, CustomQuery)
    assert int(nav.state.result.rows[0][0]) >= 3

    nav.run_query("select * from missing_table")
    assert isinstance(nav.state, ConnectionErrorState)
    nav.shutdown()
