from __future__ import annotations

import logging
import re
from typing import Any, List, Optional, Protocol, Sequence

from .errors import ConnectFailure, FetchFailure
from .models import Column, ConnectionProfile, ResultSet

logger = logging.getLogger(__name__)

NULL_TEXT = "NULL"
ROW_RETURNING_KEYWORDS = ("select", "with", "values", "table")


class ActiveConnection(Protocol):
    closed: bool

    def close(self) -> None: ...


class FetchGateway(Protocol):
    """Boundary for every database read performed by the navigator.

    All methods block until the database answers and raise ``ConnectFailure``
    or ``FetchFailure`` exactly once on error; nothing is retried.
    """

    def connect(self, profile: ConnectionProfile, password: str) -> ActiveConnection: ...

    def list_tables(self, conn: ActiveConnection) -> List[str]: ...

    def fetch_table_page(self, conn: ActiveConnection, table: str, offset: int, limit: int) -> ResultSet: ...

    def count_rows(self, conn: ActiveConnection, table: str) -> int: ...

    def count_query_rows(self, conn: ActiveConnection, query: str) -> int: ...

    def execute_query(self, conn: ActiveConnection, query: str, offset: int, limit: int) -> ResultSet: ...


# Whitespace, comments and opening parentheses before the first keyword
_LEADING_NOISE = re.compile(r"(?:\s|--[^\n]*|/\*.*?\*/|\()*", re.DOTALL)


def is_row_returning(query: str) -> bool:
    start = _LEADING_NOISE.match(query).end()
    match = re.match(r"[A-Za-z]+", query[start:])
    return bool(match) and match.group(0).lower() in ROW_RETURNING_KEYWORDS


def _strip_statement(query: str) -> str:
    return query.strip().rstrip(";").rstrip()


def _subquery(query: str) -> str:
    # The newline keeps a trailing -- comment from swallowing the parenthesis
    return f"({_strip_statement(query)}\n)"


def _cell_to_text(value: Any) -> str:
    if value is None:
        return NULL_TEXT
    return str(value)


def _rows_to_text(rows: Sequence[Sequence[Any]]) -> List[List[str]]:
    return [[_cell_to_text(v) for v in row] for row in rows]


class DatabaseConnection:
    """Live PostgreSQL session owned by the navigator."""

    def __init__(self, raw: Any, profile_name: str):
        self.raw = raw
        self.profile_name = profile_name

    @property
    def closed(self) -> bool:
        return bool(self.raw.closed)

    def close(self) -> None:
        if not self.raw.closed:
            logger.info("Closing connection '%s'", self.profile_name)
            self.raw.close()


class PostgresGateway:
    """Fetch gateway backed by psycopg 3.

    psycopg is imported lazily so unit tests can run without a driver.
    """

    def connect(self, profile: ConnectionProfile, password: str) -> DatabaseConnection:
        import psycopg  # local import: optional for tests

        logger.info(
            "Connecting to %s@%s:%s/%s", profile.username, profile.host, profile.port, profile.database
        )
        try:
            raw = psycopg.connect(
                host=profile.host,
                port=profile.port,
                dbname=profile.database,
                user=profile.username,
                password=password,
                autocommit=True,
            )
        except psycopg.Error as e:
            raise ConnectFailure(f"Failed to connect to database: {e}") from e
        return DatabaseConnection(raw, profile.name)

    def _run(self, conn: DatabaseConnection, what: str, query: Any, params: Optional[Sequence[Any]] = None):
        import psycopg

        try:
            with conn.raw.cursor() as cur:
                cur.execute(query, params)
                description = cur.description
                rows = cur.fetchall() if description is not None else []
        except psycopg.Error as e:
            raise FetchFailure(f"Failed to {what}: {e}") from e
        names = [d.name for d in description] if description is not None else []
        return names, rows

    def list_tables(self, conn: DatabaseConnection) -> List[str]:
        _, rows = self._run(
            conn,
            "query tables",
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'public' ORDER BY table_name",
        )
        return [r[0] for r in rows]

    def fetch_table_page(self, conn: DatabaseConnection, table: str, offset: int, limit: int) -> ResultSet:
        from psycopg import sql

        _, column_rows = self._run(
            conn,
            "query columns",
            """
            SELECT column_name,
                   CASE
                       WHEN character_maximum_length IS NOT NULL
                       THEN data_type || '(' || character_maximum_length || ')'
                       ELSE data_type
                   END AS detailed_type
            FROM information_schema.columns
            WHERE table_schema = 'public' AND table_name = %s
            ORDER BY ordinal_position
            """,
            (table,),
        )
        columns = [Column(name=r[0], type=r[1] or "") for r in column_rows]
        if not columns:
            raise FetchFailure(f"Failed to query columns: table '{table}' has no visible columns")

        query = sql.SQL("SELECT {cols} FROM {table} LIMIT %s OFFSET %s").format(
            cols=sql.SQL(", ").join(sql.SQL("{}::text").format(sql.Identifier(c.name)) for c in columns),
            table=sql.Identifier("public", table),
        )
        _, rows = self._run(conn, "query table data", query, (limit, offset))
        return ResultSet(columns=columns, rows=_rows_to_text(rows))

    def count_rows(self, conn: DatabaseConnection, table: str) -> int:
        from psycopg import sql

        query = sql.SQL("SELECT COUNT(*) FROM {}").format(sql.Identifier("public", table))
        _, rows = self._run(conn, "query table count", query)
        return int(rows[0][0]) if rows else 0

    def count_query_rows(self, conn: DatabaseConnection, query: str) -> int:
        if not is_row_returning(query):
            return 0
        _, rows = self._run(
            conn, "count query rows", f"SELECT COUNT(*) FROM {_subquery(query)} AS count_query"
        )
        return int(rows[0][0]) if rows else 0

    def execute_query(self, conn: DatabaseConnection, query: str, offset: int, limit: int) -> ResultSet:
        from psycopg import sql

        if not is_row_returning(query):
            names, rows = self._run(conn, "execute custom query", query)
            return ResultSet(columns=[Column(n) for n in names], rows=_rows_to_text(rows))

        base = _subquery(query)
        # Zero-row probe so an empty result still has headers
        names, _ = self._run(conn, "get column information", f"SELECT * FROM {base} AS probe LIMIT 0")
        # Columns are renamed by position since output names may repeat (SELECT 1, 2)
        aliases = [sql.Identifier(f"c{i}") for i in range(len(names))]
        alias_list = sql.SQL("({})").format(sql.SQL(", ").join(aliases)) if aliases else sql.SQL("")
        paged = sql.SQL("SELECT {cols} FROM {base} AS text_query{aliases} LIMIT {limit} OFFSET {offset}").format(
            cols=sql.SQL(", ").join(sql.SQL("{}::text").format(a) for a in aliases),
            base=sql.SQL(base),
            aliases=alias_list,
            limit=sql.Literal(limit),
            offset=sql.Literal(offset),
        )
        # No bound parameters: the user query may contain bare % signs
        _, rows = self._run(conn, "execute custom query", paged)
        return ResultSet(columns=[Column(n) for n in names], rows=_rows_to_text(rows))
