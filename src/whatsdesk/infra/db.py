"""Database access layer using psycopg2.

Provides:
- get_conn(): Get a database connection from DATABASE_URL
- txn(): Context manager for short, safe transactions
- fetchall_dicts(): Query helper returning rows as dicts

Channel tables are created by the upstream ingestion flows; their
columns vary per table, so rows are read as dicts and never as tuples.
"""

import os
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor
from psycopg2.extras import RealDictCursor
from psycopg2.sql import Composable


def get_conn() -> PgConnection:
    """Get a new database connection from DATABASE_URL.

    Returns:
        psycopg2 connection object.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")
    return psycopg2.connect(dsn)


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Context manager for a short, safe transaction.

    If conn is None, creates a new connection that is closed on exit.
    Commits on successful exit, rolls back on exception. The cursor is a
    RealDictCursor, so fetched rows are column-name keyed dicts.

    Args:
        conn: Optional existing connection. If None, creates new one.

    Yields:
        Cursor for executing queries within the transaction.

    Example:
        with txn() as cur:
            cur.execute("SELECT * FROM canarana_conversas LIMIT 1")
    """
    owns_conn = conn is None
    if owns_conn:
        conn = get_conn()

    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        if owns_conn:
            conn.close()


def fetchall_dicts(
    cur: PgCursor,
    query: str | Composable,
    params: Sequence[Any] | None = None,
) -> list[dict[str, Any]]:
    """Execute query and fetch all rows as plain dicts.

    Args:
        cur: Database cursor.
        query: SQL query with %s placeholders (str or psycopg2.sql object).
        params: Query parameters.

    Returns:
        List of row dicts.
    """
    cur.execute(query, params)
    return [dict(row) for row in cur.fetchall()]
