"""Channel message tables - read rows and insert webhook messages.

Table names come from the channel registry only and are always quoted
as identifiers. Column sets differ per table, so reads select `*`.
"""

from __future__ import annotations

from typing import Any

from psycopg2 import sql
from psycopg2.extensions import cursor as PgCursor

from whatsdesk.infra.db import fetchall_dicts
from whatsdesk.messages.models import RawMessageRecord

DEFAULT_LIMIT = 1000

# Columns the webhook may write; anything else in the row is ignored
_INSERTABLE_COLUMNS = (
    "session_id",
    "message",
    "read_at",
    "mensagemtype",
    "tipo_remetente",
    "nome_do_contato",
    "media_base64",
)


def fetch_channel_rows(cur: PgCursor, table: str, limit: int = DEFAULT_LIMIT) -> list[RawMessageRecord]:
    """Most recent rows of a channel table, newest first.

    Args:
        cur: Database cursor (dict rows).
        table: Channel table name.
        limit: Maximum rows to read.
    """
    query = sql.SQL("SELECT * FROM {} ORDER BY id DESC LIMIT %s").format(sql.Identifier(table))
    rows = fetchall_dicts(cur, query, (limit,))
    return [RawMessageRecord.from_row(row) for row in rows]


def fetch_contact_rows(
    cur: PgCursor,
    table: str,
    phone: str,
    limit: int = DEFAULT_LIMIT,
) -> list[RawMessageRecord]:
    """Rows of one contact's thread. Matches any session id containing the phone.

    Args:
        cur: Database cursor (dict rows).
        table: Channel table name.
        phone: Normalized phone (digits) or raw session key.
        limit: Maximum rows to read.
    """
    query = sql.SQL(
        "SELECT * FROM {} WHERE session_id LIKE %s ORDER BY id DESC LIMIT %s"
    ).format(sql.Identifier(table))
    pattern = "%" + phone.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
    rows = fetchall_dicts(cur, query, (pattern, limit))
    return [RawMessageRecord.from_row(row) for row in reversed(rows)]


def insert_message_row(cur: PgCursor, table: str, row: dict[str, Any]) -> Any:
    """Insert one message row and return its id.

    Args:
        cur: Database cursor (within transaction).
        table: Channel table name.
        row: Column values; unknown keys are ignored.
    """
    columns = [column for column in _INSERTABLE_COLUMNS if column in row]
    query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING id").format(
        sql.Identifier(table),
        sql.SQL(", ").join(sql.Identifier(column) for column in columns),
        sql.SQL(", ").join(sql.Placeholder() for _ in columns),
    )
    cur.execute(query, [row[column] for column in columns])
    result = cur.fetchone()
    return result["id"]
