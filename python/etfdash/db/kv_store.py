"""Key-value store on DuckDB.

Values are opaque strings. Each write runs in its own transaction so a
reader never sees a half-written value.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)


def get_value(conn: duckdb.DuckDBPyConnection, key: str) -> str | None:
    """Read the value stored under key.

    Args:
        conn: Active DuckDB connection.
        key: Store key.

    Returns:
        The stored string, or None if the key is absent.

    """
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", [key]).fetchone()
    return None if row is None else str(row[0])


def put_value(conn: duckdb.DuckDBPyConnection, key: str, value: str) -> None:
    """Replace the value stored under key.

    Uses INSERT OR REPLACE on the key primary key inside a transaction;
    on failure the transaction is rolled back and the error re-raised.

    Args:
        conn: Active DuckDB connection.
        key: Store key.
        value: Serialized value.

    """
    now = datetime.now(tz=UTC).replace(tzinfo=None)
    conn.begin()
    try:
        conn.execute(
            """
            INSERT OR REPLACE INTO kv_store (key, value, updated_at)
            VALUES (?, ?, ?)
            """,
            [key, value, now],
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    logger.debug("Stored %d bytes under '%s'", len(value), key)

