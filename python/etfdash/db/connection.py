"""DuckDB connection management for the ledger database.

The ledger lives in a single file under the data directory::

    ~/.etfdash/
      data/
        ledger.duckdb

``ETFDASH_DATA_DIR`` moves the data directory. Tests and throwaway
sessions use an in-memory database with the same schema.
"""

from __future__ import annotations

import logging
from pathlib import Path

import duckdb

from etfdash.config import ledger_db_path
from etfdash.db.schema import ALL_TABLES

logger = logging.getLogger(__name__)


def get_connection(db_path: str | Path | None = None) -> duckdb.DuckDBPyConnection:
    """Open the ledger database file, creating its directory if needed.

    Args:
        db_path: Path to the .duckdb file, or None for an in-memory database.

    Returns:
        Active DuckDB connection.

    """
    if db_path is None:
        return duckdb.connect(":memory:")
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path))


def _create_schema(conn: duckdb.DuckDBPyConnection) -> duckdb.DuckDBPyConnection:
    for ddl in ALL_TABLES:
        conn.execute(ddl)
    return conn


def init_ledger_db(db_path: str | Path | None = None) -> duckdb.DuckDBPyConnection:
    """Open the on-disk ledger database and make sure ``kv_store`` exists.

    Args:
        db_path: Path to the ledger.duckdb file.
            Defaults to the configured data directory.

    Returns:
        Connection with the schema in place.

    """
    if db_path is None:
        db_path = ledger_db_path()
    conn = _create_schema(get_connection(db_path))
    logger.info("Ledger database initialized at %s", db_path)
    return conn


def init_memory_db() -> duckdb.DuckDBPyConnection:
    """Return an in-memory ledger database with the schema in place."""
    return _create_schema(get_connection(None))
