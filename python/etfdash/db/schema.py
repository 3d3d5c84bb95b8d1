"""DuckDB schema definitions for the ledger database.

Contains DDL statements for:
- kv_store: Opaque key-value pairs (the serialized portfolio lives here)

"""

from __future__ import annotations

# ── Key-Value Store ──

CREATE_KV_STORE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key          VARCHAR PRIMARY KEY,
    value        VARCHAR NOT NULL,
    updated_at   TIMESTAMP DEFAULT current_timestamp
);
"""

# All DDL statements in creation order
ALL_TABLES: list[str] = [
    CREATE_KV_STORE,
]
