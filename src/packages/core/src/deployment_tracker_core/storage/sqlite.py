"""Client-side state persisted in SQLite."""
import json
import os
import sqlite3
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger()

SCHEMA = """
CREATE TABLE IF NOT EXISTS client_state (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS status_messages (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    severity TEXT NOT NULL,
    text TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS reconciled_deltas (
    delta_id TEXT PRIMARY KEY,
    job_id TEXT NOT NULL,
    successes INTEGER DEFAULT 0,
    failures INTEGER DEFAULT 0,
    applied_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_reconciled_deltas_job ON reconciled_deltas (job_id);
"""


@contextmanager
def get_conn(path: str):
    """Get a database connection."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        conn.executescript(SCHEMA)
        yield conn
        conn.commit()
    finally:
        conn.close()


def init_db(path: str):
    """Initialize the database."""
    with get_conn(path):
        pass


def read_state(path: str, key: str) -> Any | None:
    """Read a JSON value from the key-value table."""
    with get_conn(path) as conn:
        row = conn.execute(
            "SELECT value FROM client_state WHERE key = ?", (key,)
        ).fetchone()
    if row is None:
        return None
    return json.loads(row["value"])


def write_state(path: str, key: str, value: Any) -> None:
    """Insert or replace a JSON value in the key-value table."""
    with get_conn(path) as conn:
        conn.execute(
            """
            INSERT INTO client_state (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, json.dumps(value)),
        )


def delete_state(path: str, key: str) -> None:
    """Remove a key from the key-value table."""
    with get_conn(path) as conn:
        conn.execute("DELETE FROM client_state WHERE key = ?", (key,))
