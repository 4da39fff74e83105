"""SQLite storage adapter.

Implements the core StateStorePort using a simple SQLite key-value table.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Optional


class SQLiteStateStore:
    """Thin SQLite wrapper that satisfies the StateStorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the state table if it does not exist.

        Fields:
        - key: state key, e.g. last_sent_target_iso or cfg:APP (PRIMARY KEY)
        - value: raw string value as written by the caller
        - updated_at: UTC timestamp of the last write, for debugging
        """

        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for a key, if any."""

        with self._connect() as conn:
            row = conn.execute("SELECT value FROM state WHERE key = ?", (key,)).fetchone()
        return str(row["value"]) if row else None

    def put(self, key: str, value: str) -> None:
        """Upsert a value."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO state (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, now.isoformat()),
            )

    def list_keys(self) -> set[str]:
        """Return all keys currently stored."""

        with self._connect() as conn:
            rows = conn.execute("SELECT key FROM state").fetchall()
        return {row["key"] for row in rows}
