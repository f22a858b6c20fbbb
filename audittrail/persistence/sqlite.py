"""SQLite implementation of the storage backend."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Optional

from ..constants import STORAGE_PROBE_KEY
from .backend import JsonBackend


class SQLiteBackend(JsonBackend):
    """Persist values in a single key/value table using SQLite."""

    name = "sqlite"

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        self._execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    # ------------------------------------------------------------------
    # Backend API
    def get_raw(self, key: str) -> Optional[str]:
        row = self._fetchone("SELECT value FROM kv_store WHERE key = ?", key)
        return row["value"] if row else None

    def set_raw(self, key: str, value: str) -> bool:
        self._execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            key,
            value,
        )
        return True

    def remove(self, key: str) -> bool:
        self._execute("DELETE FROM kv_store WHERE key = ?", key)
        return True

    def probe(self) -> bool:
        """Return ``True`` when a sentinel key can be written and deleted."""
        try:
            self.set_raw(STORAGE_PROBE_KEY, "1")
            self.remove(STORAGE_PROBE_KEY)
        except sqlite3.Error:
            return False
        return True

    def close(self) -> None:
        self._conn.close()
