"""
Module 06 - SQLite Support
Thread-local SQLite connections with versioned schema bootstrap.

Each thread gets its own connection to the same database file, so
":memory:" databases are NOT shared between threads; use a file path
whenever more than one thread touches the store.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator


class SqliteDatabase:
    """Base class for SQLite-backed stores."""

    SCHEMA: str = ""
    SCHEMA_VERSION: int = 1
    SCHEMA_NAME: str = "base"

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        self._local = threading.local()

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    @contextmanager
    def _get_conn(self) -> Iterator[sqlite3.Connection]:
        """Get thread-local database connection."""
        if getattr(self._local, "conn", None) is None:
            self._local.conn = sqlite3.connect(self.db_path)
            self._local.conn.row_factory = sqlite3.Row
            if self.db_path != ":memory:":
                self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=FULL")

        try:
            yield self._local.conn
        except Exception:
            self._local.conn.rollback()
            raise

    def _init_schema(self) -> None:
        """Create tables and record the schema version."""
        with self._get_conn() as conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS schema_version ("
                " name TEXT PRIMARY KEY,"
                " version INTEGER NOT NULL,"
                " applied_at INTEGER NOT NULL)"
            )
            row = conn.execute(
                "SELECT version FROM schema_version WHERE name = ?",
                (self.SCHEMA_NAME,),
            ).fetchone()
            current_version = row[0] if row else 0

            if current_version < self.SCHEMA_VERSION:
                conn.executescript(self.SCHEMA)
                conn.execute(
                    "INSERT OR REPLACE INTO schema_version (name, version, applied_at) "
                    "VALUES (?, ?, ?)",
                    (self.SCHEMA_NAME, self.SCHEMA_VERSION, int(datetime.now().timestamp())),
                )
                conn.commit()

    def close(self) -> None:
        """Close this thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None
