"""
Module 06 - Spent Nullifier Stores
Durable record of nullifiers accepted by the gateway.

Implements the SpentStore capability used by
core.nullifiers.spent_set.SpentNullifierSet.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from typing import Optional

from core.schemas.errors import PersistenceFailureException
from storage.sqlite import SqliteDatabase


logger = logging.getLogger(__name__)


class SqliteSpentStore(SqliteDatabase):
    """Spent nullifiers in a SQLite table; inserts are idempotent."""

    SCHEMA_NAME = "spent_nullifiers"
    SCHEMA_VERSION = 1
    SCHEMA = """
CREATE TABLE IF NOT EXISTS spent_nullifiers (
    nullifier BLOB PRIMARY KEY,
    epoch_id INTEGER,
    spent_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_spent_epoch ON spent_nullifiers(epoch_id);
"""

    def load_all(self) -> list[tuple[bytes, Optional[int]]]:
        try:
            with self._get_conn() as conn:
                rows = conn.execute(
                    "SELECT nullifier, epoch_id FROM spent_nullifiers"
                ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceFailureException(
                f"Failed to read spent nullifiers from {self.db_path}: {e}",
                operation="load_all",
            ) from e
        return [(bytes(row["nullifier"]), row["epoch_id"]) for row in rows]

    def add(self, nullifier: bytes, epoch_id: Optional[int]) -> None:
        try:
            with self._get_conn() as conn:
                conn.execute(
                    "INSERT OR IGNORE INTO spent_nullifiers (nullifier, epoch_id, spent_at) "
                    "VALUES (?, ?, ?)",
                    (bytes(nullifier), epoch_id, int(time.time())),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceFailureException(
                f"Failed to record spent nullifier in {self.db_path}: {e}",
                operation="add",
            ) from e

    def prune_before(self, epoch_id: int) -> int:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    "DELETE FROM spent_nullifiers WHERE epoch_id IS NOT NULL AND epoch_id < ?",
                    (epoch_id,),
                )
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            raise PersistenceFailureException(
                f"Failed to prune spent nullifiers in {self.db_path}: {e}",
                operation="prune_before",
            ) from e


__all__ = ["SqliteSpentStore"]
