"""
Module 06 - Device Stores
Durable storage for registered device identities.

The registry depends only on the DeviceStore capability:
    load_all() -> list[DeviceIdentity]   (registration order)
    append(identity) -> None

Every backend reports failures as PersistenceFailureException so the
registry can refuse to publish a device that was not durably written.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from core.schemas.device import DeviceIdentity
from core.schemas.errors import AlreadyRegisteredException, PersistenceFailureException
from core.schemas.versioning import UnsupportedSchemaVersionError, assert_supported_schema_version
from storage.sqlite import SqliteDatabase


logger = logging.getLogger(__name__)


class DeviceStore(Protocol):
    """Persistence capability required by the registry."""

    def load_all(self) -> list[DeviceIdentity]: ...

    def append(self, identity: DeviceIdentity) -> None: ...


def dump_identity(identity: DeviceIdentity) -> str:
    """Serialize an identity to a single canonical JSON line."""
    data = identity.model_dump(mode="json")
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def parse_identity(data: dict) -> DeviceIdentity:
    """Validate a stored record, checking its schema version first."""
    assert_supported_schema_version(data.get("schema_version", "v1"))
    return DeviceIdentity.model_validate(data)


class InMemoryDeviceStore:
    """Volatile store; useful for tests and single-process demos."""

    def __init__(self, identities: list[DeviceIdentity] | None = None) -> None:
        self._lock = threading.Lock()
        self._records: list[DeviceIdentity] = list(identities or [])

    def load_all(self) -> list[DeviceIdentity]:
        with self._lock:
            return list(self._records)

    def append(self, identity: DeviceIdentity) -> None:
        with self._lock:
            if any(r.device_pubkey == identity.device_pubkey for r in self._records):
                raise AlreadyRegisteredException(identity.device_pubkey)
            self._records.append(identity)

    def __len__(self) -> int:
        return len(self._records)


class JsonlDeviceStore:
    """
    Append-only JSON-lines file, one identity per line.

    Appends are flushed and fsynced before returning.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load_all(self) -> list[DeviceIdentity]:
        if not self.path.exists():
            return []

        identities: list[DeviceIdentity] = []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        identities.append(parse_identity(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError, UnsupportedSchemaVersionError) as e:
                        raise PersistenceFailureException(
                            f"Corrupt device record at {self.path}:{line_no}: {e}",
                            operation="load_all",
                        ) from e
        except OSError as e:
            raise PersistenceFailureException(
                f"Failed to read device store {self.path}: {e}",
                operation="load_all",
            ) from e

        logger.info(f"Loaded {len(identities)} device(s) from {self.path}")
        return identities

    def append(self, identity: DeviceIdentity) -> None:
        line = dump_identity(identity) + "\n"
        with self._lock:
            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(line)
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                raise PersistenceFailureException(
                    f"Failed to append to device store {self.path}: {e}",
                    operation="append",
                    details={"device_pubkey": identity.device_pubkey},
                ) from e


class SqliteDeviceStore(SqliteDatabase):
    """Device store backed by a SQLite table."""

    SCHEMA_NAME = "devices"
    SCHEMA_VERSION = 1
    SCHEMA = """
CREATE TABLE IF NOT EXISTS devices (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    device_pubkey TEXT NOT NULL UNIQUE,
    registration_epoch INTEGER NOT NULL,
    expiry_epoch INTEGER NOT NULL,
    device_id TEXT,
    metadata BLOB,
    schema_version TEXT NOT NULL
);
"""

    def load_all(self) -> list[DeviceIdentity]:
        try:
            with self._get_conn() as conn:
                rows = conn.execute(
                    "SELECT device_pubkey, registration_epoch, expiry_epoch, "
                    "device_id, metadata, schema_version FROM devices ORDER BY seq"
                ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceFailureException(
                f"Failed to read devices from {self.db_path}: {e}",
                operation="load_all",
            ) from e

        identities: list[DeviceIdentity] = []
        for row in rows:
            try:
                identities.append(parse_identity({
                    "device_pubkey": row["device_pubkey"],
                    "registration_epoch": row["registration_epoch"],
                    "expiry_epoch": row["expiry_epoch"],
                    "device_id": row["device_id"],
                    "metadata": bytes(row["metadata"]) if row["metadata"] is not None else None,
                    "schema_version": row["schema_version"],
                }))
            except (ValidationError, UnsupportedSchemaVersionError) as e:
                raise PersistenceFailureException(
                    f"Corrupt device row for {row['device_pubkey']}: {e}",
                    operation="load_all",
                ) from e

        logger.info(f"Loaded {len(identities)} device(s) from {self.db_path}")
        return identities

    def append(self, identity: DeviceIdentity) -> None:
        try:
            with self._get_conn() as conn:
                conn.execute(
                    "INSERT INTO devices (device_pubkey, registration_epoch, expiry_epoch, "
                    "device_id, metadata, schema_version) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        identity.device_pubkey,
                        identity.registration_epoch,
                        identity.expiry_epoch,
                        identity.device_id,
                        identity.metadata,
                        identity.schema_version,
                    ),
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise AlreadyRegisteredException(identity.device_pubkey) from e
        except sqlite3.Error as e:
            raise PersistenceFailureException(
                f"Failed to insert device into {self.db_path}: {e}",
                operation="append",
                details={"device_pubkey": identity.device_pubkey},
            ) from e


__all__ = [
    "DeviceStore",
    "InMemoryDeviceStore",
    "JsonlDeviceStore",
    "SqliteDeviceStore",
    "dump_identity",
    "parse_identity",
]
