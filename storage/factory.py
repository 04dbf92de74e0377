"""
Module 06 - Store Factory
Build stores from RuntimeConfig.
"""

from __future__ import annotations

from pathlib import Path

from core.config.runtime import NullifierConfig, RegistryConfig
from storage.device_store import (
    DeviceStore,
    InMemoryDeviceStore,
    JsonlDeviceStore,
    SqliteDeviceStore,
)
from storage.nullifier_store import SqliteSpentStore


DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "edgereg"


def build_device_store(config: RegistryConfig) -> DeviceStore:
    """Create the device store named by config.store."""
    if config.store == "memory":
        return InMemoryDeviceStore()
    if config.store == "jsonl":
        return JsonlDeviceStore(config.store_path or DEFAULT_DATA_DIR / "devices.jsonl")
    if config.store == "sqlite":
        return SqliteDeviceStore(config.store_path or DEFAULT_DATA_DIR / "registry.db")
    raise ValueError(f"Unknown device store: {config.store}")


def build_spent_store(config: NullifierConfig) -> SqliteSpentStore | None:
    """Create the spent-nullifier store; None keeps the set in memory only."""
    if config.store == "memory":
        return None
    if config.store == "sqlite":
        return SqliteSpentStore(config.store_path or DEFAULT_DATA_DIR / "nullifiers.db")
    raise ValueError(f"Unknown nullifier store: {config.store}")
