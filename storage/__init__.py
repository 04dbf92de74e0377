"""
Module 06 - Persistence Layer

Device stores (memory, JSON-lines, SQLite) and the SQLite spent-nullifier
store used by the registry and the verification gateway.
"""

from .device_store import (
    DeviceStore,
    InMemoryDeviceStore,
    JsonlDeviceStore,
    SqliteDeviceStore,
)
from .nullifier_store import SqliteSpentStore
from .factory import build_device_store, build_spent_store

__all__ = [
    "DeviceStore",
    "InMemoryDeviceStore",
    "JsonlDeviceStore",
    "SqliteDeviceStore",
    "SqliteSpentStore",
    "build_device_store",
    "build_spent_store",
]
