"""
Module 04 - Spent Nullifier Set
Permanent record of nullifiers accepted by the gateway.

Owner: Protocol/Crypto Engineer
Module ID: M04

claim() is the atomic check-and-set used by the gateway: of N concurrent
claims for the same nullifier exactly one returns True.

When a backing store is supplied, every insert is written to the store
before it becomes visible in memory. A storage failure leaves the
in-memory set unchanged.
"""
from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Protocol

from core.crypto.hashing import short_hex, to_hex
from core.schemas.errors import AlreadySpentException, PersistenceFailureException


logger = logging.getLogger(__name__)


class SpentStore(Protocol):
    """Persistence capability for spent nullifiers."""

    def load_all(self) -> list[tuple[bytes, Optional[int]]]: ...

    def add(self, nullifier: bytes, epoch_id: Optional[int]) -> None: ...

    def prune_before(self, epoch_id: int) -> int: ...


class SpentNullifierSet:
    """
    Thread-safe set of spent nullifiers, keyed by nullifier bytes.

    Each entry remembers the epoch it was spent in (None when unknown),
    so an archival policy can prune whole epochs.
    """

    def __init__(self, store: SpentStore | None = None) -> None:
        self._lock = threading.Lock()
        self._spent: dict[bytes, Optional[int]] = {}
        self._store = store
        if store is not None:
            self._load(store.load_all())

    def _load(self, entries: Iterable[tuple[bytes, Optional[int]]]) -> None:
        with self._lock:
            for nullifier, epoch_id in entries:
                self._spent[bytes(nullifier)] = epoch_id
        logger.info(f"Loaded {len(self._spent)} spent nullifier(s)")

    def __len__(self) -> int:
        return len(self._spent)

    def __contains__(self, nullifier: object) -> bool:
        return isinstance(nullifier, (bytes, bytearray)) and bytes(nullifier) in self._spent

    def is_spent(self, nullifier: bytes) -> bool:
        return bytes(nullifier) in self._spent

    def epoch_of(self, nullifier: bytes) -> Optional[int]:
        return self._spent.get(bytes(nullifier))

    def _insert_locked(self, nullifier: bytes, epoch_id: Optional[int]) -> None:
        if self._store is not None:
            try:
                self._store.add(nullifier, epoch_id)
            except PersistenceFailureException:
                raise
            except Exception as e:
                raise PersistenceFailureException(
                    f"Failed to persist spent nullifier: {e}",
                    operation="mark_spent",
                    details={"nullifier": to_hex(nullifier)},
                ) from e
        self._spent[nullifier] = epoch_id

    def claim(self, nullifier: bytes, epoch_id: Optional[int] = None) -> bool:
        """
        Atomically mark a nullifier spent if it is not already.

        Returns:
            True if this call spent it, False if it was already spent
        """
        key = bytes(nullifier)
        with self._lock:
            if key in self._spent:
                return False
            self._insert_locked(key, epoch_id)
        logger.debug(f"Nullifier spent: {short_hex(key)}")
        return True

    def mark_spent(
        self,
        nullifier: bytes,
        epoch_id: Optional[int] = None,
        *,
        strict: bool = False,
    ) -> None:
        """
        Mark a nullifier spent.

        Idempotent by default; with strict=True an already-spent
        nullifier raises AlreadySpentException.
        """
        if not self.claim(nullifier, epoch_id) and strict:
            raise AlreadySpentException(to_hex(bytes(nullifier)))

    def prune_before(self, epoch_id: int) -> int:
        """
        Drop nullifiers spent in epochs strictly before epoch_id.

        Entries without a recorded epoch are kept.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if self._store is not None:
                try:
                    self._store.prune_before(epoch_id)
                except Exception as e:
                    raise PersistenceFailureException(
                        f"Failed to prune spent nullifiers: {e}",
                        operation="prune_before",
                    ) from e
            stale = [
                n for n, e in self._spent.items()
                if e is not None and e < epoch_id
            ]
            for n in stale:
                del self._spent[n]
        if stale:
            logger.info(f"Pruned {len(stale)} spent nullifier(s) before epoch {epoch_id}")
        return len(stale)


__all__ = [
    "SpentStore",
    "SpentNullifierSet",
]
