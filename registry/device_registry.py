"""
Module 05 - Device Registry
Sole authority on which devices are approved; publishes the Merkle root.

Owner: Protocol/Crypto Engineer
Module ID: M05

Single global tree: every approved device is a leaf of one tree, so the
anonymity set of a membership proof is the full registry.

Concurrency model:
- Readers (is_approved, get_proof, get_root, list_all) read the current
  RegistrySnapshot without locking. Snapshots are immutable.
- Writers (register, bulk_load, reload, reset) hold one write lock around
  "persist -> build new snapshot -> publish". Publishing is a single
  attribute assignment, so no reader ever sees a root computed from a
  partially updated device set.

Leaf order is the UTF-8 byte order of device_pubkey, independent of
registration order.
"""

from __future__ import annotations

import bisect
import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from pydantic import ValidationError

from core.crypto.hashing import encode_identifier, hash_leaf, short_hex, to_hex
from core.epochs.clock import DEFAULT_VALIDITY_EPOCHS, EpochClock, SystemEpochClock
from core.merkle.merkle_proofs import MerkleProver, order_identifiers
from core.merkle.merkle_tree import (
    EMPTY_TREE_ROOT,
    MerkleProof,
    build_merkle_proof,
    build_merkle_root,
)
from core.schemas.device import DeviceIdentity, RegistryStatus, validate_identifier
from core.schemas.errors import (
    AlreadyRegisteredException,
    NotRegisteredException,
    PersistenceFailureException,
    RegistryException,
    SchemaValidationException,
)
from storage.device_store import DeviceStore, InMemoryDeviceStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrySnapshot:
    """
    Immutable view of the registry at one version.

    The tree is a pure function of the device set: leaves are
    hash_leaf(pubkey) in sorted order and root = build_merkle_root(leaves).
    """
    version: int
    sort_keys: tuple[bytes, ...] = ()
    pubkeys: tuple[str, ...] = ()
    leaves: tuple[bytes, ...] = ()
    root: bytes = EMPTY_TREE_ROOT
    devices: Mapping[str, DeviceIdentity] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(cls, identities: Iterable[DeviceIdentity], version: int) -> "RegistrySnapshot":
        """
        Build a snapshot from scratch.

        Raises:
            AlreadyRegisteredException: If two identities share a pubkey
        """
        devices: dict[str, DeviceIdentity] = {}
        for identity in identities:
            if identity.device_pubkey in devices:
                raise AlreadyRegisteredException(identity.device_pubkey)
            devices[identity.device_pubkey] = identity

        pubkeys = tuple(order_identifiers(devices))
        leaves = tuple(MerkleProver.leaves_for(pubkeys))
        return cls(
            version=version,
            sort_keys=tuple(encode_identifier(pk) for pk in pubkeys),
            pubkeys=pubkeys,
            leaves=leaves,
            root=build_merkle_root(leaves),
            devices=MappingProxyType(devices),
        )

    def with_device(self, identity: DeviceIdentity) -> "RegistrySnapshot":
        """New snapshot with one more device inserted at its sorted position."""
        key = encode_identifier(identity.device_pubkey)
        pos = bisect.bisect_left(self.sort_keys, key)

        leaves = self.leaves[:pos] + (hash_leaf(identity.device_pubkey),) + self.leaves[pos:]
        devices = dict(self.devices)
        devices[identity.device_pubkey] = identity

        return RegistrySnapshot(
            version=self.version + 1,
            sort_keys=self.sort_keys[:pos] + (key,) + self.sort_keys[pos:],
            pubkeys=self.pubkeys[:pos] + (identity.device_pubkey,) + self.pubkeys[pos:],
            leaves=leaves,
            root=build_merkle_root(leaves),
            devices=MappingProxyType(devices),
        )

    @property
    def is_empty(self) -> bool:
        return not self.pubkeys

    def index_of(self, device_pubkey: str) -> Optional[int]:
        """Leaf index of a device, or None if absent."""
        if device_pubkey not in self.devices:
            return None
        return bisect.bisect_left(self.sort_keys, encode_identifier(device_pubkey))

    def proof_for(self, device_pubkey: str) -> MerkleProof:
        """
        Membership proof for a device against this snapshot's root.

        Raises:
            NotRegisteredException: If the device is absent
        """
        index = self.index_of(device_pubkey)
        if index is None:
            raise NotRegisteredException(device_pubkey)
        return build_merkle_proof(self.leaves, index)


class DeviceRegistry:
    """
    Registry of approved devices with a continuously published Merkle root.

    Usage:
        registry = DeviceRegistry.from_store(JsonlDeviceStore("devices.jsonl"))
        registry.register("dev-1")
        proof = registry.get_proof("dev-1")
        assert verify_merkle_path(proof.leaf, proof.siblings, proof.index, registry.get_root())
    """

    def __init__(
        self,
        store: DeviceStore | None = None,
        clock: EpochClock | None = None,
        validity_epochs: int = DEFAULT_VALIDITY_EPOCHS,
    ) -> None:
        if validity_epochs <= 0:
            raise ValueError("validity_epochs must be positive")
        self._store: DeviceStore = store if store is not None else InMemoryDeviceStore()
        self._clock: EpochClock = clock if clock is not None else SystemEpochClock()
        self._validity_epochs = validity_epochs
        self._write_lock = threading.Lock()
        self._snapshot = RegistrySnapshot(version=0)

    @classmethod
    def from_store(
        cls,
        store: DeviceStore,
        clock: EpochClock | None = None,
        validity_epochs: int = DEFAULT_VALIDITY_EPOCHS,
    ) -> "DeviceRegistry":
        """Create a registry and load every identity the store holds."""
        registry = cls(store=store, clock=clock, validity_epochs=validity_epochs)
        registry.reload()
        return registry

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _publish(self, snapshot: RegistrySnapshot) -> None:
        self._snapshot = snapshot
        logger.info(
            f"Registry root rebuilt: root={short_hex(snapshot.root, 32)}... "
            f"devices={len(snapshot.pubkeys)} version={snapshot.version}"
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register(
        self,
        device_pubkey: str,
        metadata: bytes | None = None,
        *,
        device_id: str | None = None,
    ) -> DeviceIdentity:
        """
        Register a new device.

        The identity is appended to the store before the new root is
        published; a storage failure leaves the registry unchanged.

        Args:
            device_pubkey: Public identifier of the device
            metadata: Optional opaque blob
            device_id: Optional operator-facing label

        Returns:
            The created DeviceIdentity

        Raises:
            SchemaValidationException: Malformed identifier or metadata
            AlreadyRegisteredException: Identifier already registered
            PersistenceFailureException: Store write failed
        """
        try:
            validate_identifier(device_pubkey)
        except ValueError as e:
            raise SchemaValidationException(str(e), field_path="device_pubkey") from e

        with self._write_lock:
            snapshot = self._snapshot
            if device_pubkey in snapshot.devices:
                raise AlreadyRegisteredException(device_pubkey)

            epoch = self._clock.current_epoch()
            try:
                identity = DeviceIdentity(
                    device_pubkey=device_pubkey,
                    registration_epoch=epoch,
                    expiry_epoch=epoch + self._validity_epochs,
                    device_id=device_id,
                    metadata=metadata,
                )
            except ValidationError as e:
                raise SchemaValidationException(
                    f"Invalid device registration: {e.errors()[0]['msg']}",
                ) from e

            try:
                self._store.append(identity)
            except RegistryException:
                raise
            except Exception as e:
                raise PersistenceFailureException(
                    f"Failed to persist device: {e}",
                    operation="register",
                    details={"device_pubkey": device_pubkey},
                ) from e

            self._publish(snapshot.with_device(identity))

        logger.info(f"Device registered: {device_pubkey[:16]}...")
        return identity

    def bulk_load(self, identities: Iterable[DeviceIdentity]) -> int:
        """
        Add previously persisted identities without writing them again.

        Start-up entry point for callers that own durable storage
        themselves. All-or-nothing: a duplicate aborts the whole load.

        Returns:
            Number of identities loaded

        Raises:
            AlreadyRegisteredException: On any duplicate identifier
        """
        incoming = list(identities)
        with self._write_lock:
            current = self._snapshot
            snapshot = RegistrySnapshot.build(
                list(current.devices.values()) + incoming,
                version=current.version + 1,
            )
            self._publish(snapshot)
        logger.info(f"Bulk-loaded {len(incoming)} device(s)")
        return len(incoming)

    def reload(self) -> int:
        """
        Replace in-memory state with the store's contents and rebuild.

        The hook to call after the enclosing system purges devices.

        Returns:
            Number of devices loaded

        Raises:
            PersistenceFailureException: Store unreadable (state unchanged)
        """
        with self._write_lock:
            try:
                identities = self._store.load_all()
            except RegistryException:
                raise
            except Exception as e:
                raise PersistenceFailureException(
                    f"Failed to load devices: {e}",
                    operation="reload",
                ) from e
            snapshot = RegistrySnapshot.build(identities, version=self._snapshot.version + 1)
            self._publish(snapshot)
        logger.info(f"Loaded {len(identities)} device(s) from store")
        return len(identities)

    def reset(self) -> None:
        """Clear in-memory state (testing only; the store is untouched)."""
        with self._write_lock:
            self._publish(RegistrySnapshot(version=self._snapshot.version + 1))
        logger.info("Device registry reset")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current_epoch(self) -> int:
        return self._clock.current_epoch()

    def snapshot(self) -> RegistrySnapshot:
        """Current immutable snapshot."""
        return self._snapshot

    def is_approved(self, device_pubkey: str) -> bool:
        """True iff the device exists and its validity window has not passed."""
        device = self._snapshot.devices.get(device_pubkey)
        if device is None:
            return False
        return device.is_active_at(self._clock.current_epoch())

    def get_device(self, device_pubkey: str) -> DeviceIdentity | None:
        return self._snapshot.devices.get(device_pubkey)

    def get_proof(self, device_pubkey: str) -> MerkleProof:
        """
        Membership proof for a device against the current root.

        Raises:
            NotRegisteredException: If the device is absent
        """
        return self._snapshot.proof_for(device_pubkey)

    def get_root(self) -> bytes:
        """Currently published root; 32 zero bytes when empty."""
        return self._snapshot.root

    def list_all(self) -> list[DeviceIdentity]:
        """All devices, in leaf order."""
        snapshot = self._snapshot
        return [snapshot.devices[pk] for pk in snapshot.pubkeys]

    def status(self) -> RegistryStatus:
        snapshot = self._snapshot
        return RegistryStatus(
            total_devices=len(snapshot.pubkeys),
            root=to_hex(snapshot.root),
            version=snapshot.version,
            empty=snapshot.is_empty,
        )

    def __len__(self) -> int:
        return len(self._snapshot.pubkeys)

    def __contains__(self, device_pubkey: object) -> bool:
        return device_pubkey in self._snapshot.devices


__all__ = [
    "RegistrySnapshot",
    "DeviceRegistry",
]
