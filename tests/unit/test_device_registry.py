"""
Module 05 - Device Registry Unit Tests
Tests for registry/device_registry.py

Covers:
1. Registration: epochs, uniqueness, identifier validation
2. Root: sorted leaf order, independence from registration order, empty sentinel
3. Proofs: soundness for every member, NotRegistered for others
4. Approval: inclusive expiry, lazy evaluation
5. Persistence: failures leave state unchanged, reload from store
6. Concurrency: readers never see a root inconsistent with its device set
"""
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from core.crypto.hashing import hash_leaf, to_hex
from core.merkle.merkle_proofs import MerkleProver
from core.merkle.merkle_tree import EMPTY_TREE_ROOT, build_merkle_root, verify_merkle_path
from core.schemas.errors import (
    AlreadyRegisteredException,
    NotRegisteredException,
    PersistenceFailureException,
    SchemaValidationException,
)
from registry.device_registry import DeviceRegistry, RegistrySnapshot
from storage.device_store import InMemoryDeviceStore, JsonlDeviceStore

from fixtures.common import BASE_EPOCH, make_identity, make_registry


class FailingDeviceStore:
    """Device store whose writes always fail."""

    def load_all(self):
        return []

    def append(self, identity):
        raise OSError("read-only file system")


class TestRegister:

    def test_assigns_epochs(self, registry):
        identity = registry.register("dev-1")

        assert identity.device_pubkey == "dev-1"
        assert identity.registration_epoch == BASE_EPOCH
        assert identity.expiry_epoch == BASE_EPOCH + 365

    def test_custom_validity(self, clock):
        registry = DeviceRegistry(clock=clock, validity_epochs=30)
        assert registry.register("dev-1").expiry_epoch == BASE_EPOCH + 30

    def test_invalid_validity_rejected(self):
        with pytest.raises(ValueError):
            DeviceRegistry(validity_epochs=0)

    def test_label_and_metadata_kept(self, registry):
        registry.register("0xabc123", b"\x00\x01", device_id="sensor-7")
        device = registry.get_device("0xabc123")

        assert device.device_id == "sensor-7"
        assert device.metadata == b"\x00\x01"

    def test_duplicate_rejected(self, registry):
        registry.register("dev-1")
        root = registry.get_root()
        version = registry.snapshot().version

        with pytest.raises(AlreadyRegisteredException) as exc_info:
            registry.register("dev-1")

        assert exc_info.value.code == "ALREADY_REGISTERED"
        assert registry.get_root() == root
        assert registry.snapshot().version == version
        assert len(registry) == 1

    @pytest.mark.parametrize("pubkey", ["", " dev-1", "dev-1\n", "x" * 257])
    def test_malformed_identifier_rejected(self, registry, pubkey):
        with pytest.raises(SchemaValidationException):
            registry.register(pubkey)
        assert len(registry) == 0

    def test_identifier_at_size_limit_accepted(self, registry):
        registry.register("x" * 256)
        assert "x" * 256 in registry

    def test_version_increments(self, registry):
        start = registry.snapshot().version
        registry.register("dev-1")
        registry.register("dev-2")

        assert registry.snapshot().version == start + 2


class TestRoot:

    def test_empty_registry_root_is_zero(self, registry):
        assert registry.get_root() == EMPTY_TREE_ROOT
        assert registry.snapshot().is_empty

    def test_root_changes_on_register(self, registry):
        registry.register("dev-1")
        first = registry.get_root()
        registry.register("dev-2")

        assert registry.get_root() != first

    def test_root_independent_of_registration_order(self, clock):
        ids = ["dev-3", "dev-1", "dev-10", "dev-2", "abc"]
        forward = make_registry(ids, clock=clock)
        backward = make_registry(reversed(ids), clock=clock)

        assert forward.get_root() == backward.get_root()

    def test_root_matches_sorted_leaves(self, populated_registry):
        ids = [f"dev-{i}" for i in range(1, 6)]
        expected = build_merkle_root([hash_leaf(pk) for pk in sorted(ids)])

        assert populated_registry.get_root() == expected
        assert populated_registry.get_root() == MerkleProver.compute_root(ids)

    def test_single_device_root_is_leaf(self, registry):
        registry.register("dev-1")
        assert registry.get_root() == hash_leaf("dev-1")

    def test_list_all_in_leaf_order(self, clock):
        registry = make_registry(["b", "c", "a"], clock=clock)
        assert [d.device_pubkey for d in registry.list_all()] == ["a", "b", "c"]


class TestProofs:

    def test_every_member_proof_verifies(self, populated_registry):
        root = populated_registry.get_root()
        for i in range(1, 6):
            proof = populated_registry.get_proof(f"dev-{i}")
            assert proof.root == root
            assert verify_merkle_path(hash_leaf(f"dev-{i}"), proof.siblings, proof.index, root)

    def test_unknown_device(self, populated_registry):
        with pytest.raises(NotRegisteredException) as exc_info:
            populated_registry.get_proof("dev-99")
        assert exc_info.value.code == "NOT_REGISTERED"

    def test_empty_registry_has_no_proofs(self, registry):
        with pytest.raises(NotRegisteredException):
            registry.get_proof("dev-1")

    def test_stale_proof_rejected_after_register(self, populated_registry):
        proof = populated_registry.get_proof("dev-3")
        populated_registry.register("dev-6")

        assert not verify_merkle_path(proof.leaf, proof.siblings, proof.index, populated_registry.get_root())

    def test_snapshot_proof_stays_valid_for_its_root(self, populated_registry):
        snapshot = populated_registry.snapshot()
        populated_registry.register("dev-6")

        proof = snapshot.proof_for("dev-3")
        assert verify_merkle_path(proof.leaf, proof.siblings, proof.index, snapshot.root)


class TestApproval:

    def test_unknown_not_approved(self, registry):
        assert not registry.is_approved("nobody")

    def test_expiry_inclusive(self, registry, clock):
        registry.register("dev-1")

        clock.advance(365)
        assert registry.is_approved("dev-1")

        clock.advance(1)
        assert not registry.is_approved("dev-1")

    def test_expired_device_stays_in_tree(self, registry, clock):
        registry.register("dev-1")
        root = registry.get_root()
        clock.advance(1000)

        assert "dev-1" in registry
        assert registry.get_root() == root
        assert registry.get_proof("dev-1").root == root


class TestStatus:

    def test_status_fields(self, populated_registry):
        status = populated_registry.status()

        assert status.total_devices == 5
        assert status.root == to_hex(populated_registry.get_root())
        assert not status.empty

    def test_empty_status(self, registry):
        status = registry.status()

        assert status.total_devices == 0
        assert status.root == "0x" + "00" * 32
        assert status.empty


class TestPersistence:

    def test_store_failure_leaves_registry_unchanged(self, clock):
        registry = DeviceRegistry(store=FailingDeviceStore(), clock=clock)

        with pytest.raises(PersistenceFailureException) as exc_info:
            registry.register("dev-1")

        assert exc_info.value.details["operation"] == "register"
        assert len(registry) == 0
        assert registry.get_root() == EMPTY_TREE_ROOT

    def test_register_appends_to_store(self, clock):
        store = InMemoryDeviceStore()
        registry = DeviceRegistry(store=store, clock=clock)
        registry.register("dev-1")

        assert [d.device_pubkey for d in store.load_all()] == ["dev-1"]

    def test_from_store_restores_root(self, tmp_path, clock):
        path = tmp_path / "devices.jsonl"
        original = make_registry(["dev-2", "dev-1", "dev-3"], clock=clock, store=JsonlDeviceStore(path))

        restored = DeviceRegistry.from_store(JsonlDeviceStore(path), clock=clock)

        assert restored.get_root() == original.get_root()
        assert len(restored) == 3

    def test_reset_then_reload(self, clock):
        store = InMemoryDeviceStore()
        registry = make_registry(["dev-1", "dev-2"], clock=clock, store=store)
        root = registry.get_root()

        registry.reset()
        assert len(registry) == 0
        assert registry.get_root() == EMPTY_TREE_ROOT

        assert registry.reload() == 2
        assert registry.get_root() == root

    def test_reload_picks_up_external_purge(self, tmp_path, clock):
        path = tmp_path / "devices.jsonl"
        registry = make_registry(["dev-1", "dev-2", "dev-3"], clock=clock, store=JsonlDeviceStore(path))

        kept = [line for line in path.read_text().splitlines() if "\"dev-2\"" not in line]
        path.write_text("\n".join(kept) + "\n")
        registry.reload()

        assert "dev-2" not in registry
        assert registry.get_root() == MerkleProver.compute_root(["dev-1", "dev-3"])


class TestBulkLoad:

    def test_bulk_load(self, registry):
        count = registry.bulk_load([make_identity("dev-2"), make_identity("dev-1")])

        assert count == 2
        assert registry.get_root() == MerkleProver.compute_root(["dev-1", "dev-2"])

    def test_bulk_load_duplicate_in_input(self, registry):
        with pytest.raises(AlreadyRegisteredException):
            registry.bulk_load([make_identity("dev-1"), make_identity("dev-1")])
        assert len(registry) == 0

    def test_bulk_load_duplicate_of_existing(self, registry):
        registry.register("dev-1")
        root = registry.get_root()

        with pytest.raises(AlreadyRegisteredException):
            registry.bulk_load([make_identity("dev-2"), make_identity("dev-1")])

        assert registry.get_root() == root
        assert "dev-2" not in registry

    def test_snapshot_build_matches_incremental(self):
        identities = [make_identity(f"dev-{i}") for i in range(7)]
        built = RegistrySnapshot.build(identities, version=1)

        incremental = RegistrySnapshot(version=0)
        for identity in reversed(identities):
            incremental = incremental.with_device(identity)

        assert built.root == incremental.root
        assert built.pubkeys == incremental.pubkeys


class TestConcurrency:

    def test_concurrent_registration(self, registry):
        ids = [f"dev-{i}" for i in range(60)]

        with ThreadPoolExecutor(max_workers=12) as pool:
            list(pool.map(registry.register, ids))

        assert len(registry) == 60
        assert registry.get_root() == MerkleProver.compute_root(ids)

    def test_concurrent_duplicate_registration_single_winner(self, registry):
        def attempt(_):
            try:
                registry.register("dev-1")
                return True
            except AlreadyRegisteredException:
                return False

        with ThreadPoolExecutor(max_workers=12) as pool:
            results = list(pool.map(attempt, range(30)))

        assert results.count(True) == 1
        assert len(registry) == 1

    def test_readers_see_consistent_snapshots(self, registry):
        stop = threading.Event()
        inconsistencies = []

        def reader():
            while not stop.is_set():
                snapshot = registry.snapshot()
                if snapshot.root != build_merkle_root(list(snapshot.leaves)):
                    inconsistencies.append(snapshot.version)
                for pubkey in snapshot.pubkeys[:3]:
                    proof = snapshot.proof_for(pubkey)
                    if not verify_merkle_path(proof.leaf, proof.siblings, proof.index, snapshot.root):
                        inconsistencies.append(snapshot.version)

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()
        try:
            for i in range(40):
                registry.register(f"dev-{i}")
        finally:
            stop.set()
            for t in readers:
                t.join()

        assert inconsistencies == []
