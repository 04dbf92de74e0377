"""
Module 02 - Merkle Proofs Convenience Wrappers
Identifier-level wrappers around the core Merkle tree functions.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides class-based interfaces:
- MerkleProver: Build roots/proofs from device identifiers
- MerkleVerifier: Verify proofs from raw components or identifiers

Identifiers are hashed with hash_leaf() and ordered by their UTF-8 bytes
before any tree is built, so two processes holding the same device set
always agree on leaf positions.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from core.crypto.hashing import encode_identifier, hash_leaf
from core.merkle.merkle_tree import (
    MerkleProof,
    build_merkle_proof,
    build_merkle_root,
    verify_merkle_path,
)


def order_identifiers(device_pubkeys: Iterable[str]) -> list[str]:
    """Sort identifiers by their UTF-8 byte order."""
    return sorted(device_pubkeys, key=encode_identifier)


class MerkleProver:
    """
    Convenience class for generating Merkle roots and proofs.

    Example:
        >>> proof = MerkleProver.prove_identifier(["dev-2", "dev-1"], "dev-2")
        >>> proof.index
        1
    """

    @staticmethod
    def leaves_for(device_pubkeys: Iterable[str]) -> list[bytes]:
        """Leaf hashes for identifiers, in canonical order."""
        return [hash_leaf(pk) for pk in order_identifiers(device_pubkeys)]

    @staticmethod
    def prove(leaves: Sequence[bytes], index: int) -> MerkleProof:
        """
        Generate a Merkle proof for the leaf at the given index.

        Raises:
            IndexError: If index is out of range
            ValueError: If leaves is empty
        """
        return build_merkle_proof(leaves, index)

    @staticmethod
    def prove_identifier(device_pubkeys: Iterable[str], device_pubkey: str) -> MerkleProof:
        """
        Generate a proof for one identifier within an identifier set.

        Raises:
            KeyError: If device_pubkey is not in the set
        """
        ordered = order_identifiers(device_pubkeys)
        try:
            index = ordered.index(device_pubkey)
        except ValueError:
            raise KeyError(device_pubkey) from None
        return build_merkle_proof([hash_leaf(pk) for pk in ordered], index)

    @staticmethod
    def compute_root(device_pubkeys: Iterable[str]) -> bytes:
        """Root over identifiers after canonical ordering."""
        return build_merkle_root(MerkleProver.leaves_for(device_pubkeys))


class MerkleVerifier:
    """Convenience class for verifying Merkle proofs."""

    @staticmethod
    def verify_leaf_in_root(
        leaf: bytes,
        index: int,
        siblings: Sequence[bytes],
        root: bytes,
    ) -> bool:
        """Verify a leaf hash is included under root."""
        return verify_merkle_path(leaf, siblings, index, root)

    @staticmethod
    def verify_identifier_in_root(
        device_pubkey: str,
        index: int,
        siblings: Sequence[bytes],
        root: bytes,
    ) -> bool:
        """Verify an identifier is included under root (leaf recomputed locally)."""
        return verify_merkle_path(hash_leaf(device_pubkey), siblings, index, root)


__all__ = [
    "order_identifiers",
    "MerkleProver",
    "MerkleVerifier",
]
