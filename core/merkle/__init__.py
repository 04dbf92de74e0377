"""
Module 02 - Merkle Tree Engine
Deterministic Merkle tree construction + proof generation/verification.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- MerkleProof: Dataclass representing a Merkle inclusion proof
- build_merkle_root: Compute root from leaf hashes
- build_merkle_proof: Generate proof for a specific leaf
- verify_merkle_path / verify_merkle_proof: Verify against an expected root

Canonical Commitment Rules:
1. Leaf hashing: sha256(b"leaf:" || utf8(device_pubkey))
2. Parent hashing: sha256(b"node:" || left || right)
3. Padding: Duplicate last node if odd number at any level
4. Empty tree: 32 zero bytes
5. Single leaf: root = leaf

Usage:
    from core.merkle import build_merkle_root, build_merkle_proof, verify_merkle_path
    from core.crypto import hash_leaf

    leaves = [hash_leaf(pk) for pk in sorted_pubkeys]
    root = build_merkle_root(leaves)
    proof = build_merkle_proof(leaves, index=2)
    assert verify_merkle_path(proof.leaf, proof.siblings, proof.index, root)
"""
from .merkle_tree import (
    EMPTY_TREE_ROOT,
    MerkleProof,
    merkle_parent,
    build_merkle_root,
    build_merkle_proof,
    compute_root_from_path,
    verify_merkle_path,
    verify_merkle_proof,
    compute_tree_height,
)

from .merkle_proofs import (
    order_identifiers,
    MerkleProver,
    MerkleVerifier,
)


__all__ = [
    # Core types
    "MerkleProof",
    "EMPTY_TREE_ROOT",
    # Core functions
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_root_from_path",
    "verify_merkle_path",
    "verify_merkle_proof",
    "compute_tree_height",
    # Convenience
    "order_identifiers",
    "MerkleProver",
    "MerkleVerifier",
]
