"""
Module 02 - Merkle Tree Implementation
Deterministic Merkle tree construction, proof generation, and verification.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- Deterministic Merkle root computation
- Merkle proof generation for any leaf index
- Merkle proof verification against an expected root
- Duplicate-last padding rule for odd levels

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = sha256(b"leaf:" || utf8(device_pubkey))
   - Implemented via core.crypto.hashing.hash_leaf()
2. Parent hashing: parent = sha256(b"node:" || left || right)
3. Padding rule: Duplicate last node if odd number at any level
   (never a zero filler)
4. Empty leaves: build_merkle_root([]) returns 32 zero bytes
5. Single leaf: root = leaf (height 0, no siblings)

Index bit order:
    Bit k of the leaf index (LSB = level 0) is 0 when the running node
    is the LEFT child at level k, 1 when it is the RIGHT child.

Height binding:
    A proof for a tree of n leaves has exactly compute_tree_height(n)
    siblings. Verifiers facing untrusted leaf hashes pass expected_height
    so that internal nodes cannot be presented as leaves.

Determinism Notes:
- This module never sorts leaves - ordering belongs to the registry
- An all-zero root is the empty sentinel and never verifies
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from core.crypto.hashing import ZERO_DIGEST, hash_node, is_digest


# Empty tree sentinel: callers treat it as "registry empty"
EMPTY_TREE_ROOT: bytes = ZERO_DIGEST


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle proof for a single leaf in a Merkle tree.

    The proof becomes stale as soon as the leaf set changes; verifying
    it against a newer root is expected to fail.

    Attributes:
        leaf: The leaf hash being proven (32 bytes)
        index: The 0-based index of the leaf in the ordered leaf list
        siblings: Sibling hashes from bottom to top of tree
        root: The Merkle root this proof was built against
    """
    leaf: bytes
    index: int
    siblings: list[bytes] = field(default_factory=list)
    root: bytes = EMPTY_TREE_ROOT

    def __post_init__(self) -> None:
        """Validate proof structure."""
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")

    @property
    def height(self) -> int:
        return len(self.siblings)


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes.

    Args:
        left: Left child hash
        right: Right child hash

    Returns:
        Parent hash (32 bytes)
    """
    return hash_node(left, right)


def _next_level(level: list[bytes]) -> list[bytes]:
    """Pad an odd level with its last node and hash adjacent pairs."""
    if len(level) % 2 == 1:
        level = level + [level[-1]]
    return [
        merkle_parent(level[i], level[i + 1])
        for i in range(0, len(level), 2)
    ]


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Build a Merkle root from a sequence of leaf hashes.

    Algorithm:
    1. If empty: return EMPTY_TREE_ROOT (all zeros)
    2. If single leaf: return the leaf itself
    3. Otherwise, iteratively build levels:
       - If odd number of nodes, duplicate the last node
       - Pair adjacent nodes and compute parent hashes
       - Repeat until single root remains

    Padding Rule: Duplicate last node at each level if odd.
    Example: [a, b, c] -> [a, b, c, c] -> [parent(a,b), parent(c,c)]

    Args:
        leaves: Sequence of leaf hashes. Order matters and is preserved.

    Returns:
        32-byte Merkle root
    """
    if len(leaves) == 0:
        return EMPTY_TREE_ROOT

    current_level: list[bytes] = list(leaves)
    while len(current_level) > 1:
        current_level = _next_level(current_level)

    return current_level[0]


def build_merkle_proof(leaves: Sequence[bytes], index: int) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    At each level the sibling is the node at index XOR 1 after the level
    has been padded, so a lone last node records itself as its sibling.

    Args:
        leaves: Sequence of leaf hashes
        index: 0-based index of the leaf to prove

    Returns:
        MerkleProof with leaf, index, siblings (bottom-up), and root

    Raises:
        IndexError: If index is out of range
        ValueError: If leaves is empty
    """
    if len(leaves) == 0:
        raise ValueError("Cannot generate proof for empty leaf list")

    if index < 0 or index >= len(leaves):
        raise IndexError(
            f"Leaf index {index} out of range for {len(leaves)} leaves"
        )

    siblings: list[bytes] = []
    current_level: list[bytes] = list(leaves)
    current_index = index

    while len(current_level) > 1:
        if len(current_level) % 2 == 1:
            current_level.append(current_level[-1])

        siblings.append(current_level[current_index ^ 1])

        current_level = _next_level(current_level)
        current_index //= 2

    return MerkleProof(
        leaf=leaves[index],
        index=index,
        siblings=siblings,
        root=current_level[0],
    )


def compute_root_from_path(leaf: bytes, siblings: Sequence[bytes], index: int) -> bytes:
    """Fold a leaf up through its siblings, using index bits for left/right order."""
    current_hash = leaf
    current_index = index

    for sibling in siblings:
        if current_index & 1 == 0:
            current_hash = merkle_parent(current_hash, sibling)
        else:
            current_hash = merkle_parent(sibling, current_hash)
        current_index >>= 1

    return current_hash


def verify_merkle_path(
    leaf: bytes,
    siblings: Sequence[bytes],
    index: int,
    expected_root: bytes,
    expected_height: int | None = None,
) -> bool:
    """
    Verify that a leaf folds up to the expected root.

    Pure function. Returns False (never raises) for any malformed input:
    wrong digest lengths, negative index, index bits beyond the proof
    height, a path whose length differs from expected_height, or the
    empty-tree sentinel as expected root.

    Without expected_height an internal node (or the root itself) passed
    as the leaf verifies with a shortened path. Callers that take leaf
    hashes from untrusted parties must pass the height of the tree the
    root was built from.

    Args:
        leaf: The leaf hash being proven
        siblings: Sibling hashes (bottom-up)
        index: Claimed leaf index
        expected_root: Root to compare against
        expected_height: Required number of siblings (see compute_tree_height)

    Returns:
        True if the recomputed root equals expected_root byte-for-byte
    """
    if not is_digest(leaf) or not is_digest(expected_root):
        return False
    if expected_root == EMPTY_TREE_ROOT:
        return False
    if expected_height is not None and len(siblings) != expected_height:
        return False
    if not isinstance(index, int) or index < 0 or index >> len(siblings):
        return False
    if not all(is_digest(s) for s in siblings):
        return False

    return compute_root_from_path(leaf, siblings, index) == bytes(expected_root)


def verify_merkle_proof(proof: MerkleProof, expected_root: bytes | None = None) -> bool:
    """
    Verify a Merkle proof.

    Args:
        proof: MerkleProof to verify
        expected_root: Root to verify against; defaults to the proof's own root.
            Gateways must always pass the currently published root.

    Returns:
        True if proof is valid, False otherwise
    """
    root = proof.root if expected_root is None else expected_root
    return verify_merkle_path(proof.leaf, proof.siblings, proof.index, root)


def compute_tree_height(num_leaves: int) -> int:
    """
    Number of sibling levels for a tree with num_leaves leaves.

    ceil(log2(n)) for n > 1; 0 for a single leaf or an empty tree.
    """
    if num_leaves < 0:
        raise ValueError(f"num_leaves must be non-negative, got {num_leaves}")
    if num_leaves <= 1:
        return 0
    return (num_leaves - 1).bit_length()


__all__ = [
    "EMPTY_TREE_ROOT",
    "MerkleProof",
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_root_from_path",
    "verify_merkle_path",
    "verify_merkle_proof",
    "compute_tree_height",
]
