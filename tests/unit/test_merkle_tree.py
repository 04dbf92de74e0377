"""
Module 02 - Merkle Tree Unit Tests
Tests for core/merkle/merkle_tree.py and core/merkle/merkle_proofs.py

Covers:
1. Root determinism - same leaves -> same root across runs
2. Padding correctness - odd leaf count uses "duplicate last" rule
3. Proof verification - generate proof for each index, verify passes
4. Tamper detection - tampered sibling/leaf/root/index fails verification
5. Empty leaves - build_merkle_root([]) returns the all-zero sentinel
6. Single leaf - root equals leaf
"""
import pytest

from core.crypto.hashing import hash_leaf, hash_node, sha256
from core.merkle.merkle_tree import (
    EMPTY_TREE_ROOT,
    MerkleProof,
    build_merkle_proof,
    build_merkle_root,
    compute_root_from_path,
    compute_tree_height,
    merkle_parent,
    verify_merkle_path,
    verify_merkle_proof,
)
from core.merkle.merkle_proofs import MerkleProver, MerkleVerifier, order_identifiers


def make_leaves(n: int) -> list[bytes]:
    return [hash_leaf(f"leaf-{i}") for i in range(n)]


class TestEmptyTree:
    """Tests for empty tree behavior."""

    def test_empty_leaves_returns_zero_sentinel(self):
        result = build_merkle_root([])

        assert result == bytes(32)
        assert result == EMPTY_TREE_ROOT

    def test_build_proof_empty_raises(self):
        """Cannot generate proof for empty tree."""
        with pytest.raises(ValueError, match="empty"):
            build_merkle_proof([], 0)

    def test_zero_root_never_verifies(self):
        leaf = hash_leaf("dev-1")
        assert not verify_merkle_path(leaf, [], 0, EMPTY_TREE_ROOT)


class TestSingleLeaf:
    """Tests for single leaf tree behavior."""

    def test_single_leaf_root_equals_leaf(self):
        leaf = hash_leaf("only")
        assert build_merkle_root([leaf]) == leaf

    def test_single_leaf_proof_no_siblings(self):
        leaf = hash_leaf("only")
        proof = build_merkle_proof([leaf], 0)

        assert proof.leaf == leaf
        assert proof.index == 0
        assert proof.siblings == []
        assert proof.root == leaf
        assert proof.height == 0

    def test_single_leaf_proof_verifies(self):
        leaf = hash_leaf("single")
        proof = build_merkle_proof([leaf], 0)

        assert verify_merkle_proof(proof)

    def test_single_leaf_nonzero_index_rejected(self):
        leaf = hash_leaf("single")
        assert not verify_merkle_path(leaf, [], 1, leaf)


class TestRootDeterminism:
    """Tests for deterministic root computation."""

    def test_same_leaves_same_root(self):
        leaves = make_leaves(3)
        roots = [build_merkle_root(leaves) for _ in range(10)]

        assert all(r == roots[0] for r in roots)

    def test_root_deterministic_recreated_leaves(self):
        assert build_merkle_root(make_leaves(5)) == build_merkle_root(make_leaves(5))

    def test_leaf_order_matters(self):
        leaves = make_leaves(3)
        assert build_merkle_root(leaves) != build_merkle_root(list(reversed(leaves)))

    def test_parent_uses_node_tag(self):
        a, b = make_leaves(2)
        assert merkle_parent(a, b) == sha256(b"node:" + a + b)
        assert build_merkle_root([a, b]) == sha256(b"node:" + a + b)


class TestPaddingCorrectness:
    """Tests for odd-number padding behavior."""

    def test_three_leaves_equal_four_with_duplicate(self):
        """[A, B, C] and [A, B, C, C] produce the same root."""
        a, b, c = make_leaves(3)

        assert build_merkle_root([a, b, c]) == build_merkle_root([a, b, c, c])

    def test_padding_rule_three_leaves(self):
        a, b, c = make_leaves(3)
        expected = hash_node(hash_node(a, b), hash_node(c, c))

        assert build_merkle_root([a, b, c]) == expected

    def test_padding_rule_five_leaves(self):
        """Padding applies at every level, not only the leaves."""
        a, b, c, d, e = make_leaves(5)
        level1 = [hash_node(a, b), hash_node(c, d), hash_node(e, e)]
        level2 = [hash_node(level1[0], level1[1]), hash_node(level1[2], level1[2])]
        expected = hash_node(level2[0], level2[1])

        assert build_merkle_root([a, b, c, d, e]) == expected

    def test_lone_last_leaf_is_its_own_sibling(self):
        a, b, c = make_leaves(3)
        proof = build_merkle_proof([a, b, c], 2)

        assert proof.siblings[0] == c
        assert proof.siblings[1] == hash_node(a, b)


class TestProofVerification:
    """Every proof built for a tree verifies against that tree's root."""

    @pytest.mark.parametrize("n", range(1, 18))
    def test_all_indexes_verify(self, n):
        leaves = make_leaves(n)
        root = build_merkle_root(leaves)

        for i in range(n):
            proof = build_merkle_proof(leaves, i)
            assert proof.root == root
            assert proof.height == compute_tree_height(n)
            assert verify_merkle_path(proof.leaf, proof.siblings, proof.index, root)

    def test_compute_root_from_path_matches(self):
        leaves = make_leaves(6)
        proof = build_merkle_proof(leaves, 4)

        assert compute_root_from_path(proof.leaf, proof.siblings, proof.index) == proof.root

    def test_index_out_of_range(self):
        with pytest.raises(IndexError):
            build_merkle_proof(make_leaves(3), 3)
        with pytest.raises(IndexError):
            build_merkle_proof(make_leaves(3), -1)

    def test_negative_proof_index_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            MerkleProof(leaf=hash_leaf("x"), index=-1)


class TestTamperDetection:
    """A mismatched (proof, root) pair never verifies."""

    def setup_method(self):
        self.leaves = make_leaves(8)
        self.root = build_merkle_root(self.leaves)
        self.proof = build_merkle_proof(self.leaves, 5)

    def test_tampered_sibling(self):
        siblings = list(self.proof.siblings)
        siblings[1] = sha256(b"tampered")
        assert not verify_merkle_path(self.proof.leaf, siblings, 5, self.root)

    def test_tampered_leaf(self):
        assert not verify_merkle_path(hash_leaf("intruder"), self.proof.siblings, 5, self.root)

    def test_tampered_root(self):
        assert not verify_merkle_path(self.proof.leaf, self.proof.siblings, 5, sha256(b"other"))

    def test_wrong_index(self):
        assert not verify_merkle_path(self.proof.leaf, self.proof.siblings, 4, self.root)

    def test_index_bits_beyond_height_rejected(self):
        height = len(self.proof.siblings)
        index = 5 | (1 << height)
        assert not verify_merkle_path(self.proof.leaf, self.proof.siblings, index, self.root)

    def test_truncated_path(self):
        assert not verify_merkle_path(self.proof.leaf, self.proof.siblings[:-1], 5, self.root)

    def test_short_sibling_rejected(self):
        siblings = list(self.proof.siblings)
        siblings[0] = siblings[0][:31]
        assert not verify_merkle_path(self.proof.leaf, siblings, 5, self.root)

    def test_short_leaf_rejected(self):
        assert not verify_merkle_path(self.proof.leaf[:16], self.proof.siblings, 5, self.root)

    def test_negative_index_rejected(self):
        assert not verify_merkle_path(self.proof.leaf, self.proof.siblings, -1, self.root)

    def test_stale_proof_fails_against_new_root(self):
        new_root = build_merkle_root(self.leaves + [hash_leaf("newcomer")])
        assert not verify_merkle_proof(self.proof, new_root)

    def test_internal_node_folds_without_height(self):
        node = hash_node(self.proof.leaf, self.proof.siblings[0])
        siblings = self.proof.siblings[1:]

        assert verify_merkle_path(node, siblings, 5 >> 1, self.root)
        assert not verify_merkle_path(node, siblings, 5 >> 1, self.root, expected_height=3)

    def test_root_as_leaf_needs_height(self):
        assert verify_merkle_path(self.root, [], 0, self.root)
        assert not verify_merkle_path(self.root, [], 0, self.root, expected_height=3)

    def test_expected_height_accepts_genuine_proof(self):
        assert verify_merkle_path(
            self.proof.leaf, self.proof.siblings, 5, self.root, expected_height=3,
        )


class TestTreeHeight:

    @pytest.mark.parametrize(
        "n, height",
        [(0, 0), (1, 0), (2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4)],
    )
    def test_height(self, n, height):
        assert compute_tree_height(n) == height

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            compute_tree_height(-1)


class TestProverVerifier:
    """Tests for the identifier-level wrappers."""

    def test_order_identifiers(self):
        assert order_identifiers(["dev-2", "dev-10", "dev-1"]) == ["dev-1", "dev-10", "dev-2"]

    def test_prove_identifier_uses_sorted_position(self):
        proof = MerkleProver.prove_identifier(["dev-2", "dev-1"], "dev-2")

        assert proof.index == 1
        assert proof.leaf == hash_leaf("dev-2")

    def test_root_independent_of_input_order(self):
        ids = [f"dev-{i}" for i in range(7)]
        assert MerkleProver.compute_root(ids) == MerkleProver.compute_root(reversed(ids))

    def test_prove_identifier_missing(self):
        with pytest.raises(KeyError):
            MerkleProver.prove_identifier(["dev-1"], "dev-9")

    def test_verifier_wrappers(self):
        ids = ["a", "b", "c", "d", "e"]
        root = MerkleProver.compute_root(ids)
        proof = MerkleProver.prove_identifier(ids, "c")

        assert MerkleVerifier.verify_identifier_in_root("c", proof.index, proof.siblings, root)
        assert MerkleVerifier.verify_leaf_in_root(proof.leaf, proof.index, proof.siblings, root)
        assert not MerkleVerifier.verify_identifier_in_root("z", proof.index, proof.siblings, root)
