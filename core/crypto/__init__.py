"""
Core cryptographic utilities.

Module 02 provides the domain-separated hash primitive used by the
Merkle engine, the registry, and the nullifier scheme.
"""
from .hashing import (
    DIGEST_SIZE,
    LEAF_TAG,
    NODE_TAG,
    NULLIFIER_TAG,
    COMMITMENT_TAG,
    DOMAIN_TAGS,
    ZERO_DIGEST,
    sha256,
    tagged_hash,
    encode_identifier,
    hash_leaf,
    hash_node,
    is_digest,
    to_hex,
    from_hex,
    short_hex,
)

__all__ = [
    "DIGEST_SIZE",
    "LEAF_TAG",
    "NODE_TAG",
    "NULLIFIER_TAG",
    "COMMITMENT_TAG",
    "DOMAIN_TAGS",
    "ZERO_DIGEST",
    "sha256",
    "tagged_hash",
    "encode_identifier",
    "hash_leaf",
    "hash_node",
    "is_digest",
    "to_hex",
    "from_hex",
    "short_hex",
]
