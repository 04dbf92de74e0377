"""
Module 02 - Hashing Utilities
Domain-separated SHA-256 hashing for the device registry.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- SHA-256 hashing for raw bytes
- Domain tags for every hash use in the protocol
- Leaf / node / tagged hashing helpers
- Hex encoding/decoding with 0x prefix

Domain Tags (Hard Contracts - exact ASCII bytes):
    leaf:            leaf = sha256(b"leaf:" + utf8(device_pubkey))
    node:            node = sha256(b"node:" + left + right)
    nullifier:v1:    see core.nullifiers.scheme
    commitment:v1:   see core.nullifiers.scheme

Every call site MUST go through tagged_hash() with one of the tags below.
A bare sha256() of protocol data would let a leaf pass for an internal node.
"""
from __future__ import annotations

import hashlib


DIGEST_SIZE: int = 32

LEAF_TAG: bytes = b"leaf:"
NODE_TAG: bytes = b"node:"
NULLIFIER_TAG: bytes = b"nullifier:v1:"
COMMITMENT_TAG: bytes = b"commitment:v1:"

DOMAIN_TAGS: frozenset[bytes] = frozenset(
    {LEAF_TAG, NODE_TAG, NULLIFIER_TAG, COMMITMENT_TAG}
)

# Sentinel digest; an all-zero root means "registry empty"
ZERO_DIGEST: bytes = bytes(DIGEST_SIZE)


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte SHA-256 digest

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def tagged_hash(tag: bytes, *parts: bytes) -> bytes:
    """
    Hash the concatenation of a domain tag and message parts.

    Rule: sha256(tag || part_0 || part_1 || ...)

    Args:
        tag: One of the registered DOMAIN_TAGS
        *parts: Byte strings appended after the tag, in order

    Returns:
        32-byte digest

    Raises:
        ValueError: If the tag is not a registered domain tag
    """
    if tag not in DOMAIN_TAGS:
        raise ValueError(f"Unknown domain tag: {tag!r}")
    h = hashlib.sha256(tag)
    for part in parts:
        h.update(part)
    return h.digest()


def encode_identifier(device_pubkey: str) -> bytes:
    """Byte form of a device identifier (UTF-8)."""
    return device_pubkey.encode("utf-8")


def hash_leaf(device_pubkey: str) -> bytes:
    """
    Compute the Merkle leaf for a device identifier.

    Rule: leaf = sha256(b"leaf:" || utf8(device_pubkey))
    """
    return tagged_hash(LEAF_TAG, encode_identifier(device_pubkey))


def hash_node(left: bytes, right: bytes) -> bytes:
    """
    Compute an internal Merkle node from its two children.

    Rule: node = sha256(b"node:" || left || right)
    """
    return tagged_hash(NODE_TAG, left, right)


def is_digest(value: bytes) -> bool:
    """Check that a value has the shape of a digest (bytes of DIGEST_SIZE)."""
    return isinstance(value, (bytes, bytearray)) and len(value) == DIGEST_SIZE


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Args:
        hex_string: Hex string with 0x prefix

    Returns:
        Decoded bytes

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def short_hex(data: bytes, length: int = 16) -> str:
    """Truncated hex for log lines."""
    return data.hex()[:length]


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
