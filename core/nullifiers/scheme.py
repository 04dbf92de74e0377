"""
Module 04 - Nullifier / Commitment Scheme
Deterministic per-epoch nullifiers and contribution commitments.

Owner: Protocol/Crypto Engineer
Module ID: M04

Byte layouts (Hard Contracts - devices and verifiers agree bit-for-bit):

    nullifier  = sha256(b"nullifier:v1:"  || u64be(epoch_id) || device_secret)
    commitment = sha256(b"commitment:v1:" || utf8(content_pointer)
                                          || key_material      (32 bytes)
                                          || u64be(round_id))

Notes:
- epoch_id is a caller-chosen unsigned round number. One nullifier per
  epoch_id per device; the caller decides what an epoch means by what it
  encodes (daily, per training round, ...).
- The nullifier never depends on contribution content; that binding
  belongs to the commitment.
- key_material is fixed-width so the variable-length content pointer is
  unambiguous as the remaining prefix.
"""
from __future__ import annotations

import secrets

from core.crypto.hashing import COMMITMENT_TAG, NULLIFIER_TAG, tagged_hash


DEVICE_SECRET_SIZE: int = 32
KEY_MATERIAL_SIZE: int = 32
MAX_EPOCH_ID: int = 2**64 - 1


def encode_u64(value: int) -> bytes:
    """
    Encode an unsigned 64-bit integer as 8 bytes big-endian.

    Raises:
        ValueError: If value is negative or does not fit in 64 bits
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {type(value).__name__}")
    if value < 0 or value > MAX_EPOCH_ID:
        raise ValueError(f"Value {value} does not fit in uint64")
    return value.to_bytes(8, "big")


def generate_device_secret() -> bytes:
    """Fresh random device secret. Stays on the device; never sent to the registry."""
    return secrets.token_bytes(DEVICE_SECRET_SIZE)


def derive_nullifier(device_secret: bytes, epoch_id: int) -> bytes:
    """
    Derive the nullifier for a device secret in one epoch.

    Same (secret, epoch_id) always yields the same value; different
    epoch ids yield unlinkable values.

    Args:
        device_secret: Non-empty secret bytes held by the device
        epoch_id: Unsigned epoch / round number

    Returns:
        32-byte nullifier

    Raises:
        ValueError: If the secret is empty or epoch_id is out of range
    """
    if not isinstance(device_secret, (bytes, bytearray)) or len(device_secret) == 0:
        raise ValueError("device_secret must be non-empty bytes")
    return tagged_hash(NULLIFIER_TAG, encode_u64(epoch_id), bytes(device_secret))


def compute_commitment(content_pointer: str, key_material: bytes, round_id: int) -> bytes:
    """
    Commit to a contribution (e.g. an IPFS CID) for one round.

    Args:
        content_pointer: Content identifier of the contribution
        key_material: 32-byte identity key material
        round_id: Unsigned round number

    Returns:
        32-byte commitment

    Raises:
        ValueError: On an empty pointer or wrong key_material length
    """
    if not content_pointer:
        raise ValueError("content_pointer must not be empty")
    if not isinstance(key_material, (bytes, bytearray)) or len(key_material) != KEY_MATERIAL_SIZE:
        raise ValueError(f"key_material must be exactly {KEY_MATERIAL_SIZE} bytes")
    return tagged_hash(
        COMMITMENT_TAG,
        content_pointer.encode("utf-8"),
        bytes(key_material),
        encode_u64(round_id),
    )


__all__ = [
    "DEVICE_SECRET_SIZE",
    "KEY_MATERIAL_SIZE",
    "MAX_EPOCH_ID",
    "encode_u64",
    "generate_device_secret",
    "derive_nullifier",
    "compute_commitment",
]
