"""
Module 04 - Nullifier / Commitment Scheme

Provides:
- derive_nullifier / compute_commitment: domain-tagged derivations
- SpentNullifierSet: atomic check-and-set record of spent nullifiers
"""

from .scheme import (
    DEVICE_SECRET_SIZE,
    KEY_MATERIAL_SIZE,
    MAX_EPOCH_ID,
    compute_commitment,
    derive_nullifier,
    encode_u64,
    generate_device_secret,
)
from .spent_set import SpentNullifierSet, SpentStore

__all__ = [
    "DEVICE_SECRET_SIZE",
    "KEY_MATERIAL_SIZE",
    "MAX_EPOCH_ID",
    "compute_commitment",
    "derive_nullifier",
    "encode_u64",
    "generate_device_secret",
    "SpentNullifierSet",
    "SpentStore",
]
