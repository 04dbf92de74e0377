"""
Common test fixtures shared by all modules.

Provides factory functions for the registry core:
- FixedEpochClock
- DeviceRegistry / DeviceIdentity
- VerificationGateway / Submission
"""

from typing import Iterable, Optional

from core.epochs.clock import FixedEpochClock
from core.nullifiers.scheme import compute_commitment, derive_nullifier
from core.nullifiers.spent_set import SpentNullifierSet
from core.schemas.device import DeviceIdentity
from core.schemas.submission import Submission
from gateway.verification_gateway import VerificationGateway
from registry.device_registry import DeviceRegistry
from storage.device_store import DeviceStore


# 2024-10-04, an arbitrary fixed "today"
BASE_EPOCH = 20_000

DEVICE_SECRET = bytes([0x2A]) * 32
KEY_MATERIAL = bytes([0x11]) * 32
CONTENT_POINTER = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"


def make_clock(epoch: int = BASE_EPOCH) -> FixedEpochClock:
    return FixedEpochClock(epoch)


def make_registry(
    pubkeys: Iterable[str] = (),
    clock: Optional[FixedEpochClock] = None,
    store: Optional[DeviceStore] = None,
    validity_epochs: int = 365,
) -> DeviceRegistry:
    """Create a registry and register each identifier in order."""
    registry = DeviceRegistry(
        store=store,
        clock=clock or make_clock(),
        validity_epochs=validity_epochs,
    )
    for pubkey in pubkeys:
        registry.register(pubkey)
    return registry


def make_identity(
    device_pubkey: str = "dev-1",
    registration_epoch: int = BASE_EPOCH,
    expiry_epoch: Optional[int] = None,
    device_id: Optional[str] = None,
    metadata: Optional[bytes] = None,
) -> DeviceIdentity:
    return DeviceIdentity(
        device_pubkey=device_pubkey,
        registration_epoch=registration_epoch,
        expiry_epoch=expiry_epoch if expiry_epoch is not None else registration_epoch + 365,
        device_id=device_id,
        metadata=metadata,
    )


def make_gateway(
    registry: DeviceRegistry,
    spent: Optional[SpentNullifierSet] = None,
) -> VerificationGateway:
    return VerificationGateway(registry, spent if spent is not None else SpentNullifierSet())


def make_submission(
    registry: DeviceRegistry,
    device_pubkey: str,
    epoch_id: int = 1,
    secret: bytes = DEVICE_SECRET,
    content_pointer: str = CONTENT_POINTER,
    quality_score: Optional[float] = None,
) -> Submission:
    """
    Build a well-formed submission for a registered device.

    The proof is taken against the registry's current root; the
    commitment's round id equals the epoch id.
    """
    proof = registry.get_proof(device_pubkey)
    return Submission.from_proof(
        proof,
        nullifier=derive_nullifier(secret, epoch_id),
        commitment=compute_commitment(content_pointer, KEY_MATERIAL, epoch_id),
        epoch_id=epoch_id,
        quality_score=quality_score,
    )
