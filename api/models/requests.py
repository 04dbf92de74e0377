"""
Module 09 - API Request Models

Pydantic models for API request validation.

Binary values (hashes, metadata) travel as 0x-prefixed hex strings and are
decoded in the route handlers.
"""

from pydantic import BaseModel, Field


class RegisterDeviceRequest(BaseModel):
    """Request body for POST /devices endpoint."""

    device_pubkey: str = Field(
        ...,
        min_length=1,
        description="Public identifier of the device (e.g. hex-encoded public key)",
    )
    device_id: str | None = Field(
        default=None,
        max_length=256,
        description="Optional operator-facing label",
    )
    metadata: str | None = Field(
        default=None,
        description="Optional opaque metadata as 0x-hex",
    )


class VerifyRequest(BaseModel):
    """Request body for POST /verify endpoint."""

    leaf_hash: str = Field(..., description="Leaf being proven (0x-hex, 32 bytes)")
    siblings: list[str] = Field(
        default_factory=list,
        description="Sibling hashes, bottom-up (0x-hex)",
    )
    leaf_index: int = Field(..., ge=0, description="Leaf position in the tree")
    claimed_root: str = Field(..., description="Root the proof was built against")
    nullifier: str = Field(..., description="Per-epoch nullifier (0x-hex)")
    commitment: str = Field(..., description="Contribution commitment (0x-hex)")
    epoch_id: int | None = Field(
        default=None,
        ge=0,
        description="Epoch the nullifier was derived for; must match the open round",
    )
    quality_score: float | None = Field(
        default=None,
        description="Optional data quality score (0-100)",
    )
