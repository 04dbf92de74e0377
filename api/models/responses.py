"""
Module 09 - API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, Field

from core.crypto.hashing import to_hex
from core.schemas.device import DeviceIdentity


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "edgechain-registry-api"
    version: str = "v1"
    total_devices: int = 0


class DeviceResponse(BaseModel):
    """A registered device as seen over HTTP."""

    device_pubkey: str
    device_id: str | None = None
    registration_epoch: int
    expiry_epoch: int
    metadata: str | None = Field(default=None, description="Metadata as 0x-hex")
    approved: bool = Field(..., description="Registered and within its validity window")

    @classmethod
    def from_identity(cls, identity: DeviceIdentity, approved: bool) -> "DeviceResponse":
        return cls(
            device_pubkey=identity.device_pubkey,
            device_id=identity.device_id,
            registration_epoch=identity.registration_epoch,
            expiry_epoch=identity.expiry_epoch,
            metadata=None if identity.metadata is None else to_hex(identity.metadata),
            approved=approved,
        )


class DeviceListResponse(BaseModel):
    """Response for GET /devices endpoint."""

    ok: bool = True
    total: int = Field(..., description="Number of registered devices")
    devices: list[DeviceResponse] = Field(default_factory=list)


class ApprovalResponse(BaseModel):
    """Response for GET /devices/{pubkey}/approved endpoint."""

    device_pubkey: str
    approved: bool


class ProofResponse(BaseModel):
    """Response for GET /devices/{pubkey}/proof endpoint."""

    device_pubkey: str
    leaf_hash: str = Field(..., description="hash_leaf(device_pubkey) as 0x-hex")
    leaf_index: int
    siblings: list[str] = Field(default_factory=list, description="Bottom-up sibling path")
    root: str = Field(..., description="Root the proof is valid against")


class RootResponse(BaseModel):
    """Response for GET /registry/root endpoint."""

    root: str = Field(..., description="Currently published root (0x-hex)")
    empty: bool = Field(..., description="True when no device is registered")
    version: int


class StatusResponse(BaseModel):
    """Response for GET /registry/status endpoint."""

    ok: bool = True
    total_devices: int
    root: str
    version: int
    empty: bool
    spent_nullifiers: int = 0


class VerifyResponse(BaseModel):
    """Response for POST /verify endpoint. Always returned with HTTP 200."""

    status: str = Field(..., description="'accepted' or 'rejected'")
    reason: str | None = Field(
        default=None,
        description="Rejection reason: INVALID_FORMAT, STALE_ROOT, INVALID_PROOF, DOUBLE_CLAIM",
    )
    message: str = ""
    reward: float = Field(default=0.0, description="Reward credited for this reading")
    reward_unit: str = "DUST"
    checked_root: str | None = None
    trail: list[str] = Field(default_factory=list, description="Gateway states visited")


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail
