"""
Module 01 - Schemas
File: device.py

Purpose: Device identity and registry status models.

A DeviceIdentity is immutable once created. Expiry is evaluated lazily
against the epoch clock and never written back.
"""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from core.crypto.hashing import encode_identifier, from_hex, to_hex

from .versioning import SCHEMA_VERSION


MAX_IDENTIFIER_BYTES = 256


def validate_identifier(device_pubkey: str) -> str:
    """
    Check the format of a device identifier.

    Raises:
        ValueError: If empty, padded with whitespace, or too long
    """
    if not isinstance(device_pubkey, str):
        raise ValueError("Device identifier must be a string")
    if not device_pubkey:
        raise ValueError("Device identifier must not be empty")
    if device_pubkey != device_pubkey.strip():
        raise ValueError("Device identifier must not have surrounding whitespace")
    if len(encode_identifier(device_pubkey)) > MAX_IDENTIFIER_BYTES:
        raise ValueError(
            f"Device identifier exceeds {MAX_IDENTIFIER_BYTES} bytes"
        )
    return device_pubkey


class DeviceIdentity(BaseModel):
    """
    An approved device in the registry.

    The public identifier is unique within the registry and is the only
    field that enters the Merkle tree. Metadata is an opaque blob the
    registry never interprets; on the JSON wire it travels as 0x-hex.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: str = Field(
        default=SCHEMA_VERSION,
        description="Schema version of the persisted record",
    )
    device_pubkey: str = Field(
        ...,
        description="Public identifier (e.g. hex-encoded public key)",
    )
    registration_epoch: int = Field(
        ...,
        ge=0,
        description="Days since the Unix epoch at registration",
    )
    expiry_epoch: int = Field(
        ...,
        ge=0,
        description="Last epoch (inclusive) in which the device is approved",
    )
    device_id: str | None = Field(
        default=None,
        description="Optional operator-facing label",
    )
    metadata: bytes | None = Field(
        default=None,
        description="Opaque metadata blob",
    )

    @field_validator("device_pubkey")
    @classmethod
    def check_pubkey(cls, value: str) -> str:
        return validate_identifier(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def decode_metadata(cls, value: Any) -> Any:
        if isinstance(value, str):
            return from_hex(value)
        if isinstance(value, bytearray):
            return bytes(value)
        return value

    @field_serializer("metadata", when_used="json")
    def encode_metadata(self, value: bytes | None) -> str | None:
        return None if value is None else to_hex(value)

    @model_validator(mode="after")
    def check_validity_window(self) -> "DeviceIdentity":
        if self.expiry_epoch <= self.registration_epoch:
            raise ValueError(
                "expiry_epoch must be greater than registration_epoch"
            )
        return self

    def is_active_at(self, epoch: int) -> bool:
        """True while epoch has not passed expiry_epoch."""
        return epoch <= self.expiry_epoch


class RegistryStatus(BaseModel):
    """Snapshot summary of the registry (diagnostics)."""

    model_config = ConfigDict(extra="forbid")

    total_devices: int = Field(..., ge=0)
    root: str = Field(..., description="Currently published root (0x-hex)")
    version: int = Field(
        ...,
        ge=0,
        description="Monotonic counter of published snapshots",
    )
    empty: bool = Field(..., description="True when root is the empty sentinel")
