"""
Module 01 - Schemas
File: errors.py

Purpose: Standard error taxonomy for the device registry core.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Exceptions never carry device secrets or key material in their
message or details - only identifiers, hashes, and error kinds.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the registry core."""

    # Schema & Validation Errors
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"

    # Registry Errors
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    NOT_REGISTERED = "NOT_REGISTERED"

    # Proof Errors
    INVALID_PROOF = "INVALID_PROOF"
    STALE_ROOT = "STALE_ROOT"
    INVALID_FORMAT = "INVALID_FORMAT"

    # Nullifier Errors
    DOUBLE_CLAIM = "DOUBLE_CLAIM"
    ALREADY_SPENT = "ALREADY_SPENT"

    # Storage Errors
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class RegistryError(BaseModel):
    """
    Base error model for structured error communication.

    Used to pass errors across the API/CLI boundary without exceptions.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.NOT_REGISTERED],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "RegistryException":
        """Convert this error model to a raised exception."""
        return RegistryException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class RegistryException(Exception):
    """
    Base exception for all registry core errors.

    Carries structured error information and can be converted to a
    RegistryError model.
    """

    def __init__(
        self,
        message: str,
        code: str = "REGISTRY_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> RegistryError:
        """Convert this exception to a RegistryError model."""
        return RegistryError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class SchemaValidationException(RegistryException):
    """Exception raised when input fails format validation."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.SCHEMA_VALIDATION_ERROR,
            details=full_details,
            retryable=False,
        )


class AlreadyRegisteredException(RegistryException):
    """Registration of an identifier that is already in the registry."""

    def __init__(self, device_pubkey: str) -> None:
        super().__init__(
            message=f"Device already registered: {device_pubkey}",
            code=ErrorCodes.ALREADY_REGISTERED,
            details={"device_pubkey": device_pubkey},
            retryable=False,
        )


class NotRegisteredException(RegistryException):
    """Proof or lookup for an identifier that is not in the registry."""

    def __init__(self, device_pubkey: str) -> None:
        super().__init__(
            message=f"Device not in registry: {device_pubkey}",
            code=ErrorCodes.NOT_REGISTERED,
            details={"device_pubkey": device_pubkey},
            retryable=False,
        )


class InvalidProofException(RegistryException):
    """Merkle proof does not fold to the published root."""

    def __init__(
        self,
        message: str = "Merkle proof does not match the published root",
        leaf_index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if leaf_index is not None:
            full_details["leaf_index"] = leaf_index
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_PROOF,
            details=full_details,
            retryable=False,
        )


class StaleRootException(RegistryException):
    """Claimed root differs from the published root; a fresh proof resolves it."""

    def __init__(self, claimed_root: str, current_root: str) -> None:
        super().__init__(
            message="Claimed root is not the currently published root",
            code=ErrorCodes.STALE_ROOT,
            details={"claimed_root": claimed_root, "current_root": current_root},
            retryable=True,
        )


class DoubleClaimException(RegistryException):
    """Nullifier has already been spent."""

    def __init__(self, nullifier: str) -> None:
        super().__init__(
            message="Nullifier already spent",
            code=ErrorCodes.DOUBLE_CLAIM,
            details={"nullifier": nullifier},
            retryable=False,
        )


class AlreadySpentException(RegistryException):
    """Strict mark_spent() on a nullifier that is already in the spent set."""

    def __init__(self, nullifier: str) -> None:
        super().__init__(
            message="Nullifier already in spent set",
            code=ErrorCodes.ALREADY_SPENT,
            details={"nullifier": nullifier},
            retryable=False,
        )


class PersistenceFailureException(RegistryException):
    """Underlying storage was unavailable; in-memory state was not changed."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if operation:
            full_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCodes.PERSISTENCE_FAILURE,
            details=full_details,
            retryable=True,
        )
