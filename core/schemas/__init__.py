"""
Module 01 - Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Version constants
from .versioning import (
    PROTOCOL_VERSION,
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaVersion,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

# Error models and exceptions
from .errors import (
    AlreadyRegisteredException,
    AlreadySpentException,
    DoubleClaimException,
    ErrorCodes,
    InvalidProofException,
    NotRegisteredException,
    PersistenceFailureException,
    RegistryError,
    RegistryException,
    SchemaValidationException,
    StaleRootException,
)

# Device schemas
from .device import (
    MAX_IDENTIFIER_BYTES,
    DeviceIdentity,
    RegistryStatus,
    validate_identifier,
)

# Gateway schemas
from .submission import (
    TERMINAL_STATES,
    GatewayResult,
    RejectionReason,
    Submission,
    SubmissionState,
)


__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "PROTOCOL_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaVersion",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    # Errors
    "ErrorCodes",
    "RegistryError",
    "RegistryException",
    "SchemaValidationException",
    "AlreadyRegisteredException",
    "NotRegisteredException",
    "InvalidProofException",
    "StaleRootException",
    "DoubleClaimException",
    "AlreadySpentException",
    "PersistenceFailureException",
    # Device
    "MAX_IDENTIFIER_BYTES",
    "DeviceIdentity",
    "RegistryStatus",
    "validate_identifier",
    # Gateway
    "Submission",
    "SubmissionState",
    "RejectionReason",
    "GatewayResult",
    "TERMINAL_STATES",
]
