"""API request and response models."""

from api.models.requests import RegisterDeviceRequest, VerifyRequest
from api.models.responses import (
    HealthResponse,
    DeviceResponse,
    DeviceListResponse,
    ApprovalResponse,
    ProofResponse,
    RootResponse,
    StatusResponse,
    VerifyResponse,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    "RegisterDeviceRequest",
    "VerifyRequest",
    "HealthResponse",
    "DeviceResponse",
    "DeviceListResponse",
    "ApprovalResponse",
    "ProofResponse",
    "RootResponse",
    "StatusResponse",
    "VerifyResponse",
    "ErrorDetail",
    "ErrorResponse",
]
