"""
Module 09 - Device Routes

Registration caller and proof requester.

Registration is an administrative action; authentication of callers is
left to the deployment in front of this service.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_service
from api.errors import InvalidRequestError
from api.models.requests import RegisterDeviceRequest
from api.models.responses import (
    ApprovalResponse,
    DeviceListResponse,
    DeviceResponse,
    ProofResponse,
)
from core.crypto.hashing import from_hex, to_hex
from core.schemas.errors import NotRegisteredException
from gateway.service import RegistryService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/devices", tags=["devices"])


@router.post("", response_model=DeviceResponse, status_code=201)
async def register_device(
    request: RegisterDeviceRequest,
    service: RegistryService = Depends(get_service),
) -> DeviceResponse:
    """
    Register a device and rebuild the published root.

    409 if the identifier is already registered, 503 if it could not be
    persisted.
    """
    metadata = None
    if request.metadata is not None:
        try:
            metadata = from_hex(request.metadata)
        except ValueError as e:
            raise InvalidRequestError(f"metadata: {e}")

    identity = service.registry.register(
        request.device_pubkey,
        metadata,
        device_id=request.device_id,
    )
    return DeviceResponse.from_identity(
        identity,
        approved=service.registry.is_approved(identity.device_pubkey),
    )


@router.get("", response_model=DeviceListResponse)
async def list_devices(service: RegistryService = Depends(get_service)) -> DeviceListResponse:
    """All registered devices, in leaf order."""
    registry = service.registry
    devices = [
        DeviceResponse.from_identity(d, approved=registry.is_approved(d.device_pubkey))
        for d in registry.list_all()
    ]
    return DeviceListResponse(ok=True, total=len(devices), devices=devices)


@router.get("/{device_pubkey}", response_model=DeviceResponse)
async def get_device(
    device_pubkey: str,
    service: RegistryService = Depends(get_service),
) -> DeviceResponse:
    identity = service.registry.get_device(device_pubkey)
    if identity is None:
        raise NotRegisteredException(device_pubkey)
    return DeviceResponse.from_identity(
        identity,
        approved=service.registry.is_approved(device_pubkey),
    )


@router.get("/{device_pubkey}/approved", response_model=ApprovalResponse)
async def is_approved(
    device_pubkey: str,
    service: RegistryService = Depends(get_service),
) -> ApprovalResponse:
    """Approval check; unknown devices are simply not approved."""
    return ApprovalResponse(
        device_pubkey=device_pubkey,
        approved=service.registry.is_approved(device_pubkey),
    )


@router.get("/{device_pubkey}/proof", response_model=ProofResponse)
async def get_proof(
    device_pubkey: str,
    service: RegistryService = Depends(get_service),
) -> ProofResponse:
    """
    Membership proof against the current root.

    404 if the device is not registered.
    """
    proof = service.registry.get_proof(device_pubkey)
    return ProofResponse(
        device_pubkey=device_pubkey,
        leaf_hash=to_hex(proof.leaf),
        leaf_index=proof.index,
        siblings=[to_hex(s) for s in proof.siblings],
        root=to_hex(proof.root),
    )
