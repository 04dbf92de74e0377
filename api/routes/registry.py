"""
Module 09 - Registry Routes

Published root and diagnostics.
"""

from fastapi import APIRouter, Depends

from api.deps import get_service
from api.models.responses import RootResponse, StatusResponse
from core.crypto.hashing import to_hex
from gateway.service import RegistryService


router = APIRouter(prefix="/registry", tags=["registry"])


@router.get("/root", response_model=RootResponse)
async def get_root(service: RegistryService = Depends(get_service)) -> RootResponse:
    snapshot = service.registry.snapshot()
    return RootResponse(
        root=to_hex(snapshot.root),
        empty=snapshot.is_empty,
        version=snapshot.version,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(service: RegistryService = Depends(get_service)) -> StatusResponse:
    status = service.registry.status()
    return StatusResponse(
        ok=True,
        total_devices=status.total_devices,
        root=status.root,
        version=status.version,
        empty=status.empty,
        spent_nullifiers=len(service.spent),
    )
