"""
Module 09 - Health Check Route

Simple health check endpoint for liveness probes.
"""

from fastapi import APIRouter, Depends

from api.deps import get_service
from api.models.responses import HealthResponse
from gateway.service import RegistryService


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(service: RegistryService = Depends(get_service)) -> HealthResponse:
    """
    Health check endpoint.

    Returns service status for liveness probes.
    """
    return HealthResponse(
        ok=True,
        service="edgechain-registry-api",
        version="v1",
        total_devices=len(service.registry),
    )


@router.get("/", response_model=HealthResponse)
async def root(service: RegistryService = Depends(get_service)) -> HealthResponse:
    """
    Root endpoint - same as health check.
    """
    return await health_check(service)
