"""
Module 09 - API Dependencies

Dependency injection for the API.

One RegistryService is shared by every request of an application. It is
built lazily from the runtime configuration unless the application was
created with one (tests inject their own).
"""

from __future__ import annotations

import logging
import threading

from fastapi import Request

from core.config.runtime import load_runtime_config
from gateway.service import RegistryService, build_service

logger = logging.getLogger(__name__)

_build_lock = threading.Lock()


def get_service(request: Request) -> RegistryService:
    """Return the application's RegistryService, building it on first use."""
    state = request.app.state
    service = getattr(state, "service", None)
    if service is not None:
        return service

    with _build_lock:
        service = getattr(state, "service", None)
        if service is None:
            config = load_runtime_config()
            service = build_service(config)
            state.service = service
            logger.info("Registry service created for API")
    return service
