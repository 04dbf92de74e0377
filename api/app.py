"""
Module 09 - FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health, devices, registry, verify
from api.errors import (
    APIError,
    api_error_handler,
    generic_error_handler,
    registry_error_handler,
    validation_error_handler,
)
from core.config.runtime import config_search_paths
from core.schemas.errors import RegistryException
from gateway.service import RegistryService


# Configure logging - respects EDGEREG_LOG_LEVEL env var and edgereg.json log_level
def _resolve_log_level() -> int:
    """Resolve log level from env var or the first config file, defaulting to INFO."""
    raw = os.getenv("EDGEREG_LOG_LEVEL")
    if raw is None:
        import json
        for cfg_path in config_search_paths():
            if not cfg_path.exists():
                continue
            try:
                with open(cfg_path) as f:
                    raw = json.load(f).get("log_level")
            except (OSError, ValueError):
                pass
            break
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app(service: RegistryService | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Pre-built RegistryService; built from runtime config on
            first request when omitted.
    """

    app = FastAPI(
        title="EdgeChain Device Registry API",
        description="""
HTTP API for the anonymous IoT device registry.

## Endpoints

- **POST /devices** - Register a device (administrative)
- **GET /devices/{pubkey}/proof** - Membership proof against the current root
- **GET /registry/root** - Currently published Merkle root
- **POST /verify** - Verify a contribution (proof, then nullifier)
- **GET /health** - Health check

Hashes travel as 0x-prefixed hex. `/verify` always answers 200 with
`status` and, for rejections, `reason`.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.service = service

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RegistryException, registry_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(devices.router)
    app.include_router(registry.router)
    app.include_router(verify.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    from core.config.runtime import load_runtime_config

    api_config = load_runtime_config().api
    uvicorn.run(app, host=api_config.host, port=api_config.port)
