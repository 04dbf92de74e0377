"""API route handlers."""

from api.routes import health, devices, registry, verify

__all__ = ["health", "devices", "registry", "verify"]
