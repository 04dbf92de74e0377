"""
Module 09 - Registry API (FastAPI)

HTTP API for the device registry:
- POST /devices - Register a device
- GET /devices/{pubkey}/proof - Fetch a membership proof
- GET /registry/root - Currently published root
- POST /verify - Submit a contribution for verification
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
