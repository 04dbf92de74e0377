"""
Module 07 - Proof Verification Gateway

Provides:
- VerificationGateway: proof-then-nullifier acceptance of submissions
- RegistryService / build_service: process-wide wiring from RuntimeConfig
"""

from .verification_gateway import (
    MAX_QUALITY_SCORE,
    MIN_QUALITY_SCORE,
    VerificationGateway,
)
from .service import RegistryService, build_service

__all__ = [
    "MAX_QUALITY_SCORE",
    "MIN_QUALITY_SCORE",
    "VerificationGateway",
    "RegistryService",
    "build_service",
]
