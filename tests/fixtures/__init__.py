"""
Test fixtures package for the device registry.

Provides reusable factory functions:
- common: clocks, registries, gateways and submissions
"""

from fixtures.common import (
    BASE_EPOCH,
    DEVICE_SECRET,
    KEY_MATERIAL,
    make_clock,
    make_gateway,
    make_identity,
    make_registry,
    make_submission,
)

__all__ = [
    "BASE_EPOCH",
    "DEVICE_SECRET",
    "KEY_MATERIAL",
    "make_clock",
    "make_gateway",
    "make_identity",
    "make_registry",
    "make_submission",
]
