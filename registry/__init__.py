"""
Module 05 - Device Registry

Provides:
- DeviceRegistry: approved-device set with published Merkle root
- RegistrySnapshot: immutable view used by readers and the gateway
"""

from .device_registry import DeviceRegistry, RegistrySnapshot

__all__ = [
    "DeviceRegistry",
    "RegistrySnapshot",
]
