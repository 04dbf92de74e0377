"""
Runtime Configuration Module

Provides configuration loading and management for the device registry.
"""

from .runtime import (
    ApiConfig,
    NullifierConfig,
    RegistryConfig,
    RewardConfig,
    RuntimeConfig,
    load_runtime_config,
)

__all__ = [
    "RuntimeConfig",
    "RegistryConfig",
    "NullifierConfig",
    "ApiConfig",
    "RewardConfig",
    "load_runtime_config",
]
