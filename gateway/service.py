"""
Module 07 - Registry Service
Wires config, stores, registry, spent set, and gateway together.

Shared by the HTTP API and the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.config.runtime import RuntimeConfig
from core.epochs.clock import EpochClock
from core.nullifiers.spent_set import SpentNullifierSet
from gateway.verification_gateway import VerificationGateway
from registry.device_registry import DeviceRegistry
from storage.factory import build_device_store, build_spent_store


logger = logging.getLogger(__name__)


@dataclass
class RegistryService:
    """Everything one process needs to register, prove, and verify."""
    config: RuntimeConfig
    registry: DeviceRegistry
    spent: SpentNullifierSet
    gateway: VerificationGateway

    def reward_for(self, accepted: bool) -> float:
        """Fixed reward per accepted reading; zero otherwise."""
        return self.config.reward.per_reading if accepted else 0.0

    @property
    def current_round(self) -> int | None:
        """Round spends are recorded under; the caller's policy, never the device's."""
        return self.config.nullifiers.current_round


def build_service(
    config: RuntimeConfig | None = None,
    clock: EpochClock | None = None,
) -> RegistryService:
    """
    Build a RegistryService from configuration.

    Devices already in the configured store are loaded before the
    service is returned.
    """
    config = config or RuntimeConfig()

    registry = DeviceRegistry.from_store(
        build_device_store(config.registry),
        clock=clock,
        validity_epochs=config.registry.validity_epochs,
    )
    spent = SpentNullifierSet(store=build_spent_store(config.nullifiers))
    gateway = VerificationGateway(registry, spent)

    logger.info(
        f"Registry service ready: store={config.registry.store} "
        f"devices={len(registry)} spent={len(spent)}"
    )
    return RegistryService(
        config=config,
        registry=registry,
        spent=spent,
        gateway=gateway,
    )
