"""
Module 10 - CLI Shared Helpers

Exit codes, output helpers, and service construction shared by commands.
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from typing import Any

from core.config.runtime import RuntimeConfig
from gateway.service import RegistryService, build_service


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def runtime_config(args: Namespace) -> RuntimeConfig:
    """Config attached by main(); defaults when a command is called directly."""
    config = getattr(args, "runtime_config", None)
    return config if config is not None else RuntimeConfig()


def open_service(args: Namespace) -> RegistryService:
    """Build a service over the configured stores."""
    config = runtime_config(args)
    if config.registry.store == "memory":
        logger.warning(
            "Device store is 'memory': state does not outlive this command. "
            "Use --store jsonl|sqlite or EDGEREG_DEVICE_STORE."
        )
    return build_service(config)


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, sort_keys=True))


def print_error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
