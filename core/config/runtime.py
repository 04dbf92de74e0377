"""
Runtime Configuration

Central configuration for the registry, nullifier store, API and rewards.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


ENV_PREFIX = "EDGEREG_"

STORE_BACKENDS = ("memory", "jsonl", "sqlite")


@dataclass
class RegistryConfig:
    """Configuration for the device registry and its store."""
    validity_epochs: int = 365
    store: str = "memory"
    store_path: Optional[str] = None

    def __post_init__(self):
        if self.store not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown device store '{self.store}', expected one of {STORE_BACKENDS}"
            )
        if self.validity_epochs <= 0:
            raise ValueError("validity_epochs must be positive")


@dataclass
class NullifierConfig:
    """
    Configuration for the spent-nullifier store.

    current_round is the round the verifier accepts claims for. Spends are
    recorded under it; when unset they carry no epoch and are never pruned.
    """
    store: str = "memory"
    store_path: Optional[str] = None
    current_round: Optional[int] = None

    def __post_init__(self):
        if self.store not in ("memory", "sqlite"):
            raise ValueError(
                f"Unknown nullifier store '{self.store}', expected 'memory' or 'sqlite'"
            )
        if self.current_round is not None and self.current_round < 0:
            raise ValueError("current_round must be non-negative")


@dataclass
class ApiConfig:
    """Configuration for the HTTP server."""
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class RewardConfig:
    """Fixed reward paid per accepted reading (computed by the API, not the core)."""
    per_reading: float = 0.1
    unit: str = "DUST"


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - JSON or YAML file
    - Programmatic construction
    """
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    nullifiers: NullifierConfig = field(default_factory=NullifierConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    reward: RewardConfig = field(default_factory=RewardConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - EDGEREG_VALIDITY_EPOCHS: Device validity period in days
        - EDGEREG_DEVICE_STORE: memory | jsonl | sqlite
        - EDGEREG_DEVICE_STORE_PATH: Path of the device store file
        - EDGEREG_NULLIFIER_STORE: memory | sqlite
        - EDGEREG_NULLIFIER_STORE_PATH: Path of the nullifier database
        - EDGEREG_CURRENT_ROUND: Round the verifier accepts claims for
        - EDGEREG_API_HOST / EDGEREG_API_PORT: HTTP bind address
        - EDGEREG_REWARD_PER_READING: Reward per accepted reading
        - EDGEREG_LOG_LEVEL: Log level
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}VALIDITY_EPOCHS"):
            overrides.setdefault("registry", {})["validity_epochs"] = int(
                os.getenv(f"{ENV_PREFIX}VALIDITY_EPOCHS")
            )
        if os.getenv(f"{ENV_PREFIX}DEVICE_STORE"):
            overrides.setdefault("registry", {})["store"] = os.getenv(f"{ENV_PREFIX}DEVICE_STORE")
        if os.getenv(f"{ENV_PREFIX}DEVICE_STORE_PATH"):
            overrides.setdefault("registry", {})["store_path"] = os.getenv(
                f"{ENV_PREFIX}DEVICE_STORE_PATH"
            )

        if os.getenv(f"{ENV_PREFIX}NULLIFIER_STORE"):
            overrides.setdefault("nullifiers", {})["store"] = os.getenv(
                f"{ENV_PREFIX}NULLIFIER_STORE"
            )
        if os.getenv(f"{ENV_PREFIX}NULLIFIER_STORE_PATH"):
            overrides.setdefault("nullifiers", {})["store_path"] = os.getenv(
                f"{ENV_PREFIX}NULLIFIER_STORE_PATH"
            )

        if os.getenv(f"{ENV_PREFIX}CURRENT_ROUND"):
            overrides.setdefault("nullifiers", {})["current_round"] = int(
                os.getenv(f"{ENV_PREFIX}CURRENT_ROUND")
            )

        if os.getenv(f"{ENV_PREFIX}API_HOST"):
            overrides.setdefault("api", {})["host"] = os.getenv(f"{ENV_PREFIX}API_HOST")
        if os.getenv(f"{ENV_PREFIX}API_PORT"):
            overrides.setdefault("api", {})["port"] = int(os.getenv(f"{ENV_PREFIX}API_PORT"))

        if os.getenv(f"{ENV_PREFIX}REWARD_PER_READING"):
            overrides.setdefault("reward", {})["per_reading"] = float(
                os.getenv(f"{ENV_PREFIX}REWARD_PER_READING")
            )

        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides["log_level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Load configuration purely from environment variables."""
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_json(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "RuntimeConfig":
        """Load from JSON or YAML depending on the file extension."""
        if Path(path).suffix.lower() in (".yaml", ".yml"):
            return cls.from_yaml(path)
        return cls.from_json(path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        registry_data = data.get("registry", {})
        nullifier_data = data.get("nullifiers", {})
        api_data = data.get("api", {})
        reward_data = data.get("reward", {})

        return cls(
            registry=RegistryConfig(**registry_data) if registry_data else RegistryConfig(),
            nullifiers=NullifierConfig(**nullifier_data) if nullifier_data else NullifierConfig(),
            api=ApiConfig(**api_data) if api_data else ApiConfig(),
            reward=RewardConfig(**reward_data) if reward_data else RewardConfig(),
            log_level=data.get("log_level", "INFO"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)

        for section in ("registry", "nullifiers", "api", "reward"):
            if section in overrides:
                target = getattr(new_config, section)
                for key, value in overrides[section].items():
                    setattr(target, key, value)
                validate = getattr(target, "__post_init__", None)
                if validate is not None:
                    validate()

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "registry": {
                "validity_epochs": self.registry.validity_epochs,
                "store": self.registry.store,
                "store_path": self.registry.store_path,
            },
            "nullifiers": {
                "store": self.nullifiers.store,
                "store_path": self.nullifiers.store_path,
                "current_round": self.nullifiers.current_round,
            },
            "api": {
                "host": self.api.host,
                "port": self.api.port,
            },
            "reward": {
                "per_reading": self.reward.per_reading,
                "unit": self.reward.unit,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


def config_search_paths() -> list[Path]:
    """Config file search order."""
    return [
        Path.cwd() / "edgereg.json",
        Path.cwd() / ".edgereg.json",
        Path.home() / ".config" / "edgereg" / "config.json",
    ]


def load_runtime_config(path: str | Path | None = None) -> RuntimeConfig:
    """Load RuntimeConfig from a config file, then overlay environment variables.

    An explicit path must exist. Without one, the first readable file from
    config_search_paths() is used; unparsable files are skipped with a warning.
    Environment variables ALWAYS override config file values.
    """
    config: RuntimeConfig | None = None

    if path is not None:
        config = RuntimeConfig.from_file(path)
    else:
        for candidate in config_search_paths():
            if candidate.exists():
                try:
                    config = RuntimeConfig.from_file(candidate)
                    logger.info(f"Loaded config from {candidate}")
                    break
                except (ValueError, TypeError) as e:
                    logger.warning(f"Failed to parse {candidate}: {e}")

    if config is None:
        config = RuntimeConfig()

    return config.with_env_overrides()
