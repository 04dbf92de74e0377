"""
Runtime Configuration Unit Tests
Tests for core/config/runtime.py
"""
import json

import pytest

from core.config.runtime import (
    RegistryConfig,
    RuntimeConfig,
    load_runtime_config,
)


class TestDefaults:

    def test_defaults(self):
        config = RuntimeConfig()

        assert config.registry.validity_epochs == 365
        assert config.registry.store == "memory"
        assert config.nullifiers.store == "memory"
        assert config.nullifiers.current_round is None
        assert config.api.port == 8000
        assert config.reward.per_reading == 0.1
        assert config.reward.unit == "DUST"
        assert config.log_level == "INFO"

    def test_unknown_store_rejected(self):
        with pytest.raises(ValueError, match="Unknown device store"):
            RegistryConfig(store="postgres")

    def test_non_positive_validity_rejected(self):
        with pytest.raises(ValueError):
            RegistryConfig(validity_epochs=0)


class TestFromDict:

    def test_partial(self):
        config = RuntimeConfig.from_dict({"registry": {"store": "jsonl"}, "log_level": "DEBUG"})

        assert config.registry.store == "jsonl"
        assert config.registry.validity_epochs == 365
        assert config.log_level == "DEBUG"

    def test_to_dict_round_trip(self):
        config = RuntimeConfig.from_dict({
            "registry": {"store": "sqlite", "store_path": "/tmp/r.db", "validity_epochs": 30},
            "nullifiers": {"store": "sqlite", "store_path": "/tmp/n.db", "current_round": 7},
            "api": {"host": "0.0.0.0", "port": 9000},
            "reward": {"per_reading": 0.25},
        })

        assert RuntimeConfig.from_dict(config.to_dict()) == config

    def test_invalid_nullifier_store(self):
        with pytest.raises(ValueError):
            RuntimeConfig.from_dict({"nullifiers": {"store": "jsonl"}})

    def test_negative_round_rejected(self):
        with pytest.raises(ValueError, match="current_round"):
            RuntimeConfig.from_dict({"nullifiers": {"current_round": -1}})


class TestEnvOverrides:

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("EDGEREG_DEVICE_STORE", "sqlite")
        monkeypatch.setenv("EDGEREG_DEVICE_STORE_PATH", "/data/registry.db")
        monkeypatch.setenv("EDGEREG_VALIDITY_EPOCHS", "30")
        monkeypatch.setenv("EDGEREG_API_PORT", "9100")
        monkeypatch.setenv("EDGEREG_REWARD_PER_READING", "0.5")
        monkeypatch.setenv("EDGEREG_LOG_LEVEL", "WARNING")

        config = RuntimeConfig().with_env_overrides()

        assert config.registry.store == "sqlite"
        assert config.registry.store_path == "/data/registry.db"
        assert config.registry.validity_epochs == 30
        assert config.api.port == 9100
        assert config.reward.per_reading == 0.5
        assert config.log_level == "WARNING"

    def test_overrides_do_not_mutate_original(self, monkeypatch):
        monkeypatch.setenv("EDGEREG_DEVICE_STORE", "jsonl")
        base = RuntimeConfig()

        base.with_env_overrides()

        assert base.registry.store == "memory"

    def test_invalid_env_value_rejected(self, monkeypatch):
        monkeypatch.setenv("EDGEREG_NULLIFIER_STORE", "redis")

        with pytest.raises(ValueError):
            RuntimeConfig().with_env_overrides()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("EDGEREG_NULLIFIER_STORE", "sqlite")
        assert RuntimeConfig.from_env().nullifiers.store == "sqlite"

    def test_current_round_from_env(self, monkeypatch):
        monkeypatch.setenv("EDGEREG_CURRENT_ROUND", "12")
        assert RuntimeConfig.from_env().nullifiers.current_round == 12


class TestFiles:

    def test_from_json(self, tmp_path):
        path = tmp_path / "edgereg.json"
        path.write_text(json.dumps({"registry": {"validity_epochs": 90}}))

        assert RuntimeConfig.from_file(path).registry.validity_epochs == 90

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "edgereg.yaml"
        path.write_text("registry:\n  store: jsonl\nreward:\n  per_reading: 1.5\n")

        config = RuntimeConfig.from_file(path)

        assert config.registry.store == "jsonl"
        assert config.reward.per_reading == 1.5

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_runtime_config(tmp_path / "missing.json")

    def test_search_path_in_cwd(self, tmp_path, monkeypatch):
        (tmp_path / "edgereg.json").write_text(json.dumps({"api": {"port": 8123}}))
        monkeypatch.chdir(tmp_path)

        assert load_runtime_config().api.port == 8123

    def test_env_wins_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / "edgereg.json"
        path.write_text(json.dumps({"api": {"port": 8123}}))
        monkeypatch.setenv("EDGEREG_API_PORT", "9999")

        assert load_runtime_config(path).api.port == 9999
