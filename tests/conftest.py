"""
Pytest configuration and shared fixtures for device registry tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

BASE_EPOCH = _common.BASE_EPOCH
make_clock = _common.make_clock
make_registry = _common.make_registry
make_gateway = _common.make_gateway
make_submission = _common.make_submission


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep EDGEREG_* variables from the developer's shell out of tests."""
    import os
    for name in list(os.environ):
        if name.startswith("EDGEREG_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    """Provide a FixedEpochClock at BASE_EPOCH."""
    return make_clock()


@pytest.fixture
def registry(clock):
    """Provide an empty in-memory registry driven by the fixed clock."""
    return make_registry(clock=clock)


@pytest.fixture
def populated_registry(clock):
    """Provide a registry holding dev-1 .. dev-5."""
    return make_registry([f"dev-{i}" for i in range(1, 6)], clock=clock)


@pytest.fixture
def gateway(populated_registry):
    """Provide a gateway over the populated registry with an in-memory spent set."""
    return make_gateway(populated_registry)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
