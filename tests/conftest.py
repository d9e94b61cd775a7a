"""
Pytest configuration for the layerconf test suite.

This conftest.py provides:
- Machine-mode logging (suppresses console output)
- Configuration fixtures (in-memory and on-disk)
- Marker registration
"""

import os

import pytest

from layerconf.cli.config import CLIConfig
from layerconf.logging_config import reset_logging, setup_logging
from layerconf.store import SQLiteConfiguration
from layerconf.store.config import MEMORY_LOCATION


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

def pytest_configure(config):
    os.environ.setdefault("LAYERCONF_MACHINE_MODE", "1")
    os.environ.pop("LAYERCONF_HUMAN_MODE", None)

    config.addinivalue_line("markers", "codec: value kinds and storage representation")
    config.addinivalue_line("markers", "resolver: host-then-default resolution and mutation")
    config.addinivalue_line("markers", "cursor: value iterators")
    config.addinivalue_line("markers", "tags: host layer snapshots")
    config.addinivalue_line("markers", "dump: SQL script export, import and merge")
    config.addinivalue_line("markers", "lifecycle: load and teardown")
    config.addinivalue_line("markers", "concurrency: locking and transactions")
    config.addinivalue_line("markers", "cli: command line interface")


# ============================================================================
# LOGGING FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def setup_test_logging():
    """
    Machine mode by default - suppress console logs for clean test output.
    """
    reset_logging()
    setup_logging(level="DEBUG", suppress_console=True, enable_file_logging=False)


@pytest.fixture(autouse=True)
def reset_cli_mode():
    """Commands invoked with --human must not leak human mode into other tests."""
    yield
    CLIConfig.reset()


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def mem_config():
    """Configuration with in-memory host and default databases."""
    config = SQLiteConfiguration()
    config.load(MEMORY_LOCATION, MEMORY_LOCATION)
    yield config
    config.close()


@pytest.fixture
def disk_config(tmp_path):
    """Configuration with host.db and default.db in a temporary directory."""
    config = SQLiteConfiguration(tmp_path)
    config.load("host.db", "default.db")
    yield config
    config.close()


@pytest.fixture
def layered(mem_config):
    """
    Host {"/a": 5}, defaults {"/a": 1, "/b": "x"}.
    """
    mem_config.set_default_int("/a", 1)
    mem_config.set_default_string("/b", "x")
    mem_config.set_int("/a", 5)
    return mem_config
