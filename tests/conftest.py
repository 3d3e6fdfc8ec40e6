"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add the source directory to the Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


@pytest.fixture
def rng():
    """A seeded source of randomness, for reproducible tests."""
    from snnake.rng import RandomSource
    return RandomSource(42)


@pytest.fixture
def storage_root(tmp_path, monkeypatch):
    """
    Temporary root directory for optimizer files.
    SNNAKE_HOME points to it too, so nothing is ever written to the home directory.
    """
    root = tmp_path / "snnake"
    monkeypatch.setenv("SNNAKE_HOME", str(root))
    return root


@pytest.fixture
def genetics_config():
    """Default genetic parameters, with a fixed seed."""
    from snnake.run.config import Config
    config = Config()
    config.seed = 42
    return config
