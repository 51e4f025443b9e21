"""Centralized pytest fixtures and configuration.

This module provides shared fixtures for all tests, including:
- Database configuration with isolated temp directories
- A fake title generator to avoid calling an LLM
- Pre-populated whitelist fixtures for resolver tests
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from link_overlay.config import Config
from link_overlay.db import init_db

from helpers import FakeTitleGenerator

if TYPE_CHECKING:
    from collections.abc import Generator


# -----------------------------------------------------------------------------
# Fake Title Generator
# -----------------------------------------------------------------------------


@pytest.fixture
def fake_generator() -> FakeTitleGenerator:
    """Create a fake title generator instance."""
    return FakeTitleGenerator()


# -----------------------------------------------------------------------------
# Database Configuration Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    The directory is automatically cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config(temp_dir: Path) -> Generator[Config, None, None]:
    """Create a temporary configuration with an initialized database.

    This is the standard fixture for tests that need database access.
    """
    config = Config(db_path=temp_dir / "test.db")
    init_db(config)
    yield config


@pytest.fixture
def global_config(temp_config: Config, monkeypatch: pytest.MonkeyPatch) -> Config:
    """Install temp_config as the global configuration.

    Use this for code paths that call get_config() themselves, such as the
    CLI.
    """
    monkeypatch.setattr("link_overlay.config._config", temp_config)
    return temp_config


# -----------------------------------------------------------------------------
# Pre-populated Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def ml_whitelist(temp_config: Config) -> dict[str, str]:
    """Create a small machine-learning whitelist and return term IDs.

    Terms:
    - "Machine Learning" (alias "ML") -> "Machine Learning"
    - "Deep Learning" -> "Deep Learning"
    - "Learning" -> "Learning (education)"
    - "Neural Networks" (alias "NN") -> "Artificial Neural Network"
    """
    from link_overlay import whitelist

    ml = whitelist.create_whitelist_term("Machine Learning", "Machine Learning", config=temp_config)
    whitelist.add_aliases(ml.id, ["ML"], config=temp_config)

    dl = whitelist.create_whitelist_term("Deep Learning", "Deep Learning", config=temp_config)
    learning = whitelist.create_whitelist_term(
        "Learning", "Learning (education)", config=temp_config
    )

    nn = whitelist.create_whitelist_term(
        "Neural Networks", "Artificial Neural Network", config=temp_config
    )
    whitelist.add_aliases(nn.id, ["NN"], config=temp_config)

    return {
        "machine_learning": ml.id,
        "deep_learning": dl.id,
        "learning": learning.id,
        "neural_networks": nn.id,
    }
