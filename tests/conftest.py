"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentcoord.config import reset_config
from agentcoord.orchestrator import Orchestrator
from agentcoord.state.store import Store


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config and AGENTCOORD_* variables out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in ("AGENTCOORD_DIR", "AGENTCOORD_PORT", "AGENTCOORD_LOG"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "coord"


@pytest.fixture
def store(data_dir: Path) -> Store:
    return Store(data_dir, lock_timeout=5.0)


@pytest.fixture
def orc(store: Store) -> Orchestrator:
    return Orchestrator(store)
