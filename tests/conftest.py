"""
FlatFile Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from pathlib import Path

import pytest

from flatfile.engine.config import FlatFileConfig, LoggingConfig, StorageConfig
from flatfile.resources.service import FileResourceService
from flatfile.storage.local import LocalBlobStore
from flatfile.storage.memory import InMemoryBlobStore


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset the config singleton and the log queue between tests."""
    import flatfile.engine.config as cfg_mod
    import flatfile.engine.logging as log_mod

    monkeypatch.delenv("FLATFILE_STORAGE_ROOT", raising=False)
    monkeypatch.delenv("FLATFILE_CONFIG", raising=False)
    cfg_mod._config = None
    yield
    cfg_mod._config = None
    log_mod.shutdown_logging()


# ---------------------------------------------------------------------------
# Stores and services
# ---------------------------------------------------------------------------

@pytest.fixture
def storage_root(tmp_path) -> Path:
    root = tmp_path / "storage" / "app"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def local_store(storage_root) -> LocalBlobStore:
    return LocalBlobStore(storage_root)


@pytest.fixture
def memory_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def service(memory_store) -> FileResourceService:
    return FileResourceService(memory_store)


# ---------------------------------------------------------------------------
# Config / HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path, storage_root) -> FlatFileConfig:
    return FlatFileConfig(
        storage=StorageConfig(root=str(storage_root)),
        logging=LoggingConfig(directory=str(tmp_path / "logs")),
    )


@pytest.fixture
def client(config, local_store):
    """TestClient over a local store in a temp directory, no file logging."""
    from fastapi.testclient import TestClient
    from flatfile.api.app import create_app

    return TestClient(create_app(config, store=local_store, file_logging=False))


@pytest.fixture
def project_root(tmp_path) -> Path:
    """A directory with a flatfile.yaml using relative paths."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "flatfile.yaml").write_text(
        "app:\n"
        "  name: Test FlatFile\n"
        "  environment: dev\n"
        "server:\n"
        "  port: 9200\n"
        "storage:\n"
        "  root: data\n"
        "logging:\n"
        "  level: debug\n"
        "  directory: logs\n",
        encoding="utf-8",
    )
    (root / "data").mkdir()
    return root
