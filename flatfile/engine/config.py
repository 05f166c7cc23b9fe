"""
FlatFile Configuration — Load and validate flatfile.yaml at startup.

Usage:
    from flatfile.engine.config import load_config, get_config
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, PrivateAttr, ValidationError, field_validator

from flatfile.engine.errors import ConfigError

CONFIG_FILENAME = "flatfile.yaml"
STORAGE_ROOT_ENV = "FLATFILE_STORAGE_ROOT"
CONFIG_PATH_ENV = "FLATFILE_CONFIG"


# ---------------------------------------------------------------------------
# Pydantic models for flatfile.yaml
# ---------------------------------------------------------------------------

class AppSection(BaseModel):
    name: str = "FlatFile API"
    environment: str = "dev"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    api_prefix: str = "/api"

    @field_validator("api_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if v and not v.startswith("/"):
            raise ValueError(f"api_prefix must start with '/', got '{v}'")
        return v.rstrip("/")


class StorageConfig(BaseModel):
    root: str = "storage/app"
    create_root: bool = True
    encoding: str = "utf-8"


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".flatfile/logs"
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown logging level '{v}'")
        return level


class FlatFileConfig(BaseModel):
    """Root model for flatfile.yaml."""
    app: AppSection = AppSection()
    server: ServerConfig = ServerConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()

    # Directory of the flatfile.yaml this config was loaded from
    _base_dir: Optional[Path] = PrivateAttr(default=None)

    def _resolve(self, value: str, base: Optional[Path]) -> Path:
        path = Path(value)
        if not path.is_absolute():
            path = (base or self._base_dir or _find_project_root()) / path
        return path

    def resolve_storage_root(self, base: Optional[Path] = None) -> Path:
        """
        Absolute storage root.

        Relative roots resolve against *base*, else the directory of the
        loaded flatfile.yaml, else the discovered project root.
        """
        return self._resolve(self.storage.root, base)

    def resolve_log_dir(self, base: Optional[Path] = None) -> Path:
        return self._resolve(self.logging.directory, base)


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[FlatFileConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for flatfile.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def load_config(config_path: Optional[str] = None) -> FlatFileConfig:
    """
    Load and validate flatfile.yaml.

    Args:
        config_path: Explicit path to flatfile.yaml. If None, uses
            $FLATFILE_CONFIG, else auto-discovers.

    Returns:
        Validated FlatFileConfig instance. Defaults when no file exists.

    Raises:
        ConfigError: The file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV)
    if not config_path:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    raw = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping", path=str(path))

    storage_override = os.environ.get(STORAGE_ROOT_ENV)
    if storage_override:
        raw["storage"] = {**(raw.get("storage") or {}), "root": storage_override}

    try:
        config = FlatFileConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}", path=str(path)) from e

    if path.exists():
        config._base_dir = path.resolve().parent
    _config = config
    return _config


def get_config() -> FlatFileConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
