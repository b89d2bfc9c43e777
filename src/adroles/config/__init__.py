"""Application configuration helpers."""

from __future__ import annotations

from .directory import DirectoryConfig, get_directory_config
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)
from .sync import SyncConfig, get_sync_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "DirectoryConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_database_uri",
    "get_directory_config",
    "get_storage_config",
    "get_sync_config",
    "require_env_vars",
]
