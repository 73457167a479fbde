"""Factory functions for creating storage targets.

Provides convenient factory functions to create targets from a backend
name or from a StorageConfig.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional, Union

from backup_core.config import StorageConfig
from backup_core.exceptions import ConfigurationError
from backup_core.logger import Logger

from .base import StorageTarget
from .local import LocalStorage
from .memory import MemoryStorage

BackendType = Literal["memory", "local"]


def create_storage(
    backend: BackendType,
    *,
    path: Optional[Union[str, Path]] = None,
    name: Optional[str] = None,
    keep: Optional[int] = None,
    logger: Optional[Logger] = None,
) -> StorageTarget:
    """Create a storage target based on backend type.

    Args:
        backend: Type of backend - "memory" or "local"
        path: Namespace root for the local backend (required for "local")
        name: Name used in logs
        keep: Retention count; 0 or None disables cycling
        logger: Optional logger instance

    Raises:
        ConfigurationError: If required options are missing or the backend
            is unknown

    Example:
        storage = create_storage("local", path="/mnt/backups/db", keep=7)
    """
    if backend == "memory":
        return MemoryStorage(name=name, keep=keep, logger=logger)

    elif backend == "local":
        if path is None:
            raise ConfigurationError("'path' is required for local backend")
        return LocalStorage(path, name=name, keep=keep, logger=logger)

    else:
        raise ConfigurationError(f"Unknown storage backend: {backend}")


def storage_from_config(config: StorageConfig, logger: Optional[Logger] = None) -> StorageTarget:
    return create_storage(
        config.backend,
        path=config.path,
        name=config.name,
        keep=config.retention,
        logger=logger,
    )
