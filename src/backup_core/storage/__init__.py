"""Storage targets for backup-core.

Provides the StorageTarget capability interface and reference backends:
- MemoryStorage - in-memory, for tests and dry runs
- LocalStorage - directories under a local or mounted path

Usage:
    from backup_core.storage import create_storage

    storage = create_storage("local", path="/mnt/backups/db", keep=7)
"""

from .base import StorageTarget
from .factory import BackendType, create_storage, storage_from_config
from .local import LocalStorage
from .memory import MemoryStorage

__all__ = [
    "StorageTarget",
    "MemoryStorage",
    "LocalStorage",
    "BackendType",
    "create_storage",
    "storage_from_config",
]
