"""Backup Core - package lifecycle, retry and retention engine.

This package provides the engine that ships backup packages to storage
targets:
- logger: Flexible logging with session tracking and JSON support
- config: Typed job, storage, retry and notifier settings
- exceptions: Structured exception hierarchy (transient vs. fatal)
- retry: Bounded retry executor with cancellation
- storage: Storage target interface and reference backends
- notifier: Status notifications over pluggable channels
- backup: Retention cycling and job orchestration
"""

__version__ = "1.0.0"

# Re-export commonly used items for convenience
from backup_core.logger import (
    Logger,
    DefaultLogger,
    StructuredLogger,
    MemoryLogger,
    get_logger,
    create_logger,
)

from backup_core.config import (
    RetryPolicy,
    NotifierConfig,
    StorageConfig,
    JobConfig,
)

from backup_core.exceptions import (
    BackupError,
    ConfigurationError,
    BuildError,
    TransientError,
    FatalError,
    RetryExhaustedError,
    OperationCancelledError,
    StoreError,
    CycleError,
    NotifyError,
)

from backup_core.model import JobStatus, Model

from backup_core.package import (
    Package,
    PackageBuilder,
    PackageClock,
    PackageStatus,
    StaticPackageBuilder,
)

from backup_core.retry import CancelToken, RetryExecutor

from backup_core.storage import (
    StorageTarget,
    MemoryStorage,
    LocalStorage,
    create_storage,
)

from backup_core.notifier import (
    Notifier,
    NotificationChannel,
    LogChannel,
    WebhookChannel,
)

from backup_core.backup import (
    Cycler,
    JobOrchestrator,
    JobResult,
    TargetResult,
)

__all__ = [
    "__version__",
    # Logger
    "Logger",
    "DefaultLogger",
    "StructuredLogger",
    "MemoryLogger",
    "get_logger",
    "create_logger",
    # Config
    "RetryPolicy",
    "NotifierConfig",
    "StorageConfig",
    "JobConfig",
    # Exceptions
    "BackupError",
    "ConfigurationError",
    "BuildError",
    "TransientError",
    "FatalError",
    "RetryExhaustedError",
    "OperationCancelledError",
    "StoreError",
    "CycleError",
    "NotifyError",
    # Packages
    "JobStatus",
    "Model",
    "Package",
    "PackageBuilder",
    "PackageClock",
    "PackageStatus",
    "StaticPackageBuilder",
    # Retry
    "CancelToken",
    "RetryExecutor",
    # Storage
    "StorageTarget",
    "MemoryStorage",
    "LocalStorage",
    "create_storage",
    # Notifier
    "Notifier",
    "NotificationChannel",
    "LogChannel",
    "WebhookChannel",
    # Jobs
    "Cycler",
    "JobOrchestrator",
    "JobResult",
    "TargetResult",
]
