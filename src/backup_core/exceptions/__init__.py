"""Common exceptions for backup-core.

All exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

Usage:
    from backup_core.exceptions import (
        BackupError,
        TransientError,
        FatalError,
        StoreError,
        CycleError,
    )
"""

from backup_core.exceptions.base import (
    BackupError,
    BuildError,
    ConfigurationError,
    CycleError,
    DeleteError,
    FatalError,
    ListError,
    NotifyError,
    OperationCancelledError,
    OperationError,
    RetryExhaustedError,
    StoreError,
    TransientError,
)

__all__ = [
    # Base exceptions
    "BackupError",
    "ConfigurationError",
    "BuildError",
    # Operation kinds
    "OperationError",
    "TransientError",
    "FatalError",
    "RetryExhaustedError",
    "OperationCancelledError",
    # Operation failures
    "StoreError",
    "ListError",
    "DeleteError",
    "CycleError",
    "NotifyError",
]
