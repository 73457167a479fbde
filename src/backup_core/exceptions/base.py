"""Base exception classes for backup-core.

All backup-core exceptions include structured error information:
- code: Machine-readable error identifier
- message: Human-readable error description
- details: Additional context for debugging/recovery

The hierarchy separates *kinds* of failure (transient vs. fatal) from the
*operation* that failed (store, cycle, notify). Backends raise kinds; the
callers that drive them through a RetryExecutor raise operation errors.
"""

from typing import Any, Dict, Optional


class BackupError(Exception):
    """Base exception for all backup-core errors.

    Attributes:
        code: Machine-readable error code (e.g., "STORE_FAILED")
        message: Human-readable error message
        details: Optional additional context for debugging/recovery
    """

    default_code = "BACKUP_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize error with structured information.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (defaults to the class code)
            details: Optional additional context
        """
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error string."""
        if self.details:
            return f"{self.code}: {self.message} (details: {self.details})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization.

        Returns:
            Dictionary with code, message, and details keys.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    @classmethod
    def wrap(
        cls,
        error: BaseException,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "BackupError":
        """Create an error of this class describing ``error`` with context.

        The wrapped error is kept as ``__cause__`` and its text is recorded
        under ``details["reason"]``.
        """
        merged = {"reason": str(error)}
        merged.update(details or {})
        wrapped = cls(message, details=merged)
        wrapped.__cause__ = error
        return wrapped


class ConfigurationError(BackupError):
    """Raised when job, storage or notifier configuration is invalid."""

    default_code = "CONFIGURATION_ERROR"


class BuildError(BackupError):
    """Raised when the package for a job could not be built.

    Fatal to the job, not to the process.
    """

    default_code = "BUILD_FAILED"


class OperationError(BackupError):
    """Base for failures of remote-facing operations."""

    default_code = "OPERATION_FAILED"


class TransientError(OperationError):
    """A retryable failure (network hiccup, timeout, busy remote)."""

    default_code = "TRANSIENT_ERROR"


class FatalError(OperationError):
    """A failure that must never be retried (auth, config, programmer error)."""

    default_code = "FATAL_ERROR"


class RetryExhaustedError(FatalError):
    """Raised when an operation kept failing transiently past max_retries.

    ``details`` carries ``attempts`` and ``max_retries``; the last transient
    error is available as ``__cause__``.
    """

    default_code = "RETRY_EXHAUSTED"


class OperationCancelledError(FatalError):
    """Raised when a job-level cancel signal is observed."""

    default_code = "CANCELLED"


class StoreError(OperationError):
    """Raised when a package could not be stored on a target."""

    default_code = "STORE_FAILED"


class ListError(OperationError):
    """Raised when packages on a target could not be listed."""

    default_code = "LIST_FAILED"


class DeleteError(OperationError):
    """Raised when a package could not be deleted from a target."""

    default_code = "DELETE_FAILED"


class CycleError(OperationError):
    """Raised when retention pruning failed after a successful store.

    The new package is safely stored; only future retention is degraded.
    ``removed`` holds the packages that were deleted before the failure.
    """

    default_code = "CYCLE_FAILED"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        removed: Optional[list] = None,
    ):
        super().__init__(message, code=code, details=details)
        self.removed = list(removed or [])


class NotifyError(OperationError):
    """Raised (and logged, never propagated) when a notifier fails."""

    default_code = "NOTIFY_FAILED"
