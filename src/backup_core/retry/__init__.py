"""Retry module for backup-core

Usage:
    from backup_core.retry import RetryExecutor, CancelToken
    from backup_core.config import RetryPolicy

    executor = RetryExecutor(RetryPolicy(max_retries=2, retry_wait=0))
    executor.execute(lambda: channel.send("done"), description="send")
"""

from .cancel import CancelToken
from .executor import RetryExecutor
from .outcome import (
    FatalFailure,
    Ok,
    Outcome,
    TransientFailure,
    attempt,
    classify_error,
    is_transient,
)

__all__ = [
    "RetryExecutor",
    "CancelToken",
    "Ok",
    "TransientFailure",
    "FatalFailure",
    "Outcome",
    "attempt",
    "classify_error",
    "is_transient",
]
