"""Explicit results for a single attempt of a remote operation.

``attempt`` is the only place where exceptions are inspected to decide
whether a failure is retryable; the executor works on outcomes.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from backup_core.exceptions import FatalError, TransientError

T = TypeVar("T")

# OSError subclasses that point at configuration, not at a flaky remote
_NON_RECOVERABLE_OS_ERRORS = (
    PermissionError,
    FileNotFoundError,
    NotADirectoryError,
    IsADirectoryError,
)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """The operation succeeded."""

    value: T


@dataclass(frozen=True)
class TransientFailure:
    """The operation failed in a way that may succeed on retry."""

    error: BaseException


@dataclass(frozen=True)
class FatalFailure:
    """The operation failed and must not be retried."""

    error: BaseException


Outcome = Union[Ok[Any], TransientFailure, FatalFailure]


def is_transient(error: BaseException) -> bool:
    """Classify an exception raised by a backend or channel.

    Transient: TransientError, timeouts, connection failures and other
    recoverable I/O errors. Everything else, including FatalError and
    programmer errors, is fatal.
    """
    if isinstance(error, FatalError):
        return False
    if isinstance(error, TransientError):
        return True
    if isinstance(error, _NON_RECOVERABLE_OS_ERRORS):
        return False
    return isinstance(error, (TimeoutError, ConnectionError, OSError))


def classify_error(error: BaseException) -> Union[TransientFailure, FatalFailure]:
    if is_transient(error):
        return TransientFailure(error)
    return FatalFailure(error)


def attempt(operation: Callable[[], T]) -> Outcome:
    """Run ``operation`` once and describe what happened."""
    try:
        return Ok(operation())
    except Exception as e:
        return classify_error(e)
