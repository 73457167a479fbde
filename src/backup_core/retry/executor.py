"""Bounded retry for remote-facing operations.

A single RetryExecutor class is used for storing, listing and deleting
packages and for sending notifications. Backends and channels never loop on
their own.
"""

import time
from typing import Callable, Optional, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from backup_core.config import RetryPolicy
from backup_core.exceptions import RetryExhaustedError
from backup_core.logger import Logger, create_logger

from .cancel import CancelToken
from .outcome import FatalFailure, Ok, Outcome, TransientFailure, attempt

T = TypeVar("T")


def _is_transient(outcome: Outcome) -> bool:
    return isinstance(outcome, TransientFailure)


class RetryExecutor:
    """Run an operation, retrying transient failures up to ``max_retries`` times.

    Fatal failures propagate on the first attempt with no wait. After
    ``max_retries`` retries the last transient error is raised wrapped in a
    RetryExhaustedError, so an operation is attempted at most
    ``max_retries + 1`` times.

    Example:
        executor = RetryExecutor(RetryPolicy(max_retries=3, retry_wait=5))
        packages = executor.execute(target.list, description="list local")
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        logger: Optional[Logger] = None,
        cancel_token: Optional[CancelToken] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the executor.

        Args:
            policy: max_retries / retry_wait (defaults: 10 retries, 30 seconds)
            logger: Log sink for retry attempts
            cancel_token: Optional job-level cancellation signal; when set the
                wait happens on the token so a cancel interrupts it
            sleep: Wait function used when no cancel token is given
        """
        self.policy = policy or RetryPolicy()
        self.logger = logger or create_logger(name="backup-core.retry")
        self.cancel_token = cancel_token
        self._sleep = sleep

    @property
    def max_retries(self) -> int:
        return self.policy.max_retries

    @property
    def retry_wait(self) -> float:
        return self.policy.retry_wait

    def execute(self, operation: Callable[[], T], description: str = "operation") -> T:
        """Run a zero-argument callable that may raise."""
        return self.run(lambda: attempt(operation), description=description)

    def run(self, step: Callable[[], Outcome], description: str = "operation"):
        """Drive ``step`` (which returns an Outcome) until it succeeds or gives up.

        Raises:
            FatalError (or any non-transient error): immediately, unchanged
            RetryExhaustedError: transient failures exceeded max_retries
            OperationCancelledError: the cancel token fired between attempts
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_fixed(self.retry_wait),
            retry=retry_if_result(_is_transient),
            sleep=lambda seconds: self._wait(seconds, description),
            before_sleep=lambda state: self._log_retry(state, description),
            retry_error_callback=lambda state: self._give_up(state, description),
        )

        def _attempt() -> Outcome:
            self._check_cancelled(description)
            return step()

        outcome = retrying(_attempt)

        if isinstance(outcome, FatalFailure):
            raise outcome.error
        assert isinstance(outcome, Ok)
        return outcome.value

    def _log_retry(self, state: RetryCallState, description: str) -> None:
        outcome = state.outcome.result() if state.outcome else None
        self.logger.info(
            f"Retry #{state.attempt_number} of {self.max_retries}.",
            operation=description,
            error=str(getattr(outcome, "error", "")),
        )

    def _give_up(self, state: RetryCallState, description: str) -> Outcome:
        outcome = state.outcome.result() if state.outcome else None
        assert isinstance(outcome, TransientFailure)
        attempts = state.attempt_number
        raise RetryExhaustedError.wrap(
            outcome.error,
            f"{description} failed after {attempts} attempt(s)",
            details={
                "attempts": attempts,
                "max_retries": self.max_retries,
                "operation": description,
            },
        )

    def _check_cancelled(self, description: str) -> None:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled(description)

    def _wait(self, seconds: float, description: str) -> None:
        self._check_cancelled(description)
        if seconds <= 0:
            return
        if self.cancel_token is not None:
            self.cancel_token.wait(seconds)
        else:
            self._sleep(seconds)
