"""Tests for backup_core.retry module"""

import threading
from unittest.mock import Mock

import pytest
from tenacity import RetryError

from backup_core.config import RetryPolicy
from backup_core.exceptions import (
    FatalError,
    OperationCancelledError,
    RetryExhaustedError,
    TransientError,
)
from backup_core.retry import (
    CancelToken,
    FatalFailure,
    Ok,
    RetryExecutor,
    TransientFailure,
    attempt,
    classify_error,
    is_transient,
)


class Flaky:
    """Callable failing ``failures`` times with ``error`` before succeeding."""

    def __init__(self, failures, error=None, result="done"):
        self.failures = failures
        self.error = error or TransientError("remote busy")
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


class TestClassification:
    """Tests for attempt outcome classification"""

    @pytest.mark.parametrize("error", [
        TransientError("busy"),
        TimeoutError("timed out"),
        ConnectionResetError("reset"),
        OSError("broken pipe"),
    ])
    def test_transient(self, error):
        """Test retryable errors"""
        assert is_transient(error)
        assert isinstance(classify_error(error), TransientFailure)

    @pytest.mark.parametrize("error", [
        FatalError("auth"),
        RetryExhaustedError("gave up"),
        PermissionError("denied"),
        FileNotFoundError("missing"),
        ValueError("bug"),
        KeyError("bug"),
    ])
    def test_fatal(self, error):
        """Test errors that must not be retried"""
        assert not is_transient(error)
        assert isinstance(classify_error(error), FatalFailure)

    def test_attempt_ok(self):
        """Test attempt wraps the return value"""
        assert attempt(lambda: 42) == Ok(42)

    def test_attempt_keeps_error(self):
        """Test attempt carries the raised error"""
        error = TransientError("busy")

        def op():
            raise error

        outcome = attempt(op)
        assert isinstance(outcome, TransientFailure)
        assert outcome.error is error


class TestRetryExecutor:
    """Tests for RetryExecutor"""

    def test_success_first_try(self, logger):
        """Test no retries and no waits on success"""
        sleep = Mock()
        executor = RetryExecutor(RetryPolicy(max_retries=3, retry_wait=5), logger, sleep=sleep)

        assert executor.execute(lambda: "ok") == "ok"
        sleep.assert_not_called()
        assert logger.records == []

    @pytest.mark.parametrize("failures", [1, 2, 3])
    def test_recovers_within_budget(self, logger, failures):
        """Test r transient failures with r <= max_retries still succeed"""
        sleep = Mock()
        op = Flaky(failures)
        executor = RetryExecutor(RetryPolicy(max_retries=3, retry_wait=5), logger, sleep=sleep)

        assert executor.execute(op) == "done"
        assert op.calls == failures + 1
        assert sleep.call_count == failures
        sleep.assert_called_with(5)

    def test_exhausted(self, logger):
        """Test max_retries + 1 transient failures raise RetryExhaustedError"""
        sleep = Mock()
        op = Flaky(failures=100)
        executor = RetryExecutor(RetryPolicy(max_retries=2, retry_wait=1), logger, sleep=sleep)

        with pytest.raises(RetryExhaustedError) as exc_info:
            executor.execute(op, description="store pkg on nas")

        assert op.calls == 3
        assert sleep.call_count == 2
        error = exc_info.value
        assert error.details["attempts"] == 3
        assert error.details["max_retries"] == 2
        assert error.details["operation"] == "store pkg on nas"
        assert isinstance(error.__cause__, TransientError)

    def test_zero_retries(self, logger):
        """Test max_retries=0 means exactly one attempt"""
        op = Flaky(failures=1)
        executor = RetryExecutor(RetryPolicy(max_retries=0, retry_wait=0), logger)

        with pytest.raises(RetryExhaustedError):
            executor.execute(op)
        assert op.calls == 1

    def test_fatal_is_not_retried(self, logger):
        """Test fatal errors propagate unchanged after one attempt, no wait"""
        sleep = Mock()
        error = FatalError("bad credentials")
        op = Flaky(failures=5, error=error)
        executor = RetryExecutor(RetryPolicy(max_retries=5, retry_wait=5), logger, sleep=sleep)

        with pytest.raises(FatalError) as exc_info:
            executor.execute(op)

        assert exc_info.value is error
        assert op.calls == 1
        sleep.assert_not_called()

    def test_programmer_error_is_fatal(self, logger):
        """Test non-operational exceptions are not retried"""
        op = Flaky(failures=1, error=TypeError("oops"))
        executor = RetryExecutor(RetryPolicy(max_retries=5, retry_wait=0), logger)

        with pytest.raises(TypeError):
            executor.execute(op)
        assert op.calls == 1

    def test_logs_each_retry(self, logger):
        """Test each retry is logged as 'Retry #n of max.'"""
        executor = RetryExecutor(RetryPolicy(max_retries=3, retry_wait=0), logger)
        executor.execute(Flaky(failures=2), description="notify")

        assert logger.messages("INFO") == ["Retry #1 of 3.", "Retry #2 of 3."]
        assert logger.records[0].fields["operation"] == "notify"

    def test_run_drives_outcomes(self, logger):
        """Test run() with a step returning outcomes directly"""
        outcomes = iter([TransientFailure(TimeoutError()), Ok("stored")])
        executor = RetryExecutor(RetryPolicy(max_retries=1, retry_wait=0), logger)

        assert executor.run(lambda: next(outcomes)) == "stored"

    def test_run_exhausted_raises_library_error(self, logger):
        """Test giving up raises RetryExhaustedError, never tenacity's RetryError"""
        sleep = Mock()
        last = TimeoutError("read timed out")
        executor = RetryExecutor(RetryPolicy(max_retries=2, retry_wait=7), logger, sleep=sleep)

        with pytest.raises(RetryExhaustedError) as exc_info:
            executor.run(lambda: TransientFailure(last), description="list nas")

        assert not isinstance(exc_info.value, RetryError)
        assert exc_info.value.__cause__ is last
        assert exc_info.value.details["attempts"] == 3
        assert [c.args for c in sleep.call_args_list] == [(7,), (7,)]
        assert logger.messages("INFO") == ["Retry #1 of 2.", "Retry #2 of 2."]


class TestCancellation:
    """Tests for CancelToken integration"""

    def test_token_state(self):
        """Test cancel sets the flag and keeps the first reason"""
        token = CancelToken()
        assert not token.cancelled
        token.cancel("timeout")
        token.cancel("second")
        assert token.cancelled
        assert token.reason == "timeout"

    def test_raise_if_cancelled(self):
        """Test raise_if_cancelled raises OperationCancelledError"""
        token = CancelToken()
        token.raise_if_cancelled("store")
        token.cancel("shutdown")
        with pytest.raises(OperationCancelledError, match="store: shutdown"):
            token.raise_if_cancelled("store")

    def test_cancelled_before_start(self, logger):
        """Test nothing runs once cancelled"""
        token = CancelToken()
        token.cancel()
        op = Flaky(failures=0)
        executor = RetryExecutor(RetryPolicy(), logger, cancel_token=token)

        with pytest.raises(OperationCancelledError):
            executor.execute(op)
        assert op.calls == 0

    def test_cancel_stops_retry_loop(self, logger):
        """Test a cancel during the operation stops further attempts"""
        token = CancelToken()
        executor = RetryExecutor(RetryPolicy(max_retries=10, retry_wait=0), logger, cancel_token=token)
        calls = []

        def op():
            calls.append(1)
            token.cancel("job timeout")
            raise TransientError("busy")

        with pytest.raises(OperationCancelledError):
            executor.execute(op)
        assert len(calls) == 1

    def test_cancel_interrupts_wait(self, logger):
        """Test a cancel wakes a long retry wait immediately"""
        token = CancelToken()
        executor = RetryExecutor(RetryPolicy(max_retries=1, retry_wait=60), logger, cancel_token=token)
        timer = threading.Timer(0.05, token.cancel, args=("shutdown",))
        timer.start()
        try:
            with pytest.raises(OperationCancelledError):
                executor.execute(Flaky(failures=5))
        finally:
            timer.cancel()
