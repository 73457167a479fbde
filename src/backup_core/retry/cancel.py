"""Job-level cancellation signal."""

import threading
from typing import Optional

from backup_core.exceptions import OperationCancelledError


class CancelToken:
    """Cancellation flag shared by everything running for one job.

    The retry loop checks it before sleeping and before re-invoking an
    operation, and waits on it so a cancel cuts a retry wait short. The
    orchestrator checks it between targets. In-flight backend calls are
    never interrupted.

    Example:
        token = CancelToken()
        threading.Timer(3600, token.cancel, args=("job timeout",)).start()
        JobOrchestrator(..., cancel_token=token).perform()
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
        self._event.set()

    def wait(self, seconds: float) -> bool:
        """Wait up to ``seconds``; returns True if cancelled meanwhile."""
        return self._event.wait(seconds)

    def raise_if_cancelled(self, context: str = "") -> None:
        if self.cancelled:
            message = f"{context}: {self._reason}" if context else str(self._reason)
            raise OperationCancelledError(message, details={"reason": self._reason})
