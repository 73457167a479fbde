"""Notification channels.

A channel delivers one rendered message. It raises TransientError for
failures worth retrying and FatalError for the rest; retrying is the
Notifier's job.
"""

from typing import Dict, Optional, Protocol, runtime_checkable

import httpx

from backup_core.exceptions import ConfigurationError, FatalError, TransientError
from backup_core.logger import LEVELS, Logger


@runtime_checkable
class NotificationChannel(Protocol):
    """Delivers a rendered notification message."""

    def send(self, text: str) -> None:
        ...


class LogChannel:
    """Writes notifications to a logger. Useful for local runs and tests."""

    def __init__(self, logger: Logger, level: str = "info") -> None:
        if level.lower() not in LEVELS:
            raise ConfigurationError(
                f"Unknown log level {level!r} for LogChannel",
                details={"level": level},
            )
        self.logger = logger
        self.level = level.lower()

    def send(self, text: str) -> None:
        self.logger.log(self.level, text, channel="log")

    def __repr__(self) -> str:
        return f"<LogChannel level={self.level!r}>"


class WebhookChannel:
    """POSTs the message as JSON to an HTTP endpoint.

    Timeouts, transport errors, HTTP 429 and 5xx responses are transient;
    any other 4xx response is fatal.

    Example:
        channel = WebhookChannel("https://hooks.example.com/T000/B000")
        channel.send("[Backup Succeeded] Nightly database (db_backup)")
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.Client] = None,
        payload_key: str = "text",
    ) -> None:
        """
        Args:
            url: Endpoint to POST to
            timeout: Request timeout in seconds
            headers: Extra request headers
            client: httpx client to use (a module-level request is made
                otherwise)
            payload_key: JSON field that carries the message
        """
        self.url = url
        self.timeout = timeout
        self.headers = headers or {}
        self.client = client
        self.payload_key = payload_key

    def send(self, text: str) -> None:
        payload = {self.payload_key: text}
        try:
            if self.client is not None:
                response = self.client.post(
                    self.url, json=payload, headers=self.headers, timeout=self.timeout
                )
            else:
                response = httpx.post(
                    self.url, json=payload, headers=self.headers, timeout=self.timeout
                )
        except httpx.TimeoutException as e:
            raise TransientError(
                f"Webhook request timed out: {e}",
                details={"url": self.url},
            ) from e
        except httpx.TransportError as e:
            raise TransientError(
                f"Webhook request failed: {e}",
                details={"url": self.url},
            ) from e

        status = response.status_code
        if status == 429 or status >= 500:
            raise TransientError(
                f"Webhook returned HTTP {status}",
                details={"url": self.url, "status_code": status},
            )
        if status >= 400:
            raise FatalError(
                f"Webhook rejected the notification with HTTP {status}",
                details={"url": self.url, "status_code": status, "body": response.text[:200]},
            )

    def __repr__(self) -> str:
        return f"<WebhookChannel url={self.url!r}>"
