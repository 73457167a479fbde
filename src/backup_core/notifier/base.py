"""Notifier: report a finished job through a notification channel.

A notifier decides from the job's exit status whether anything should be
sent, renders the message and hands it to its channel through a
RetryExecutor. ``perform`` is called after every job, whatever its outcome,
and never raises.
"""

import time
from typing import Any, Callable, Dict, Optional, Union

from backup_core.config import NotifierConfig
from backup_core.exceptions import NotifyError
from backup_core.logger import Logger, create_logger
from backup_core.model import JobStatus, Model
from backup_core.retry import CancelToken, RetryExecutor

from .channels import NotificationChannel

# Display text for people reading the channel; templates should branch on "key"
STATUS_DATA: Dict[JobStatus, Dict[str, str]] = {
    JobStatus.SUCCESS: {"message": "Backup Succeeded", "key": "success"},
    JobStatus.WARNING: {"message": "Backup Warning", "key": "warning"},
    JobStatus.FAILURE: {"message": "Backup Failed", "key": "failure"},
}


def status_data_for(status: JobStatus) -> Dict[str, str]:
    return dict(STATUS_DATA[JobStatus(status)])


def default_message(model: Model, data: Dict[str, Any]) -> str:
    """Default template: ``[Backup Succeeded] Nightly database (db_backup)``."""
    return f"[{data['status']['message']}] {model.label} ({model.trigger})"


class Notifier:
    """Sends the final job status over one channel.

    Which outcomes are reported follows the config flags:

    * exit status 0 is reported when ``on_success`` is set
    * exit status 1 when ``on_success`` or ``on_warning`` is set
    * anything else when ``on_failure`` is set

    Example:
        notifier = Notifier(model, WebhookChannel(url), NotifierConfig(on_success=False))
        notifier.perform(result)
    """

    def __init__(
        self,
        model: Model,
        channel: NotificationChannel,
        config: Optional[NotifierConfig] = None,
        logger: Optional[Logger] = None,
        name: Optional[str] = None,
        cancel_token: Optional[CancelToken] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.model = model
        self.channel = channel
        self.config = config or NotifierConfig()
        self.logger = logger or create_logger(name="backup-core.notifier")
        self.name = name or channel.__class__.__name__
        self.executor = RetryExecutor(
            self.config.retry_policy,
            logger=self.logger,
            cancel_token=cancel_token,
            sleep=sleep,
        )

    def status_for(self, exit_status: int) -> Optional[JobStatus]:
        """Status to report for ``exit_status``, or None when it is filtered out."""
        config = self.config
        if exit_status == 0:
            return JobStatus.SUCCESS if config.on_success else None
        if exit_status == 1:
            return JobStatus.WARNING if config.on_success or config.on_warning else None
        return JobStatus.FAILURE if config.on_failure else None

    def render(self, status: JobStatus) -> str:
        template = self.config.message or default_message
        return template(self.model, {"status": status_data_for(status)})

    def perform(self, result: Union[Any, int]) -> Optional[JobStatus]:
        """Notify about a finished job.

        Args:
            result: A JobResult (anything with ``exit_status``) or a bare
                exit status

        Returns:
            The status that was sent, or None when nothing was sent
        """
        try:
            exit_status = int(getattr(result, "exit_status", result))
            status = self.status_for(exit_status)
            if status is None:
                return None

            text = self.render(status)
            self.logger.info(f"Sending notification using {self.name}...")
            self.executor.execute(
                lambda: self.channel.send(text),
                description=f"notify {self.name}",
            )
            return status
        except Exception as e:
            error = NotifyError.wrap(e, f"{self.name} Failed!", details={"notifier": self.name})
            self.logger.error(str(error), notifier=self.name, error_type=type(e).__name__)
            return None

    def __repr__(self) -> str:
        return f"<Notifier name={self.name!r} channel={self.channel!r}>"
