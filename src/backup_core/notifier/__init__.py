"""Notifiers for backup-core.

Usage:
    from backup_core.notifier import Notifier, WebhookChannel

    notifier = Notifier(model, WebhookChannel("https://hooks.example.com/abc"))
    notifier.perform(result)
"""

from .base import STATUS_DATA, Notifier, default_message, status_data_for
from .channels import LogChannel, NotificationChannel, WebhookChannel

__all__ = [
    "Notifier",
    "NotificationChannel",
    "LogChannel",
    "WebhookChannel",
    "STATUS_DATA",
    "status_data_for",
    "default_message",
]
