"""Configuration Module for backup-core

Example:
    from backup_core.config import JobConfig, NotifierConfig

    job_config = JobConfig.from_env(prefix="BACKUP")
    notify_config = NotifierConfig(on_success=False)
"""

from backup_core.config.env_loader import EnvLoader, parse_bool, parse_number
from backup_core.config.settings import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_WAIT,
    JobConfig,
    NotifierConfig,
    RetryPolicy,
    StorageConfig,
)

__all__ = [
    "EnvLoader",
    "parse_bool",
    "parse_number",
    "RetryPolicy",
    "NotifierConfig",
    "StorageConfig",
    "JobConfig",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_WAIT",
]
