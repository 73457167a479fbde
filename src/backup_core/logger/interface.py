"""
Logger interface for backup-core.

Every component (executor, storage target, cycler, notifier, orchestrator)
receives a Logger explicitly instead of reaching for module state. Keyword
arguments carry the structured context of a backup run: ``trigger``,
``storage``, ``package_id``, ``operation`` and so on.
"""

from abc import ABC, abstractmethod
from typing import Any

LEVELS = ("debug", "info", "warning", "error", "critical")


class Logger(ABC):
    """Log sink shared by the backup engine.

    Implementations provide one method per level. ``log`` dispatches by
    level name for callers that pick the level from configuration, such as
    a LogChannel.

    Example:
        logger.info("Cycling Started...", storage="local", keep=7)
        logger.log("warning", "Backup Warning", trigger="db_backup")
    """

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message.

        Args:
            message: The message to log
            **kwargs: Run context such as trigger, storage or package_id
        """

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        """Log progress of a job: stored packages, retries, cycling."""

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a degraded outcome, e.g. a failed cycle."""

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        """Log a failed store, build or notification."""

    @abstractmethod
    def critical(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def get_session_id(self) -> str:
        """Identifier tying together every line of one logger instance."""

    def log(self, level: str, message: str, **kwargs: Any) -> None:
        """Log ``message`` at the level named ``level`` (case-insensitive).

        Raises:
            ValueError: ``level`` is not one of LEVELS
        """
        name = level.lower()
        if name not in LEVELS:
            raise ValueError(f"Unknown log level {level!r}, expected one of {', '.join(LEVELS)}")
        getattr(self, name)(message, **kwargs)
