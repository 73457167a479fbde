"""
backup-core Logger Module

Every engine component takes a ``Logger`` explicitly; when none is given it
falls back to ``create_logger`` with a component-specific name.

Usage:
    from backup_core.logger import get_logger, create_logger, MemoryLogger

    logger = get_logger("backup-core")
    logger.info("Job started", trigger="db_backup")

    # JSON lines to a file
    logger = create_logger("backup-core", json_format=True, log_file="/var/log/backup.log")

Environment Variables:
    {PREFIX}_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    {PREFIX}_LOG_FILE: Optional file path for log output
    {PREFIX}_LOG_JSON: Set to "true" for JSON output format

    Where {PREFIX} is derived from the logger name (e.g., BACKUP_CORE for "backup-core")
"""

import logging
import os
from typing import Optional

from .default_logger import DefaultLogger
from .interface import LEVELS, Logger
from .memory_logger import LogRecord, MemoryLogger
from .structured_logger import JsonFormatter, StructuredLogger, TextFormatter


def _get_env_prefix(name: str) -> str:
    """Convert logger name to environment variable prefix.

    Examples:
        "backup-core" -> "BACKUP_CORE"
        "backup-core.cycler" -> "BACKUP_CORE_CYCLER"
    """
    return name.upper().replace("-", "_").replace(".", "_")


def create_logger(
    name: str = "backup-core",
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> Logger:
    """Create a new logger instance with the specified configuration.

    Parameters left as None are read from ``{PREFIX}_LOG_LEVEL``,
    ``{PREFIX}_LOG_FILE`` and ``{PREFIX}_LOG_JSON``.

    Args:
        name: Logger name (e.g., "backup-core", "backup-core.notifier")
        level: Logging level (defaults to INFO or env var)
        log_file: Optional file path for log output
        json_format: If True, output logs as JSON

    Returns:
        A configured Logger instance
    """
    env_prefix = _get_env_prefix(name)

    if level is None:
        level_str = os.environ.get(f"{env_prefix}_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_str, logging.INFO)

    if log_file is None:
        log_file = os.environ.get(f"{env_prefix}_LOG_FILE")

    if json_format is None:
        json_format = os.environ.get(f"{env_prefix}_LOG_JSON", "false").lower() == "true"

    return StructuredLogger(
        name=name,
        level=level,
        log_file=log_file,
        json_format=json_format,
    )


def get_logger(name: str = "backup-core") -> Logger:
    """Get a logger configured from environment variables."""
    return create_logger(name=name)


__all__ = [
    # Interface
    "Logger",
    "LEVELS",
    # Implementations
    "DefaultLogger",
    "StructuredLogger",
    "MemoryLogger",
    "LogRecord",
    # Formatters (for custom use)
    "JsonFormatter",
    "TextFormatter",
    # Factory functions
    "create_logger",
    "get_logger",
]
