"""Backup job engine: retention and orchestration.

Usage:
    from backup_core.backup import JobOrchestrator

    result = JobOrchestrator(model, builder, storages, notifiers).perform()
"""

from .cycler import Cycler
from .job import JobOrchestrator, JobResult, TargetResult, format_duration

__all__ = [
    "Cycler",
    "JobOrchestrator",
    "JobResult",
    "TargetResult",
    "format_duration",
]
