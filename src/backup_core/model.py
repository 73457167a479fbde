"""Job metadata and job outcome levels."""

from dataclasses import dataclass
from enum import IntEnum
from functools import reduce
from typing import Iterable, Optional


class JobStatus(IntEnum):
    """Outcome of a job, ordered from best to worst.

    The integer value is the process exit status.
    """

    SUCCESS = 0
    WARNING = 1
    FAILURE = 2

    @classmethod
    def from_exit_status(cls, exit_status: int) -> "JobStatus":
        if exit_status == 0:
            return cls.SUCCESS
        if exit_status == 1:
            return cls.WARNING
        return cls.FAILURE

    @property
    def key(self) -> str:
        return self.name.lower()


def worst(*statuses: JobStatus) -> JobStatus:
    """Combine statuses; associative and commutative, so merge order is irrelevant."""
    return worst_of(statuses)


def worst_of(statuses: Iterable[JobStatus]) -> JobStatus:
    return reduce(max, statuses, JobStatus.SUCCESS)


@dataclass(frozen=True)
class Model:
    """Describes a backup job to builders and message templates.

    Attributes:
        trigger: Identifier used in package ids and remote paths
        label: Human readable name (defaults to the trigger)
    """

    trigger: str
    label: Optional[str] = None

    def __post_init__(self) -> None:
        trigger = self.trigger.strip() if self.trigger else ""
        if not trigger or "/" in trigger or trigger.startswith("."):
            raise ValueError(f"Invalid trigger {self.trigger!r}")
        object.__setattr__(self, "trigger", trigger)
        if not self.label:
            object.__setattr__(self, "label", trigger)

    def __str__(self) -> str:
        return f"{self.label} ({self.trigger})"
