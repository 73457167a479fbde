"""Packages: the versioned, possibly chunked artifact produced by one run.

A package id is ``{trigger}.{YYYY.MM.DD.HH.MM.SS}`` in UTC, with a
``.NNN`` suffix when two runs of the same trigger land on the same second.
Sorting ids as strings sorts packages chronologically.
"""

import re
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Protocol, Sequence, Tuple, Union

from backup_core.exceptions import BuildError
from backup_core.model import Model

TIME_FORMAT = "%Y.%m.%d.%H.%M.%S"
MAX_SEQUENCE = 999

_ID_PATTERN = re.compile(
    r"^(?P<trigger>.+)\.(?P<time>\d{4}\.\d{2}\.\d{2}\.\d{2}\.\d{2}\.\d{2})"
    r"(?:\.(?P<sequence>\d{3}))?$"
)


class PackageStatus(str, Enum):
    PENDING = "pending"
    STORED = "stored"
    CYCLED_OUT = "cycled_out"
    FAILED = "failed"


_TRANSITIONS: Dict[PackageStatus, Tuple[PackageStatus, ...]] = {
    PackageStatus.PENDING: (PackageStatus.STORED, PackageStatus.FAILED),
    PackageStatus.STORED: (PackageStatus.CYCLED_OUT,),
    PackageStatus.CYCLED_OUT: (),
    PackageStatus.FAILED: (),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_timestamp(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def format_package_id(trigger: str, timestamp: datetime, sequence: int = 0) -> str:
    if not 0 <= sequence <= MAX_SEQUENCE:
        raise ValueError(f"Package sequence out of range: {sequence}")
    package_id = f"{trigger}.{_normalize_timestamp(timestamp).strftime(TIME_FORMAT)}"
    if sequence:
        package_id += f".{sequence:03d}"
    return package_id


def parse_package_id(package_id: str) -> Tuple[str, datetime, int]:
    """Split a package id into (trigger, timestamp, sequence).

    Raises:
        ValueError: If the id does not follow the package id format
    """
    match = _ID_PATTERN.match(package_id)
    if not match:
        raise ValueError(f"Not a package id: {package_id!r}")
    timestamp = datetime.strptime(match.group("time"), TIME_FORMAT).replace(tzinfo=timezone.utc)
    sequence = int(match.group("sequence") or 0)
    return match.group("trigger"), timestamp, sequence


@dataclass(frozen=True)
class Package:
    """Descriptor of one run's artifact.

    Attributes:
        trigger: Trigger of the job that produced it
        timestamp: UTC creation time, whole seconds
        chunks: Chunk file names in sequence order (chunk 0..n-1)
        sequence: Disambiguation counter for same-second runs
        status: Lifecycle state
        source_dir: Local directory holding the chunk files, set for the
            package built by the current run only
    """

    trigger: str
    timestamp: datetime
    chunks: Tuple[str, ...]
    sequence: int = 0
    status: PackageStatus = PackageStatus.PENDING
    source_dir: Optional[Path] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", _normalize_timestamp(self.timestamp))
        object.__setattr__(self, "chunks", tuple(self.chunks))
        object.__setattr__(self, "status", PackageStatus(self.status))
        if self.source_dir is not None:
            object.__setattr__(self, "source_dir", Path(self.source_dir))

        if not self.chunks:
            raise ValueError("A package needs at least one chunk")
        for name in self.chunks:
            if not name or "/" in name or "\\" in name or name.startswith("."):
                raise ValueError(f"Invalid chunk name {name!r}")
        if len(set(self.chunks)) != len(self.chunks):
            raise ValueError("Chunk names must be unique")
        # validates the sequence range as well
        format_package_id(self.trigger, self.timestamp, self.sequence)

    @property
    def id(self) -> str:
        return format_package_id(self.trigger, self.timestamp, self.sequence)

    @property
    def time(self) -> str:
        return self.timestamp.strftime(TIME_FORMAT)

    @property
    def chunk_set(self) -> frozenset:
        return frozenset(self.chunks)

    def chunk_path(self, name: str) -> Path:
        if self.source_dir is None:
            raise ValueError(f"Package {self.id} has no local chunk files")
        if name not in self.chunks:
            raise KeyError(name)
        return self.source_dir / name

    def transition(self, status: PackageStatus) -> "Package":
        """Return a copy in ``status``; only forward lifecycle moves are allowed."""
        status = PackageStatus(status)
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(
                f"Package {self.id} cannot move from {self.status.value} to {status.value}"
            )
        return replace(self, status=status)

    def mark_stored(self) -> "Package":
        return self.transition(PackageStatus.STORED)

    def mark_failed(self) -> "Package":
        return self.transition(PackageStatus.FAILED)

    def mark_cycled_out(self) -> "Package":
        return self.transition(PackageStatus.CYCLED_OUT)

    @classmethod
    def from_id(
        cls,
        package_id: str,
        chunks: Iterable[str],
        status: PackageStatus = PackageStatus.STORED,
    ) -> "Package":
        """Rebuild a package found on a storage target.

        Chunk names are sorted, which restores sequence order for suffixed
        names such as ``backup.tar-aaa``, ``backup.tar-aab``.
        """
        trigger, timestamp, sequence = parse_package_id(package_id)
        return cls(
            trigger=trigger,
            timestamp=timestamp,
            chunks=tuple(sorted(chunks)),
            sequence=sequence,
            status=status,
        )

    def __str__(self) -> str:
        return f"{self.id} ({len(self.chunks)} chunk(s), {self.status.value})"


class PackageClock:
    """Hands out strictly increasing (timestamp, sequence) pairs per trigger.

    A repeated or earlier clock reading reuses the last timestamp with the
    next sequence number. Ids already present on a target can be passed as
    ``taken``; the new id is then also later than all of them.
    """

    def __init__(self, now: Callable[[], datetime] = utcnow) -> None:
        self._now = now
        self._last: Dict[str, Tuple[datetime, int]] = {}
        self._lock = threading.Lock()

    def stamp(self, trigger: str, taken: Iterable[str] = ()) -> Tuple[datetime, int]:
        current = (_normalize_timestamp(self._now()), 0)

        with self._lock:
            candidates = [current]
            if trigger in self._last:
                last_ts, last_seq = self._last[trigger]
                candidates.append((last_ts, last_seq + 1))
            for package_id in taken:
                try:
                    taken_trigger, ts, seq = parse_package_id(package_id)
                except ValueError:
                    continue
                if taken_trigger == trigger:
                    candidates.append((ts, seq + 1))

            timestamp, sequence = max(candidates)
            if sequence > MAX_SEQUENCE:
                raise ValueError(f"Too many packages for {trigger} at {timestamp.isoformat()}")
            self._last[trigger] = (timestamp, sequence)
            return timestamp, sequence

    def next_id(self, trigger: str, taken: Iterable[str] = ()) -> str:
        return format_package_id(trigger, *self.stamp(trigger, taken))


class PackageBuilder(Protocol):
    """Transform collaborator that produces the package for a run."""

    def build(self, model: Model) -> Package:
        ...


class StaticPackageBuilder:
    """Packages a fixed set of already-produced chunk files.

    Archiving, compression, encryption and splitting happen upstream; this
    builder only checks the files and stamps the package.

    Example:
        builder = StaticPackageBuilder(["/tmp/db/db.tar.gz-aaa", "/tmp/db/db.tar.gz-aab"])
        package = builder.build(Model("db"))
    """

    def __init__(
        self,
        files: Sequence[Union[str, Path]],
        clock: Optional[PackageClock] = None,
    ) -> None:
        self.files = [Path(f) for f in files]
        self.clock = clock or PackageClock()

    def build(self, model: Model) -> Package:
        if not self.files:
            raise BuildError("No chunk files to package", details={"trigger": model.trigger})

        missing = [str(f) for f in self.files if not f.is_file()]
        if missing:
            raise BuildError(
                "Chunk files not found",
                details={"trigger": model.trigger, "missing": missing},
            )

        parents = {f.parent.resolve() for f in self.files}
        if len(parents) != 1:
            raise BuildError(
                "Chunk files must share one directory",
                details={"trigger": model.trigger, "directories": sorted(map(str, parents))},
            )

        timestamp, sequence = self.clock.stamp(model.trigger)
        return Package(
            trigger=model.trigger,
            timestamp=timestamp,
            chunks=tuple(sorted(f.name for f in self.files)),
            sequence=sequence,
            source_dir=parents.pop(),
        )
