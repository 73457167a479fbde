"""Shared fixtures for backup-core tests."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List

import pytest

from backup_core.config import RetryPolicy
from backup_core.logger import MemoryLogger
from backup_core.model import Model
from backup_core.package import Package


@pytest.fixture
def logger() -> MemoryLogger:
    return MemoryLogger(name="backup-core-test")


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Retry policy that never waits."""
    return RetryPolicy(max_retries=2, retry_wait=0)


@pytest.fixture
def model() -> Model:
    return Model("db_backup", "Nightly database")


@pytest.fixture
def chunk_files(tmp_path: Path) -> List[Path]:
    """Two chunk files of a split archive in one directory."""
    source = tmp_path / "build"
    source.mkdir()
    files = []
    for suffix, content in (("aaa", b"first chunk"), ("aab", b"second")):
        path = source / f"db_backup.tar-{suffix}"
        path.write_bytes(content)
        files.append(path)
    return files


@pytest.fixture
def make_package(chunk_files: List[Path]) -> Callable[..., Package]:
    """Build pending packages backed by the chunk files at a given second."""

    def _make(second: int = 0, sequence: int = 0, trigger: str = "db_backup") -> Package:
        return Package(
            trigger=trigger,
            timestamp=datetime(2026, 10, 19, 2, 0, second, tzinfo=timezone.utc),
            chunks=tuple(f.name for f in chunk_files),
            sequence=sequence,
            source_dir=chunk_files[0].parent,
        )

    return _make
