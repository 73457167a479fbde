"""In-memory storage target.

Dict-backed target that does not persist anything. Ideal for unit tests and
dry runs.
"""

import threading
from dataclasses import replace
from typing import Dict, List, Optional

from backup_core.logger import Logger
from backup_core.package import Package, PackageStatus

from .base import StorageTarget


class MemoryStorage(StorageTarget):
    """In-memory storage target.

    Chunk contents are copied when the package has local files. A package is
    committed in one step after all of its chunks were read, so ``list``
    never returns a partial package.

    Example:
        storage = MemoryStorage(keep=2)
        storage.store(package)
        assert storage.package_ids() == [package.id]
    """

    def __init__(
        self,
        name: Optional[str] = None,
        keep: Optional[int] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(name=name, keep=keep, logger=logger)
        self._packages: Dict[str, Package] = {}
        self._contents: Dict[str, Dict[str, bytes]] = {}
        self._lock = threading.Lock()

    def store(self, package: Package) -> None:
        contents: Dict[str, bytes] = {}
        if package.source_dir is not None:
            for chunk in package.chunks:
                contents[chunk] = package.chunk_path(chunk).read_bytes()

        stored = replace(package, status=PackageStatus.STORED, source_dir=None)
        with self._lock:
            self._packages[package.id] = stored
            self._contents[package.id] = contents

        self.logger.debug(
            "Package stored in memory",
            storage=self.name,
            package_id=package.id,
            chunks=len(package.chunks),
        )

    def list(self) -> List[Package]:
        with self._lock:
            packages = list(self._packages.values())
        return sorted(packages, key=lambda p: p.id)

    def delete(self, package: Package) -> None:
        with self._lock:
            self._packages.pop(package.id, None)
            self._contents.pop(package.id, None)

    def package_ids(self) -> List[str]:
        return [p.id for p in self.list()]

    def contains(self, package_id: str) -> bool:
        with self._lock:
            return package_id in self._packages

    def read_chunk(self, package_id: str, chunk: str) -> Optional[bytes]:
        with self._lock:
            return self._contents.get(package_id, {}).get(chunk)

    def clear(self) -> None:
        """Drop all packages.

        Useful for test cleanup.
        """
        with self._lock:
            self._packages.clear()
            self._contents.clear()
