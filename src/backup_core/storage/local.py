"""Filesystem storage target.

Layout: ``{path}/{package id}/{chunk}``. The path usually points at a mounted
remote share. Several jobs may share one path; retention only prunes the
packages of the job's own trigger.
"""

import os
import shutil
from pathlib import Path
from typing import List, Optional, Union

from backup_core.exceptions import FatalError
from backup_core.logger import Logger
from backup_core.package import Package, PackageStatus

from .base import StorageTarget

_STAGING_SUFFIX = ".partial"
_DELETING_SUFFIX = ".deleting"
_TMP_SUFFIX = ".tmp"


class LocalStorage(StorageTarget):
    """Store packages as directories under a local (or mounted) path.

    A package is uploaded into a hidden staging directory and renamed into
    place once every chunk is there, so ``list`` never sees it half written.
    A retry after a failed upload reuses the staging directory and only
    copies the chunks that are missing or incomplete. Deletes rename the
    package directory out of sight before removing it.

    Example:
        storage = LocalStorage("/mnt/backups/db", keep=7)
        storage.store(package)
    """

    def __init__(
        self,
        path: Union[str, Path],
        name: Optional[str] = None,
        keep: Optional[int] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(name=name, keep=keep, logger=logger)
        self.path = Path(path)

    def package_dir(self, package_id: str) -> Path:
        return self.path / package_id

    def staging_dir(self, package_id: str) -> Path:
        return self.path / f".{package_id}{_STAGING_SUFFIX}"

    def store(self, package: Package) -> None:
        if package.source_dir is None:
            raise FatalError(
                f"Package {package.id} has no local chunk files to store",
                details={"storage": self.name},
            )

        missing = [c for c in package.chunks if not package.chunk_path(c).is_file()]
        if missing:
            raise FatalError(
                f"Chunk files missing for package {package.id}",
                details={"storage": self.name, "missing": missing},
            )

        self.path.mkdir(parents=True, exist_ok=True)
        final = self.package_dir(package.id)

        if final.is_dir():
            # Re-store of a visible package: replace chunks one by one so the
            # chunk set stays complete throughout
            self._upload_chunks(package, final, resume=False)
            self._remove_strays(package, final)
            self.logger.info(
                "Package re-stored",
                storage=self.name,
                package_id=package.id,
                chunks=len(package.chunks),
            )
            return

        staging = self.staging_dir(package.id)
        staging.mkdir(exist_ok=True)
        copied = self._upload_chunks(package, staging, resume=True)
        self._remove_strays(package, staging)
        os.replace(staging, final)

        self.logger.info(
            "Package stored",
            storage=self.name,
            package_id=package.id,
            chunks=len(package.chunks),
            copied=copied,
            path=str(final),
        )

    def list(self) -> List[Package]:
        if not self.path.is_dir():
            return []

        packages = []
        for entry in self.path.iterdir():
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            chunks = [
                f.name for f in entry.iterdir()
                if f.is_file() and not f.name.startswith(".") and not f.name.endswith(_TMP_SUFFIX)
            ]
            if not chunks:
                continue
            try:
                packages.append(Package.from_id(entry.name, chunks, status=PackageStatus.STORED))
            except ValueError:
                self.logger.debug("Skipping unrecognized entry", storage=self.name, entry=entry.name)

        return sorted(packages, key=lambda p: p.id)

    def delete(self, package: Package) -> None:
        final = self.package_dir(package.id)
        doomed = self.path / f".{package.id}{_DELETING_SUFFIX}"

        if final.is_dir():
            if doomed.exists():
                shutil.rmtree(doomed)
            os.replace(final, doomed)
        if doomed.exists():
            shutil.rmtree(doomed)

        staging = self.staging_dir(package.id)
        if staging.exists():
            shutil.rmtree(staging)

        self.logger.debug("Package deleted", storage=self.name, package_id=package.id)

    def _upload_chunks(self, package: Package, directory: Path, resume: bool) -> int:
        """Copy chunks into ``directory``.

        With ``resume``, chunks already completed by an earlier attempt are
        left alone.
        """
        copied = 0
        for chunk in package.chunks:
            source = package.chunk_path(chunk)
            dest = directory / chunk
            if resume and dest.is_file() and dest.stat().st_size == source.stat().st_size:
                continue
            tmp = dest.with_name(dest.name + _TMP_SUFFIX)
            shutil.copy2(source, tmp)
            os.replace(tmp, dest)
            copied += 1
        return copied

    def _remove_strays(self, package: Package, directory: Path) -> None:
        wanted = package.chunk_set
        for entry in directory.iterdir():
            if entry.is_file() and entry.name not in wanted:
                entry.unlink()
