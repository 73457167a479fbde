"""Retention: cycle old packages out of a storage target.

Keeps only the ``keep`` most recent packages on a target. Only ever called
after the current run's package was confirmed stored on that target.
"""

from typing import List, Optional

from backup_core.exceptions import CycleError, DeleteError, ListError
from backup_core.logger import Logger, create_logger
from backup_core.package import Package
from backup_core.retry import RetryExecutor
from backup_core.storage import StorageTarget


class Cycler:
    """Removes the oldest packages beyond a target's retention count.

    List and delete calls go through the executor. A delete that still fails
    is logged as a warning and the remaining stale packages are processed;
    the failures are reported together in one CycleError afterwards.
    """

    def __init__(self, executor: RetryExecutor, logger: Optional[Logger] = None) -> None:
        self.executor = executor
        self.logger = logger or create_logger(name="backup-core.cycler")

    def cycle(
        self,
        target: StorageTarget,
        keep: Optional[int],
        current: Optional[Package] = None,
        trigger: Optional[str] = None,
    ) -> List[Package]:
        """Prune ``target`` down to its ``keep`` newest packages of one trigger.

        A target can be shared by several jobs, so retention only counts and
        removes packages of the same trigger.

        Args:
            target: Storage target to prune
            keep: Packages to retain; 0 or None means unbounded
            current: The package stored by this run, never removed
            trigger: Trigger whose packages are pruned; defaults to
                ``current.trigger``. With neither given every package counts.

        Returns:
            Removed packages, with status ``cycled_out``

        Raises:
            CycleError: Listing failed (caused by a ListError), or one or more
                deletes failed
        """
        if not keep or keep <= 0:
            return []
        if trigger is None and current is not None:
            trigger = current.trigger

        self.logger.info("Cycling Started...", storage=target.name, keep=keep, trigger=trigger)

        try:
            packages = self.executor.execute(target.list, description=f"list {target.name}")
        except Exception as e:
            list_error = ListError.wrap(
                e,
                f"Could not list packages on {target.name}",
                details={"storage": target.name},
            )
            raise CycleError.wrap(
                list_error,
                f"Cycling failed on {target.name}",
                details={"storage": target.name},
            ) from list_error

        if trigger is not None:
            packages = [p for p in packages if p.trigger == trigger]
        packages = sorted(packages, key=lambda p: p.id)
        if len(packages) <= keep:
            return []

        stale = packages[: len(packages) - keep]
        removed: List[Package] = []
        failed: List[str] = []

        for package in stale:
            if current is not None and package.id == current.id:
                self.logger.warning(
                    "Current package is among the oldest, not removing it",
                    storage=target.name,
                    package_id=package.id,
                )
                continue

            self.logger.info(
                "Cycling out package",
                storage=target.name,
                package_id=package.id,
            )
            try:
                self.executor.execute(
                    lambda package=package: target.delete(package),
                    description=f"delete {package.id} from {target.name}",
                )
            except Exception as e:
                error = DeleteError.wrap(
                    e,
                    f"Could not remove package {package.id} from {target.name}",
                    details={"storage": target.name, "package_id": package.id},
                )
                self.logger.warning(str(error), storage=target.name, package_id=package.id)
                failed.append(package.id)
                continue
            removed.append(package.mark_cycled_out())

        if failed:
            raise CycleError(
                f"{len(failed)} package(s) could not be removed from {target.name}",
                details={
                    "storage": target.name,
                    "failed": failed,
                    "removed": [p.id for p in removed],
                },
                removed=removed,
            )

        return removed
