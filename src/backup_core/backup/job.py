"""Job orchestration.

Runs one backup job end to end:

    build package -> for each target: store, then cycle -> notify -> done

Every stage reports into a JobResult instead of raising. The final status is
the worst status recorded anywhere in the job; notifiers see it exactly once,
after all targets were attempted.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from backup_core.config import JobConfig, NotifierConfig, RetryPolicy
from backup_core.exceptions import (
    BackupError,
    BuildError,
    CycleError,
    OperationCancelledError,
    StoreError,
)
from backup_core.logger import Logger, create_logger
from backup_core.model import JobStatus, Model, worst, worst_of
from backup_core.notifier import NotificationChannel, Notifier
from backup_core.package import Package, PackageBuilder, utcnow
from backup_core.retry import CancelToken, RetryExecutor
from backup_core.storage import StorageTarget, storage_from_config

from .cycler import Cycler


@dataclass
class TargetResult:
    """What happened to the package on one storage target."""

    name: str
    stored: bool = False
    removed: List[Package] = field(default_factory=list)
    error: Optional[BackupError] = None
    warnings: List[BackupError] = field(default_factory=list)

    @property
    def status(self) -> JobStatus:
        if self.error is not None:
            return JobStatus.FAILURE
        if self.warnings:
            return JobStatus.WARNING
        return JobStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.key,
            "stored": self.stored,
            "removed": [p.id for p in self.removed],
            "error": self.error.to_dict() if self.error else None,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class JobResult:
    """Outcome of one job run.

    Attributes:
        model: The job that ran
        status: Worst status recorded (success < warning < failure)
        package: The package built by this run, with its final lifecycle
            status, or None when the build failed
        targets: Per-target results in storage order
        errors: Every error recorded, job level and per target
        warnings: Every warning recorded, job level and per target
    """

    model: Model
    status: JobStatus = JobStatus.SUCCESS
    package: Optional[Package] = None
    targets: List[TargetResult] = field(default_factory=list)
    errors: List[BackupError] = field(default_factory=list)
    warnings: List[BackupError] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def exit_status(self) -> int:
        return int(self.status)

    @property
    def duration(self) -> float:
        end = self.finished_at or utcnow()
        return (end - self.started_at).total_seconds()

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger": self.model.trigger,
            "label": self.model.label,
            "status": self.status.key,
            "exit_status": self.exit_status,
            "package_id": self.package.id if self.package else None,
            "package_status": self.package.status.value if self.package else None,
            "targets": [t.to_dict() for t in self.targets],
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration": self.duration,
        }


def format_duration(seconds: float) -> str:
    """Elapsed time as ``HH:MM:SS``."""
    total = int(round(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class JobOrchestrator:
    """Drives one job through build, store, cycle and notify.

    ``perform`` never raises. Build failure skips storage; a store failure on
    one target skips only that target's cycling; cycling failures are
    warnings. Notifier failures are logged and never change the status.

    Example:
        job = JobOrchestrator(
            Model("db_backup", "Nightly database"),
            StaticPackageBuilder(["/tmp/db/db.tar.gz"]),
            [LocalStorage("/mnt/backups/db", keep=7)],
            [Notifier(model, LogChannel(logger))],
        )
        result = job.perform()
        sys.exit(result.exit_status)
    """

    def __init__(
        self,
        model: Model,
        builder: PackageBuilder,
        storages: Sequence[StorageTarget],
        notifiers: Sequence[Notifier] = (),
        retry_policy: Optional[RetryPolicy] = None,
        logger: Optional[Logger] = None,
        max_workers: int = 1,
        cancel_token: Optional[CancelToken] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.model = model
        self.builder = builder
        self.storages = list(storages)
        self.notifiers = list(notifiers)
        self.retry_policy = retry_policy or RetryPolicy()
        self.logger = logger or create_logger(name="backup-core")
        self.max_workers = max_workers
        self.cancel_token = cancel_token
        self._sleep = sleep

    @classmethod
    def from_config(
        cls,
        config: JobConfig,
        builder: PackageBuilder,
        channels: Sequence[NotificationChannel] = (),
        notifier_config: Optional[NotifierConfig] = None,
        logger: Optional[Logger] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> "JobOrchestrator":
        """Build a job from a JobConfig, one Notifier per channel.

        Raises:
            ConfigurationError: A storage configuration is incomplete
        """
        model = Model(config.trigger, config.label)
        storages = [storage_from_config(s, logger) for s in config.storages]
        notifiers = [
            Notifier(model, channel, config=notifier_config, logger=logger) for channel in channels
        ]
        return cls(
            model,
            builder,
            storages,
            notifiers,
            retry_policy=config.retry,
            logger=logger,
            max_workers=config.max_workers,
            cancel_token=cancel_token,
        )

    def perform(self) -> JobResult:
        result = JobResult(model=self.model)
        self.logger.info(f"Performing Backup for '{self.model}'!")

        try:
            self._check_cancelled("build")
            package = self._build(result)
            if package is not None:
                self._store_all(package, result)
        except OperationCancelledError as e:
            self.logger.error(str(e), trigger=self.model.trigger)
            result.errors.append(e)
        except Exception as e:
            error = BackupError.wrap(
                e,
                f"Unexpected error during backup of '{self.model}'",
                details={"trigger": self.model.trigger},
            )
            self.logger.error(str(error), error_type=type(e).__name__)
            result.errors.append(error)

        result.status = self._status_of(result)
        self._notify_all(result)
        result.finished_at = utcnow()
        self._log_completion(result)
        return result

    def _build(self, result: JobResult) -> Optional[Package]:
        self.logger.info("Building package...", trigger=self.model.trigger)
        try:
            package = self.builder.build(self.model)
        except Exception as e:
            if isinstance(e, BuildError):
                error = e
            else:
                error = BuildError.wrap(
                    e,
                    f"Package build failed for '{self.model}'",
                    details={"trigger": self.model.trigger},
                )
            self.logger.error(str(error), trigger=self.model.trigger)
            result.errors.append(error)
            return None

        self.logger.info(
            "Package built",
            package_id=package.id,
            chunks=len(package.chunks),
        )
        result.package = package
        return package

    def _store_all(self, package: Package, result: JobResult) -> None:
        if not self.storages:
            warning = StoreError(
                "No storage targets configured; package was not stored",
                details={"package_id": package.id},
            )
            self.logger.warning(warning.message, package_id=package.id)
            result.warnings.append(warning)
            result.package = package.mark_failed()
            return

        if self.max_workers > 1 and len(self.storages) > 1:
            workers = min(self.max_workers, len(self.storages))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                targets = list(pool.map(lambda t: self._run_target(t, package), self.storages))
        else:
            targets = [self._run_target(target, package) for target in self.storages]

        for target_result in targets:
            result.targets.append(target_result)
            if target_result.error is not None:
                result.errors.append(target_result.error)
            result.warnings.extend(target_result.warnings)

        if all(t.stored for t in targets):
            result.package = package.mark_stored()
        else:
            result.package = package.mark_failed()

    def _run_target(self, target: StorageTarget, package: Package) -> TargetResult:
        target_result = TargetResult(name=target.name)

        if self.cancel_token is not None and self.cancel_token.cancelled:
            target_result.error = OperationCancelledError(
                f"Job cancelled before storing on {target.name}",
                details={"storage": target.name, "reason": self.cancel_token.reason},
            )
            self.logger.error(str(target_result.error), storage=target.name)
            return target_result

        executor = RetryExecutor(
            self.retry_policy,
            logger=self.logger,
            cancel_token=self.cancel_token,
            sleep=self._sleep,
        )

        self.logger.info(f"Storing package using {target.name}...", package_id=package.id)
        try:
            executor.execute(
                lambda: target.store(package),
                description=f"store {package.id} on {target.name}",
            )
        except Exception as e:
            target_result.error = StoreError.wrap(
                e,
                f"Could not store package {package.id} on {target.name}",
                details={"storage": target.name, "package_id": package.id},
            )
            self.logger.error(str(target_result.error), storage=target.name)
            return target_result

        target_result.stored = True

        try:
            target_result.removed = Cycler(executor, self.logger).cycle(
                target, target.keep, current=package
            )
        except Exception as e:
            if isinstance(e, CycleError):
                # Deletes that succeeded before the failure still count
                target_result.removed = list(e.removed)
                warning = e
            else:
                warning = CycleError.wrap(
                    e,
                    f"Cycling failed on {target.name}",
                    details={"storage": target.name},
                )
            self.logger.warning(str(warning), storage=target.name)
            target_result.warnings.append(warning)

        return target_result

    def _notify_all(self, result: JobResult) -> None:
        if not self.notifiers:
            return
        if self.max_workers > 1 and len(self.notifiers) > 1:
            workers = min(self.max_workers, len(self.notifiers))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                list(pool.map(lambda n: self._notify(n, result), self.notifiers))
        else:
            for notifier in self.notifiers:
                self._notify(notifier, result)

    def _notify(self, notifier: Notifier, result: JobResult) -> None:
        try:
            notifier.perform(result)
        except Exception as e:
            self.logger.error(
                f"Notifier {getattr(notifier, 'name', notifier)!s} raised unexpectedly: {e}",
                error_type=type(e).__name__,
            )

    def _status_of(self, result: JobResult) -> JobStatus:
        return worst(
            worst_of(t.status for t in result.targets),
            JobStatus.FAILURE if result.errors else JobStatus.SUCCESS,
            JobStatus.WARNING if result.warnings else JobStatus.SUCCESS,
        )

    def _check_cancelled(self, context: str) -> None:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled(context)

    def _log_completion(self, result: JobResult) -> None:
        prefix = f"Backup for '{self.model}'"
        elapsed = format_duration(result.duration)
        if result.status == JobStatus.SUCCESS:
            self.logger.info(f"{prefix} Completed Successfully in {elapsed}")
        elif result.status == JobStatus.WARNING:
            self.logger.warning(f"{prefix} Completed with Warnings in {elapsed}")
        else:
            self.logger.error(f"{prefix} Failed!", elapsed=elapsed, errors=len(result.errors))
