"""Typed configuration for backup jobs

Pydantic models for the retry policy, notifiers, storage targets and the job
itself. Each model can be built explicitly or from environment variables with
a configurable prefix:

    BACKUP_TRIGGER=db_backup
    BACKUP_LABEL="Nightly database"
    BACKUP_MAX_RETRIES=5
    BACKUP_RETRY_WAIT=10
    BACKUP_STORAGES=local,offsite
    BACKUP_STORAGE_LOCAL_BACKEND=local
    BACKUP_STORAGE_LOCAL_PATH=/backups
    BACKUP_STORAGE_LOCAL_KEEP=7
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from backup_core.config.env_loader import EnvLoader, parse_bool, parse_number
from backup_core.exceptions import ConfigurationError

DEFAULT_MAX_RETRIES = 10
DEFAULT_RETRY_WAIT = 30.0


class RetryPolicy(BaseModel):
    """Bounded retry configuration shared by every remote operation."""

    model_config = {"frozen": True}

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        description="Retries after the first attempt (total attempts = max_retries + 1)",
        ge=0,
    )
    retry_wait: float = Field(
        default=DEFAULT_RETRY_WAIT,
        description="Seconds to wait before each retry",
        ge=0,
    )

    @classmethod
    def from_env(
        cls,
        prefix: str = "BACKUP",
        env_file: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> "RetryPolicy":
        """Load the policy from ``{prefix}_MAX_RETRIES`` / ``{prefix}_RETRY_WAIT``."""
        prefix = prefix.rstrip("_")
        data = env if env is not None else EnvLoader(env_file).load()
        values: Dict[str, Any] = {}
        max_retries = parse_number(data.get(f"{prefix}_MAX_RETRIES"), f"{prefix}_MAX_RETRIES")
        if max_retries is not None:
            values["max_retries"] = max_retries
        retry_wait = parse_number(data.get(f"{prefix}_RETRY_WAIT"), f"{prefix}_RETRY_WAIT", float)
        if retry_wait is not None:
            values["retry_wait"] = retry_wait
        return cls(**values)


class NotifierConfig(BaseModel):
    """Which job outcomes a notifier reports, and how it retries."""

    on_success: bool = Field(default=True, description="Notify when the job succeeds")
    on_warning: bool = Field(
        default=True,
        description="Notify when the job succeeds with warnings",
    )
    on_failure: bool = Field(default=True, description="Notify when the job fails")
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    retry_wait: float = Field(default=DEFAULT_RETRY_WAIT, ge=0)
    message: Optional[Callable[..., str]] = Field(
        default=None,
        description="Template (model, status_data) -> str; None uses the default",
    )

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.max_retries, retry_wait=self.retry_wait)

    @classmethod
    def from_env(
        cls,
        prefix: str = "BACKUP_NOTIFY",
        env_file: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> "NotifierConfig":
        prefix = prefix.rstrip("_")
        data = env if env is not None else EnvLoader(env_file).load()
        policy = RetryPolicy.from_env(prefix, env=data)
        return cls(
            on_success=parse_bool(data.get(f"{prefix}_ON_SUCCESS"), f"{prefix}_ON_SUCCESS", True),
            on_warning=parse_bool(data.get(f"{prefix}_ON_WARNING"), f"{prefix}_ON_WARNING", True),
            on_failure=parse_bool(data.get(f"{prefix}_ON_FAILURE"), f"{prefix}_ON_FAILURE", True),
            max_retries=policy.max_retries,
            retry_wait=policy.retry_wait,
        )


class StorageConfig(BaseModel):
    """Configuration for one storage target."""

    backend: Literal["memory", "local"] = Field(default="local")
    name: Optional[str] = Field(default=None, description="Name used in logs")
    keep: Optional[int] = Field(
        default=None,
        description="Packages to retain; 0 or unset disables cycling",
        ge=0,
    )
    path: Optional[Path] = Field(default=None, description="Namespace root (local backend)")

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @property
    def retention(self) -> int:
        """Keep count with unset normalized to 0 (unbounded)."""
        return self.keep or 0

    def validate_backend(self) -> None:
        if self.backend == "local" and self.path is None:
            raise ConfigurationError(
                "'path' is required for local storage",
                details={"storage": self.name},
            )

    @classmethod
    def from_env(
        cls,
        prefix: str = "BACKUP_STORAGE",
        name: Optional[str] = None,
        env_file: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> "StorageConfig":
        prefix = prefix.rstrip("_")
        data = env if env is not None else EnvLoader(env_file).load()
        path = data.get(f"{prefix}_PATH")
        config = cls(
            backend=data.get(f"{prefix}_BACKEND", "local"),
            name=data.get(f"{prefix}_NAME", name),
            keep=parse_number(data.get(f"{prefix}_KEEP"), f"{prefix}_KEEP"),
            path=Path(path) if path else None,
        )
        config.validate_backend()
        return config


class JobConfig(BaseModel):
    """Complete configuration for one backup job."""

    trigger: str = Field(description="Job identifier, used in package ids")
    label: Optional[str] = Field(default=None, description="Human readable job name")
    max_workers: int = Field(
        default=1,
        description="Parallel workers for the per-target and per-notifier fan-out",
        ge=1,
    )
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    storages: List[StorageConfig] = Field(default_factory=list)

    @field_validator("trigger")
    @classmethod
    def validate_trigger(cls, v: str) -> str:
        """Triggers become part of file names and package ids"""
        v = v.strip()
        if not v:
            raise ValueError("Trigger must not be empty")
        if "/" in v or "\\" in v or v.startswith("."):
            raise ValueError("Trigger must be usable as a file name")
        return v

    @classmethod
    def from_env(
        cls,
        prefix: str = "BACKUP",
        env_file: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> "JobConfig":
        """Create the job configuration from environment variables

        Storage targets are listed in ``{prefix}_STORAGES`` (comma separated
        names); each one reads ``{prefix}_STORAGE_{NAME}_*``.
        """
        prefix = prefix.rstrip("_")
        data = env if env is not None else EnvLoader(env_file).load()

        trigger = data.get(f"{prefix}_TRIGGER")
        if not trigger:
            raise ConfigurationError(
                f"{prefix}_TRIGGER environment variable not set",
                details={"variable": f"{prefix}_TRIGGER"},
            )

        storages = []
        for name in data.get(f"{prefix}_STORAGES", "").split(","):
            name = name.strip()
            if name:
                storages.append(
                    StorageConfig.from_env(f"{prefix}_STORAGE_{name.upper()}", name=name, env=data)
                )

        max_workers = parse_number(data.get(f"{prefix}_MAX_WORKERS"), f"{prefix}_MAX_WORKERS")

        return cls(
            trigger=trigger,
            label=data.get(f"{prefix}_LABEL"),
            max_workers=max_workers or 1,
            retry=RetryPolicy.from_env(prefix, env=data),
            storages=storages,
        )
