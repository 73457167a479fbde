"""Environment loader with optional .env support.

Loads configuration values in deterministic order:
1) .env file (if provided and exists)
2) OS environment variables
3) Explicit overrides (highest precedence)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from dotenv import dotenv_values

from backup_core.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class EnvLoader:
    """Load environment-style key/value pairs with .env support."""

    def __init__(
        self,
        env_file: Optional[Path | str] = None,
        overrides: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.env_file = Path(env_file) if env_file else None
        self.overrides = dict(overrides or {})

    def load(self) -> MutableMapping[str, str]:
        """Load environment data with deterministic precedence.

        Precedence (low -> high): .env file, OS env vars, overrides
        """
        data: MutableMapping[str, str] = {}

        env_path = self.env_file or Path.cwd() / ".env"
        if env_path.exists():
            file_values = dotenv_values(env_path)
            data.update({k: v for k, v in file_values.items() if v is not None})

        data.update(os.environ)
        data.update({k: str(v) for k, v in self.overrides.items()})

        return data


def parse_bool(value: Optional[str], name: str, default: bool) -> bool:
    """Parse a boolean flag such as ``BACKUP_NOTIFY_ON_SUCCESS``."""
    if value is None or value == "":
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{name} must be a boolean, got {value!r}",
        details={"variable": name},
    )


def parse_number(value: Optional[str], name: str, kind: type = int):
    """Convert an optional string to int/float, None when unset."""
    if value is None or value == "":
        return None
    try:
        return kind(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be {'an integer' if kind is int else 'a number'}, got {value!r}",
            details={"variable": name},
        ) from exc


__all__ = ["EnvLoader", "parse_bool", "parse_number"]
