"""Base storage interface

Defines the capability interface every remote backend implements. The
orchestrator and the Cycler only ever talk to this interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from backup_core.exceptions import ConfigurationError
from backup_core.logger import Logger, create_logger
from backup_core.package import Package


class StorageTarget(ABC):
    """Abstract base class for storage targets.

    Each target owns one remote namespace (a path or prefix). Packages stored
    on different targets are independent, and retention on one target never
    touches another.

    Backends raise TransientError for retryable failures and FatalError for
    everything that must not be retried. They never retry on their own:
    callers run every call through a RetryExecutor.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        keep: Optional[int] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        """
        Args:
            name: Name used in log lines (defaults to the class name)
            keep: Number of packages to retain; 0 or None disables cycling
            logger: Optional logger instance
        """
        keep = keep or 0
        if keep < 0:
            raise ConfigurationError(
                f"keep must be >= 0, got {keep}",
                details={"storage": name or self.__class__.__name__},
            )
        self.name = name or self.__class__.__name__
        self.keep = keep
        self.logger = logger or create_logger(name="backup-core.storage")

    @abstractmethod
    def store(self, package: Package) -> None:
        """
        Upload every chunk of ``package``.

        Safe to call again after a failed attempt: chunks already present are
        overwritten or completed, never duplicated, and the package only
        becomes visible to ``list`` once all chunks are in place.

        Raises:
            TransientError: Retryable failure
            FatalError: Non-retryable failure
        """
        pass

    @abstractmethod
    def list(self) -> List[Package]:
        """
        Enumerate the packages in this target's namespace.

        Returns:
            Packages ordered by id ascending (oldest first), with status
            ``stored`` and their chunk sets rebuilt
        """
        pass

    @abstractmethod
    def delete(self, package: Package) -> None:
        """
        Remove every chunk belonging to ``package``.

        Deleting a package that is already gone is not an error.
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} keep={self.keep}>"
