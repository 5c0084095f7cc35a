"""VcsAdapter ABC and the VcsError hierarchy."""

from __future__ import annotations

from abc import ABC, abstractmethod

from phasebranch.core.context import ChangeSet


class VcsError(Exception):
    """Base class for version-control failures; ``cause`` holds the original error."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class RepositoryNotFound(VcsError):
    pass


class BranchNotFound(VcsError):
    pass


class BranchAlreadyExists(VcsError):
    pass


class NothingToCommit(VcsError):
    pass


class PushRejected(VcsError):
    pass


class VcsAdapter(ABC):
    """Capability set the orchestrator needs from a version-control tool."""

    @abstractmethod
    def is_repository(self) -> bool:
        """True when the working directory is inside a repository."""

    @abstractmethod
    def current_branch(self) -> str:
        """Name of the checked-out branch."""

    @abstractmethod
    def branch_exists(self, name: str) -> bool:
        """True when a local branch called *name* exists."""

    @abstractmethod
    def checkout(self, name: str) -> None:
        """Switch to *name*. Raises BranchNotFound if it does not exist."""

    @abstractmethod
    def create_and_checkout(self, name: str, start_point: str) -> None:
        """Create *name* at *start_point* and switch to it.

        Raises BranchAlreadyExists if *name* is already present.
        """

    @abstractmethod
    def changed_files(self) -> ChangeSet:
        """Modified-vs-HEAD, staged, and untracked-but-not-ignored paths."""

    @abstractmethod
    def is_dirty(self) -> bool:
        """True when changed_files() would be non-empty."""

    @abstractmethod
    def stage_all(self) -> None:
        """Stage every change, including deletions and untracked files."""

    @abstractmethod
    def commit(self, message: str) -> str:
        """Commit the index and return the commit id.

        Raises NothingToCommit when nothing is staged.
        """

    @abstractmethod
    def push(self, branch: str) -> None:
        """Push *branch* to the configured remote, setting upstream."""

    @abstractmethod
    def remote_url(self) -> str | None:
        """URL of the configured remote, or None when there is none."""
