"""GitPython implementation of VcsAdapter."""

from __future__ import annotations

import logging
from pathlib import Path

import git

from phasebranch.core.context import ChangeSet
from phasebranch.vcs.base import (
    BranchAlreadyExists,
    BranchNotFound,
    NothingToCommit,
    PushRejected,
    RepositoryNotFound,
    VcsAdapter,
    VcsError,
)

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 60  # seconds
STATE_DIRNAME = "phasebranch"


def _split_nul(output: str) -> list[str]:
    """Paths from ``-z`` output, which git never C-quotes."""
    return [p for p in output.split("\0") if p]


class GitAdapter(VcsAdapter):
    """Drives the local ``git`` client through GitPython."""

    def __init__(
        self,
        path: Path,
        remote_name: str = "origin",
        timeout: float = DEFAULT_GIT_TIMEOUT,
    ) -> None:
        self._path = Path(path)
        self._remote_name = remote_name
        self._timeout = timeout
        self._repo_obj: git.Repo | None = None

    @property
    def _repo(self) -> git.Repo:
        if self._repo_obj is None:
            try:
                self._repo_obj = git.Repo(self._path, search_parent_directories=True)
            except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
                raise RepositoryNotFound(f"Not a git repository: {self._path}", e) from e
        return self._repo_obj

    def _git(self, command: str, *args: str) -> str:
        """Run ``git <command> <args>``, wrapping failures in VcsError."""
        try:
            return getattr(self._repo.git, command)(*args, kill_after_timeout=self._timeout)
        except git.GitCommandError as e:
            stderr = (e.stderr or "").strip() or str(e)
            raise VcsError(f"git {command} failed: {stderr}", e) from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_repository(self) -> bool:
        try:
            self._repo
        except RepositoryNotFound:
            return False
        return True

    def state_dir(self) -> Path:
        """Directory inside the git dir where session state is kept."""
        return Path(self._repo.git_dir) / STATE_DIRNAME

    def current_branch(self) -> str:
        try:
            return self._repo.active_branch.name
        except TypeError as e:
            raise VcsError("HEAD is detached; check out a branch first", e) from e

    def branch_exists(self, name: str) -> bool:
        return name in [h.name for h in self._repo.heads]

    def _conflicting_ref(self, name: str) -> str | None:
        """Existing branch that would block creating *name* (``a`` vs ``a/b``)."""
        for head in self._repo.heads:
            existing = head.name
            if name.startswith(existing + "/") or existing.startswith(name + "/"):
                return existing
        return None

    def changed_files(self) -> ChangeSet:
        if self._repo.head.is_valid():
            modified = _split_nul(self._git("diff", "--name-only", "-z", "HEAD"))
        else:
            modified = _split_nul(self._git("diff", "--name-only", "-z"))
        staged = _split_nul(self._git("diff", "--name-only", "-z", "--cached"))
        try:
            untracked = list(self._repo.untracked_files)
        except git.GitCommandError as e:
            raise VcsError(f"Could not list untracked files: {e}", e) from e
        return ChangeSet(modified=modified, staged=staged, untracked=untracked)

    def is_dirty(self) -> bool:
        try:
            return self._repo.is_dirty(untracked_files=True)
        except git.GitCommandError as e:
            raise VcsError(f"Could not read working tree status: {e}", e) from e

    def remote_url(self) -> str | None:
        try:
            remote = self._repo.remote(self._remote_name)
        except ValueError:
            return None
        urls = list(remote.urls)
        return urls[0] if urls else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def checkout(self, name: str) -> None:
        if not self.branch_exists(name):
            raise BranchNotFound(f"Branch not found: {name}")
        self._git("checkout", name)

    def create_and_checkout(self, name: str, start_point: str) -> None:
        if self.branch_exists(name):
            raise BranchAlreadyExists(f"Branch already exists: {name}")
        blocker = self._conflicting_ref(name)
        if blocker:
            raise VcsError(
                f"Cannot create '{name}': git cannot store it next to existing branch "
                f"'{blocker}'. Set git.branch_separator (e.g. '-') in phasebranch.yaml."
            )
        self._git("checkout", "-b", name, start_point)
        logger.info("Created branch %s from %s", name, start_point)

    def stage_all(self) -> None:
        self._git("add", "-A")

    def commit(self, message: str) -> str:
        if not _split_nul(self._git("diff", "--name-only", "-z", "--cached")):
            raise NothingToCommit("Nothing staged to commit")
        try:
            commit = self._repo.index.commit(message)
        except (git.GitCommandError, ValueError, OSError) as e:
            raise VcsError(f"Commit failed: {e}", e) from e
        return commit.hexsha

    def push(self, branch: str) -> None:
        if self.remote_url() is None:
            raise PushRejected(f"No remote named '{self._remote_name}'")
        try:
            self._git("push", "--set-upstream", self._remote_name, branch)
        except VcsError as e:
            raise PushRejected(str(e), e.cause) from e
