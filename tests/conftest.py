"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import git
import pytest

from phasebranch.core.context import ChangeSet
from phasebranch.vcs.base import (
    BranchAlreadyExists,
    BranchNotFound,
    NothingToCommit,
    PushRejected,
    VcsAdapter,
    VcsError,
)


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-apply 'smoke' marker to any test not marked 'regression'."""
    smoke = pytest.mark.smoke
    for item in items:
        if not any(m.name == "regression" for m in item.iter_markers()):
            item.add_marker(smoke)


class FakeVcs(VcsAdapter):
    """In-memory VcsAdapter double that records every mutation."""

    def __init__(self, current: str = "main", branches: list[str] | None = None) -> None:
        self.repository = True
        self.current = current
        self.branches: set[str] = set(branches or [current])
        self.branches.add(current)
        self.changes = ChangeSet()
        self.dirty = False
        self.remote: str | None = "https://github.com/acme/app.git"
        self.commits: list[tuple[str, str]] = []
        self.pushed: list[str] = []
        self.calls: list[tuple] = []
        # Failure injection
        self.fail_create: Exception | None = None
        self.fail_commit: Exception | None = None
        self.fail_push: Exception | None = None
        self.fail_changed_files: Exception | None = None

    def is_repository(self) -> bool:
        return self.repository

    def current_branch(self) -> str:
        return self.current

    def branch_exists(self, name: str) -> bool:
        return name in self.branches

    def checkout(self, name: str) -> None:
        self.calls.append(("checkout", name))
        if name not in self.branches:
            raise BranchNotFound(f"Branch not found: {name}")
        self.current = name

    def create_and_checkout(self, name: str, start_point: str) -> None:
        self.calls.append(("create_and_checkout", name, start_point))
        if self.fail_create is not None:
            raise self.fail_create
        if name in self.branches:
            raise BranchAlreadyExists(f"Branch already exists: {name}")
        self.branches.add(name)
        self.current = name

    def changed_files(self) -> ChangeSet:
        if self.fail_changed_files is not None:
            raise self.fail_changed_files
        return self.changes

    def is_dirty(self) -> bool:
        return self.dirty or bool(self.changes)

    def stage_all(self) -> None:
        self.calls.append(("stage_all",))

    def commit(self, message: str) -> str:
        self.calls.append(("commit", message))
        if self.fail_commit is not None:
            raise self.fail_commit
        if not self.changes:
            raise NothingToCommit("Nothing staged to commit")
        sha = f"{len(self.commits) + 1:040x}"
        self.commits.append((self.current, message))
        self.changes = ChangeSet()
        return sha

    def push(self, branch: str) -> None:
        self.calls.append(("push", branch))
        if self.fail_push is not None:
            raise self.fail_push
        if self.remote is None:
            raise PushRejected("No remote named 'origin'")
        self.pushed.append(branch)

    def remote_url(self) -> str | None:
        return self.remote


@pytest.fixture
def fake_vcs() -> FakeVcs:
    return FakeVcs()


@pytest.fixture
def git_repo(tmp_path: Path) -> git.Repo:
    """Create a git repo with an initial commit on branch 'main'."""
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    repo = git.Repo.init(repo_dir)
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()
    (repo_dir / "init.txt").write_text("init")
    repo.index.add(["init.txt"])
    repo.index.commit("initial commit")
    if repo.active_branch.name != "main":
        repo.active_branch.rename("main")
    return repo
