"""Integration self-test: is this working copy ready for branch orchestration?"""

from __future__ import annotations

import enum
import shutil
from dataclasses import dataclass
from pathlib import Path

from phasebranch.config.loader import find_config_file
from phasebranch.config.settings import PhaseBranchSettings
from phasebranch.vcs.base import VcsError


class CheckStatus(str, enum.Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    name: str
    status: CheckStatus
    detail: str = ""


def run_checks(settings: PhaseBranchSettings) -> list[CheckResult]:
    """Run every check in order; stops early only when git itself is unusable."""
    from phasebranch.vcs.git_adapter import GitAdapter

    results: list[CheckResult] = []
    project_path = Path(settings.project.path).resolve()

    git_exe = shutil.which("git")
    if not git_exe:
        results.append(CheckResult("git available", CheckStatus.FAIL, "git not found on PATH"))
        return results
    results.append(CheckResult("git available", CheckStatus.PASS, git_exe))

    vcs = GitAdapter(project_path, remote_name=settings.git.remote_name)
    if not vcs.is_repository():
        results.append(CheckResult("inside repository", CheckStatus.FAIL, "run: git init"))
        return results
    results.append(CheckResult("inside repository", CheckStatus.PASS, str(project_path)))

    try:
        branch = vcs.current_branch()
        results.append(CheckResult("current branch", CheckStatus.PASS, branch))
    except VcsError as e:
        results.append(CheckResult("current branch", CheckStatus.FAIL, str(e)))

    config_file = find_config_file(project_path)
    if config_file:
        results.append(CheckResult("config file", CheckStatus.PASS, str(config_file)))
    else:
        results.append(
            CheckResult("config file", CheckStatus.WARN, "none found; using defaults")
        )

    if settings.git.enabled:
        results.append(CheckResult("integration enabled", CheckStatus.PASS))
    else:
        results.append(
            CheckResult("integration enabled", CheckStatus.FAIL, "set git.enabled: true")
        )

    if settings.git.branch_separator == "/":
        results.append(
            CheckResult(
                "branch separator",
                CheckStatus.WARN,
                "'/' nests feature branches under the base branch name, which git "
                "refuses while the base branch exists; consider '-'",
            )
        )
    else:
        results.append(CheckResult("branch separator", CheckStatus.PASS, settings.git.branch_separator))

    url = vcs.remote_url()
    if url:
        results.append(CheckResult(f"remote '{settings.git.remote_name}'", CheckStatus.PASS, url))
    else:
        results.append(
            CheckResult(
                f"remote '{settings.git.remote_name}'",
                CheckStatus.WARN,
                "not configured; push and review links will be skipped",
            )
        )

    try:
        if vcs.is_dirty():
            changed = vcs.changed_files()
            results.append(
                CheckResult("working tree", CheckStatus.WARN, f"{len(changed)} uncommitted change(s)")
            )
        else:
            results.append(CheckResult("working tree", CheckStatus.PASS, "clean"))
    except VcsError as e:
        results.append(CheckResult("working tree", CheckStatus.FAIL, str(e)))

    return results


def all_passed(results: list[CheckResult]) -> bool:
    return not any(r.status == CheckStatus.FAIL for r in results)
