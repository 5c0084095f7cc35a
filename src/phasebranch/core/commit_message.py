"""Commit message composition from a template and the changed-file set."""

from __future__ import annotations

import re
from typing import Callable

from phasebranch.core.context import ChangeSet
from phasebranch.core.phases import phase_label

DEFAULT_COMMIT_TEMPLATE = "[{phase}] {workflow}: {summary} - by {user}"
DEFAULT_USER = "phasebranch"

_TEST_PATH_RE = re.compile(
    r"(^|/)(tests?|__tests__|spec)/|(^|/)test_[^/]+$|_test\.[^/]+$|\.(test|spec)\.[^/]+$"
)


def has_test_paths(changes: ChangeSet) -> bool:
    """True when any changed path looks like a test file."""
    return any(_TEST_PATH_RE.search(p) for p in changes.paths)


def _dev_story_summary(changes: ChangeSet) -> str:
    if has_test_paths(changes):
        return "Implemented story with tests"
    return "Implemented story"


def _code_review_summary(changes: ChangeSet) -> str:
    count = len(changes)
    noun = "file" if count == 1 else "files"
    return f"Applied code review fixes across {count} {noun}"


# Either a fixed phrase or a function of the change set.
SummaryRule = str | Callable[[ChangeSet], str]

CANNED_SUMMARIES: dict[str, SummaryRule] = {
    "brainstorming": "Generated ideas and project direction",
    "research": "Captured research findings",
    "create-product-brief": "Created product brief",
    "create-prd": "Created product requirements document",
    "create-ux-design": "Created UX design specification",
    "create-architecture": "Defined system architecture",
    "create-epics-and-stories": "Broke requirements into epics and stories",
    "check-implementation-readiness": "Checked implementation readiness",
    "sprint-planning": "Planned sprint backlog",
    "create-story": "Drafted next story",
    "dev-story": _dev_story_summary,
    "code-review": _code_review_summary,
    "retrospective": "Recorded retrospective",
}


def summarize(workflow_id: str, changes: ChangeSet) -> str:
    """Canned one-line summary for *workflow_id*, or the generic default."""
    rule = CANNED_SUMMARIES.get(workflow_id)
    if rule is None:
        return f"Completed {workflow_id} workflow"
    if callable(rule):
        return rule(changes)
    return rule


def compose(
    template: str,
    phase_number: int,
    workflow_id: str,
    changes: ChangeSet,
    user: str = DEFAULT_USER,
) -> str:
    """Fill ``{phase}``, ``{workflow}``, ``{summary}`` and ``{user}`` in *template*.

    Plain replacement rather than ``str.format`` so literal braces elsewhere in
    a user template survive untouched.
    """
    if not template or not template.strip():
        template = DEFAULT_COMMIT_TEMPLATE

    message = template
    message = message.replace("{phase}", phase_label(phase_number))
    message = message.replace("{workflow}", workflow_id)
    message = message.replace("{summary}", summarize(workflow_id, changes))
    message = message.replace("{user}", user or DEFAULT_USER)
    return message
