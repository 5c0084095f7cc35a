"""Review-handoff prompter: offer a compare/merge-request URL between two branches."""

from __future__ import annotations

import logging
import re
from typing import Callable
from urllib.parse import quote, urlencode

from phasebranch.core.context import ReviewOutcome, ReviewStatus
from phasebranch.vcs.base import VcsAdapter, VcsError

logger = logging.getLogger(__name__)

Confirm = Callable[[str, bool], bool]

# https://host/owner/repo(.git), ssh://git@host(:port)/owner/repo(.git), git@host:owner/repo(.git)
_REMOTE_PATTERNS = [
    re.compile(r"^https?://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<path>.+?)(?:\.git)?/?$"),
    re.compile(r"^ssh://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<path>.+?)(?:\.git)?/?$"),
    re.compile(r"^(?:[^@/]+@)?(?P<host>[^/:]+):(?P<path>[^/].*?)(?:\.git)?/?$"),
]

KNOWN_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")


def parse_remote(url: str | None) -> tuple[str, str] | None:
    """Return ``(host, "owner/repo")`` for a recognizable hosted remote URL."""
    if not url:
        return None
    url = url.strip()
    for pattern in _REMOTE_PATTERNS:
        match = pattern.match(url)
        if not match:
            continue
        host = match.group("host").lower()
        path = match.group("path").strip("/")
        if host not in KNOWN_HOSTS or "/" not in path:
            return None
        return host, path
    return None


def build_review_url(remote_url: str | None, from_branch: str, to_branch: str) -> str | None:
    """Deterministic compare / merge-request URL, or None for unknown remotes."""
    parsed = parse_remote(remote_url)
    if parsed is None:
        return None
    host, path = parsed
    base = f"https://{host}/{path}"
    if host == "github.com":
        return f"{base}/compare/{quote(to_branch)}...{quote(from_branch)}?expand=1"
    if host == "gitlab.com":
        query = urlencode({
            "merge_request[source_branch]": from_branch,
            "merge_request[target_branch]": to_branch,
        })
        return f"{base}/-/merge_requests/new?{query}"
    query = urlencode({"source": from_branch, "dest": to_branch})
    return f"{base}/pull-requests/new?{query}"


class ReviewPrompter:
    """Offers a review request from a feature branch into its phase branch.

    Only reads the remote URL; never mutates the repository.
    """

    def __init__(self, vcs: VcsAdapter, confirm: Confirm) -> None:
        self._vcs = vcs
        self._confirm = confirm

    def offer(self, from_branch: str, to_branch: str, workflow_id: str) -> ReviewOutcome:
        try:
            remote = self._vcs.remote_url()
        except VcsError as e:
            logger.warning("Could not read remote URL: %s", e)
            remote = None

        url = build_review_url(remote, from_branch, to_branch)
        if url is None:
            return ReviewOutcome(
                status=ReviewStatus.REMOTE_UNKNOWN,
                from_branch=from_branch,
                to_branch=to_branch,
            )

        accepted = self._confirm(
            f"Open a review request for '{workflow_id}' ({from_branch} -> {to_branch})?",
            True,
        )
        return ReviewOutcome(
            status=ReviewStatus.OFFERED if accepted else ReviewStatus.DECLINED,
            url=url if accepted else None,
            from_branch=from_branch,
            to_branch=to_branch,
        )
