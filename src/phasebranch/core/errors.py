"""Orchestrator error taxonomy."""

from __future__ import annotations


class OrchestratorError(Exception):
    """Base class for errors raised by BranchOrchestrator."""

    # Reported conditions: hook callers print a notice and carry on.
    reported_only = False


class NotARepository(OrchestratorError):
    reported_only = True

    def __init__(self, path: object = None) -> None:
        where = f": {path}" if path is not None else ""
        super().__init__(f"Not a git repository{where}; continuing without branch management.")
        self.path = path


class SessionAlreadyActive(OrchestratorError):
    def __init__(self, workflow_id: str, feature_branch: str) -> None:
        super().__init__(
            f"A session for '{workflow_id}' is already active on '{feature_branch}'. "
            "Run 'phasebranch complete' or 'phasebranch abandon' first."
        )
        self.workflow_id = workflow_id
        self.feature_branch = feature_branch


class NoActiveSession(OrchestratorError):
    reported_only = True

    def __init__(self) -> None:
        super().__init__("No active session; nothing to complete.")


class VcsFailure(OrchestratorError):
    """A version-control operation failed while deriving the feature branch."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Version control failure: {cause}")
        self.cause = cause


class IntegrationDisabled(OrchestratorError):
    reported_only = True

    def __init__(self) -> None:
        super().__init__("Git integration is disabled (git.enabled = false).")


class BeginCancelled(OrchestratorError):
    reported_only = True

    def __init__(self, reason: str = "Cancelled by user.") -> None:
        super().__init__(reason)


class CorruptSession(OrchestratorError):
    """The session file exists but cannot be parsed; it is left in place."""
