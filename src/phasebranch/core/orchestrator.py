"""BranchOrchestrator - decides, records and reconciles the branch for each workflow."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from phasebranch.config.settings import GitIntegrationSettings, PhaseBranchSettings
from phasebranch.core.commit_message import compose
from phasebranch.core.context import (
    ChangeSet,
    CompletionOutcome,
    CompletionReport,
    LedgerEntry,
    LedgerStatus,
    OrchestratorState,
    SessionInfo,
    SessionRecord,
    feature_branch_name,
    phase_branch_name,
)
from phasebranch.core.errors import (
    BeginCancelled,
    IntegrationDisabled,
    NoActiveSession,
    NotARepository,
    SessionAlreadyActive,
    VcsFailure,
)
from phasebranch.core.phases import UNSCOPED_PHASE, PhaseTable
from phasebranch.core.review import Confirm, ReviewPrompter
from phasebranch.core.session import SessionStore
from phasebranch.vcs.base import NothingToCommit, VcsAdapter, VcsError

logger = logging.getLogger(__name__)

# Characters git rejects in ref names, plus whitespace.
_INVALID_WORKFLOW_ID = re.compile(r"[\s~^:?*\[\\]|\.\.|@\{|^[-/.]|[/.]$|\.lock$")


def _accept_default(message: str, default: bool) -> bool:
    return default


def validate_workflow_id(workflow_id: str) -> str:
    """Strip *workflow_id* and reject values git could not use in a branch name."""
    cleaned = workflow_id.strip()
    if not cleaned:
        raise ValueError("Workflow identifier cannot be empty")
    if _INVALID_WORKFLOW_ID.search(cleaned):
        raise ValueError(f"Workflow identifier is not usable in a branch name: {workflow_id!r}")
    return cleaned


class BranchOrchestrator:
    """State machine spanning the pre-workflow and post-workflow hook calls.

    ``begin_work`` and ``complete_work`` normally run in separate processes;
    everything they share goes through the SessionStore.
    """

    def __init__(
        self,
        vcs: VcsAdapter,
        store: SessionStore,
        settings: GitIntegrationSettings | None = None,
        phases: PhaseTable | None = None,
        confirm: Confirm | None = None,
        reviewer: ReviewPrompter | None = None,
    ) -> None:
        self._vcs = vcs
        self._store = store
        self._settings = settings or GitIntegrationSettings()
        self._phases = phases or PhaseTable()
        self._confirm = confirm or _accept_default
        self._reviewer = reviewer or ReviewPrompter(vcs, self._confirm)
        self._state = OrchestratorState.READY if store.has_session() else OrchestratorState.IDLE
        self.history: list[OrchestratorState] = [self._state]

    @classmethod
    def from_settings(
        cls, settings: PhaseBranchSettings, confirm: Confirm | None = None
    ) -> BranchOrchestrator:
        """Wire a GitAdapter, SessionStore and PhaseTable from settings."""
        from phasebranch.vcs.git_adapter import GitAdapter

        project_path = settings.project.path.resolve()
        vcs = GitAdapter(
            project_path,
            remote_name=settings.git.remote_name,
            timeout=settings.git.timeout_sec,
        )

        state_dir = settings.project.state_dir
        if state_dir is None:
            state_dir = vcs.state_dir() if vcs.is_repository() else project_path / ".phasebranch"

        phases = PhaseTable()
        if settings.project.phase_map_file:
            phases = PhaseTable.from_yaml(Path(settings.project.phase_map_file))

        return cls(
            vcs=vcs,
            store=SessionStore(state_dir),
            settings=settings.git,
            phases=phases,
            confirm=confirm,
        )

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def phases(self) -> PhaseTable:
        return self._phases

    @property
    def store(self) -> SessionStore:
        return self._store

    def _transition(self, state: OrchestratorState) -> None:
        logger.debug("Orchestrator state: %s -> %s", self._state.value, state.value)
        self._state = state
        self.history.append(state)

    def describe(self) -> SessionRecord | None:
        """The active session record, if any."""
        return self._store.load()

    # ------------------------------------------------------------------
    # begin_work
    # ------------------------------------------------------------------

    def begin_work(self, workflow_id: str) -> SessionInfo:
        """Put the working copy on the feature branch for *workflow_id*."""
        if not self._settings.enabled:
            raise IntegrationDisabled()
        workflow_id = validate_workflow_id(workflow_id)

        active = self._store.load()
        if active is not None:
            raise SessionAlreadyActive(active.workflow_id, active.feature_branch)

        if not self._vcs.is_repository():
            raise NotARepository()

        self._transition(OrchestratorState.DERIVING)
        try:
            current = self._vcs.current_branch()
            base_branch = self._interrupted_base(current, workflow_id) or current
            phase_number = self._phases.phase_of(workflow_id)
            branch, owner = self._resolve_feature_branch(base_branch, phase_number, workflow_id)

            if branch != current and self._settings.warn_dirty_workdir and self._vcs.is_dirty():
                proceed = self._confirm(
                    f"Working tree on '{current}' has uncommitted changes; "
                    f"they will move to '{branch}'. Continue?",
                    False,
                )
                if not proceed:
                    self._transition(OrchestratorState.IDLE)
                    raise BeginCancelled("Cancelled: working tree has uncommitted changes.")

            if owner is None:
                self._vcs.create_and_checkout(branch, base_branch)
            elif branch != current:
                self._vcs.checkout(branch)
        except VcsError as e:
            logger.warning("Could not prepare branch for %s: %s", workflow_id, e)
            self._transition(OrchestratorState.IDLE)
            raise VcsFailure(e) from e

        record = SessionRecord(
            workflow_id=workflow_id,
            phase_number=phase_number,
            base_branch=base_branch,
            feature_branch=branch,
            phase_branch=(
                phase_branch_name(base_branch, phase_number, self._settings.branch_separator)
                if phase_number != UNSCOPED_PHASE
                else None
            ),
        )
        if owner is not None:
            record.session_id = owner.session_id

        try:
            self._store.save(record)
            self._store.open_branch(record)
        except OSError:
            logger.error("Could not persist session for %s; returning to %s", branch, current)
            self._store.clear()
            self._return_to(current)
            self._transition(OrchestratorState.IDLE)
            raise

        self._transition(OrchestratorState.READY)
        logger.info(
            "Session %s: %s on %s (phase %d)",
            record.session_id, workflow_id, branch, phase_number,
        )
        return SessionInfo(record=record, created_branch=owner is None, resumed=owner is not None)

    def _resolve_feature_branch(
        self, base_branch: str, phase_number: int, workflow_id: str
    ) -> tuple[str, LedgerEntry | None]:
        """Pick the first free ``{base}/{phase}/{workflow}[-n]`` name.

        An existing branch is reused only when the ledger shows it was opened
        for this same workflow, phase and base and never completed: the
        signature of an interrupted session.  Returns the name and, when
        reusing, the ledger entry that owns it.
        """
        n = 1
        while True:
            candidate = feature_branch_name(
                base_branch, phase_number, workflow_id, n, self._settings.branch_separator
            )
            if not self._vcs.branch_exists(candidate):
                return candidate, None

            entry = self._store.ledger_entry(candidate)
            if (
                entry is not None
                and entry.status == LedgerStatus.OPEN
                and entry.workflow_id == workflow_id
                and entry.phase_number == phase_number
                and entry.base_branch == base_branch
            ):
                logger.info("Resuming interrupted session %s on %s", entry.session_id, candidate)
                return candidate, entry

            logger.info("Branch %s belongs to another session; trying next suffix", candidate)
            n += 1

    def _interrupted_base(self, current: str, workflow_id: str) -> str | None:
        """Base branch of an interrupted session for *workflow_id* still checked out."""
        entry = self._store.ledger_entry(current)
        if entry is not None and entry.status == LedgerStatus.OPEN and entry.workflow_id == workflow_id:
            return entry.base_branch
        return None

    def _return_to(self, branch: str) -> None:
        try:
            self._vcs.checkout(branch)
        except VcsError as e:
            logger.error("Could not return to %s: %s", branch, e)

    # ------------------------------------------------------------------
    # complete_work
    # ------------------------------------------------------------------

    def complete_work(self) -> CompletionReport:
        """Commit, push, offer review and converge on the phase branch.

        Once a session exists every git-side failure is downgraded to a
        warning on the report; the session always ends closed.
        """
        record = self._store.load()
        if record is None:
            raise NoActiveSession()
        if not self._settings.enabled:
            raise IntegrationDisabled()

        self._transition(OrchestratorState.RECONCILING)
        report = CompletionReport(
            record=record,
            outcome=CompletionOutcome.NO_CHANGES,
            phase_branch=record.phase_branch,
        )

        if not self._ensure_on_feature_branch(record, report):
            report.outcome = CompletionOutcome.UNCOMMITTED
            return self._finish(record, report)

        try:
            changes = self._vcs.changed_files()
        except VcsError as e:
            self._warn(report, f"Could not list changes: {e}")
            report.outcome = CompletionOutcome.UNCOMMITTED
            return self._finish(record, report)

        reconcile = True
        if changes:
            report.changed_files = changes.paths
            if not self._settings.auto_commit:
                report.outcome = CompletionOutcome.UNCOMMITTED
                self._warn(
                    report,
                    f"Auto-commit is off; {len(changes)} changed file(s) left on "
                    f"{record.feature_branch}",
                )
                reconcile = False
            elif self._settings.confirm_before_commit and not self._confirm(
                f"Commit {len(changes)} changed file(s) to '{record.feature_branch}'?", True
            ):
                report.outcome = CompletionOutcome.CANCELLED
                logger.info("Commit declined; closing session %s", record.session_id)
                return self._finish(record, report)
            else:
                reconcile = self._commit(record, report, changes)

        if report.outcome == CompletionOutcome.COMMITTED:
            self._transition(OrchestratorState.COMMITTED)
            if self._settings.auto_push:
                self._push(record, report)
            if self._settings.offer_review and record.phase_branch:
                report.review = self._reviewer.offer(
                    record.feature_branch, record.phase_branch, record.workflow_id
                )
        elif report.outcome == CompletionOutcome.NO_CHANGES:
            self._transition(OrchestratorState.NO_CHANGES)

        if reconcile and self._settings.auto_phase_switch and record.phase_branch:
            self._reconcile(record, report)

        return self._finish(record, report)

    def _ensure_on_feature_branch(self, record: SessionRecord, report: CompletionReport) -> bool:
        """Return to the session's feature branch if the workflow left it.

        Uncommitted changes travel with the checkout.  Returns False when the
        feature branch cannot be restored; nothing may be committed then.
        """
        try:
            current = self._vcs.current_branch()
            if current == record.feature_branch:
                return True
            self._vcs.checkout(record.feature_branch)
        except VcsError as e:
            self._warn(
                report,
                f"Not on {record.feature_branch} and could not switch back; "
                f"nothing committed: {e}",
            )
            return False
        self._warn(report, f"Working copy was on {current}; switched back to {record.feature_branch}")
        return True

    def _commit(
        self, record: SessionRecord, report: CompletionReport, changes: ChangeSet
    ) -> bool:
        """Stage and commit; returns whether phase reconciliation may follow."""
        try:
            self._vcs.stage_all()
            message = compose(
                self._settings.commit_template,
                record.phase_number,
                record.workflow_id,
                changes,
                self._settings.user_name,
            )
            report.commit_message = message
            report.commit_id = self._vcs.commit(message)
        except NothingToCommit:
            logger.info("Nothing to commit for %s after staging", record.workflow_id)
            report.outcome = CompletionOutcome.NO_CHANGES
            report.commit_message = None
            return True
        except VcsError as e:
            report.outcome = CompletionOutcome.UNCOMMITTED
            self._warn(report, f"Commit failed; changes left on {record.feature_branch}: {e}")
            return False

        report.outcome = CompletionOutcome.COMMITTED
        logger.info("Committed %s on %s", report.commit_id, record.feature_branch)
        return True

    def _push(self, record: SessionRecord, report: CompletionReport) -> None:
        try:
            self._vcs.push(record.feature_branch)
            report.pushed = True
        except VcsError as e:
            report.push_warning = str(e)
            self._warn(report, f"Push of {record.feature_branch} failed; commit kept locally: {e}")

    def _reconcile(self, record: SessionRecord, report: CompletionReport) -> None:
        target = record.phase_branch
        if target is None:
            return
        try:
            if self._vcs.branch_exists(target):
                self._vcs.checkout(target)
            else:
                self._vcs.create_and_checkout(target, record.base_branch)
        except VcsError as e:
            self._warn(report, f"Could not switch to phase branch {target}: {e}")
            return
        report.phase_switched = True
        self._transition(OrchestratorState.PHASE_SWITCHED)

    def _finish(self, record: SessionRecord, report: CompletionReport) -> CompletionReport:
        try:
            report.final_branch = self._vcs.current_branch()
        except VcsError as e:
            logger.warning("Could not read final branch: %s", e)
        self._store.clear()
        self._store.close_branch(record.feature_branch)
        self._transition(OrchestratorState.IDLE)
        return report

    def _warn(self, report: CompletionReport, message: str) -> None:
        logger.warning(message)
        report.warnings.append(message)

    # ------------------------------------------------------------------
    # abandon
    # ------------------------------------------------------------------

    def abandon_session(self) -> SessionRecord:
        """Close the active session without touching git."""
        record = self._store.load()
        if record is None:
            raise NoActiveSession()
        self._store.clear()
        self._store.close_branch(record.feature_branch)
        self._transition(OrchestratorState.IDLE)
        logger.info("Abandoned session %s (%s)", record.session_id, record.feature_branch)
        return record
