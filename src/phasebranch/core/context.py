"""SessionRecord and the data models exchanged between the two hook calls."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field


# --- Enums ---


class OrchestratorState(str, enum.Enum):
    IDLE = "idle"
    DERIVING = "deriving"
    READY = "ready"
    RECONCILING = "reconciling"
    COMMITTED = "committed"
    NO_CHANGES = "no_changes"
    PHASE_SWITCHED = "phase_switched"


class CompletionOutcome(str, enum.Enum):
    COMMITTED = "committed"
    NO_CHANGES = "no_changes"
    UNCOMMITTED = "uncommitted"  # auto-commit disabled or the commit itself failed
    CANCELLED = "cancelled"


class ReviewStatus(str, enum.Enum):
    OFFERED = "offered"
    DECLINED = "declined"
    REMOTE_UNKNOWN = "remote_unknown"


class LedgerStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


# --- Data Models ---


class ChangeSet(BaseModel):
    """De-duplicated set of paths touched in the working copy."""

    modified: list[str] = Field(default_factory=list)
    staged: list[str] = Field(default_factory=list)
    untracked: list[str] = Field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        """Union of all three buckets, sorted, each path once."""
        return sorted(set(self.modified) | set(self.staged) | set(self.untracked))

    def __len__(self) -> int:
        return len(self.paths)

    def __bool__(self) -> bool:
        return bool(self.modified or self.staged or self.untracked)


class SessionRecord(BaseModel):
    """The persisted branch decision linking begin_work to complete_work."""

    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    workflow_id: str
    phase_number: int = Field(default=0, ge=0)
    base_branch: str
    feature_branch: str
    phase_branch: str | None = None  # None for phase 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LedgerEntry(BaseModel):
    """Ownership marker for a feature branch created by the orchestrator."""

    branch: str
    session_id: str
    workflow_id: str
    phase_number: int
    base_branch: str
    status: LedgerStatus = LedgerStatus.OPEN
    opened_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    closed_at: datetime | None = None


class SessionInfo(BaseModel):
    """Result of begin_work."""

    record: SessionRecord
    created_branch: bool = True
    resumed: bool = False


class ReviewOutcome(BaseModel):
    """Result of offering a review request."""

    status: ReviewStatus
    url: str | None = None
    from_branch: str
    to_branch: str


class CompletionReport(BaseModel):
    """Result of complete_work."""

    record: SessionRecord
    outcome: CompletionOutcome
    changed_files: list[str] = Field(default_factory=list)
    commit_id: str | None = None
    commit_message: str | None = None
    pushed: bool = False
    push_warning: str | None = None
    review: ReviewOutcome | None = None
    phase_branch: str | None = None
    phase_switched: bool = False
    final_branch: str | None = None
    warnings: list[str] = Field(default_factory=list)


# --- Branch naming ---


def feature_branch_name(
    base_branch: str, phase_number: int, workflow_id: str, n: int = 1, separator: str = "/"
) -> str:
    """Build ``{base}/{phase}/{workflow}`` with a ``-{n}`` suffix for n > 1."""
    name = separator.join([base_branch, str(phase_number), workflow_id])
    if n > 1:
        name = f"{name}-{n}"
    return name


def phase_branch_name(base_branch: str, phase_number: int, separator: str = "/") -> str:
    return f"{base_branch}{separator}{phase_number}"
