"""SessionStore: the session record and branch ledger persisted between hook calls."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from phasebranch.core.context import LedgerEntry, LedgerStatus, SessionRecord
from phasebranch.core.errors import CorruptSession

logger = logging.getLogger(__name__)

SESSION_FILENAME = "session.json"
LEDGER_FILENAME = "branches.json"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, path)


class SessionStore:
    """File-backed store for the single active SessionRecord.

    The session file doubles as the mutual-exclusion token: while it exists a
    second session cannot begin.  The ledger remembers which session created
    each feature branch so collisions can be attributed.
    """

    def __init__(self, state_dir: Path) -> None:
        self._dir = Path(state_dir)
        self._session_path = self._dir / SESSION_FILENAME
        self._ledger_path = self._dir / LEDGER_FILENAME

    @property
    def session_path(self) -> Path:
        return self._session_path

    @property
    def ledger_path(self) -> Path:
        return self._ledger_path

    @property
    def corrupt_ledger_path(self) -> Path:
        return self._ledger_path.with_name(self._ledger_path.name + ".corrupt")

    # ------------------------------------------------------------------
    # Active session
    # ------------------------------------------------------------------

    def has_session(self) -> bool:
        return self._session_path.exists()

    def load(self) -> SessionRecord | None:
        """Return the active record, or None when no session is active.

        A present but unreadable file raises CorruptSession rather than
        being treated as absent, so a broken session is never silently lost.
        """
        if not self._session_path.exists():
            return None
        try:
            return SessionRecord.model_validate_json(
                self._session_path.read_text(encoding="utf-8")
            )
        except (ValidationError, ValueError, OSError) as e:
            raise CorruptSession(
                f"Session file {self._session_path} is unreadable: {e}"
            ) from e

    def save(self, record: SessionRecord) -> None:
        _write_atomic(self._session_path, record.model_dump_json(indent=2))

    def clear(self) -> None:
        try:
            self._session_path.unlink()
        except FileNotFoundError:
            pass

    # ------------------------------------------------------------------
    # Branch ledger
    # ------------------------------------------------------------------

    def _load_ledger(self) -> dict[str, LedgerEntry]:
        if not self._ledger_path.exists():
            return {}
        try:
            data = json.loads(self._ledger_path.read_text(encoding="utf-8"))
            return {name: LedgerEntry.model_validate(entry) for name, entry in data.items()}
        except (json.JSONDecodeError, ValidationError, AttributeError, OSError) as e:
            self._set_aside_ledger(e)
            return {}

    def _set_aside_ledger(self, error: Exception) -> None:
        """Move an unreadable ledger to ``branches.json.corrupt`` so no write replaces it."""
        try:
            os.replace(self._ledger_path, self.corrupt_ledger_path)
        except OSError as e:
            logger.error("Could not move unreadable branch ledger %s aside: %s", self._ledger_path, e)
            raise
        logger.warning(
            "Branch ledger %s is unreadable (%s); moved to %s and starting a new one",
            self._ledger_path, error, self.corrupt_ledger_path,
        )

    def _save_ledger(self, entries: dict[str, LedgerEntry]) -> None:
        data = {name: entry.model_dump(mode="json") for name, entry in entries.items()}
        _write_atomic(self._ledger_path, json.dumps(data, indent=2))

    def ledger_entry(self, branch: str) -> LedgerEntry | None:
        return self._load_ledger().get(branch)

    def list_ledger(self) -> list[LedgerEntry]:
        return sorted(self._load_ledger().values(), key=lambda e: e.opened_at)

    def open_branch(self, record: SessionRecord) -> None:
        """Mark record.feature_branch as owned by record.session_id."""
        entries = self._load_ledger()
        entries[record.feature_branch] = LedgerEntry(
            branch=record.feature_branch,
            session_id=record.session_id,
            workflow_id=record.workflow_id,
            phase_number=record.phase_number,
            base_branch=record.base_branch,
        )
        self._save_ledger(entries)

    def close_branch(self, branch: str) -> None:
        entries = self._load_ledger()
        entry = entries.get(branch)
        if entry is None:
            return
        entry.status = LedgerStatus.CLOSED
        entry.closed_at = _now()
        self._save_ledger(entries)
