"""Unit tests for src/phasebranch/core/session.py."""

from __future__ import annotations

import json

import pytest

from phasebranch.core.context import LedgerStatus, SessionRecord
from phasebranch.core.errors import CorruptSession
from phasebranch.core.session import SessionStore


def _record(**overrides) -> SessionRecord:
    data = dict(
        workflow_id="brainstorming",
        phase_number=1,
        base_branch="main",
        feature_branch="main/1/brainstorming",
        phase_branch="main/1",
    )
    data.update(overrides)
    return SessionRecord(**data)


class TestSessionRecordPersistence:
    def test_load_without_session(self, tmp_path):
        store = SessionStore(tmp_path / "state")
        assert store.load() is None
        assert store.has_session() is False

    def test_save_and_load_roundtrip(self, tmp_path):
        store = SessionStore(tmp_path / "state")
        record = _record()
        store.save(record)

        loaded = store.load()
        assert loaded == record
        assert store.has_session() is True

    def test_save_creates_state_dir(self, tmp_path):
        state_dir = tmp_path / "deep" / "state"
        SessionStore(state_dir).save(_record())
        assert (state_dir / "session.json").is_file()

    def test_no_temp_file_left_behind(self, tmp_path):
        store = SessionStore(tmp_path)
        store.save(_record())
        assert not list(tmp_path.glob("*.tmp"))

    def test_clear(self, tmp_path):
        store = SessionStore(tmp_path)
        store.save(_record())
        store.clear()
        assert store.load() is None

    def test_clear_is_idempotent(self, tmp_path):
        store = SessionStore(tmp_path)
        store.clear()
        store.clear()

    def test_unscoped_record_has_no_phase_branch(self, tmp_path):
        store = SessionStore(tmp_path)
        store.save(_record(phase_number=0, feature_branch="main/0/x", phase_branch=None))
        assert store.load().phase_branch is None

    def test_corrupt_session_raises(self, tmp_path):
        store = SessionStore(tmp_path)
        store.session_path.write_text("{not json")
        with pytest.raises(CorruptSession):
            store.load()
        assert store.session_path.exists()

    def test_session_missing_fields_raises(self, tmp_path):
        store = SessionStore(tmp_path)
        store.session_path.write_text(json.dumps({"workflow_id": "x"}))
        with pytest.raises(CorruptSession):
            store.load()


class TestBranchLedger:
    def test_open_branch_records_owner(self, tmp_path):
        store = SessionStore(tmp_path)
        record = _record()
        store.open_branch(record)

        entry = store.ledger_entry("main/1/brainstorming")
        assert entry is not None
        assert entry.session_id == record.session_id
        assert entry.workflow_id == "brainstorming"
        assert entry.phase_number == 1
        assert entry.base_branch == "main"
        assert entry.status == LedgerStatus.OPEN
        assert entry.closed_at is None

    def test_close_branch(self, tmp_path):
        store = SessionStore(tmp_path)
        store.open_branch(_record())
        store.close_branch("main/1/brainstorming")

        entry = store.ledger_entry("main/1/brainstorming")
        assert entry.status == LedgerStatus.CLOSED
        assert entry.closed_at is not None

    def test_close_unknown_branch_is_noop(self, tmp_path):
        store = SessionStore(tmp_path)
        store.close_branch("nope")
        assert store.list_ledger() == []

    def test_list_ledger_in_opening_order(self, tmp_path):
        store = SessionStore(tmp_path)
        store.open_branch(_record(feature_branch="main/1/brainstorming"))
        store.open_branch(_record(feature_branch="main/1/brainstorming-2"))
        branches = [e.branch for e in store.list_ledger()]
        assert branches == ["main/1/brainstorming", "main/1/brainstorming-2"]

    def test_unreadable_ledger_treated_as_empty(self, tmp_path):
        store = SessionStore(tmp_path)
        store.ledger_path.write_text("garbage")
        assert store.ledger_entry("main/1/brainstorming") is None
        assert store.list_ledger() == []

    def test_unreadable_ledger_is_kept_when_writing(self, tmp_path):
        store = SessionStore(tmp_path)
        store.open_branch(_record())
        original = store.ledger_path.read_text()
        store.ledger_path.write_text(original[:-3])

        store.open_branch(_record(workflow_id="research", feature_branch="main/1/research"))

        assert store.corrupt_ledger_path.read_text() == original[:-3]
        assert [e.branch for e in store.list_ledger()] == ["main/1/research"]

    def test_ledger_survives_session_clear(self, tmp_path):
        store = SessionStore(tmp_path)
        record = _record()
        store.save(record)
        store.open_branch(record)
        store.clear()
        assert store.ledger_entry(record.feature_branch) is not None
