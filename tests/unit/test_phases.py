"""Unit tests for src/phasebranch/core/phases.py."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from phasebranch.core.phases import (
    DEFAULT_PHASE_MAP,
    UNSCOPED_PHASE,
    PhaseTable,
    phase_label,
)


class TestDefaultMapping:
    @pytest.mark.parametrize(
        "workflow_id, phase",
        [
            ("brainstorming", 1),
            ("research", 1),
            ("create-product-brief", 1),
            ("create-prd", 2),
            ("create-ux-design", 2),
            ("create-architecture", 3),
            ("create-epics-and-stories", 3),
            ("check-implementation-readiness", 3),
            ("sprint-planning", 4),
            ("create-story", 4),
            ("dev-story", 4),
            ("code-review", 4),
            ("retrospective", 4),
        ],
    )
    def test_known_workflows(self, workflow_id, phase):
        assert PhaseTable().phase_of(workflow_id) == phase

    def test_unknown_workflow_is_unscoped(self):
        assert PhaseTable().phase_of("document-project") == UNSCOPED_PHASE

    def test_empty_identifier_is_unscoped(self):
        assert PhaseTable().phase_of("") == 0

    def test_surrounding_whitespace_ignored(self):
        assert PhaseTable().phase_of("  dev-story\n") == 4

    def test_lookup_is_case_sensitive(self):
        assert PhaseTable().phase_of("Dev-Story") == 0

    def test_items_sorted_by_phase_then_name(self):
        items = PhaseTable().items()
        assert items[0] == ("brainstorming", 1)
        assert [p for _, p in items] == sorted(p for _, p in items)
        assert len(items) == len(DEFAULT_PHASE_MAP)

    def test_contains(self):
        table = PhaseTable()
        assert "create-prd" in table
        assert "nope" not in table


class TestPhaseLabel:
    def test_labels(self):
        assert phase_label(1) == "Analysis"
        assert phase_label(2) == "Planning"
        assert phase_label(3) == "Solutioning"
        assert phase_label(4) == "Implementation"

    def test_unlabelled_phase_falls_back(self):
        assert phase_label(0) == "Workflow"
        assert phase_label(7) == "Workflow"


class TestFromYaml:
    def _write(self, tmp_path: Path, data) -> Path:
        path = tmp_path / "phase-map.yaml"
        path.write_text(yaml.dump(data))
        return path

    def test_flat_mapping_merges_over_defaults(self, tmp_path):
        table = PhaseTable.from_yaml(self._write(tmp_path, {"document-project": 1, "dev-story": 3}))
        assert table.phase_of("document-project") == 1
        assert table.phase_of("dev-story") == 3
        assert table.phase_of("brainstorming") == 1

    def test_nested_under_phases_key(self, tmp_path):
        table = PhaseTable.from_yaml(self._write(tmp_path, {"phases": {"quick-spec": 2}}))
        assert table.phase_of("quick-spec") == 2

    def test_non_mapping_uses_defaults(self, tmp_path):
        table = PhaseTable.from_yaml(self._write(tmp_path, ["a", "b"]))
        assert table.phase_of("create-prd") == 2
        assert "a" not in table

    def test_non_integer_phase_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid phase"):
            PhaseTable.from_yaml(self._write(tmp_path, {"x": "two"}))

    def test_negative_phase_rejected(self, tmp_path):
        with pytest.raises(ValueError, match=">= 0"):
            PhaseTable.from_yaml(self._write(tmp_path, {"x": -1}))
