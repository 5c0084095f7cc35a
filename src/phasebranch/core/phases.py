"""Phase table: workflow identifier -> phase number, phase number -> label."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

UNSCOPED_PHASE = 0
DEFAULT_PHASE_LABEL = "Workflow"

DEFAULT_PHASE_MAP: dict[str, int] = {
    # Analysis
    "brainstorming": 1,
    "research": 1,
    "create-product-brief": 1,
    # Planning
    "create-prd": 2,
    "create-ux-design": 2,
    # Solutioning
    "create-architecture": 3,
    "create-epics-and-stories": 3,
    "check-implementation-readiness": 3,
    # Implementation
    "sprint-planning": 4,
    "create-story": 4,
    "dev-story": 4,
    "code-review": 4,
    "retrospective": 4,
}

PHASE_LABELS: dict[int, str] = {
    1: "Analysis",
    2: "Planning",
    3: "Solutioning",
    4: "Implementation",
}


def phase_label(phase_number: int) -> str:
    """Human-readable phase name; ``"Workflow"`` for anything unlabelled."""
    return PHASE_LABELS.get(phase_number, DEFAULT_PHASE_LABEL)


class PhaseTable:
    """Single authoritative workflow -> phase classification.

    Built once per orchestrator and shared by the begin and complete paths.
    """

    def __init__(self, mapping: dict[str, int] | None = None) -> None:
        self._mapping = dict(DEFAULT_PHASE_MAP if mapping is None else mapping)

    def phase_of(self, workflow_id: str) -> int:
        """Return the phase for *workflow_id*; unknown identifiers are phase 0."""
        return self._mapping.get(workflow_id.strip(), UNSCOPED_PHASE)

    def items(self) -> list[tuple[str, int]]:
        return sorted(self._mapping.items(), key=lambda kv: (kv[1], kv[0]))

    def __contains__(self, workflow_id: object) -> bool:
        return workflow_id in self._mapping

    @classmethod
    def from_yaml(cls, path: Path) -> PhaseTable:
        """Load a phase map file merged over the defaults.

        Accepts either a flat ``{workflow: phase}`` mapping or the same mapping
        nested under a top-level ``phases:`` key.
        """
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls(_merge_phase_map(DEFAULT_PHASE_MAP, _extract_entries(data, path)))


def _extract_entries(data: Any, path: Path) -> dict[str, int]:
    if not isinstance(data, dict):
        logger.warning("Phase map %s is not a mapping; using defaults", path)
        return {}
    if isinstance(data.get("phases"), dict):
        data = data["phases"]

    entries: dict[str, int] = {}
    for workflow_id, phase in data.items():
        try:
            number = int(phase)
        except (TypeError, ValueError):
            raise ValueError(
                f"Invalid phase for '{workflow_id}' in {path}: {phase!r}"
            ) from None
        if number < 0:
            raise ValueError(f"Phase for '{workflow_id}' in {path} must be >= 0, got {number}")
        entries[str(workflow_id)] = number
    return entries


def _merge_phase_map(base: dict[str, int], override: dict[str, int]) -> dict[str, int]:
    result = base.copy()
    result.update(override)
    return result
