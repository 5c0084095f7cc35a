"""Config file discovery and loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from phasebranch.config.settings import (
    GitIntegrationSettings,
    PhaseBranchSettings,
    ProjectSettings,
)

CONFIG_FILENAMES = ["phasebranch.yaml", "phasebranch.yml", ".phasebranch.yaml", ".phasebranch.yml"]


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest phasebranch config file at or above *start_dir* (default: cwd)."""
    origin = (start_dir or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        found = next(
            (directory / name for name in CONFIG_FILENAMES if (directory / name).is_file()),
            None,
        )
        if found is not None:
            return found
    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Parsed YAML mapping from *path*; anything else counts as empty."""
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        return {}
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """New dict with *override* laid over *base*; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def load_settings(
    project_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> PhaseBranchSettings:
    """Load settings with full layering: defaults -> config file -> env -> overrides."""
    file_data: dict[str, Any] = {}
    config_file = find_config_file(project_path)
    if config_file:
        file_data = load_config_file(config_file)

    git_data = dict(file_data.get("git") or {})
    project_data = dict(file_data.get("project") or {})

    # Relative paths in the file are relative to the file, not the cwd
    if config_file:
        for key in ("state_dir", "phase_map_file"):
            value = project_data.get(key)
            if value and not Path(value).is_absolute():
                project_data[key] = str(config_file.parent / value)

    if project_path and "path" not in project_data:
        project_data["path"] = str(project_path)

    # Pydantic doesn't parse env vars when we pass explicit kwargs,
    # so we need to handle them manually
    _merge_env_vars(git_data, "PHASEBRANCH_GIT__")
    _merge_env_vars(project_data, "PHASEBRANCH_PROJECT__")

    if overrides:
        git_data = _deep_merge(git_data, overrides.get("git", {}))
        project_data = _deep_merge(project_data, overrides.get("project", {}))

    return PhaseBranchSettings(
        git=GitIntegrationSettings(**git_data),
        project=ProjectSettings(**project_data),
    )


def _merge_env_vars(data: dict[str, Any], prefix: str) -> None:
    """Merge environment variables with the given prefix into data dict."""
    for key, value in os.environ.items():
        if key.startswith(prefix):
            field_name = key[len(prefix):].lower()
            # Parse boolean values
            if value.lower() in ("true", "1", "yes", "on"):
                data[field_name] = True
            elif value.lower() in ("false", "0", "no", "off"):
                data[field_name] = False
            else:
                data[field_name] = value
