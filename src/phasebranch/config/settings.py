"""Pydantic Settings models for phasebranch configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from phasebranch.core.commit_message import DEFAULT_COMMIT_TEMPLATE


class GitIntegrationSettings(BaseModel):
    """Switches for what happens around each workflow."""

    enabled: bool = True
    auto_commit: bool = True
    confirm_before_commit: bool = False
    auto_push: bool = True
    offer_review: bool = True
    auto_phase_switch: bool = True
    warn_dirty_workdir: bool = True
    commit_template: str = DEFAULT_COMMIT_TEMPLATE
    user_name: str = ""
    remote_name: str = "origin"
    branch_separator: str = "/"
    timeout_sec: float = 60

    @field_validator("branch_separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """Separator must be non-empty and legal inside a git ref name."""
        if not v:
            raise ValueError("branch_separator cannot be empty")
        if any(c in v for c in " ~^:?*[\\") or ".." in v:
            raise ValueError(f"branch_separator contains characters git forbids: {v!r}")
        return v

    @field_validator("timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_sec must be > 0")
        return v


class ProjectSettings(BaseModel):
    """Project-related configuration."""

    path: Path = Field(default_factory=Path.cwd)
    state_dir: Path | None = None  # default: <git-dir>/phasebranch
    phase_map_file: Path | None = None


class PhaseBranchSettings(BaseSettings):
    """Root settings with layered config: defaults -> file -> env -> CLI."""

    model_config = SettingsConfigDict(
        env_prefix="PHASEBRANCH_",
        env_nested_delimiter="__",
    )

    git: GitIntegrationSettings = Field(default_factory=GitIntegrationSettings)
    project: ProjectSettings = Field(default_factory=ProjectSettings)
