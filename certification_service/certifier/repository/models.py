"""Repository discovery models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from certifier.validator.models import ApiProtocol


class ApiEntry(BaseModel):
    """One specification candidate listed in the repository metadata."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None
    protocol: ApiProtocol
    definition_path: str | None = None
    definition_file: str | None = None


class RepositoryDescriptor(BaseModel):
    """Read-only index of a repository: its APIs and default docs."""

    model_config = ConfigDict(frozen=True)

    root_folder: Path
    apis: list[ApiEntry] = Field(default_factory=list)
    markdowns: list[Path] = Field(default_factory=list)
    diagnostics: list[str] = Field(default_factory=list)
