"""Abstract rule engine adapter interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field

from certifier.validator.models import ApiProtocol, Issue, ValidationType


class LintOutcome(BaseModel):
    """Canonical issues produced for one specification, split by dimension."""

    design_issues: list[Issue] = Field(default_factory=list)
    security_issues: list[Issue] = Field(default_factory=list)


def wants(requested: ValidationType | None, dimension: ValidationType) -> bool:
    """True when ``dimension`` is in scope for a request (None means all)."""
    return requested is None or requested == dimension


class ProtocolLinter(ABC):
    """Rule engine adapter for one protocol.

    Implementations only read from the working directory and keep no state
    between calls, so one instance can serve concurrent validations.
    """

    protocol: ClassVar[ApiProtocol]

    @property
    @abstractmethod
    def number_of_design_rules(self) -> int:
        """Number of design rules applied to a specification."""
        ...

    @property
    def number_of_security_rules(self) -> int:
        return 0

    @abstractmethod
    async def lint(
        self,
        spec_file: Path,
        work_dir: Path,
        validation_type: ValidationType | None = None,
    ) -> LintOutcome:
        """Lint ``spec_file`` for the requested dimension (None means all).

        Raises:
            EngineFailure: If the engine crashes or cannot parse the spec.
        """
        ...


class DocumentationLinter(ABC):
    """Rule engine adapter for API documentation (markdown)."""

    @property
    @abstractmethod
    def number_of_rules(self) -> int:
        ...

    @abstractmethod
    async def lint(self, markdowns: Sequence[Path], work_dir: Path) -> list[Issue]:
        ...
