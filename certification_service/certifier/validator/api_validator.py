"""Per-specification validation: resolve the file, lint it, score it.

Order: 1. Resolve file name → 2. Lint → 3. Score → 4. Aggregate.
Any failure stops the pipeline for that API only and is reported as an
ApiValidationError naming the stage that failed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from certifier.errors import EngineFailure, FileResolutionError, SpecNotFoundError
from certifier.linters.base import wants
from certifier.scoring import (
    NOT_APPLICABLE,
    calculate_average_score,
    calculate_rating,
    score_linting,
)
from certifier.validator.models import (
    ApiProtocol,
    ApiRecord,
    ApiValidationError,
    ApiValidationResult,
    Issue,
    ValidationDimension,
    ValidationType,
    has_errors,
)

if TYPE_CHECKING:
    from certifier.config import CertifierSettings
    from certifier.linters.base import DocumentationLinter, LintOutcome, ProtocolLinter
    from certifier.repository.models import ApiEntry

logger = logging.getLogger(__name__)

FULL_SCORE = 100.0


class ValidationStage(str, Enum):
    RESOLVING_FILE = "RESOLVING_FILE"
    LINTING = "LINTING"
    SCORING = "SCORING"
    DONE = "DONE"
    ERRORED = "ERRORED"


def resolve_api_file(entry: ApiEntry, event_default_file: str) -> str:
    """Pick the specification file name for an entry.

    Explicit ``definition-file`` wins, then the EVENT default file, then the
    base name of ``definition-path``.

    Raises:
        FileResolutionError: If no name can be derived.
    """
    if entry.definition_file:
        return entry.definition_file
    if entry.protocol == ApiProtocol.EVENT:
        return event_default_file
    if entry.definition_path:
        name = Path(entry.definition_path).name
        if name:
            return name
    raise FileResolutionError(
        f"Cannot determine the specification file for API '{entry.name}'"
    )


def locate_spec_file(file_name: str, work_dir: Path) -> Path:
    """Resolve ``file_name`` inside ``work_dir``.

    Raises:
        FileResolutionError: If the name points outside the working directory.
        SpecNotFoundError: If the file does not exist.
    """
    root = work_dir.resolve()
    spec_file = (root / file_name).resolve()
    if not spec_file.is_relative_to(root):
        raise FileResolutionError(f"Specification file escapes working directory: {file_name}")
    if not spec_file.is_file():
        raise SpecNotFoundError(f"Specification file not found: {file_name}")
    return spec_file


def _dimension(
    validation_type: ValidationType, score: float, issues: list[Issue],
) -> ValidationDimension:
    info = calculate_rating(score)
    return ValidationDimension(
        validation_type=validation_type,
        score=score,
        rating=info.rating,
        rating_description=info.rating_description,
        issues=issues,
    )


class ApiValidator:
    """Runs one specification through its protocol linter and the scorer."""

    def __init__(
        self,
        settings: CertifierSettings,
        linters: Mapping[ApiProtocol, ProtocolLinter],
        documentation_linter: DocumentationLinter | None = None,
    ) -> None:
        self._settings = settings
        self._linters = linters
        self._documentation_linter = documentation_linter

    async def validate(
        self,
        entry: ApiEntry,
        work_dir: Path,
        validation_type: ValidationType = ValidationType.OVERALL_SCORE,
        markdowns: Sequence[Path] = (),
    ) -> ApiRecord:
        """Validate ``entry`` whose files are already in ``work_dir``.

        Never raises for per-API failures; returns an error record instead.
        """
        stage = ValidationStage.RESOLVING_FILE
        try:
            file_name = resolve_api_file(entry, self._settings.event_default_file)
            spec_file = locate_spec_file(file_name, work_dir)

            stage = ValidationStage.LINTING
            logger.info("Linting %s (%s) from %s", entry.name, entry.protocol.value, file_name)
            linter = self._linters.get(entry.protocol)
            if linter is None:
                raise EngineFailure(f"No linter registered for {entry.protocol.value}")
            requested = (
                None if validation_type == ValidationType.OVERALL_SCORE else validation_type
            )
            outcome = await linter.lint(spec_file, work_dir, requested)
            doc_issues = await self._lint_documentation(requested, markdowns, work_dir)

            stage = ValidationStage.SCORING
            result = self._score(entry, linter, requested, outcome, doc_issues)
            stage = ValidationStage.DONE
            logger.info(
                "API '%s' scored %.2f (%s)", entry.name, result.score, result.rating.value,
            )
            return result
        except Exception as e:
            failed_at, stage = stage, ValidationStage.ERRORED
            logger.exception("API '%s' failed while %s", entry.name, failed_at.value)
            error = f"{failed_at.value}: {e}"
            return ApiValidationError(
                api_name=entry.name,
                definition_path=entry.definition_path,
                error=error,
            )

    async def _lint_documentation(
        self,
        requested: ValidationType | None,
        markdowns: Sequence[Path],
        work_dir: Path,
    ) -> list[Issue] | None:
        """Documentation issues, or None when documentation is not scored."""
        if (
            not self._settings.documentation_enabled
            or self._documentation_linter is None
            or not wants(requested, ValidationType.DOCUMENTATION)
        ):
            return None
        return await self._documentation_linter.lint(markdowns, work_dir)

    def _score(
        self,
        entry: ApiEntry,
        linter: ProtocolLinter,
        requested: ValidationType | None,
        outcome: LintOutcome,
        doc_issues: list[Issue] | None,
    ) -> ApiValidationResult:
        # Dimensions that were not asked for stay at full score, whatever the linter returned.
        if wants(requested, ValidationType.DESIGN):
            design = _dimension(
                ValidationType.DESIGN,
                score_linting(outcome.design_issues, linter.number_of_design_rules),
                outcome.design_issues,
            )
        else:
            design = _dimension(ValidationType.DESIGN, FULL_SCORE, [])

        if entry.protocol == ApiProtocol.REST and wants(requested, ValidationType.SECURITY):
            security = _dimension(
                ValidationType.SECURITY,
                score_linting(outcome.security_issues, linter.number_of_security_rules),
                outcome.security_issues,
            )
        else:
            security = _dimension(ValidationType.SECURITY, FULL_SCORE, [])

        scored = [(design.score, ValidationType.DESIGN)]
        if entry.protocol == ApiProtocol.REST:
            scored.append((security.score, ValidationType.SECURITY))

        if doc_issues is None:
            documentation = ValidationDimension(
                validation_type=ValidationType.DOCUMENTATION,
                score=0,
                rating=NOT_APPLICABLE.rating,
                rating_description=NOT_APPLICABLE.rating_description,
            )
        else:
            documentation = _dimension(
                ValidationType.DOCUMENTATION,
                score_linting(doc_issues, self._documentation_linter.number_of_rules),
                doc_issues,
            )
            scored.append((documentation.score, ValidationType.DOCUMENTATION))

        weights = self._settings.weights_for(entry.protocol).as_mapping()
        overall = calculate_average_score(scored, weights)
        overall_info = calculate_rating(overall)

        all_issues = [*design.issues, *security.issues, *documentation.issues]
        return ApiValidationResult(
            api_name=entry.name,
            api_version=entry.version,
            api_protocol=entry.protocol,
            design=design,
            security=security,
            documentation=documentation,
            score=overall,
            rating=overall_info.rating,
            rating_description=overall_info.rating_description,
            has_errors=has_errors(all_issues),
        )
