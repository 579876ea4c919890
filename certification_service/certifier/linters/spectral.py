"""Spectral-backed linters for OpenAPI (REST) and AsyncAPI (EVENT) specs."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from certifier.config import CertifierSettings, RulesetConfig
from certifier.errors import EngineFailure
from certifier.linters.base import LintOutcome, ProtocolLinter, wants
from certifier.linters.issues import SPECTRAL, from_spectral_issue
from certifier.linters.runner import CommandRunner, parse_json_output, run_command
from certifier.validator.models import ApiProtocol, Issue, ValidationType

logger = logging.getLogger(__name__)

# Spectral exits 1 when findings exceed the fail severity, 2 on runtime errors.
SPECTRAL_RUNTIME_ERROR = 2


class SpectralEngine:
    """Runs ``spectral lint`` against one file with one ruleset."""

    def __init__(self, command: Sequence[str], runner: CommandRunner = run_command) -> None:
        self._command = tuple(command)
        self._runner = runner

    async def lint_file(
        self, file: Path, ruleset: RulesetConfig, work_dir: Path,
    ) -> list[Issue]:
        argv = [*self._command, "lint", str(file), "--format", "json", "--quiet"]
        if ruleset.path is not None:
            argv.extend(["--ruleset", str(ruleset.path)])

        output = await self._runner(argv, work_dir)
        if output.returncode >= SPECTRAL_RUNTIME_ERROR:
            raise EngineFailure(
                f"{SPECTRAL} failed on {file.name} (exit {output.returncode}): "
                f"{output.stderr.strip()[:500]}"
            )

        report = parse_json_output(output, SPECTRAL, empty=[])
        if not isinstance(report, list):
            raise EngineFailure(f"{SPECTRAL} report for {file.name} is not a list")

        issues = [from_spectral_issue(raw, file, work_dir) for raw in report]
        logger.debug("%s: %d issue(s) in %s", SPECTRAL, len(issues), file.name)
        return issues


class RestLinter(ProtocolLinter):
    """OpenAPI design and security rulesets."""

    protocol = ApiProtocol.REST

    def __init__(self, settings: CertifierSettings, runner: CommandRunner = run_command) -> None:
        self._general = settings.rest_general
        self._security = settings.rest_security
        self._engine = SpectralEngine(settings.spectral_command, runner)

    @property
    def number_of_design_rules(self) -> int:
        return self._general.number_of_rules

    @property
    def number_of_security_rules(self) -> int:
        return self._security.number_of_rules

    async def lint(
        self,
        spec_file: Path,
        work_dir: Path,
        validation_type: ValidationType | None = None,
    ) -> LintOutcome:
        outcome = LintOutcome()
        if wants(validation_type, ValidationType.DESIGN):
            outcome.design_issues = await self._engine.lint_file(spec_file, self._general, work_dir)
        if wants(validation_type, ValidationType.SECURITY):
            outcome.security_issues = await self._engine.lint_file(
                spec_file, self._security, work_dir,
            )
        return outcome


class EventLinter(ProtocolLinter):
    """AsyncAPI design ruleset plus the Avro ruleset for bundled schemas."""

    protocol = ApiProtocol.EVENT

    def __init__(self, settings: CertifierSettings, runner: CommandRunner = run_command) -> None:
        self._general = settings.event_general
        self._avro = settings.avro_general
        self._engine = SpectralEngine(settings.spectral_command, runner)

    @property
    def number_of_design_rules(self) -> int:
        return self._general.number_of_rules + self._avro.number_of_rules

    async def lint(
        self,
        spec_file: Path,
        work_dir: Path,
        validation_type: ValidationType | None = None,
    ) -> LintOutcome:
        outcome = LintOutcome()
        if not wants(validation_type, ValidationType.DESIGN):
            return outcome

        issues = await self._engine.lint_file(spec_file, self._general, work_dir)
        for schema in sorted(work_dir.rglob("*.avsc")):
            issues.extend(await self._engine.lint_file(schema, self._avro, work_dir))
        outcome.design_issues = issues
        return outcome
