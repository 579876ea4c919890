"""ESLint (graphql-eslint) backed linter for GraphQL schemas."""

from __future__ import annotations

import logging
from pathlib import Path

from certifier.config import CertifierSettings
from certifier.errors import EngineFailure
from certifier.linters.base import LintOutcome, ProtocolLinter, wants
from certifier.linters.issues import GRAPHQL_ESLINT, from_eslint_result
from certifier.linters.runner import CommandRunner, parse_json_output, run_command
from certifier.validator.models import ApiProtocol, ValidationType

logger = logging.getLogger(__name__)

GRAPHQL_SUFFIXES = (".graphql", ".graphqls", ".gql")

# ESLint exits 2 on configuration or internal errors.
ESLINT_RUNTIME_ERROR = 2


def schema_files(spec_file: Path, work_dir: Path) -> list[Path]:
    """The schema file plus any other schema files shipped next to it."""
    files = sorted(p for p in work_dir.rglob("*") if p.suffix in GRAPHQL_SUFFIXES)
    if spec_file.resolve() not in {f.resolve() for f in files}:
        files.insert(0, spec_file)
    return files


class GraphqlLinter(ProtocolLinter):
    protocol = ApiProtocol.GRAPHQL

    def __init__(self, settings: CertifierSettings, runner: CommandRunner = run_command) -> None:
        self._ruleset = settings.graphql
        self._command = tuple(settings.eslint_command)
        self._runner = runner

    @property
    def number_of_design_rules(self) -> int:
        return self._ruleset.number_of_rules

    async def lint(
        self,
        spec_file: Path,
        work_dir: Path,
        validation_type: ValidationType | None = None,
    ) -> LintOutcome:
        outcome = LintOutcome()
        if not wants(validation_type, ValidationType.DESIGN):
            return outcome

        argv = [*self._command, "--format", "json", "--no-error-on-unmatched-pattern"]
        if self._ruleset.path is not None:
            argv.extend(["--config", str(self._ruleset.path)])
        argv.extend(str(f) for f in schema_files(spec_file, work_dir))

        output = await self._runner(argv, work_dir)
        if output.returncode >= ESLINT_RUNTIME_ERROR:
            raise EngineFailure(
                f"{GRAPHQL_ESLINT} failed (exit {output.returncode}): "
                f"{output.stderr.strip()[:500]}"
            )

        report = parse_json_output(output, GRAPHQL_ESLINT, empty=[])
        if not isinstance(report, list):
            raise EngineFailure(f"{GRAPHQL_ESLINT} report is not a list")

        for result in report:
            outcome.design_issues.extend(from_eslint_result(result, work_dir))
        logger.debug("%s: %d issue(s)", GRAPHQL_ESLINT, len(outcome.design_issues))
        return outcome
