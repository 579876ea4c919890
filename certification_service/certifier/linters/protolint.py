"""protolint-backed linter for gRPC (Protobuf) specs."""

from __future__ import annotations

import logging
from pathlib import Path

from certifier.config import CertifierSettings
from certifier.errors import EngineFailure
from certifier.linters.base import LintOutcome, ProtocolLinter, wants
from certifier.linters.issues import PROTOLINT, from_protolint_issue
from certifier.linters.runner import CommandRunner, parse_json_output, run_command
from certifier.validator.models import ApiProtocol, ValidationType

logger = logging.getLogger(__name__)


class GrpcLinter(ProtocolLinter):
    """Lints every .proto file in the working directory."""

    protocol = ApiProtocol.GRPC

    def __init__(self, settings: CertifierSettings, runner: CommandRunner = run_command) -> None:
        self._ruleset = settings.grpc
        self._command = tuple(settings.protolint_command)
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

        argv = [*self._command, "lint", "-reporter", "json"]
        if self._ruleset.path is not None:
            argv.extend(["-config_path", str(self._ruleset.path)])
        argv.append(str(work_dir))

        output = await self._runner(argv, work_dir)
        report = parse_json_output(output, PROTOLINT, empty={"lints": []})
        lints = report.get("lints") if isinstance(report, dict) else None
        if not isinstance(lints, list):
            raise EngineFailure(f"{PROTOLINT} report for {spec_file.name} has no 'lints' list")

        outcome.design_issues = [from_protolint_issue(raw, work_dir) for raw in lints]
        logger.debug("%s: %d issue(s) in %s", PROTOLINT, len(lints), work_dir)
        return outcome
