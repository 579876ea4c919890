"""markdownlint-backed documentation linter."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from certifier.config import CertifierSettings
from certifier.errors import EngineFailure
from certifier.linters.base import DocumentationLinter
from certifier.linters.issues import MARKDOWNLINT, from_markdownlint_issue
from certifier.linters.runner import CommandRunner, parse_json_output, run_command
from certifier.validator.models import Issue

logger = logging.getLogger(__name__)


class MarkdownDocumentationLinter(DocumentationLinter):
    def __init__(self, settings: CertifierSettings, runner: CommandRunner = run_command) -> None:
        self._ruleset = settings.documentation
        self._command = tuple(settings.markdownlint_command)
        self._runner = runner

    @property
    def number_of_rules(self) -> int:
        return self._ruleset.number_of_rules

    async def lint(self, markdowns: Sequence[Path], work_dir: Path) -> list[Issue]:
        if not markdowns:
            logger.warning("No markdown files to lint for documentation")
            return []

        argv = [*self._command, "--json"]
        if self._ruleset.path is not None:
            argv.extend(["--config", str(self._ruleset.path)])
        argv.extend(str(m) for m in markdowns)

        output = await self._runner(argv, work_dir)
        report = parse_json_output(output, MARKDOWNLINT, empty=[])
        if not isinstance(report, list):
            raise EngineFailure(f"{MARKDOWNLINT} report is not a list")
        return [from_markdownlint_issue(raw, work_dir) for raw in report]
