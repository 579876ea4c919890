"""Rule engine adapters for each specification protocol."""

from certifier.linters.base import DocumentationLinter, LintOutcome, ProtocolLinter
from certifier.linters.registry import build_documentation_linter, build_linters
from certifier.linters.runner import CommandOutput, CommandRunner, run_command

__all__ = [
    "CommandOutput",
    "CommandRunner",
    "DocumentationLinter",
    "LintOutcome",
    "ProtocolLinter",
    "build_documentation_linter",
    "build_linters",
    "run_command",
]
