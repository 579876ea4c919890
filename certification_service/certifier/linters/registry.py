"""Protocol → linter registry -- one adapter per supported protocol."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from certifier.config import CertifierSettings
from certifier.linters.base import DocumentationLinter, ProtocolLinter
from certifier.linters.graphql import GraphqlLinter
from certifier.linters.markdown import MarkdownDocumentationLinter
from certifier.linters.protolint import GrpcLinter
from certifier.linters.runner import CommandRunner, run_command
from certifier.linters.spectral import EventLinter, RestLinter
from certifier.validator.models import ApiProtocol

LINTER_REGISTRY: Mapping[ApiProtocol, type[ProtocolLinter]] = MappingProxyType({
    ApiProtocol.REST: RestLinter,
    ApiProtocol.EVENT: EventLinter,
    ApiProtocol.GRPC: GrpcLinter,
    ApiProtocol.GRAPHQL: GraphqlLinter,
})


def build_linters(
    settings: CertifierSettings, runner: CommandRunner = run_command,
) -> Mapping[ApiProtocol, ProtocolLinter]:
    """Instantiate the adapter for every protocol; read-only afterwards."""
    return MappingProxyType({
        protocol: cls(settings, runner) for protocol, cls in LINTER_REGISTRY.items()
    })


def build_documentation_linter(
    settings: CertifierSettings, runner: CommandRunner = run_command,
) -> DocumentationLinter:
    return MarkdownDocumentationLinter(settings, runner)
