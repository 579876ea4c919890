"""Certification service -- transport-independent entry points."""

from __future__ import annotations

import asyncio
import logging
import tempfile
from collections.abc import AsyncIterator, Iterator, Mapping
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path

from certifier.config import CertifierSettings
from certifier.errors import EngineFailure, FetchError
from certifier.linters import (
    DocumentationLinter,
    ProtocolLinter,
    build_documentation_linter,
    build_linters,
)
from certifier.repository.descriptor import build_descriptor
from certifier.repository.fetch import RepositoryFetcher, extract_archive, is_url
from certifier.repository.models import ApiEntry
from certifier.validator.api_validator import ApiValidator
from certifier.validator.models import (
    ApiProtocol,
    ApiRecord,
    ApiValidationError,
    FileValidationResult,
    SummaryResult,
    ValidationType,
    has_errors,
    summarize,
)
from certifier.validator.repository import RepositoryValidator

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAMES: Mapping[ApiProtocol, str] = {
    ApiProtocol.REST: "openapi.yml",
    ApiProtocol.GRPC: "api.proto",
    ApiProtocol.GRAPHQL: "schema.graphql",
}


def _as_protocol(protocol: ApiProtocol | str) -> ApiProtocol:
    if isinstance(protocol, ApiProtocol):
        return protocol
    return ApiProtocol.parse(protocol)


class CertificationService:
    """Wires the linters, validators and fetcher around one settings object."""

    def __init__(
        self,
        settings: CertifierSettings,
        linters: Mapping[ApiProtocol, ProtocolLinter] | None = None,
        documentation_linter: DocumentationLinter | None = None,
        fetcher: RepositoryFetcher | None = None,
    ) -> None:
        self._settings = settings
        self._linters = linters if linters is not None else build_linters(settings)
        if documentation_linter is None:
            documentation_linter = build_documentation_linter(settings)
        self._api_validator = ApiValidator(settings, self._linters, documentation_linter)
        self._repository_validator = RepositoryValidator(settings, self._api_validator)
        self._fetcher = fetcher or RepositoryFetcher(settings.fetch_timeout_seconds)

    @property
    def settings(self) -> CertifierSettings:
        return self._settings

    async def download(self, url: str) -> bytes:
        """Fetch a single specification file over HTTP."""
        return await self._fetcher.download(url)

    async def validate_repository(
        self,
        location: str | Path,
        validation_type: ValidationType = ValidationType.OVERALL_SCORE,
        verbose: bool = False,
    ) -> list[ApiRecord] | list[SummaryResult]:
        """Validate every API declared in a repository.

        ``location`` is an http(s) URL to a zip archive, a local zip file or
        a local directory. Fetch, extract and metadata failures abort the
        run; per-API failures come back as error records.
        """
        async with self._open_repository(location) as root:
            descriptor = build_descriptor(root, self._settings)
            for diagnostic in descriptor.diagnostics:
                logger.debug("Descriptor diagnostic: %s", diagnostic)
            records = await self._repository_validator.validate(descriptor, validation_type)

        if verbose:
            return records
        return [summarize(record, validation_type) for record in records]

    async def validate_single_file(
        self,
        file_bytes: bytes,
        protocol: ApiProtocol | str,
        file_name: str | None = None,
    ) -> FileValidationResult:
        """Lint one uploaded specification across every dimension.

        Raises:
            UnsupportedProtocolError: If the protocol tag is unknown.
            EngineFailure: If the rule engine cannot process the file.
        """
        api_protocol = _as_protocol(protocol)
        name = self._safe_file_name(file_name, api_protocol)
        linter = self._linters.get(api_protocol)
        if linter is None:
            raise EngineFailure(f"No linter registered for {api_protocol.value}")

        with self._scratch_dir("certifier-file-") as work_dir:
            spec_file = work_dir / name
            spec_file.write_bytes(file_bytes)
            outcome = await asyncio.wait_for(
                linter.lint(spec_file, work_dir, None),
                timeout=self._settings.entry_timeout_seconds,
            )

        issues = [*outcome.design_issues, *outcome.security_issues]
        logger.info("Linted %s (%s): %d issue(s)", name, api_protocol.value, len(issues))
        return FileValidationResult(has_errors=has_errors(issues), issues=issues)

    async def score_single_file(
        self,
        file_bytes: bytes,
        protocol: ApiProtocol | str,
        file_name: str | None = None,
    ) -> ApiRecord:
        """Score one uploaded specification without repository discovery."""
        api_protocol = _as_protocol(protocol)
        name = self._safe_file_name(file_name, api_protocol)
        entry = ApiEntry(name=name, protocol=api_protocol, definition_file=name)

        with self._scratch_dir("certifier-file-") as work_dir:
            (work_dir / name).write_bytes(file_bytes)
            try:
                return await asyncio.wait_for(
                    self._api_validator.validate(entry, work_dir),
                    timeout=self._settings.entry_timeout_seconds,
                )
            except TimeoutError:
                logger.error("Scoring %s timed out", name)
                return ApiValidationError(
                    api_name=name,
                    error=(
                        "Validation timed out after "
                        f"{self._settings.entry_timeout_seconds:g}s"
                    ),
                )

    def _safe_file_name(self, file_name: str | None, protocol: ApiProtocol) -> str:
        """Keep only the base name of an uploaded file; default per protocol."""
        name = Path(file_name).name if file_name else ""
        if name in ("", ".", ".."):
            if protocol == ApiProtocol.EVENT:
                return self._settings.event_default_file
            return DEFAULT_FILE_NAMES[protocol]
        return name

    @contextmanager
    def _scratch_dir(self, prefix: str) -> Iterator[Path]:
        work_root = self._settings.work_root
        if work_root is not None:
            work_root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix=prefix, dir=work_root) as tmp:
            yield Path(tmp)

    @asynccontextmanager
    async def _open_repository(self, location: str | Path) -> AsyncIterator[Path]:
        """Yield the repository root, cleaning up any download afterwards."""
        if isinstance(location, str) and is_url(location):
            archive = await self._fetcher.download(location)
            with self._scratch_dir("certifier-repo-") as tmp:
                yield extract_archive(archive, tmp)
            return

        path = Path(location)
        if path.is_dir():
            logger.info("Validating local repository %s", path)
            yield path
        elif path.is_file():
            with self._scratch_dir("certifier-repo-") as tmp:
                yield extract_archive(path.read_bytes(), tmp)
        else:
            raise FetchError(f"Repository not found: {location}")
