"""Repository descriptor builder -- discovers API entries from metadata."""

from __future__ import annotations

import logging
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML, YAMLError

from certifier.config import CertifierSettings
from certifier.errors import MetadataParseError, UnsupportedProtocolError
from certifier.repository.models import ApiEntry, RepositoryDescriptor
from certifier.validator.models import ApiProtocol

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")


def load_metadata(metadata_path: Path) -> dict[str, Any]:
    """Load the metadata descriptor.

    Raises:
        MetadataParseError: If the file cannot be read, is not valid YAML,
            or is not a mapping at the top level.
    """
    try:
        content = metadata_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataParseError(f"Cannot read {metadata_path.name}: {e}") from e

    try:
        parsed = _yaml.load(StringIO(content))
    except YAMLError as e:
        raise MetadataParseError(f"Cannot parse {metadata_path.name}: {e}") from e

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise MetadataParseError(
            f"{metadata_path.name} must be a mapping, got {type(parsed).__name__}"
        )
    return parsed


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class RepositoryDescriptorBuilder:
    """Builds a RepositoryDescriptor from a repository root folder."""

    def __init__(self, root_folder: Path, settings: CertifierSettings) -> None:
        self._root = root_folder
        self._settings = settings

    def build(self) -> RepositoryDescriptor:
        """Discover API entries and default markdowns; read-only."""
        diagnostics: list[str] = []
        apis = self._identify_apis(diagnostics)
        markdowns = self._default_markdowns()

        if apis:
            logger.info(
                "Discovered %d API(s) in %s: %s",
                len(apis),
                self._root,
                ", ".join(f"{a.name}/{a.protocol.value}" for a in apis),
            )
        else:
            logger.warning("No valid APIs discovered in %s", self._root)

        return RepositoryDescriptor(
            root_folder=self._root,
            apis=apis,
            markdowns=markdowns,
            diagnostics=diagnostics,
        )

    def _identify_apis(self, diagnostics: list[str]) -> list[ApiEntry]:
        metadata_path = self._root / self._settings.metadata_file_name
        if not metadata_path.is_file():
            logger.warning(
                "%s not found in %s; no APIs loaded",
                self._settings.metadata_file_name,
                self._root,
            )
            return []

        metadata = load_metadata(metadata_path)
        raw_apis = metadata.get("apis")
        if not isinstance(raw_apis, list):
            diagnostics.append(f"'apis' missing or not a list in {metadata_path.name}")
            logger.warning("'apis' missing or not a list in %s", metadata_path)
            return []

        apis: list[ApiEntry] = []
        for index, raw in enumerate(raw_apis, start=1):
            entry = self._parse_entry(raw, index, diagnostics)
            if entry is not None:
                apis.append(entry)
        return apis

    def _parse_entry(
        self, raw: Any, index: int, diagnostics: list[str],
    ) -> ApiEntry | None:
        """Return an ApiEntry, or None (with a diagnostic) if it is unusable."""
        if not isinstance(raw, dict):
            diagnostics.append(f"Entry {index}: not a mapping")
            logger.warning("Skipping metadata entry %d: not a mapping", index)
            return None

        name = _optional_text(raw.get("name")) or f"Entry {index}"
        spec_type = raw.get("api-spec-type")
        try:
            protocol = ApiProtocol.parse(spec_type)
        except UnsupportedProtocolError:
            diagnostics.append(f"{name}: missing or unsupported api-spec-type {spec_type!r}")
            logger.warning(
                "Skipping API '%s': missing or unsupported api-spec-type %r",
                name,
                spec_type,
            )
            return None

        return ApiEntry(
            name=name,
            version=_optional_text(raw.get("version")),
            protocol=protocol,
            definition_path=_optional_text(raw.get("definition-path")),
            definition_file=_optional_text(raw.get("definition-file")),
        )

    def _default_markdowns(self) -> list[Path]:
        markdowns = []
        for file_name in self._settings.default_markdowns:
            path = self._root / file_name
            if path.is_file():
                logger.info("Found markdown file: %s", path)
                markdowns.append(path)
        return markdowns


def build_descriptor(root_folder: Path, settings: CertifierSettings) -> RepositoryDescriptor:
    """Convenience: build the descriptor for a repository root."""
    return RepositoryDescriptorBuilder(root_folder, settings).build()
