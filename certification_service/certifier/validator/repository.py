"""Repository-wide validation: one isolated working directory per API."""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from certifier.errors import FileResolutionError, SpecNotFoundError
from certifier.validator.models import (
    ApiRecord,
    ApiValidationError,
    ValidationType,
)

if TYPE_CHECKING:
    from certifier.config import CertifierSettings
    from certifier.repository.models import ApiEntry, RepositoryDescriptor
    from certifier.validator.api_validator import ApiValidator

logger = logging.getLogger(__name__)


def copy_definition(root_folder: Path, definition_path: str | None, work_dir: Path) -> None:
    """Copy an entry's definition into ``work_dir``; the source is never moved.

    A file is copied by name, a directory's contents are copied in.
    """
    if not definition_path:
        raise FileResolutionError("No definition-path declared")

    root = root_folder.resolve()
    source = (root / definition_path).resolve()
    if not source.is_relative_to(root):
        raise FileResolutionError(f"definition-path escapes the repository: {definition_path}")

    if source.is_file():
        shutil.copy2(source, work_dir / source.name)
    elif source.is_dir():
        shutil.copytree(source, work_dir, dirs_exist_ok=True)
    else:
        raise SpecNotFoundError(f"Specification file not found in repository: {definition_path}")


class RepositoryValidator:
    """Validates every discovered API, preserving discovery order."""

    def __init__(self, settings: CertifierSettings, api_validator: ApiValidator) -> None:
        self._settings = settings
        self._api_validator = api_validator

    async def validate(
        self,
        descriptor: RepositoryDescriptor,
        validation_type: ValidationType = ValidationType.OVERALL_SCORE,
    ) -> list[ApiRecord]:
        """Return one record per entry, in order; failures never abort the batch."""
        semaphore = asyncio.Semaphore(self._settings.max_concurrency)

        async def _bounded(entry: ApiEntry) -> ApiRecord:
            async with semaphore:
                return await self._validate_entry(descriptor, entry, validation_type)

        records = await asyncio.gather(*(_bounded(entry) for entry in descriptor.apis))
        failed = sum(1 for r in records if isinstance(r, ApiValidationError))
        logger.info(
            "Validated %d API(s) in %s, %d failed",
            len(records),
            descriptor.root_folder,
            failed,
        )
        return list(records)

    async def _validate_entry(
        self,
        descriptor: RepositoryDescriptor,
        entry: ApiEntry,
        validation_type: ValidationType,
    ) -> ApiRecord:
        try:
            work_dir = self._allocate(entry)
        except OSError as e:
            logger.exception("Cannot allocate a working directory for API '%s'", entry.name)
            return self._error(entry, f"Processing failed: {e}")

        try:
            try:
                await asyncio.to_thread(
                    copy_definition, descriptor.root_folder, entry.definition_path, work_dir,
                )
            except (FileResolutionError, SpecNotFoundError) as e:
                logger.warning("API '%s': %s", entry.name, e)
                return self._error(entry, str(e))

            return await asyncio.wait_for(
                self._api_validator.validate(
                    entry, work_dir, validation_type, descriptor.markdowns,
                ),
                timeout=self._settings.entry_timeout_seconds,
            )
        except TimeoutError:
            logger.error(
                "API '%s' timed out after %.0fs",
                entry.name,
                self._settings.entry_timeout_seconds,
            )
            return self._error(
                entry,
                f"Validation timed out after {self._settings.entry_timeout_seconds:g}s",
            )
        except Exception as e:
            logger.exception("Processing of API '%s' failed", entry.name)
            return self._error(entry, f"Processing failed: {e}")
        finally:
            await self._release(work_dir)

    def _allocate(self, entry: ApiEntry) -> Path:
        work_root = self._settings.work_root
        if work_root is not None:
            work_root.mkdir(parents=True, exist_ok=True)
        work_dir = Path(tempfile.mkdtemp(prefix="certifier-api-", dir=work_root))
        logger.debug("Allocated %s for API '%s'", work_dir, entry.name)
        return work_dir

    @staticmethod
    async def _release(work_dir: Path) -> None:
        # The removal finishes in its worker thread even if the caller is cancelled.
        try:
            await asyncio.to_thread(shutil.rmtree, work_dir)
        except OSError:
            logger.exception("Failed to remove working directory %s", work_dir)

    @staticmethod
    def _error(entry: ApiEntry, message: str) -> ApiValidationError:
        return ApiValidationError(
            api_name=entry.name,
            definition_path=entry.definition_path,
            error=message,
        )
