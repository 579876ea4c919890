"""Validation API endpoints -- repository, single-file lint and score."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from pathlib import PurePosixPath
from typing import TypeVar
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import Field

from certifier.deps import get_service
from certifier.errors import (
    CertificationError,
    EngineFailure,
    ExtractError,
    FetchError,
    MetadataParseError,
    UnsupportedProtocolError,
)
from certifier.repository.fetch import is_url
from certifier.service import CertificationService
from certifier.validator.models import (
    ApiValidationError,
    ApiValidationResult,
    CamelModel,
    FileValidationResult,
    SummaryResult,
    ValidationType,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/apifirst/v1", tags=["validations"])

T = TypeVar("T")

DEFAULT_PROTOCOL = "REST"


class ValidateRequest(CamelModel):
    url: str = Field(..., min_length=1, description="http(s) URL of the repository zip archive")
    validation_type: ValidationType = Field(
        ValidationType.OVERALL_SCORE, description="Dimension to validate"
    )
    is_verbose: bool = Field(False, description="Return full results instead of summaries")


class HealthResponse(CamelModel):
    status: str = "ok"
    documentation_enabled: bool = False
    max_concurrency: int = 1


def _status_for(error: CertificationError) -> int:
    if isinstance(error, UnsupportedProtocolError):
        return 400
    if isinstance(error, FetchError):
        return 502
    if isinstance(error, (MetadataParseError, ExtractError, EngineFailure)):
        return 422
    return 500


async def _run(service: CertificationService, work: Awaitable[T], what: str) -> T:
    """Await ``work`` under the request timeout, mapping failures to HTTP errors."""
    try:
        return await asyncio.wait_for(work, timeout=service.settings.request_timeout_seconds)
    except TimeoutError:
        logger.error("%s timed out", what)
        raise HTTPException(status_code=504, detail=f"{what} timed out")
    except CertificationError as e:
        status = _status_for(e)
        if status >= 500:
            logger.error("%s failed: %s", what, e, exc_info=True)
        else:
            logger.warning("%s failed: %s", what, e)
        raise HTTPException(status_code=status, detail=str(e))


async def _read_upload(
    service: CertificationService, file: UploadFile | None, url: str | None,
) -> tuple[bytes, str | None]:
    if file is not None:
        return await file.read(), file.filename
    if url:
        if not is_url(url):
            raise HTTPException(status_code=400, detail="url must be an http(s) URL")
        content = await _run(service, service.download(url), "Download")
        return content, PurePosixPath(urlparse(url).path).name or None
    raise HTTPException(status_code=400, detail="Either file or url is required")


@router.post(
    "/apis/validate",
    response_model=list[ApiValidationResult | ApiValidationError | SummaryResult],
    response_model_exclude_none=True,
)
async def validate_repository(
    body: ValidateRequest,
    service: CertificationService = Depends(get_service),
) -> list[ApiValidationResult | ApiValidationError | SummaryResult]:
    """Validate every API declared in a repository archive."""
    if not is_url(body.url):
        raise HTTPException(status_code=400, detail="url must be an http(s) URL")

    return await _run(
        service,
        service.validate_repository(body.url, body.validation_type, body.is_verbose),
        "Repository validation",
    )


@router.post("/apis/verify", response_model=FileValidationResult)
async def verify_file(
    file: UploadFile | None = File(None),
    url: str | None = Form(None),
    api_protocol: str = Form(DEFAULT_PROTOCOL, alias="apiProtocol"),
    service: CertificationService = Depends(get_service),
) -> FileValidationResult:
    """Lint a single uploaded (or linked) specification."""
    content, file_name = await _read_upload(service, file, url)
    return await _run(
        service,
        service.validate_single_file(content, api_protocol, file_name),
        "File verification",
    )


@router.post(
    "/apis/score-file",
    response_model=ApiValidationResult | ApiValidationError,
    response_model_exclude_none=True,
)
async def score_file(
    file: UploadFile = File(...),
    api_protocol_form: str | None = Form(None, alias="apiProtocol"),
    api_protocol_query: str | None = Query(None, alias="apiProtocol"),
    service: CertificationService = Depends(get_service),
) -> ApiValidationResult | ApiValidationError:
    """Score a single uploaded specification."""
    protocol = api_protocol_form or api_protocol_query or DEFAULT_PROTOCOL
    content = await file.read()
    return await _run(
        service,
        service.score_single_file(content, protocol, file.filename),
        "File scoring",
    )


@router.get("/health", response_model=HealthResponse)
async def health(service: CertificationService = Depends(get_service)) -> HealthResponse:
    """Report service status and the active configuration switches."""
    settings = service.settings
    return HealthResponse(
        documentation_enabled=settings.documentation_enabled,
        max_concurrency=settings.max_concurrency,
    )
