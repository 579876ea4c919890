"""Validation models and pipelines for API specifications."""

from certifier.validator.models import (
    ApiProtocol,
    ApiRecord,
    ApiValidationError,
    ApiValidationResult,
    FileValidationResult,
    Issue,
    Rating,
    Severity,
    SummaryResult,
    ValidationDimension,
    ValidationType,
    summarize,
)

__all__ = [
    "ApiProtocol",
    "ApiRecord",
    "ApiValidationError",
    "ApiValidationResult",
    "FileValidationResult",
    "Issue",
    "Rating",
    "Severity",
    "SummaryResult",
    "ValidationDimension",
    "ValidationType",
    "summarize",
]
