"""Validation data models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from certifier.errors import UnsupportedProtocolError


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys, populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Severity(str, Enum):
    """Severity level for rule violations."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class ApiProtocol(str, Enum):
    """Supported specification protocols."""

    REST = "REST"
    EVENT = "EVENT"
    GRPC = "GRPC"
    GRAPHQL = "GRAPHQL"

    @classmethod
    def parse(cls, value: object) -> ApiProtocol:
        """Parse a protocol tag case-insensitively.

        Raises:
            UnsupportedProtocolError: If the value is not text or not a known tag.
        """
        if not isinstance(value, str):
            raise UnsupportedProtocolError(f"Protocol must be text, got {value!r}")
        try:
            return cls(value.strip().upper())
        except ValueError:
            supported = ", ".join(p.value for p in cls)
            raise UnsupportedProtocolError(
                f"Unsupported API protocol {value!r}. Supported: {supported}"
            ) from None


class ValidationType(str, Enum):
    """Caller-selectable validation scope."""

    DESIGN = "DESIGN"
    SECURITY = "SECURITY"
    DOCUMENTATION = "DOCUMENTATION"
    OVERALL_SCORE = "OVERALL_SCORE"


class Rating(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    NOT_APPLICABLE = "N/A"


class Position(CamelModel):
    line: int | None = None
    character: int | None = None


class Range(CamelModel):
    start: Position = Field(default_factory=Position)
    end: Position = Field(default_factory=Position)


class Issue(CamelModel):
    """A single rule violation, independent of the engine that found it."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    code: str
    message: str
    severity: Severity
    range: Range = Field(default_factory=Range)
    path: list[str | int] = Field(default_factory=list)
    source: str = ""


class ValidationDimension(CamelModel):
    """Score, rating and issues for one quality axis."""

    model_config = ConfigDict(frozen=True)

    validation_type: ValidationType
    score: float = Field(ge=0, le=100)
    rating: Rating
    rating_description: str
    issues: list[Issue] = Field(default_factory=list)


class ApiValidationResult(CamelModel):
    """Complete outcome for one specification."""

    model_config = ConfigDict(frozen=True)

    api_name: str
    api_version: str | None = None
    api_protocol: ApiProtocol
    validation_date_time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    design: ValidationDimension
    security: ValidationDimension
    documentation: ValidationDimension
    score: float = Field(ge=0, le=100)
    rating: Rating
    rating_description: str
    has_errors: bool = False

    @property
    def issues(self) -> list[Issue]:
        return [*self.design.issues, *self.security.issues, *self.documentation.issues]


class ApiValidationError(CamelModel):
    """Terminal error record standing in for a result."""

    model_config = ConfigDict(frozen=True)

    validation_type: Literal["ERROR"] = "ERROR"
    api_name: str
    definition_path: str | None = None
    error: str


class SummaryResult(CamelModel):
    """Non-verbose shape of a per-entry record."""

    validation_type: str
    api_name: str
    score: float | None = None
    rating: Rating | None = None
    rating_description: str | None = None
    error: str | None = None


class FileValidationResult(CamelModel):
    """Outcome of linting a single uploaded file."""

    has_errors: bool = False
    issues: list[Issue] = Field(default_factory=list)


ApiRecord = ApiValidationResult | ApiValidationError


def has_errors(issues: list[Issue]) -> bool:
    """Return True if any issue is ERROR severity."""
    return any(i.severity == Severity.ERROR for i in issues)


def summarize(record: ApiRecord, validation_type: ValidationType) -> SummaryResult:
    """Reduce a success or error record to its summary shape.

    Single-dimension requests report that dimension; OVERALL_SCORE reports
    the overall score.
    """
    if isinstance(record, ApiValidationError):
        return SummaryResult(
            validation_type=record.validation_type,
            api_name=record.api_name,
            error=record.error,
        )

    dimension = {
        ValidationType.DESIGN: record.design,
        ValidationType.SECURITY: record.security,
        ValidationType.DOCUMENTATION: record.documentation,
    }.get(validation_type)
    if dimension is None:
        return SummaryResult(
            validation_type=validation_type.value,
            api_name=record.api_name,
            score=record.score,
            rating=record.rating,
            rating_description=record.rating_description,
        )
    return SummaryResult(
        validation_type=validation_type.value,
        api_name=record.api_name,
        score=dimension.score,
        rating=dimension.rating,
        rating_description=dimension.rating_description,
    )
