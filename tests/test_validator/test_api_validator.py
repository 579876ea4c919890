"""Tests for certifier.validator.api_validator -- one specification at a time."""

from __future__ import annotations

from pathlib import Path

import pytest

from certifier.config import CertifierSettings
from certifier.errors import EngineFailure, FileResolutionError, SpecNotFoundError
from certifier.linters.base import LintOutcome
from certifier.repository.models import ApiEntry
from certifier.validator.api_validator import (
    ApiValidator,
    ValidationStage,
    locate_spec_file,
    resolve_api_file,
)
from certifier.validator.models import (
    ApiProtocol,
    ApiValidationError,
    ApiValidationResult,
    Rating,
    Severity,
    ValidationType,
)
from tests.fakes import FakeDocumentationLinter, FakeLinter, fake_linters, make_issue


def _entry(
    protocol: ApiProtocol = ApiProtocol.REST,
    definition_path: str | None = "specs/openapi.yml",
    definition_file: str | None = None,
    name: str = "orders",
) -> ApiEntry:
    return ApiEntry(
        name=name,
        version="1.0.0",
        protocol=protocol,
        definition_path=definition_path,
        definition_file=definition_file,
    )


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "wd"
    path.mkdir()
    (path / "openapi.yml").write_text("openapi: 3.0.0\n")
    return path


class UnfilteredLinter(FakeLinter):
    """Reports every dimension regardless of the requested validation type."""

    async def lint(
        self,
        spec_file: Path,
        work_dir: Path,
        validation_type: ValidationType | None = None,
    ) -> LintOutcome:
        return await super().lint(spec_file, work_dir, None)


class TestResolveApiFile:
    def test_explicit_file_wins(self) -> None:
        entry = _entry(protocol=ApiProtocol.EVENT, definition_file="custom.yml")
        assert resolve_api_file(entry, "asyncapi.yml") == "custom.yml"

    def test_event_default(self) -> None:
        entry = _entry(protocol=ApiProtocol.EVENT, definition_path="events/spec.yml")
        assert resolve_api_file(entry, "asyncapi.yml") == "asyncapi.yml"

    def test_base_name_of_definition_path(self) -> None:
        assert resolve_api_file(_entry(), "asyncapi.yml") == "openapi.yml"

    def test_nothing_to_resolve(self) -> None:
        with pytest.raises(FileResolutionError):
            resolve_api_file(_entry(definition_path=None), "asyncapi.yml")


class TestLocateSpecFile:
    def test_found(self, work_dir: Path) -> None:
        assert locate_spec_file("openapi.yml", work_dir) == (work_dir / "openapi.yml").resolve()

    def test_missing(self, work_dir: Path) -> None:
        with pytest.raises(SpecNotFoundError):
            locate_spec_file("swagger.json", work_dir)

    def test_escape(self, work_dir: Path) -> None:
        (work_dir.parent / "outside.yml").write_text("x")
        with pytest.raises(FileResolutionError):
            locate_spec_file("../outside.yml", work_dir)


class TestApiValidator:
    @pytest.mark.asyncio
    async def test_clean_rest_spec_scores_a(self, work_dir: Path) -> None:
        linter = FakeLinter(design_rules=42, security_rules=21)
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))

        result = await validator.validate(_entry(), work_dir)

        assert isinstance(result, ApiValidationResult)
        assert result.design.score == 100
        assert result.design.rating == Rating.A
        assert result.security.score == 100
        assert result.score == 100
        assert result.rating == Rating.A
        assert result.rating_description == "Excellent"
        assert result.has_errors is False
        assert result.api_version == "1.0.0"

    @pytest.mark.asyncio
    async def test_single_error_of_single_rule(self, work_dir: Path) -> None:
        linter = FakeLinter(design_issues=[make_issue(Severity.ERROR)], design_rules=1)
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))

        result = await validator.validate(_entry(), work_dir)

        assert result.design.score == 0
        assert result.design.rating == Rating.D
        assert result.has_errors is True
        # design 0 * 0.5 + security 100 * 0.3, renormalised over 0.8
        assert result.score == pytest.approx(37.5)

    @pytest.mark.asyncio
    async def test_rest_weights_security(self, work_dir: Path) -> None:
        linter = FakeLinter(
            design_issues=[make_issue(Severity.WARN)] * 3,
            security_issues=[make_issue(Severity.ERROR)],
            design_rules=10,
            security_rules=1,
        )
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))

        result = await validator.validate(_entry(), work_dir)

        assert result.design.score == pytest.approx(90.0)
        assert result.security.score == 0
        assert result.score == pytest.approx(90 * 0.5 / 0.8)
        assert result.has_errors is True

    @pytest.mark.asyncio
    async def test_grpc_security_fixed_and_excluded(self, work_dir: Path) -> None:
        (work_dir / "api.proto").write_text('syntax = "proto3";\n')
        linter = FakeLinter(
            protocol=ApiProtocol.GRPC,
            design_issues=[make_issue(Severity.WARN, file_name="api.proto")] * 6,
            design_rules=10,
        )
        validator = ApiValidator(CertifierSettings(), fake_linters(grpc=linter))
        entry = _entry(protocol=ApiProtocol.GRPC, definition_path="proto/api.proto")

        result = await validator.validate(entry, work_dir)

        assert result.security.score == 100
        assert result.security.issues == []
        assert result.design.score == pytest.approx(80.0)
        assert result.score == pytest.approx(80.0)
        assert result.rating == Rating.B

    @pytest.mark.asyncio
    async def test_documentation_not_applicable_when_disabled(self, work_dir: Path) -> None:
        docs = FakeDocumentationLinter()
        validator = ApiValidator(CertifierSettings(), fake_linters(), docs)

        result = await validator.validate(_entry(), work_dir, markdowns=[work_dir / "README.md"])

        assert result.documentation.score == 0
        assert result.documentation.rating == Rating.NOT_APPLICABLE
        assert result.documentation.rating_description == "Not Applicable"
        assert docs.calls == []
        assert result.score == 100

    @pytest.mark.asyncio
    async def test_documentation_scored_when_enabled(self, work_dir: Path) -> None:
        docs = FakeDocumentationLinter(
            issues=[make_issue(Severity.WARN, file_name="README.md")] * 3, rules=10,
        )
        settings = CertifierSettings(documentation_enabled=True)
        validator = ApiValidator(settings, fake_linters(), docs)
        readme = work_dir / "README.md"

        result = await validator.validate(_entry(), work_dir, markdowns=[readme])

        assert docs.calls == [[readme]]
        assert result.documentation.score == pytest.approx(90.0)
        assert result.documentation.rating == Rating.A
        assert result.score == pytest.approx(100 * 0.5 + 100 * 0.3 + 90 * 0.2)

    @pytest.mark.asyncio
    async def test_single_dimension_holds_others(self, work_dir: Path) -> None:
        linter = FakeLinter(
            design_issues=[make_issue(Severity.ERROR)],
            security_issues=[make_issue(Severity.ERROR)],
            design_rules=1,
            security_rules=1,
        )
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))

        result = await validator.validate(_entry(), work_dir, ValidationType.SECURITY)

        assert linter.calls[0]["validation_type"] == ValidationType.SECURITY
        assert result.design.score == 100
        assert result.design.issues == []
        assert result.security.score == 0

    @pytest.mark.asyncio
    async def test_unrequested_issues_from_linter_are_ignored(self, work_dir: Path) -> None:
        linter = UnfilteredLinter(
            design_issues=[make_issue(Severity.ERROR)],
            security_issues=[make_issue(Severity.ERROR)],
            design_rules=1,
            security_rules=1,
        )
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))

        result = await validator.validate(_entry(), work_dir, ValidationType.DESIGN)

        assert result.design.score == 0
        assert result.security.score == 100
        assert result.security.issues == []
        assert [i.code for i in result.design.issues] == ["test-rule"]

    @pytest.mark.asyncio
    async def test_unrequested_errors_do_not_flag_result(self, work_dir: Path) -> None:
        linter = UnfilteredLinter(
            design_issues=[make_issue(Severity.ERROR)],
            design_rules=1,
            security_rules=1,
        )
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))

        result = await validator.validate(_entry(), work_dir, ValidationType.SECURITY)

        assert result.design.score == 100
        assert result.design.issues == []
        assert result.security.score == 100
        assert result.has_errors is False

    @pytest.mark.asyncio
    async def test_overall_lints_every_dimension(self, work_dir: Path) -> None:
        linter = FakeLinter()
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))
        await validator.validate(_entry(), work_dir, ValidationType.OVERALL_SCORE)
        assert linter.calls[0]["validation_type"] is None

    @pytest.mark.asyncio
    async def test_missing_file_is_error_record(self, work_dir: Path) -> None:
        validator = ApiValidator(CertifierSettings(), fake_linters())
        entry = _entry(definition_path="specs/swagger.json")

        result = await validator.validate(entry, work_dir)

        assert isinstance(result, ApiValidationError)
        assert result.validation_type == "ERROR"
        assert result.api_name == "orders"
        assert result.definition_path == "specs/swagger.json"
        assert result.error.startswith(ValidationStage.RESOLVING_FILE.value)

    @pytest.mark.asyncio
    async def test_engine_failure_is_error_record(self, work_dir: Path) -> None:
        linter = FakeLinter(error=EngineFailure("spectral crashed"))
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))

        result = await validator.validate(_entry(), work_dir)

        assert isinstance(result, ApiValidationError)
        assert result.error == "LINTING: spectral crashed"

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_error_record(self, work_dir: Path) -> None:
        linter = FakeLinter(error=RuntimeError("boom"))
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))
        result = await validator.validate(_entry(), work_dir)
        assert isinstance(result, ApiValidationError)
        assert "boom" in result.error

    @pytest.mark.asyncio
    async def test_missing_linter_is_error_record(self, work_dir: Path) -> None:
        validator = ApiValidator(CertifierSettings(), {})
        result = await validator.validate(_entry(), work_dir)
        assert isinstance(result, ApiValidationError)
        assert "No linter registered" in result.error

    @pytest.mark.asyncio
    async def test_idempotent(self, work_dir: Path) -> None:
        linter = FakeLinter(
            design_issues=[make_issue(Severity.WARN), make_issue(Severity.INFO)],
            security_issues=[make_issue(Severity.ERROR)],
            design_rules=42,
            security_rules=21,
        )
        validator = ApiValidator(CertifierSettings(), fake_linters(rest=linter))

        first = await validator.validate(_entry(), work_dir)
        second = await validator.validate(_entry(), work_dir)

        exclude = {"validation_date_time"}
        assert first.model_dump(exclude=exclude) == second.model_dump(exclude=exclude)

    @pytest.mark.asyncio
    async def test_wire_shape_is_camel_case(self, work_dir: Path) -> None:
        validator = ApiValidator(CertifierSettings(), fake_linters())
        result = await validator.validate(_entry(), work_dir)
        wire = result.model_dump(by_alias=True, mode="json")
        assert {"apiName", "apiProtocol", "validationDateTime", "ratingDescription",
                "hasErrors"} <= set(wire)
        assert wire["design"]["validationType"] == "DESIGN"
        assert wire["documentation"]["rating"] == "N/A"
