"""Per-engine translation of raw findings into the canonical Issue model.

Every mapping normalises positions to 1-based lines and characters and
stamps the engine identifier as the issue source. Severities with no
mapping are rejected rather than coerced.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from certifier.errors import EngineFailure, UnknownSeverityError
from certifier.validator.models import Issue, Position, Range, Severity

SPECTRAL = "spectral"
PROTOLINT = "protolint"
GRAPHQL_ESLINT = "graphql-eslint"
MARKDOWNLINT = "markdownlint"

SPECTRAL_SEVERITY: Mapping[Any, Severity] = {
    0: Severity.ERROR,
    1: Severity.WARN,
    2: Severity.INFO,
}

# protolint reports every finding as an error unless configured otherwise.
PROTOLINT_SEVERITY: Mapping[Any, Severity] = {
    "error": Severity.ERROR,
    "warning": Severity.WARN,
    "note": Severity.INFO,
}
PROTOLINT_DEFAULT_SEVERITY = "error"

ESLINT_SEVERITY: Mapping[Any, Severity] = {
    2: Severity.ERROR,
    1: Severity.WARN,
}

# markdownlint-cli omits severity; markdownlint-cli2 reports error/warning.
MARKDOWNLINT_SEVERITY: Mapping[Any, Severity] = {
    "error": Severity.ERROR,
    "warning": Severity.WARN,
}
MARKDOWNLINT_DEFAULT_SEVERITY = "warning"


def map_severity(table: Mapping[Any, Severity], raw: Any, engine: str) -> Severity:
    """Look up a canonical severity, rejecting unknown engine values."""
    if isinstance(raw, bool):
        raise UnknownSeverityError(f"{engine} reported unknown severity {raw!r}")
    try:
        return table[raw]
    except (KeyError, TypeError):
        raise UnknownSeverityError(f"{engine} reported unknown severity {raw!r}") from None


def clean_file_name(file_path: str | Path, work_dir: Path) -> str:
    """Report a file relative to the working directory it was linted in."""
    path = Path(file_path)
    if not path.is_absolute():
        path = work_dir / path
    try:
        return path.resolve().relative_to(work_dir.resolve()).as_posix()
    except ValueError:
        return path.name


def _int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _shift(value: Any) -> int | None:
    """0-based engine position to 1-based."""
    number = _int_or_none(value)
    return None if number is None else number + 1


def from_spectral_issue(raw: dict[str, Any], spec_file: Path, work_dir: Path) -> Issue:
    rng = raw.get("range") or {}
    start = rng.get("start") or {}
    end = rng.get("end") or {}
    return Issue(
        file_name=clean_file_name(raw.get("source") or spec_file, work_dir),
        code=str(raw.get("code", "")),
        message=str(raw.get("message", "")),
        severity=map_severity(SPECTRAL_SEVERITY, raw.get("severity"), SPECTRAL),
        range=Range(
            start=Position(line=_shift(start.get("line")), character=_shift(start.get("character"))),
            end=Position(line=_shift(end.get("line")), character=_shift(end.get("character"))),
        ),
        path=list(raw.get("path") or []),
        source=SPECTRAL,
    )


def from_protolint_issue(raw: dict[str, Any], work_dir: Path) -> Issue:
    position = Position(line=_int_or_none(raw.get("line")), character=_int_or_none(raw.get("column")))
    return Issue(
        file_name=clean_file_name(raw.get("filename", ""), work_dir),
        code=str(raw.get("rule", "")),
        message=str(raw.get("message", "")),
        severity=map_severity(
            PROTOLINT_SEVERITY,
            raw.get("severity", PROTOLINT_DEFAULT_SEVERITY),
            PROTOLINT,
        ),
        range=Range(start=position, end=position),
        path=[],
        source=PROTOLINT,
    )


def from_eslint_result(result: dict[str, Any], work_dir: Path) -> list[Issue]:
    """Map one ESLint file result; a fatal message means the file did not parse."""
    file_name = clean_file_name(result.get("filePath", ""), work_dir)
    issues: list[Issue] = []
    for msg in result.get("messages") or []:
        if msg.get("fatal"):
            raise EngineFailure(
                f"{GRAPHQL_ESLINT} could not parse {file_name}: {msg.get('message', '')}"
            )
        issues.append(
            Issue(
                file_name=file_name,
                code=str(msg.get("ruleId") or msg.get("messageId") or ""),
                message=str(msg.get("message", "")),
                severity=map_severity(ESLINT_SEVERITY, msg.get("severity"), GRAPHQL_ESLINT),
                range=Range(
                    start=Position(
                        line=_int_or_none(msg.get("line")),
                        character=_int_or_none(msg.get("column")),
                    ),
                    end=Position(
                        line=_int_or_none(msg.get("endLine")),
                        character=_int_or_none(msg.get("endColumn")),
                    ),
                ),
                path=[],
                source=GRAPHQL_ESLINT,
            )
        )
    return issues


def from_markdownlint_issue(raw: dict[str, Any], work_dir: Path) -> Issue:
    line = _int_or_none(raw.get("lineNumber"))
    start_char = end_char = None
    error_range = raw.get("errorRange")
    if isinstance(error_range, list) and len(error_range) == 2:
        start_char = _int_or_none(error_range[0])
        length = _int_or_none(error_range[1])
        if start_char is not None and length is not None:
            end_char = start_char + max(length - 1, 0)

    message = str(raw.get("ruleDescription", ""))
    if raw.get("errorDetail"):
        message = f"{message} [{raw['errorDetail']}]"

    return Issue(
        file_name=clean_file_name(raw.get("fileName", ""), work_dir),
        code=", ".join(raw.get("ruleNames") or []),
        message=message,
        severity=map_severity(
            MARKDOWNLINT_SEVERITY,
            raw.get("severity", MARKDOWNLINT_DEFAULT_SEVERITY),
            MARKDOWNLINT,
        ),
        range=Range(
            start=Position(line=line, character=start_char),
            end=Position(line=line, character=end_char),
        ),
        path=[],
        source=MARKDOWNLINT,
    )
