"""Service configuration: weights, rulesets, engines and limits."""

from __future__ import annotations

import json
import logging
import os
from io import StringIO
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from ruamel.yaml import YAML, YAMLError

from certifier.validator.models import ApiProtocol, ValidationType

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")

DISABLED_RULE_VALUES = (False, "off")


def count_ruleset_rules(ruleset_path: Path) -> int:
    """Count the enabled rules declared in a Spectral-style YAML ruleset."""
    try:
        data = _yaml.load(StringIO(ruleset_path.read_text(encoding="utf-8")))
    except (OSError, YAMLError) as e:
        raise ValueError(f"Cannot read ruleset {ruleset_path}: {e}") from e

    rules = data.get("rules") if isinstance(data, dict) else None
    if not isinstance(rules, dict):
        return 0

    count = 0
    for value in rules.values():
        if value in DISABLED_RULE_VALUES:
            continue
        if isinstance(value, dict) and value.get("severity") in DISABLED_RULE_VALUES:
            continue
        count += 1
    return count


class RulesetConfig(BaseModel):
    """Rule set handed to an engine plus the number of rules it applies.

    When a YAML ruleset path is given without a count, the count is read
    from the ruleset itself.
    """

    model_config = ConfigDict(frozen=True)

    path: Path | None = None
    number_of_rules: int = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _count_rules(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("number_of_rules") is not None:
            return data
        path = data.get("path")
        if path and Path(path).suffix in (".yml", ".yaml") and Path(path).is_file():
            return {**data, "number_of_rules": count_ruleset_rules(Path(path))}
        if path:
            logger.warning("No rule count for ruleset %s; scoring treats it as 1", path)
        return data


class ScoreWeights(BaseModel):
    """Per-dimension weights for the overall score.

    A zero weight excludes the dimension; the included weights sum to 1.0.
    """

    model_config = ConfigDict(frozen=True)

    design: float = Field(ge=0, le=1)
    security: float = Field(0.0, ge=0, le=1)
    documentation: float = Field(0.0, ge=0, le=1)

    @model_validator(mode="after")
    def _check_total(self) -> ScoreWeights:
        total = self.design + self.security + self.documentation
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Score weights must sum to 1.0, got {total}")
        return self

    def as_mapping(self) -> dict[ValidationType, float]:
        return {
            ValidationType.DESIGN: self.design,
            ValidationType.SECURITY: self.security,
            ValidationType.DOCUMENTATION: self.documentation,
        }


class CertifierSettings(BaseModel):
    """Immutable configuration shared read-only by every validation."""

    model_config = ConfigDict(frozen=True)

    metadata_file_name: str = "metadata.yml"
    default_markdowns: tuple[str, ...] = ("README.md",)
    event_default_file: str = "asyncapi.yml"
    documentation_enabled: bool = False

    weights: ScoreWeights = ScoreWeights(design=0.5, security=0.3, documentation=0.2)
    weights_without_security: ScoreWeights = ScoreWeights(design=0.8, documentation=0.2)

    rest_general: RulesetConfig = RulesetConfig(number_of_rules=42)
    rest_security: RulesetConfig = RulesetConfig(number_of_rules=21)
    event_general: RulesetConfig = RulesetConfig(number_of_rules=25)
    avro_general: RulesetConfig = RulesetConfig(number_of_rules=8)
    grpc: RulesetConfig = RulesetConfig(number_of_rules=18)
    graphql: RulesetConfig = RulesetConfig(number_of_rules=16)
    documentation: RulesetConfig = RulesetConfig(number_of_rules=47)

    spectral_command: tuple[str, ...] = ("spectral",)
    protolint_command: tuple[str, ...] = ("protolint",)
    eslint_command: tuple[str, ...] = ("eslint",)
    markdownlint_command: tuple[str, ...] = ("markdownlint",)

    entry_timeout_seconds: float = Field(120.0, gt=0)
    request_timeout_seconds: float = Field(600.0, gt=0)
    fetch_timeout_seconds: float = Field(60.0, gt=0)
    max_concurrency: int = Field(1, ge=1)
    work_root: Path | None = None

    @model_validator(mode="after")
    def _check_security_excluded(self) -> CertifierSettings:
        if self.weights_without_security.security != 0:
            raise ValueError("weights_without_security must not weight security")
        return self

    def weights_for(self, protocol: ApiProtocol) -> ScoreWeights:
        """REST specifications weight security; the other protocols do not."""
        if protocol == ApiProtocol.REST:
            return self.weights
        return self.weights_without_security


# Spectral rulesets are counted from the file; other engine configs keep
# their default rule counts.
_SPECTRAL_RULESET_FILES = {
    "rest_general": "rest-general.yml",
    "rest_security": "rest-security.yml",
    "event_general": "event-general.yml",
    "avro_general": "avro-general.yml",
}
_ENGINE_CONFIG_FILES = {
    "grpc": ".protolint.yaml",
    "graphql": "graphql-eslint.config.js",
    "documentation": ".markdownlint.json",
}


def _load_options() -> dict[str, Any]:
    """Load options from the JSON options file or environment fallback."""
    opts_path = os.environ.get("CERTIFIER_OPTIONS_PATH", "/data/options.json")
    if Path(opts_path).exists():
        return json.loads(Path(opts_path).read_text())

    options: dict[str, Any] = {
        "documentation_enabled": os.environ.get(
            "CERTIFIER_DOCUMENTATION_ENABLED", ""
        ).lower() == "true",
        "entry_timeout_seconds": float(os.environ.get("CERTIFIER_ENTRY_TIMEOUT", "120")),
        "request_timeout_seconds": float(os.environ.get("CERTIFIER_REQUEST_TIMEOUT", "600")),
        "fetch_timeout_seconds": float(os.environ.get("CERTIFIER_FETCH_TIMEOUT", "60")),
        "max_concurrency": int(os.environ.get("CERTIFIER_MAX_CONCURRENCY", "1")),
    }
    if os.environ.get("CERTIFIER_WORK_ROOT"):
        options["work_root"] = os.environ["CERTIFIER_WORK_ROOT"]

    rulesets_dir = os.environ.get("CERTIFIER_RULESETS_DIR")
    if rulesets_dir:
        for key, file_name in _SPECTRAL_RULESET_FILES.items():
            path = Path(rulesets_dir) / file_name
            if path.exists():
                options[key] = {"path": str(path)}
        for key, file_name in _ENGINE_CONFIG_FILES.items():
            path = Path(rulesets_dir) / file_name
            if path.exists():
                default = CertifierSettings.model_fields[key].default
                options[key] = {
                    "path": str(path),
                    "number_of_rules": default.number_of_rules,
                }
    return options


def load_settings() -> CertifierSettings:
    """Build the settings once at startup."""
    settings = CertifierSettings.model_validate(_load_options())
    logger.info(
        "Settings loaded: documentation=%s, timeout=%.0fs, concurrency=%d",
        settings.documentation_enabled,
        settings.entry_timeout_seconds,
        settings.max_concurrency,
    )
    return settings
