"""Linting scores and weighted overall scores."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from certifier.validator.models import Issue, Severity, ValidationType

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS: Mapping[Severity, float] = {
    Severity.ERROR: 3.0,
    Severity.WARN: 1.0,
    Severity.INFO: 0.2,
}

# Violating every applicable rule at ERROR severity drives the score to 0.
MAX_DEDUCTION_PER_RULE = SEVERITY_WEIGHTS[Severity.ERROR]

MAX_SCORE = 100.0
MIN_SCORE = 0.0


def score_linting(issues: Iterable[Issue], number_of_rules: int) -> float:
    """Convert rule violations into a 0-100 score.

    With no applicable rules the score is 100 for a clean run; otherwise the
    rule count is treated as 1 so the division is always defined.
    """
    issues = list(issues)
    if number_of_rules < 0:
        raise ValueError(f"number_of_rules must be >= 0, got {number_of_rules}")
    if not issues:
        return MAX_SCORE

    rules = max(number_of_rules, 1)
    deduction = sum(SEVERITY_WEIGHTS[i.severity] for i in issues)
    score = MAX_SCORE - MAX_SCORE * deduction / (rules * MAX_DEDUCTION_PER_RULE)
    return min(max(score, MIN_SCORE), MAX_SCORE)


def calculate_average_score(
    scored: Iterable[tuple[float, ValidationType]],
    weights: Mapping[ValidationType, float],
) -> float:
    """Weighted mean of (score, dimension) pairs.

    Pairs whose dimension has no positive weight do not contribute.
    """
    total = 0.0
    total_weight = 0.0
    for score, validation_type in scored:
        weight = weights.get(validation_type, 0.0)
        if weight <= 0:
            logger.debug("Dimension %s excluded from average", validation_type.value)
            continue
        total += score * weight
        total_weight += weight

    if total_weight == 0:
        return MIN_SCORE
    return min(max(total / total_weight, MIN_SCORE), MAX_SCORE)
