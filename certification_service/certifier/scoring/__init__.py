"""Scoring engine and rating calculator."""

from certifier.scoring.grades import NOT_APPLICABLE, RatingInfo, calculate_rating
from certifier.scoring.scoring import calculate_average_score, score_linting

__all__ = [
    "NOT_APPLICABLE",
    "RatingInfo",
    "calculate_average_score",
    "calculate_rating",
    "score_linting",
]
