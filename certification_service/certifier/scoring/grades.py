"""Letter ratings for numeric scores."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict

from certifier.validator.models import Rating


class RatingInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    rating: Rating
    rating_description: str


# Lower bound (inclusive) of each band, highest first.
RATING_THRESHOLDS: tuple[tuple[float, Rating, str], ...] = (
    (90.0, Rating.A, "Excellent"),
    (75.0, Rating.B, "Good"),
    (60.0, Rating.C, "Needs Improvement"),
    (0.0, Rating.D, "Poor"),
)

NOT_APPLICABLE = RatingInfo(
    rating=Rating.NOT_APPLICABLE, rating_description="Not Applicable"
)


def calculate_rating(score: float) -> RatingInfo:
    """Map a 0-100 score to its rating band."""
    if math.isnan(score):
        raise ValueError("Cannot rate a NaN score")
    for lower, rating, description in RATING_THRESHOLDS:
        if score >= lower:
            return RatingInfo(rating=rating, rating_description=description)
    return RatingInfo(rating=Rating.D, rating_description="Poor")
