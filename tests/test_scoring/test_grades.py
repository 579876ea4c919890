"""Tests for certifier.scoring.grades."""

from __future__ import annotations

import math

import pytest

from certifier.scoring import NOT_APPLICABLE, calculate_rating
from certifier.validator.models import Rating


class TestCalculateRating:
    @pytest.mark.parametrize(
        ("score", "rating", "description"),
        [
            (100, Rating.A, "Excellent"),
            (90, Rating.A, "Excellent"),
            (89.99, Rating.B, "Good"),
            (75, Rating.B, "Good"),
            (74.99, Rating.C, "Needs Improvement"),
            (60, Rating.C, "Needs Improvement"),
            (59.99, Rating.D, "Poor"),
            (0, Rating.D, "Poor"),
        ],
    )
    def test_bands(self, score: float, rating: Rating, description: str) -> None:
        info = calculate_rating(score)
        assert info.rating == rating
        assert info.rating_description == description

    def test_total_over_range(self) -> None:
        for tenth in range(0, 1001):
            assert calculate_rating(tenth / 10).rating in {Rating.A, Rating.B, Rating.C, Rating.D}

    def test_negative_is_poor(self) -> None:
        assert calculate_rating(-5).rating == Rating.D

    def test_nan_rejected(self) -> None:
        with pytest.raises(ValueError):
            calculate_rating(math.nan)

    def test_not_applicable_sentinel(self) -> None:
        assert NOT_APPLICABLE.rating == Rating.NOT_APPLICABLE
        assert NOT_APPLICABLE.rating.value == "N/A"
        assert NOT_APPLICABLE.rating_description == "Not Applicable"
