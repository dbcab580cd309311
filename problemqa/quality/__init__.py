"""Composite quality scoring."""

from problemqa.quality.scorer import (
    QualityScorer,
    QualityScores,
    calculate_overall_score,
    calculate_quality_scores,
    calculate_trust_score,
    calculate_usage_score,
    get_grade_description,
)

__all__ = [
    "QualityScorer",
    "QualityScores",
    "calculate_quality_scores",
    "calculate_overall_score",
    "calculate_trust_score",
    "calculate_usage_score",
    "get_grade_description",
]
