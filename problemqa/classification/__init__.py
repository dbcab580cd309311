"""Subject classification and difficulty estimation."""

from problemqa.classification.difficulty import (
    DifficultyEstimator,
    DifficultyFactors,
    DifficultyResult,
    DifficultyStats,
    calculate_difficulty_stats,
    estimate_batch_difficulty,
    estimate_difficulty,
)
from problemqa.classification.subject import (
    ClassificationResult,
    SubjectClassifier,
    SubjectResult,
    TierEstimate,
    classify_problem,
    classify_subject,
    estimate_difficulty_tier,
)

__all__ = [
    "SubjectClassifier",
    "SubjectResult",
    "TierEstimate",
    "ClassificationResult",
    "classify_subject",
    "estimate_difficulty_tier",
    "classify_problem",
    "DifficultyEstimator",
    "DifficultyFactors",
    "DifficultyResult",
    "DifficultyStats",
    "estimate_difficulty",
    "estimate_batch_difficulty",
    "calculate_difficulty_stats",
]
