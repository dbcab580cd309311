"""Duplicate and variant detection."""

from problemqa.similarity.comprehensive import (
    SimilarityResult,
    SimilarProblem,
    calculate_comprehensive_similarity,
    detect_numeric_substitution,
    find_similar_problems,
)
from problemqa.similarity.duplicates import (
    DEFAULT_DUPLICATE_THRESHOLD,
    DuplicateMatch,
    calculate_similarity,
    find_duplicates,
    tokenize,
)

__all__ = [
    "DEFAULT_DUPLICATE_THRESHOLD",
    "DuplicateMatch",
    "tokenize",
    "calculate_similarity",
    "find_duplicates",
    "SimilarityResult",
    "SimilarProblem",
    "calculate_comprehensive_similarity",
    "detect_numeric_substitution",
    "find_similar_problems",
]
