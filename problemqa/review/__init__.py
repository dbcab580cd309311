"""Heuristic problem review and answer verification."""

from problemqa.review.reviewer import (
    HeuristicReviewer,
    QualityChecks,
    ReviewResult,
    has_common_typos,
    review_problem,
)
from problemqa.review.verifier import (
    AnswerVerifier,
    FormatAnswerVerifier,
    VerificationResult,
)

__all__ = [
    "HeuristicReviewer",
    "ReviewResult",
    "QualityChecks",
    "review_problem",
    "has_common_typos",
    "AnswerVerifier",
    "FormatAnswerVerifier",
    "VerificationResult",
]
