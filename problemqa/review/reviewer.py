"""
Heuristic Reviewer.

Runs five boolean quality checks, issue detection, warning generation and
answer verification on a problem, then recommends APPROVE, REVISE or REJECT.

Decision policy:
- REJECT: 3+ issues, or no answer
- REVISE: any issue, verification says incorrect, explanation or typo check failed
- APPROVE: verification confidence >= approve threshold (0.6)
- REVISE otherwise

Adding issues can only move a recommendation away from APPROVE.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from problemqa.core.models import ProblemRecord, ProblemType, RecommendedAction
from problemqa.review.verifier import AnswerVerifier, FormatAnswerVerifier, VerificationResult

CONTENT_MIN_CHARS = 20
CONTENT_MAX_CHARS = 2000
EXPLANATION_MIN_CHARS = 10
GOOD_EXPLANATION_CHARS = 50
SHORT_CONTENT_WARNING = 50
LONG_CONTENT_WARNING = 1000
MAX_OPTIONS = 6
MAX_ISSUES_BEFORE_REJECT = 3

QUESTION_INDICATORS = ("?", "？", "시오", "것은")
VALID_ANSWER_MARKERS = (
    "①", "②", "③", "④", "⑤",
    "A", "B", "C", "D", "E",
    "1", "2", "3", "4", "5",
)
COPYRIGHT_INDICATORS = ("©", "저작권", "copyright", "출처:", "인용")

TYPO_PATTERNS = [
    re.compile(r",\s*\."),             # ",." sequence
    re.compile(r"\?\s*\?"),            # "??" sequence
    re.compile(r"[가-힣]\s{2,}[가-힣]"),  # double space inside a sentence
    re.compile(r"[^\s]\([^\s]"),       # no spacing around parentheses
]


@dataclass
class QualityChecks:
    has_answer: bool
    has_options: bool
    has_explanation: bool
    content_length: bool
    no_typos: bool

    @property
    def passed(self) -> int:
        return sum(
            (self.has_answer, self.has_options, self.has_explanation,
             self.content_length, self.no_typos)
        )

    def to_dict(self) -> dict[str, bool]:
        return {
            "hasAnswer": self.has_answer,
            "hasOptions": self.has_options,
            "hasExplanation": self.has_explanation,
            "contentLength": self.content_length,
            "noTypos": self.no_typos,
        }


@dataclass
class ReviewResult:
    answer_verification: VerificationResult
    generated_explanation: str | None
    detected_issues: list[str]
    review_warnings: list[str]
    quality_checks: QualityChecks
    recommended_action: RecommendedAction
    overall_confidence: float

    @property
    def review_score(self) -> float:
        """Score stored on the review record (confidence x 100)."""
        return round(self.overall_confidence * 100, 1)

    def issues_payload(self) -> dict[str, Any]:
        return {
            "issues": list(self.detected_issues),
            "warnings": list(self.review_warnings),
            "qualityChecks": self.quality_checks.to_dict(),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "answerVerification": self.answer_verification.to_dict(),
            "generatedExplanation": self.generated_explanation,
            "detectedIssues": list(self.detected_issues),
            "reviewWarnings": list(self.review_warnings),
            "qualityChecks": self.quality_checks.to_dict(),
            "recommendedAction": self.recommended_action.value,
            "overallConfidence": self.overall_confidence,
        }


def has_common_typos(text: str) -> bool:
    return any(p.search(text) for p in TYPO_PATTERNS)


def _has_explanation(problem: ProblemRecord) -> bool:
    return bool(problem.explanation) and len(problem.explanation.strip()) >= EXPLANATION_MIN_CHARS


class HeuristicReviewer:
    """
    Deterministic, explainable problem reviewer.

    Example:
        >>> reviewer = HeuristicReviewer()
        >>> result = reviewer.review(problem)
        >>> result.recommended_action
        <RecommendedAction.REVISE: 'REVISE'>
    """

    def __init__(
        self,
        verifier: AnswerVerifier | None = None,
        approve_confidence: float = 0.6,
    ):
        self.verifier = verifier or FormatAnswerVerifier()
        self.approve_confidence = approve_confidence

    def review(self, problem: ProblemRecord) -> ReviewResult:
        quality_checks = self.perform_quality_checks(problem)
        issues = self.detect_issues(problem)
        warnings = self.generate_warnings(problem)
        verification = self.verifier.verify(problem)

        action = self.determine_action(issues, quality_checks, verification)

        pass_rate = quality_checks.passed / 5
        issues_penalty = min(len(issues) * 0.1, 0.3)
        confidence = max(0.0, verification.confidence * 0.5 + pass_rate * 0.5 - issues_penalty)

        return ReviewResult(
            answer_verification=verification,
            generated_explanation=self.generate_explanation(problem),
            detected_issues=issues,
            review_warnings=warnings,
            quality_checks=quality_checks,
            recommended_action=action,
            overall_confidence=round(min(confidence, 1.0), 2),
        )

    def perform_quality_checks(self, problem: ProblemRecord) -> QualityChecks:
        if problem.is_multiple_choice:
            options, _ = problem.option_list()
            has_options = len(options) >= 2
        else:
            has_options = True

        return QualityChecks(
            has_answer=len(problem.answer.strip()) > 0,
            has_options=has_options,
            has_explanation=_has_explanation(problem),
            content_length=CONTENT_MIN_CHARS <= len(problem.content) <= CONTENT_MAX_CHARS,
            no_typos=not has_common_typos(problem.content),
        )

    def detect_issues(self, problem: ProblemRecord) -> list[str]:
        issues = []
        content = problem.content

        if len(content) < CONTENT_MIN_CHARS:
            issues.append("Problem content is too short.")

        if not any(token in content for token in QUESTION_INDICATORS):
            issues.append("Problem format is unclear (no question expression).")

        if not problem.answer.strip():
            issues.append("Answer is empty.")

        if problem.type == ProblemType.MULTIPLE_CHOICE:
            issues.extend(self._option_issues(problem))
            if not any(marker in problem.answer for marker in VALID_ANSWER_MARKERS):
                issues.append("Answer is not a valid option marker.")

        return issues

    @staticmethod
    def _option_issues(problem: ProblemRecord) -> list[str]:
        if not problem.options:
            return ["Multiple-choice problem has no options."]

        options, malformed = problem.option_list()
        if malformed:
            return ["Options are malformed."]

        issues = []
        if len(options) < 2:
            issues.append("Fewer than 2 options.")
        if len(options) > MAX_OPTIONS:
            issues.append(f"Too many options (more than {MAX_OPTIONS}).")
        if len({o.strip().lower() for o in options}) != len(options):
            issues.append("Duplicate options found.")
        return issues

    @staticmethod
    def generate_warnings(problem: ProblemRecord) -> list[str]:
        warnings = []
        content = problem.content

        if not _has_explanation(problem):
            warnings.append("Explanation is missing or too short; adding one is recommended.")

        if len(content) < SHORT_CONTENT_WARNING:
            warnings.append("Problem is very short; check that the context is sufficient.")

        if len(content) > LONG_CONTENT_WARNING:
            warnings.append("Problem is very long; consider trimming to the essentials.")

        lowered = content.lower()
        if any(ind.lower() in lowered for ind in COPYRIGHT_INDICATORS):
            warnings.append("Copyright notice detected; confirm usage rights.")

        return warnings

    @staticmethod
    def generate_explanation(problem: ProblemRecord) -> str | None:
        """Template explanation; None when a good explanation exists."""
        if problem.explanation and len(problem.explanation) > GOOD_EXPLANATION_CHARS:
            return None

        lines = ["[Auto-generated draft]", f"The answer to this problem is {problem.answer}."]
        if problem.type == ProblemType.MULTIPLE_CHOICE:
            lines.append("Analyzing each option:")
        lines.append("(Detailed explanation available once model-backed review is enabled)")
        return "\n".join(lines)

    def determine_action(
        self,
        issues: list[str],
        quality_checks: QualityChecks,
        verification: VerificationResult,
    ) -> RecommendedAction:
        if len(issues) >= MAX_ISSUES_BEFORE_REJECT or not quality_checks.has_answer:
            return RecommendedAction.REJECT

        if issues or not verification.is_correct:
            return RecommendedAction.REVISE

        if not quality_checks.has_explanation or not quality_checks.no_typos:
            return RecommendedAction.REVISE

        if verification.confidence >= self.approve_confidence:
            return RecommendedAction.APPROVE

        return RecommendedAction.REVISE


_default_reviewer = HeuristicReviewer()


def review_problem(problem: ProblemRecord) -> ReviewResult:
    return _default_reviewer.review(problem)
